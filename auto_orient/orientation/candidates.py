"""
Генерация кандидатов ориентации.

Кандидат: направление нормали грани, которая после поворота окажется
внизу (на столе). Источники кандидатов, в порядке добавления:
  1. Исходная ориентация (0, 0, -1): модель «как есть».
  2. Кластеры нормалей граней модели, взвешенные по площади.
  3. Кластеры нормалей граней выпуклой оболочки (top-N по площади).
  4. Фиксированный набор из 18 направлений (6 осевых + 12 диагональных
     с шагом 45°), чтобы покрытие не зависело от формы модели.

Затем дубликаты удаляются попарным сравнением. Сложность O(K²) по числу
кандидатов K, а K обычно порядка десятков, поэтому пространственный индекс не нужен.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from auto_orient.geometry.facets import FacetSet, key_to_direction
from auto_orient.orientation.params import OrientParams

logger = logging.getLogger(__name__)

DEFAULT_DIRECTION = np.array([0.0, 0.0, -1.0])

_D = 0.70710678
SUPPLEMENTARY_DIRECTIONS = np.array([
    [0, 0, -1], [_D, 0, -_D], [0, _D, -_D], [-_D, 0, -_D], [0, -_D, -_D],
    [1, 0, 0], [_D, _D, 0], [0, 1, 0], [-_D, _D, 0],
    [-1, 0, 0], [-_D, -_D, 0], [0, -1, 0], [_D, -_D, 0],
    [_D, 0, _D], [0, _D, _D], [-_D, 0, _D], [0, -_D, _D], [0, 0, 1],
], dtype=np.float64)

# Векторы короче этого считаются нулевыми
_ZERO_NORM = 1e-12


def area_cumulation(facets: FacetSet, num_directions: Optional[int] = None) -> List[np.ndarray]:
    """Сгруппировать грани по квантованной нормали и суммировать площади.

    Args:
        facets: буферы граней с квантованными нормалями.
        num_directions: сколько крупнейших кластеров вернуть (None = все).

    Returns:
        Направления кластеров по убыванию суммарной площади. При равной
        площади раньше идёт кластер, встреченный первым.
    """
    mask = facets.included
    if not np.any(mask):
        return []

    keys = facets.keys[mask]
    areas = facets.areas[mask]

    unique_keys, first_index, inverse = np.unique(
        keys, axis=0, return_index=True, return_inverse=True
    )
    cluster_areas = np.bincount(inverse.ravel(), weights=areas, minlength=len(unique_keys))

    # lexsort сортирует по последнему ключу в первую очередь
    order = np.lexsort((first_index, -cluster_areas))
    if num_directions is not None:
        order = order[:num_directions]

    directions = []
    for idx in order:
        key = tuple(int(c) for c in unique_keys[idx])
        directions.append(key_to_direction(key))
        logger.debug("  кластер %s: площадь=%.4f", directions[-1], cluster_areas[idx])
    return directions


def remove_duplicates(directions: Sequence[np.ndarray], tol: float = 0.01) -> np.ndarray:
    """Удалить совпадающие и нулевые направления с сохранением порядка.

    Кандидат c отбрасывается, если для ранее оставленного k выполняется
    ``|c - k| <= tol * min(|c|, |k|)``. Для единичных векторов это угол
    около tol радиан (0.01 ≈ 0.57°).

    Args:
        directions: кандидаты в порядке генерации.
        tol: относительный допуск.

    Returns:
        Массив (K, 3) оставшихся направлений.
    """
    kept: List[np.ndarray] = []
    kept_norms: List[float] = []

    for direction in directions:
        d = np.asarray(direction, dtype=np.float64)
        norm = float(np.linalg.norm(d))
        if norm <= _ZERO_NORM:
            continue
        if kept:
            dist = np.linalg.norm(np.asarray(kept) - d, axis=1)
            limit = tol * np.minimum(np.asarray(kept_norms), norm)
            if np.any(dist <= limit):
                continue
        kept.append(d)
        kept_norms.append(norm)

    return np.asarray(kept, dtype=np.float64).reshape(-1, 3)


def collect_directions(
    mesh_facets: FacetSet,
    hull_facets: FacetSet,
    params: OrientParams,
) -> List[np.ndarray]:
    """Собрать направления-кандидаты до дедупликации.

    Returns:
        Список направлений; первым всегда идёт DEFAULT_DIRECTION.
    """
    directions: List[np.ndarray] = [DEFAULT_DIRECTION]
    directions.extend(area_cumulation(mesh_facets, params.mesh_directions))
    directions.extend(area_cumulation(hull_facets, params.hull_directions))
    directions.extend(SUPPLEMENTARY_DIRECTIONS)
    return directions
