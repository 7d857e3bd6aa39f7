"""
Загрузка и сохранение STL-файлов.

Поддерживает:
- Бинарный формат STL (автодетекция)
- ASCII формат STL (автодетекция)

Загрузка возвращает дедуплицированные вершины + индексы граней;
сохранение пишет бинарный STL из тех же массивов.
"""

import logging
import os
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from stl import mesh

logger = logging.getLogger(__name__)

# Знаков после запятой при склейке совпадающих вершин
VERTEX_DECIMALS = 6


class STLFormat(Enum):
    """STL file format type."""
    BINARY = "binary"
    ASCII = "ascii"
    UNKNOWN = "unknown"


class STLLoadError(Exception):
    """Ошибка при загрузке, разборе или записи STL-файла."""


def detect_stl_format(filepath: str) -> Tuple[STLFormat, Optional[str]]:
    """Detect STL file format (binary vs ASCII).

    ASCII files start with ``solid`` and contain ``facet``/``endsolid``
    keywords early on; everything else readable is treated as binary.

    Returns:
        Tuple of (format, solid_name or None)

    Raises:
        STLLoadError: if file cannot be read
    """
    try:
        with open(filepath, 'rb') as f:
            chunk = f.read(1024)
    except FileNotFoundError:
        raise STLLoadError(f"Файл не найден: {filepath!r}")
    except OSError as exc:
        raise STLLoadError(f"Не удалось прочитать файл {filepath!r}: {exc}") from exc

    text = chunk.decode('ascii', errors='ignore')
    lowered = text.strip().lower()
    if lowered.startswith('solid') and ('facet' in lowered or 'endsolid' in lowered
                                        or len(chunk) < 80):
        solid_name = text.strip()[5:].split('\n')[0].strip() or None
        return STLFormat.ASCII, solid_name

    if len(chunk) < 84:
        return STLFormat.UNKNOWN, None

    header = chunk[:80].split(b'\x00')[0].decode('ascii', errors='ignore').strip()
    solid_name = header[5:].strip() or None if header.startswith('solid') else None
    return STLFormat.BINARY, solid_name


def load_stl(filepath: str) -> Tuple[np.ndarray, np.ndarray]:
    """Загрузить STL-файл и вернуть уникальные вершины и грани.

    Дедупликация вершин выполняется по точному совпадению координат,
    округлённых до 6 знаков после запятой.

    Returns:
        vertices: массив формы (N, 3), float64, уникальные вершины.
        faces:    массив формы (M, 3), int32, индексы вершин каждого треугольника.

    Raises:
        STLLoadError: если файл не найден, повреждён или содержит 0 треугольников.
    """
    stl_format, solid_name = detect_stl_format(filepath)
    if stl_format is STLFormat.UNKNOWN:
        raise STLLoadError(f"Неизвестный формат STL: {filepath!r}")

    logger.info("Загрузка STL: %s (формат: %s, размер: %.1f KB)",
                filepath, stl_format.value, os.path.getsize(filepath) / 1024)
    if solid_name:
        logger.debug("Solid name: %s", solid_name)

    try:
        stl_mesh = mesh.Mesh.from_file(filepath)
    except FileNotFoundError:
        raise STLLoadError(f"Файл не найден: {filepath!r}")
    except Exception as exc:
        raise STLLoadError(f"Не удалось прочитать STL-файл {filepath!r}: {exc}") from exc

    if len(stl_mesh.vectors) == 0:
        raise STLLoadError(f"STL-файл {filepath!r} не содержит треугольников.")

    # Склеиваем вершины с небольшими погрешностями представления float32
    corners = np.round(stl_mesh.vectors.reshape(-1, 3).astype(np.float64), VERTEX_DECIMALS)
    vertices, inverse = np.unique(corners, axis=0, return_inverse=True)
    faces = inverse.reshape(-1, 3).astype(np.int32)

    logger.info("Загружено: %d уникальных вершин, %d граней.", len(vertices), len(faces))
    return vertices, faces


def save_stl(filepath: str, vertices: np.ndarray, faces: np.ndarray) -> str:
    """Записать меш в бинарный STL.

    Args:
        filepath: путь к выходному файлу (каталог создаётся при необходимости).
        vertices: (N, 3) вершины.
        faces: (M, 3) индексы вершин.

    Returns:
        Путь к записанному файлу.

    Raises:
        STLLoadError: если файл не удалось записать.
    """
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)

    data = np.zeros(len(faces), dtype=mesh.Mesh.dtype)
    data['vectors'] = vertices[faces]
    stl_mesh = mesh.Mesh(data)
    stl_mesh.update_normals()

    directory = os.path.dirname(filepath)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        stl_mesh.save(filepath)
    except OSError as exc:
        raise STLLoadError(f"Не удалось записать STL-файл {filepath!r}: {exc}") from exc

    logger.info("Сохранено: %s (%d граней)", filepath, len(faces))
    return filepath
