"""
Single-file pipeline: load STL -> orient -> place on bed -> save STL.
"""

import json
import logging
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from auto_orient.io.stl_loader import load_stl, save_stl
from auto_orient.logging_config import LogContext, log_timing
from auto_orient.orient import apply_orientation, orient_mesh
from auto_orient.orientation.orienter import OrientationResult, OrientMesh
from auto_orient.orientation.params import OrientParams
from auto_orient.project_config import ProjectConfig

logger = logging.getLogger(__name__)


def run_pipeline(
    stl_path: str,
    output_stl: Optional[str] = None,
    config: Optional[ProjectConfig] = None,
    params: Optional[OrientParams] = None,
    report_path: Optional[str] = None,
    step_progress: Optional[Callable[[int], None]] = None,
) -> OrientationResult:
    """Orient one STL file.

    Args:
        stl_path: input STL file
        output_stl: where to write the rotated, bed-placed mesh
            (None = only compute the orientation)
        config: project configuration; its orientation section is used
            unless ``params`` is given
        params: explicit orientation parameters
        report_path: optional JSON file receiving the result
        step_progress: receives coarse percentages of the orienter

    Returns:
        OrientationResult of the mesh

    Raises:
        STLLoadError: if the input cannot be read or the output written
    """
    if params is None:
        params = (config or ProjectConfig()).orientation

    with LogContext(file=Path(stl_path).name):
        result = _run(stl_path, output_stl, params, step_progress)

    if report_path:
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump({'input': stl_path, 'output': output_stl, **result.to_dict()}, f, indent=2)
        logger.info("Отчёт сохранён: %s", report_path)

    return result


def _run(
    stl_path: str,
    output_stl: Optional[str],
    params: OrientParams,
    step_progress: Optional[Callable[[int], None]],
) -> OrientationResult:
    logger.info("Шаг 1: Загрузка STL")
    vertices, faces = load_stl(stl_path)
    mesh = OrientMesh(name=Path(stl_path).stem, vertices=vertices, faces=faces)

    logger.info("Шаг 2: Поиск ориентации (%d граней)", len(faces))
    with log_timing(logger, f"orient {mesh.name}"):
        result = orient_mesh(mesh, params, step_progress)

    logger.info(
        "Ориентация: up=%s, euler(deg)=%s, unprintability=%.4f",
        [round(float(v), 4) for v in result.orientation],
        [round(float(v), 2) for v in np.degrees(result.euler_angles)],
        result.costs.unprintability,
    )

    if output_stl:
        logger.info("Шаг 3: Сохранение ориентированного меша")
        save_stl(output_stl, apply_orientation(mesh), faces)

    return result
