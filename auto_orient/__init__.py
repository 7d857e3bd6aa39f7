"""
auto_orient: автоматический выбор ориентации моделей для 3D-печати.

Одиночный файл обрабатывается через main.py, папка через auto-orient-batch.
"""

from auto_orient.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)
from auto_orient.orient import (
    OrientBatchReport,
    apply_orientation,
    orient_mesh,
    orient_meshes,
)
from auto_orient.orientation import AutoOrienter, OrientationResult, OrientMesh, OrientParams

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
    "OrientBatchReport",
    "apply_orientation",
    "orient_mesh",
    "orient_meshes",
    "AutoOrienter",
    "OrientationResult",
    "OrientMesh",
    "OrientParams",
]
