"""Ориентация для печати: кандидаты, признаки, целевая функция и выбор."""

from auto_orient.orientation.orienter import (
    AutoOrienter,
    OrientationResult,
    OrientMesh,
    select_best,
)
from auto_orient.orientation.params import OrientParams
from auto_orient.orientation.rotation import (
    Rotation3D,
    place_on_bed,
    rotation_to_build_direction,
)

__all__ = [
    "AutoOrienter",
    "OrientationResult",
    "OrientMesh",
    "select_best",
    "OrientParams",
    "Rotation3D",
    "place_on_bed",
    "rotation_to_build_direction",
]
