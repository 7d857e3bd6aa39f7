"""Геометрические примитивы: габариты, выпуклая оболочка, буферы граней."""

from auto_orient.geometry.convex_hull import convex_hull_3d
from auto_orient.geometry.facets import FacetSet
from auto_orient.geometry.mesh_stats import (
    BoundingBox,
    calculate_bounding_box,
    calculate_volume,
)

__all__ = [
    "convex_hull_3d",
    "FacetSet",
    "BoundingBox",
    "calculate_bounding_box",
    "calculate_volume",
]
