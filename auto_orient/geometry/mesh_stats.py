"""
Mesh statistics used by the orientation engine.

Provides:
- Axis-aligned bounding box with footprint area and radius
- Per-facet areas and unit normals
- Signed volume (divergence theorem)
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass
class BoundingBox:
    """Axis-Aligned Bounding Box (AABB) for a mesh.

    Attributes:
        min_point: Minimum corner (x_min, y_min, z_min)
        max_point: Maximum corner (x_max, y_max, z_max)
    """
    min_point: NDArray[np.float64]
    max_point: NDArray[np.float64]

    @property
    def dimensions(self) -> NDArray[np.float64]:
        """Get box dimensions (x, y, z extents)."""
        return self.max_point - self.min_point

    @property
    def area(self) -> float:
        """Footprint area of the box on the XY plane."""
        dims = self.dimensions
        return float(dims[0] * dims[1])

    @property
    def diagonal(self) -> float:
        """Get box diagonal length."""
        return float(np.linalg.norm(self.dimensions))

    @property
    def radius(self) -> float:
        """Radius of the sphere circumscribing the box."""
        return 0.5 * self.diagonal


def calculate_bounding_box(vertices: NDArray[np.float64]) -> BoundingBox:
    """Calculate axis-aligned bounding box for vertices.

    Args:
        vertices: Nx3 array of vertex coordinates

    Returns:
        BoundingBox instance (degenerate at the origin for no vertices)
    """
    if len(vertices) == 0:
        return BoundingBox(
            min_point=np.zeros(3),
            max_point=np.zeros(3)
        )

    return BoundingBox(
        min_point=np.min(vertices, axis=0),
        max_point=np.max(vertices, axis=0)
    )


def _face_cross(vertices: NDArray[np.float64], faces: NDArray[np.int32]) -> NDArray[np.float64]:
    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    return np.cross(v1 - v0, v2 - v0)


def calculate_face_areas(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> NDArray[np.float64]:
    """Calculate area of each triangular face.

    Uses cross product: area = 0.5 * |e1 x e2|

    Args:
        vertices: Nx3 array of vertices
        faces: Mx3 array of face indices

    Returns:
        Array of M face areas
    """
    if len(faces) == 0:
        return np.array([], dtype=np.float64)
    return 0.5 * np.linalg.norm(_face_cross(vertices, faces), axis=1)


def calculate_face_normals(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> NDArray[np.float64]:
    """Calculate unit normal of each face (right-hand winding).

    Degenerate faces get a zero normal.
    """
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=np.float64)
    cross = _face_cross(vertices, faces)
    norms = np.linalg.norm(cross, axis=1, keepdims=True)
    safe = np.where(norms < 1e-12, 1.0, norms)
    return np.where(norms < 1e-12, 0.0, cross / safe)


def calculate_volume(
    vertices: NDArray[np.float64],
    faces: NDArray[np.int32]
) -> float:
    """Calculate signed mesh volume using divergence theorem.

    For a closed mesh, this gives the enclosed volume.
    Negative volume indicates inverted normals.

    Formula: V = (1/6) * sum(v0 . (v1 x v2))

    Args:
        vertices: Nx3 array of vertices
        faces: Mx3 array of face indices

    Returns:
        Signed volume
    """
    if len(faces) == 0:
        return 0.0

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]

    signed_volumes = np.sum(v0 * np.cross(v1, v2), axis=1) / 6.0
    return float(np.sum(signed_volumes))
