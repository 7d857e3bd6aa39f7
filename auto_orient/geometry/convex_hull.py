"""
3D convex hull of a mesh as an indexed triangle mesh (scipy/Qhull wrapper).

Qhull returns simplices with arbitrary winding; faces are re-wound so that
their right-hand normal agrees with the outward facet plane.
"""

import logging
from typing import Tuple

import numpy as np
from scipy.spatial import ConvexHull, QhullError

logger = logging.getLogger(__name__)


def convex_hull_3d(vertices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Build the convex hull of a vertex cloud.

    Args:
        vertices: Nx3 array of mesh vertices.

    Returns:
        (hull_vertices, hull_faces): hull points (K, 3) float64 and
        outward-wound triangle indices (H, 3) int32 into hull_vertices.
        Both are empty when the cloud is degenerate (fewer than four
        points, or all points coplanar/collinear).
    """
    points = np.asarray(vertices, dtype=np.float64)
    empty = (np.zeros((0, 3), dtype=np.float64), np.zeros((0, 3), dtype=np.int32))

    if len(points) < 4:
        logger.warning("Convex hull skipped: only %d vertices", len(points))
        return empty

    try:
        hull = ConvexHull(points)
    except QhullError as exc:
        logger.warning("Convex hull is degenerate, continuing without it: %s",
                       str(exc).splitlines()[0] if str(exc) else exc)
        return empty

    simplices = np.asarray(hull.simplices, dtype=np.int64)
    outward = hull.equations[:, :3]

    tri = points[simplices]
    cross = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    flip = np.einsum('ij,ij->i', cross, outward) < 0
    simplices[flip] = simplices[flip][:, [0, 2, 1]]

    # Compact to the points actually used by the hull
    used, inverse = np.unique(simplices, return_inverse=True)
    hull_faces = inverse.reshape(-1, 3).astype(np.int32)
    hull_vertices = points[used]

    logger.debug("Convex hull: %d vertices, %d faces", len(hull_vertices), len(hull_faces))
    return hull_vertices, hull_faces
