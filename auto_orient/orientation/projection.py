"""
Projection of facet vertices onto a candidate "up" direction.

Pure per-call transform: every candidate gets fresh buffers sized to the
facet counts, nothing is cached between candidates.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from auto_orient.geometry.facets import FacetSet


@dataclass
class Projection:
    """Projected heights of mesh and hull facets for one direction.

    Attributes:
        z_projected: (F, 3) height of each facet vertex
        z_max: (F,) highest vertex per facet
        z_median: (F,) middle vertex per facet
        z_mean: (F,) mean height per facet
        z_max_hull: (H,) highest vertex per hull facet
    """
    z_projected: NDArray[np.float64]
    z_max: NDArray[np.float64]
    z_median: NDArray[np.float64]
    z_mean: NDArray[np.float64]
    z_max_hull: NDArray[np.float64]

    @property
    def total_min_z(self) -> float:
        """Lowest projected vertex of the mesh (0 for an empty mesh)."""
        if self.z_projected.size == 0:
            return 0.0
        return float(self.z_projected.min())


def median3(a: NDArray[np.float64], b: NDArray[np.float64], c: NDArray[np.float64]) -> NDArray[np.float64]:
    """Element-wise median of three arrays without sorting."""
    return np.maximum(np.minimum(a, b), np.minimum(np.maximum(a, b), c))


def project_vertices(
    mesh_facets: FacetSet,
    hull_facets: FacetSet,
    orientation: NDArray[np.float64],
) -> Projection:
    """Project mesh and hull facet vertices onto ``orientation``.

    Args:
        mesh_facets: mesh facet buffers
        hull_facets: convex hull facet buffers
        orientation: up direction (need not be unit length)

    Returns:
        Projection with per-facet max/median/mean heights
    """
    direction = np.asarray(orientation, dtype=np.float64)

    z = mesh_facets.triangles @ direction  # (F, 3)
    z0, z1, z2 = z[:, 0], z[:, 1], z[:, 2]

    z_hull = hull_facets.triangles @ direction

    return Projection(
        z_projected=z,
        z_max=z.max(axis=1) if len(z) else np.zeros(0),
        z_median=median3(z0, z1, z2),
        z_mean=(z0 + z1 + z2) / 3.0,
        z_max_hull=z_hull.max(axis=1) if len(z_hull) else np.zeros(0),
    )
