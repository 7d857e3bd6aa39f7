"""
Cost features of one candidate orientation.

Turns the projected heights of a candidate into the scalar features the
cost model consumes: bed contact of the mesh and of its convex hull,
support-prone overhang, contour length, low-angle faces.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Dict

import numpy as np
from numpy.typing import NDArray

from auto_orient.geometry.facets import FacetSet
from auto_orient.orientation.params import OrientParams
from auto_orient.orientation.projection import Projection

logger = logging.getLogger(__name__)


@dataclass
class MeshMetrics:
    """Orientation-independent mesh quantities forwarded into every feature set."""
    area_total: float = 0.0
    radius: float = 0.0
    volume: float = 0.0


@dataclass
class CostItems:
    """Feature set of one candidate; ``unprintability`` is filled by the cost model."""
    overhang: float = 0.0
    bottom: float = 0.0
    bottom_hull: float = 0.0
    contour: float = 0.0
    area_laf: float = 0.0
    area_projected: float = 0.0
    volume: float = 0.0
    area_total: float = 0.0
    radius: float = 0.0
    unprintability: float = 0.0

    @staticmethod
    def field_names() -> str:
        return "overhang, bottom, bothull, contour, A_laf, A_prj, unprintability"

    def field_values(self) -> str:
        return ",\t".join(f"{v:.1f}" for v in (
            self.overhang, self.bottom, self.bottom_hull, self.contour,
            self.area_laf, self.area_projected, self.unprintability,
        ))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def _trace_contour(
    facets: FacetSet,
    z_projected: NDArray[np.float64],
    bottom_mask: NDArray[np.bool_],
    contour_amount: float,
) -> float:
    """Sum of the lowest edge of every bottom facet plus a per-facet constant."""
    n_bottom = int(bottom_mask.sum())
    if n_bottom == 0:
        return 0.0
    tri = facets.triangles[bottom_mask]
    order = np.argsort(z_projected[bottom_mask], axis=1)[:, :2]
    lowest = np.take_along_axis(tri, order[:, :, None], axis=1)
    edges = np.linalg.norm(lowest[:, 0] - lowest[:, 1], axis=1)
    return float(edges.sum()) + contour_amount * n_bottom


def extract_features(
    mesh_facets: FacetSet,
    hull_facets: FacetSet,
    projection: Projection,
    orientation: NDArray[np.float64],
    params: OrientParams,
    ascent: float,
    metrics: MeshMetrics,
) -> CostItems:
    """Compute the cost feature set of one candidate direction.

    Args:
        mesh_facets: mesh facet buffers
        hull_facets: convex hull facet buffers
        projection: heights of both facet sets along ``orientation``
        orientation: candidate up direction
        params: orientation parameters
        ascent: overhang threshold of this mesh (see OrientParams.ascent_for)
        metrics: forwarded area/radius/volume

    Returns:
        CostItems with every feature except ``unprintability``
    """
    direction = np.asarray(orientation, dtype=np.float64)
    costs = CostItems(
        area_total=metrics.area_total,
        radius=metrics.radius,
        volume=metrics.volume,
    )

    total_min_z = projection.total_min_z
    bottom_level = total_min_z + params.first_lay_h
    areas = mesh_facets.areas

    bottom_mask = projection.z_max < bottom_level
    costs.bottom = float(areas[bottom_mask].sum())

    normal_projection = mesh_facets.normals @ direction
    weighted_areas = areas * (mesh_facets.appearance * params.appearance_face_supp + 1.0)
    overhang_mask = (normal_projection < ascent) & ~bottom_mask
    overhang_areas = np.where(overhang_mask, weighted_areas, 0.0)

    if params.min_volume:
        # Deeper below the threshold and higher above the bed costs more
        inner = np.abs(np.minimum(normal_projection - ascent, 0.0))
        heights = projection.z_mean - total_min_z
        costs.overhang = float((heights * overhang_areas * inner).sum())
    else:
        costs.overhang = float(np.abs(overhang_areas).sum())

    if params.contour_mode == "trace":
        costs.contour = _trace_contour(
            mesh_facets, projection.z_projected, bottom_mask, params.contour_amount
        )
    else:
        costs.contour = 4.0 * math.sqrt(costs.bottom)

    hull_bottom = projection.z_max_hull < bottom_level
    costs.bottom_hull = float(hull_facets.areas[hull_bottom].sum())

    abs_projection = np.abs(normal_projection)
    laf_mask = (
        (abs_projection < params.laf_max)
        & (abs_projection > params.laf_min)
        & (projection.z_max > bottom_level)
    )
    costs.area_laf = float(areas[laf_mask].sum())

    if params.use_projected_area:
        norm = float(np.linalg.norm(direction))
        if norm > 0:
            costs.area_projected = 0.5 * float((areas * abs_projection).sum()) / norm

    return costs
