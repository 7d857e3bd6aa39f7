"""
Automatic print orientation of a single mesh.

AutoOrienter holds non-owning views of one mesh for one run: it builds the
facet buffers of the mesh and its convex hull once, then scores every
candidate direction (projection -> features -> cost) and keeps the
cheapest. The mesh itself is never modified.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from auto_orient.geometry.convex_hull import convex_hull_3d
from auto_orient.geometry.facets import FacetSet
from auto_orient.geometry.mesh_stats import calculate_bounding_box, calculate_volume
from auto_orient.orientation.candidates import collect_directions, remove_duplicates
from auto_orient.orientation.cost import target_function
from auto_orient.orientation.features import CostItems, MeshMetrics, extract_features
from auto_orient.orientation.params import OrientParams
from auto_orient.orientation.projection import project_vertices

logger = logging.getLogger(__name__)

# Scores this close (relative) to the best are ties; the earliest candidate wins
SCORE_TIE_RTOL = 1e-9


@dataclass
class OrientationResult:
    """Winning orientation of one mesh.

    Attributes:
        orientation: unit "up" direction in the mesh's current frame
        axis: rotation axis that brings ``orientation`` to +Z
        angle: rotation angle in radians
        rotation_matrix: 3x3 matrix of that rotation
        euler_angles: (roll, pitch, yaw) of that rotation, XYZ convention
        costs: feature set of the winning candidate
        n_candidates: number of directions evaluated
    """
    orientation: NDArray[np.float64]
    axis: NDArray[np.float64]
    angle: float
    rotation_matrix: NDArray[np.float64]
    euler_angles: NDArray[np.float64]
    costs: CostItems
    n_candidates: int = 0

    def to_dict(self) -> dict:
        return {
            'orientation': self.orientation.tolist(),
            'axis': self.axis.tolist(),
            'angle_deg': float(np.degrees(self.angle)),
            'rotation_matrix': self.rotation_matrix.tolist(),
            'euler_angles_deg': np.degrees(self.euler_angles).tolist(),
            'costs': self.costs.to_dict(),
            'n_candidates': self.n_candidates,
        }


@dataclass
class OrientMesh:
    """Caller-owned mesh slot: read-only geometry in, orientation result out.

    Attributes:
        name: display name used in progress reports and logs
        vertices: (N, 3) vertex positions
        faces: (M, 3) vertex indices
        appearance: optional (M,) flags of cosmetically significant facets
        overhang_angle: per-mesh overhang angle in degrees
            (None = OrientParams.overhang_angle)
        volume: stored volume; non-positive values are recomputed
        result: written once by the orchestrator
    """
    name: str
    vertices: NDArray[np.float64]
    faces: NDArray[np.int32]
    appearance: Optional[NDArray[np.bool_]] = None
    overhang_angle: Optional[float] = None
    volume: float = 0.0
    result: Optional[OrientationResult] = field(default=None, repr=False)


class AutoOrienter:
    """Selects the least unprintable "up" direction of one mesh."""

    def __init__(
        self,
        mesh: OrientMesh,
        params: Optional[OrientParams] = None,
        progressind: Optional[Callable[[int], None]] = None,
    ):
        self.mesh = mesh
        self.params = params or OrientParams()
        self.progressind = progressind
        self.ascent = self.params.ascent_for(mesh.overhang_angle)

        self.facets = FacetSet.empty()
        self.hull_facets = FacetSet.empty()
        self.metrics = MeshMetrics()
        self.candidates = np.zeros((0, 3))

        logger.debug("%s: ascent=%.4f", mesh.name, self.ascent)
        self.preprocess()

    def _report(self, percent: int) -> None:
        if self.progressind:
            self.progressind(percent)

    def preprocess(self) -> None:
        """Build facet buffers of the mesh and its convex hull."""
        vertices = np.asarray(self.mesh.vertices, dtype=np.float64).reshape(-1, 3)
        faces = np.asarray(self.mesh.faces, dtype=np.int32).reshape(-1, 3)

        self.facets = FacetSet.from_mesh(
            vertices, faces, self.params.negl_face_size, self.mesh.appearance
        )
        logger.debug("%s: %d facets, %d appearance facets",
                     self.mesh.name, self.facets.count, self.facets.n_appearance)

        used = vertices[np.unique(faces)] if len(faces) else vertices[:0]
        hull_vertices, hull_faces = convex_hull_3d(used)
        self.hull_facets = FacetSet.from_mesh(hull_vertices, hull_faces, self.params.negl_face_size)

        bbox = calculate_bounding_box(used)
        volume = self.mesh.volume if self.mesh.volume > 0 else calculate_volume(vertices, faces)
        self.metrics = MeshMetrics(area_total=bbox.area, radius=bbox.radius, volume=volume)

    def evaluate(self, orientation: NDArray[np.float64]) -> CostItems:
        """Score one "up" direction."""
        orientation = np.asarray(orientation, dtype=np.float64)
        projection = project_vertices(self.facets, self.hull_facets, orientation)
        costs = extract_features(
            self.facets, self.hull_facets, projection, orientation,
            self.params, self.ascent, self.metrics,
        )
        target_function(costs, self.params)
        return costs

    def process(self) -> Tuple[NDArray[np.float64], CostItems]:
        """Evaluate every candidate and return the best (up direction, costs).

        Candidates are facet-normal directions that end up facing the bed,
        so each is scored with its negation as the up direction.
        """
        directions = collect_directions(self.facets, self.hull_facets, self.params)
        self._report(20)

        self.candidates = remove_duplicates(directions, self.params.dedup_tolerance)
        logger.debug("%s: evaluating %d candidates (%d before dedup)",
                     self.mesh.name, len(self.candidates), len(directions))
        self._report(30)

        logger.debug("%-40s %s", "", CostItems.field_names())
        results: List[CostItems] = []
        for candidate in self.candidates:
            orientation = -candidate
            costs = self.evaluate(orientation)
            results.append(costs)
            logger.debug("orientation: %-30s cost: %s",
                         np.array2string(orientation, precision=4), costs.field_values())
        self._report(60)

        best_index = select_best(results)
        self._report(80)

        best_orientation = -self.candidates[best_index]
        best_costs = results[best_index]
        logger.info(
            "%s: best orientation %s, costs: %s",
            self.mesh.name, np.array2string(best_orientation, precision=6),
            best_costs.field_values(),
        )
        self._report(100)
        return best_orientation, best_costs


def select_best(results: List[CostItems]) -> int:
    """Index of the cheapest feature set.

    Scores within SCORE_TIE_RTOL of the minimum tie; ties resolve to the
    earliest generated candidate.
    """
    if not results:
        raise ValueError("no candidates to select from")
    scores = np.array([c.unprintability for c in results], dtype=np.float64)
    best_score = float(scores.min())
    tolerance = SCORE_TIE_RTOL * max(1.0, abs(best_score))
    return int(np.flatnonzero(scores <= best_score + tolerance)[0])
