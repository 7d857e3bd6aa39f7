"""
Orientation parameters: thresholds and cost-model weights.

All tunables live in one frozen dataclass that is passed explicitly through
every call. The cost weights are empirically fitted values; treat them as
opaque knobs rather than physical quantities.

Field names are lower-case renderings of the slicer's historical constant
names (FIRST_LAY_H -> first_lay_h, TAR_A -> tar_a, ...).
"""

import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

CONTOUR_MODES = ("square", "trace")


@dataclass(frozen=True)
class OrientParams:
    """Immutable configuration of one orientation run.

    Attributes:
        overhang_angle: Base overhang angle in degrees, measured from the
            build direction. Facets steeper than this need support. Meshes
            may override it individually.
        first_lay_h: First layer height. Facets whose highest projected
            point lies within this distance of the lowest point touch the bed.
        negl_face_size: Facets with a smaller area are ignored entirely.
        appearance_face_supp: Extra weight of appearance facets in the
            overhang sum (weight is ``1 + appearance_face_supp``).
        laf_min, laf_max: Open band of ``|cos|`` values that marks a facet as
            a low-angle face.
        bottom_min: Minimum bed contact area before the stability penalty.
        bottom_penalty: Penalty added when contact is below ``bottom_min``.
        tar_a .. tar_e, tar_laf, relative_f, contour_f, bottom_f,
        bottom_hull_f, tar_proj_area: Cost-model weights.
        use_low_angle_face: Include the low-angle-face term.
        min_volume: Volume-minimizing cost mode (else legacy area mode).
        parallel: Orient meshes on a thread pool.
        max_workers: Pool size (None = executor default).
        mesh_directions: Number of mesh normal clusters to test (None = all).
        hull_directions: Number of convex-hull normal clusters to test.
        dedup_tolerance: Relative distance under which two candidate
            directions are duplicates (0.01 ~ 0.57 degrees).
        contour_mode: ``"square"`` uses ``4 * sqrt(bottom)``; ``"trace"``
            sums bottom facet edge lengths.
        contour_amount: Per-facet constant added in ``"trace"`` mode.
        use_projected_area: Compute the projected 2D area feature instead
            of leaving it at zero.
    """
    overhang_angle: float = 60.0
    first_lay_h: float = 0.2
    negl_face_size: float = 0.01
    appearance_face_supp: float = 3.0
    laf_min: float = 0.97    # cos(14 deg)
    laf_max: float = 0.999   # cos(2.6 deg)
    bottom_min: float = 0.1
    bottom_penalty: float = 100.0

    tar_a: float = 0.01
    tar_b: float = 1.0
    tar_c: float = 0.24308070476924726
    tar_d: float = 0.6284515508160871
    tar_e: float = 0.032157292647062234
    tar_laf: float = 0.01
    relative_f: float = 6.610621027964314
    contour_f: float = 0.23228623269775997
    bottom_f: float = 1.167152017941474
    bottom_hull_f: float = 0.1
    tar_proj_area: float = 0.1
    use_low_angle_face: bool = True

    min_volume: bool = True
    parallel: bool = True
    max_workers: Optional[int] = None

    mesh_directions: Optional[int] = None
    hull_directions: int = 10
    dedup_tolerance: float = 0.01
    contour_mode: str = "square"
    contour_amount: float = 0.0182370363962827
    use_projected_area: bool = False

    def __post_init__(self):
        if not 0.0 < self.overhang_angle < 180.0:
            raise ValueError(f"overhang_angle must be in (0, 180), got {self.overhang_angle}")
        for name in ("first_lay_h", "negl_face_size", "appearance_face_supp",
                     "bottom_min", "bottom_penalty", "dedup_tolerance", "contour_amount"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0.0 <= self.laf_min < self.laf_max <= 1.0:
            raise ValueError(
                f"expected 0 <= laf_min < laf_max <= 1, got {self.laf_min}, {self.laf_max}"
            )
        if self.tar_d <= 0:
            raise ValueError(f"tar_d keeps the cost denominator positive, got {self.tar_d}")
        for name, minimum, optional in (("mesh_directions", 0, True),
                                        ("hull_directions", 0, False),
                                        ("max_workers", 1, True)):
            value = getattr(self, name)
            if value is None and optional:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < minimum:
                raise ValueError(f"{name} must be >= {minimum}, got {value}")
        if self.contour_mode not in CONTOUR_MODES:
            raise ValueError(f"contour_mode must be one of {CONTOUR_MODES}, got {self.contour_mode!r}")

    def ascent_for(self, overhang_angle: Optional[float] = None) -> float:
        """Cosine threshold below which a facet normal counts as overhanging.

        ``cos(pi - angle)``: 60 degrees gives -0.5.
        """
        angle = self.overhang_angle if overhang_angle is None else overhang_angle
        if not 0.0 < angle < 180.0:
            raise ValueError(f"overhang_angle must be in (0, 180), got {angle}")
        return math.cos(math.pi - math.radians(angle))

    def with_overrides(self, **changes: Any) -> 'OrientParams':
        """Return a copy with some fields replaced (validated again)."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrientParams':
        """Build parameters from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
