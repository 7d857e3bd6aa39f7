"""
Unprintability cost: one scalar per candidate, lower is better.

Both modes share a rational form whose numerator grows with overhang and
low-angle faces and whose denominator grows with bed contact. ``tar_d``
appears on both sides and keeps the denominator strictly positive.
"""

from auto_orient.orientation.features import CostItems
from auto_orient.orientation.params import OrientParams

# Overhang scale of the volume-minimizing mode
OVERHANG_DIVISOR = 25.0


def target_function(costs: CostItems, params: OrientParams) -> float:
    """Score a feature set and store the score as ``costs.unprintability``.

    Volume mode (``params.min_volume``)::

        o = overhang / 25
        cost = A*(o + B) + F*(o*C + D + LAF*area_laf*use_laf)
                          / (D + CONTOUR*contour + BOTTOM*bottom
                             + BOTTOM_HULL*bottom_hull + E*o + PROJ*area_projected)

    Legacy mode drops the leading term, the ``/25`` scaling and ``E*o``.
    Contact below ``params.bottom_min`` adds ``params.bottom_penalty``.
    """
    laf_term = params.tar_laf * costs.area_laf * float(params.use_low_angle_face)
    base_denominator = (
        params.tar_d
        + params.contour_f * costs.contour
        + params.bottom_f * costs.bottom
        + params.bottom_hull_f * costs.bottom_hull
        + params.tar_proj_area * costs.area_projected
    )

    if params.min_volume:
        overhang = costs.overhang / OVERHANG_DIVISOR
        cost = (
            params.tar_a * (overhang + params.tar_b)
            + params.relative_f * (overhang * params.tar_c + params.tar_d + laf_term)
            / (base_denominator + params.tar_e * overhang)
        )
    else:
        cost = (
            params.relative_f * (costs.overhang * params.tar_c + params.tar_d + laf_term)
            / base_denominator
        )

    if costs.bottom < params.bottom_min:
        cost += params.bottom_penalty

    costs.unprintability = cost
    return cost
