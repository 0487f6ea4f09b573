"""
Fitting list normalization and aggregate fitting K.

Swage fittings are managed automatically from the inlet/outlet diameters.
The fitting K of a segment is the sum of ``k_each * count``; when it cannot
be determined every per-fitting K is reset to zero and the aggregate is None.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from hydraulics.context import HydraulicContext, resolve_diameter
from hydraulics.models import Fitting, SegmentBase
from utils.constants import SWAGE_ABSOLUTE_TOLERANCE, SWAGE_RELATIVE_TOLERANCE
from utils.errors import InsufficientInputError
from utils.helpers import lookup_fitting_losses, normalize_fitting_type

logger = logging.getLogger("hydronet-mcp.fittings")


@dataclass
class FittingContribution:
    fitting_k: Optional[float]
    fittings: List[Fitting] = field(default_factory=list)
    issue: Optional[str] = None


def diameters_differ(a: float, b: float) -> bool:
    """True when two diameters (m) differ by more than the swage tolerance."""
    scale = max(abs(a), abs(b), 1.0)
    tolerance = max(SWAGE_ABSOLUTE_TOLERANCE, SWAGE_RELATIVE_TOLERANCE * scale)
    return abs(a - b) > tolerance


def ensure_swage_fittings(segment: SegmentBase) -> List[Fitting]:
    """Return the segment's fittings with swages matching its geometry.

    An ``inlet_swage`` is present exactly when the inlet diameter differs from
    the pipe diameter, an ``outlet_swage`` exactly when the outlet diameter
    does. Existing swage entries are kept as they are when still warranted.
    """
    try:
        main = resolve_diameter(segment)
    except InsufficientInputError:
        main = None

    def warranted(other) -> bool:
        if main is None or other is None:
            return False
        other_m = other.to_si()
        return other_m > 0 and diameters_differ(main, other_m)

    needed = {
        "inlet_swage": warranted(segment.inlet_diameter),
        "outlet_swage": warranted(segment.outlet_diameter),
    }

    fittings = []
    present = set()
    for fitting in segment.fittings:
        key = normalize_fitting_type(fitting.type)
        if key in needed:
            if not needed[key] or key in present:
                continue
            present.add(key)
        fittings.append(fitting)

    for key, wanted in needed.items():
        if wanted and key not in present:
            fittings.append(Fitting(type=key, count=1))
    return fittings


def _zeroed(fittings: List[Fitting]) -> List[Fitting]:
    return [f.model_copy(update={"k_each": 0.0, "k_total": 0.0}) for f in fittings]


def compute_fitting_contribution(
    fittings: List[Fitting],
    segment: SegmentBase,
    context: Optional[HydraulicContext],
    reynolds: Optional[float],
) -> FittingContribution:
    """Per-fitting K values and their total for a segment.

    No fittings, or only zero-count entries, is a legitimate zero. Missing
    diameter or Reynolds number, or an unknown fitting type, makes the total
    indeterminate (None) and resets all K values.
    """
    if not any(f.count > 0 for f in fittings):
        return FittingContribution(0.0, _zeroed(fittings))

    if context is None or context.diameter is None or reynolds is None or reynolds <= 0:
        return FittingContribution(
            None, _zeroed(fittings), "Fitting losses need diameter, fluid and flow data"
        )

    try:
        total, k_values = lookup_fitting_losses(
            fittings, context.diameter, reynolds,
            elbow_style=segment.elbow_style,
            inlet_diameter=context.inlet_diameter,
            outlet_diameter=context.outlet_diameter,
        )
    except (ValueError, ZeroDivisionError) as e:
        logger.warning("Fitting lookup failed for segment %s: %s", segment.display_name, e)
        return FittingContribution(None, _zeroed(fittings), f"Fitting lookup failed: {e}")

    updated = [
        f.model_copy(update={"k_each": k, "k_total": k * f.count if f.count > 0 else 0.0})
        for f, k in zip(fittings, k_values)
    ]
    return FittingContribution(total, updated)
