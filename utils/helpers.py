"""
Fitting K-factor database and pipe geometry helpers.

Elbows, bends, tees and line valves use the Darby 3-K method, whose constants
depend on the fitting construction (threaded, long-radius or short-radius
welded). Entrances, exits and diameter transitions use the Crane/Rennels
correlations in ``fluids.fittings``. Every K returned here is referenced to the
velocity in the main pipe.
"""

import logging
from typing import List, Optional, Tuple

# --- Third-Party Libraries ---
import fluids.fittings
import fluids.piping

from utils.constants import INCH_to_M

logger = logging.getLogger("hydronet-mcp.helpers")

# Darby 3-K constants (K1, Ki, Kd) keyed by fitting type, then construction.
# Threaded (SCRD) fittings use the standard r/D = 1 rows, short radius (SR)
# the flanged/welded r/D = 1 rows and long radius (LR) the r/D = 1.5 rows.
DARBY_3K = {
    "elbow_90": {
        "SCRD": (800.0, 0.14, 4.0),
        "SR": (800.0, 0.091, 4.0),
        "LR": (800.0, 0.056, 3.9),
    },
    "elbow_45": {
        "SCRD": (500.0, 0.071, 4.2),
        "SR": (500.0, 0.071, 4.2),
        "LR": (500.0, 0.052, 4.0),
    },
    "u_bend": {
        "SCRD": (1000.0, 0.23, 4.0),
        "SR": (1000.0, 0.12, 4.0),
        "LR": (1000.0, 0.1, 4.0),
    },
    "tee_elbow": {
        "SCRD": (500.0, 0.274, 4.0),
        "SR": (800.0, 0.28, 4.0),
        "LR": (800.0, 0.14, 4.0),
    },
    "stub_in_elbow": (1000.0, 0.34, 4.0),
    "tee_through": {
        "SCRD": (200.0, 0.091, 4.0),
        "SR": (150.0, 0.05, 4.0),
        "LR": (150.0, 0.05, 4.0),
    },
    "block_valve_full_line_size": (300.0, 0.037, 3.9),
    "block_valve_reduced_trim_0.9d": (500.0, 0.24, 4.0),
    "block_valve_reduced_trim_0.8d": (1000.0, 0.44, 4.0),
    "globe_valve": (1500.0, 1.7, 3.6),
    "diaphragm_valve": (1000.0, 0.69, 4.9),
    "butterfly_valve": (800.0, 0.25, 4.0),
    "check_valve_swing": (1500.0, 0.46, 4.0),
    "lift_check_valve": (2000.0, 2.85, 3.8),
    "tilting_check_valve": (1000.0, 0.5, 4.0),
}

# Inward-projecting (re-entrant) pipe inlet, Crane TP-410
K_ENTRANCE_PROJECTING = 0.78

FITTING_ALIASES = {
    "90_elbow": "elbow_90",
    "45_elbow": "elbow_45",
    "180_bend": "u_bend",
    "tee_branch": "tee_elbow",
    "tee_run": "tee_through",
    "gate_valve": "block_valve_full_line_size",
    "swing_check_valve": "check_valve_swing",
    "check_valve_lift": "lift_check_valve",
    "tilting_disk_check_valve": "tilting_check_valve",
    "entrance_sharp": "pipe_entrance_normal",
    "entrance_projecting": "pipe_entrance_raise",
    "exit_normal": "pipe_exit",
    "exit": "pipe_exit",
}

SWAGE_TYPES = ("inlet_swage", "outlet_swage")


def normalize_fitting_type(fitting_type: str) -> str:
    key = fitting_type.lower().strip()
    return FITTING_ALIASES.get(key, key)


def _style_key(elbow_style) -> str:
    return str(getattr(elbow_style, "value", elbow_style) or "LR").upper()


def _swage_K(pipe_diameter: float, other_diameter: Optional[float], is_inlet: bool) -> float:
    """K of a sudden diameter change at one end of the pipe, on pipe velocity.

    ``contraction_sharp`` is based on the small (downstream) diameter and
    ``diffuser_sharp`` on the small (upstream) diameter, so a K on the smaller
    bore is rescaled by (D_pipe / D_small)^4.
    """
    if other_diameter is None or other_diameter <= 0:
        return 0.0
    if is_inlet:
        upstream, downstream = other_diameter, pipe_diameter
    else:
        upstream, downstream = pipe_diameter, other_diameter
    if upstream == downstream:
        return 0.0
    if upstream > downstream:
        K_small = fluids.fittings.contraction_sharp(Di1=upstream, Di2=downstream)
    else:
        K_small = fluids.fittings.diffuser_sharp(Di1=upstream, Di2=downstream)
    small = min(upstream, downstream)
    return K_small * (pipe_diameter / small) ** 4


def get_fitting_K(fitting_type: str, diameter: float, Re: float, elbow_style="LR",
                  inlet_diameter: Optional[float] = None,
                  outlet_diameter: Optional[float] = None) -> float:
    """Maps fitting names to a K-value referenced to the main pipe velocity.

    Args:
        fitting_type: Fitting name (case-insensitive), e.g. "elbow_90"
        diameter: Pipe inner diameter in meters
        Re: Reynolds number in the pipe
        elbow_style: Construction, "SCRD", "LR" or "SR"
        inlet_diameter: Upstream connection diameter in meters (inlet_swage)
        outlet_diameter: Downstream connection diameter in meters (outlet_swage)

    Returns:
        K-value for one fitting

    Raises:
        ValueError: If fitting_type is not recognized
    """
    key = normalize_fitting_type(fitting_type)

    if key in DARBY_3K:
        constants = DARBY_3K[key]
        if isinstance(constants, dict):
            constants = constants.get(_style_key(elbow_style), constants["LR"])
        K1, Ki, Kd = constants
        return fluids.fittings.Darby3K(NPS=diameter / INCH_to_M, Re=Re, K1=K1, Ki=Ki, Kd=Kd)

    if key == "pipe_entrance_normal":
        return fluids.fittings.entrance_sharp()
    elif key == "pipe_entrance_raise":
        return K_ENTRANCE_PROJECTING
    elif key == "pipe_exit":
        return fluids.fittings.exit_normal()
    elif key == "inlet_swage":
        return _swage_K(diameter, inlet_diameter, is_inlet=True)
    elif key == "outlet_swage":
        return _swage_K(diameter, outlet_diameter, is_inlet=False)
    elif key == "ball_valve":
        return fluids.fittings.K_ball_valve_Crane(D1=diameter, D2=diameter, angle=0)
    elif key == "plug_valve":
        return fluids.fittings.K_plug_valve_Crane(D1=diameter, D2=diameter, angle=0)

    valid_types = sorted(list(DARBY_3K) + [
        "pipe_entrance_normal", "pipe_entrance_raise", "pipe_exit",
        "inlet_swage", "outlet_swage", "ball_valve", "plug_valve",
    ])
    raise ValueError(
        f"Unknown fitting type: '{fitting_type}'. Valid types: {', '.join(valid_types)}"
    )


def lookup_fitting_losses(fittings, diameter: float, Re: float, elbow_style="LR",
                          inlet_diameter: Optional[float] = None,
                          outlet_diameter: Optional[float] = None) -> Tuple[float, List[float]]:
    """K for each fitting of a list and the sum of ``k_each * count``.

    ``fittings`` are objects with ``type`` and ``count``; entries with a zero
    count get K 0 without a lookup.

    Raises:
        ValueError: If any fitting with a positive count has an unknown type
    """
    total_K = 0.0
    k_values = []
    for fitting in fittings:
        if fitting.count <= 0:
            k_values.append(0.0)
            continue
        K = get_fitting_K(fitting.type, diameter, Re, elbow_style,
                          inlet_diameter=inlet_diameter, outlet_diameter=outlet_diameter)
        k_values.append(K)
        total_K += K * fitting.count
    return total_K, k_values


def pipe_inner_diameter(nominal_size: float, schedule: str = "40") -> Tuple[float, float]:
    """Inner diameter (m) for a nominal pipe size (inches) and schedule.

    Returns:
        Tuple of (inner diameter in m, NPS actually matched)
    """
    NPS, Di, Do, t = fluids.piping.nearest_pipe(NPS=nominal_size, schedule=str(schedule or "40"))
    logger.debug("NPS %s sch %s -> Di=%.5f m", nominal_size, schedule, Di)
    return Di, NPS
