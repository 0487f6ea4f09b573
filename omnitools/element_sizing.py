"""Unified element calculations: friction factor, control valve and orifice."""

from typing import Literal, Optional
import inspect
import json
from tools.friction_factor import calculate_friction_factor
from tools.valve_sizing import calculate_control_valve_sizing, calculate_orifice_loss


def element_sizing(
    mode: Literal["friction_factor", "control_valve", "orifice"] = "friction_factor",
    phase: Literal["liquid", "gas"] = "liquid",

    # Flow and Reynolds number
    reynolds_number: Optional[float] = None,
    relative_roughness: Optional[float] = None,
    velocity: Optional[float] = None,
    pipe_diameter: Optional[float] = None,
    pipe_roughness: Optional[float] = None,
    flow_rate: Optional[float] = None,
    flow_rate_gpm: Optional[float] = None,
    mass_flow_rate: Optional[float] = None,

    # Fluid properties
    fluid_density: Optional[float] = None,
    fluid_viscosity: Optional[float] = None,
    inlet_pressure: Optional[float] = None,
    inlet_temperature_c: Optional[float] = None,
    gas_mw: Optional[float] = None,
    gas_gamma: Optional[float] = None,
    gas_z_factor: Optional[float] = None,

    # Element parameters
    pressure_drop: Optional[float] = None,
    pressure_drop_psi: Optional[float] = None,
    valve_cv: Optional[float] = None,
    valve_cg: Optional[float] = None,
    valve_xt: Optional[float] = None,
    beta_ratio: Optional[float] = None,
) -> str:
    """Unified calculations for individual network elements.

    - mode='friction_factor': Darcy friction factor and flow regime
    - mode='control_valve': Cv/Cg from pressure drop or pressure drop from Cv/Cg
    - mode='orifice': sharp-edged orifice K, pressure drop, or beta for a pressure drop

    Returns:
        JSON string with the element results
    """
    params = locals().copy()
    params.pop("mode")

    if mode == "friction_factor":
        fn = calculate_friction_factor
    elif mode == "control_valve":
        fn = calculate_control_valve_sizing
    elif mode == "orifice":
        if reynolds_number is None:
            return json.dumps({"error": "reynolds_number is required for mode 'orifice'"})
        fn = calculate_orifice_loss
    else:
        return json.dumps({"error": f"Invalid mode: {mode}"})

    sig = inspect.signature(fn)
    allowed = set(sig.parameters.keys())
    forwarded = {k: v for k, v in params.items() if k in allowed and v is not None}

    return fn(**forwarded)
