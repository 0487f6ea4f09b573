"""
Friction factor tool.

Calculates Reynolds number, flow regime and the Darcy friction factor
(64/Re laminar, Colebrook-White turbulent) for flow in a circular pipe.
"""

import json
import logging
from typing import Optional

from hydraulics.friction import (
    darcy_friction_factor, determine_flow_regime, relative_roughness as _relative_roughness,
    reynolds_number as _reynolds_number
)
from utils.constants import FT_to_M, INCH_to_M, LBFT3_to_KGM3, CENTIPOISE_to_PAS
from utils.errors import FrictionSolveError

logger = logging.getLogger("hydronet-mcp.friction_factor")


def calculate_friction_factor(
    # --- Direct inputs ---
    reynolds_number: Optional[float] = None,
    relative_roughness: Optional[float] = None,

    # --- Inputs to derive Re and roughness (SI) ---
    velocity: Optional[float] = None,          # m/s
    pipe_diameter: Optional[float] = None,     # m
    fluid_density: Optional[float] = None,     # kg/m³
    fluid_viscosity: Optional[float] = None,   # Pa·s
    pipe_roughness: Optional[float] = None,    # m

    # --- Alternative unit inputs ---
    velocity_ft_s: Optional[float] = None,
    pipe_diameter_in: Optional[float] = None,
    fluid_density_lbft3: Optional[float] = None,
    fluid_viscosity_cp: Optional[float] = None,
) -> str:
    """Calculate the Darcy friction factor with flexible input options.

    Args:
        reynolds_number: Reynolds number (skips the derivation from flow data)
        relative_roughness: Roughness / diameter (default 0, smooth pipe)
        velocity: Fluid velocity in m/s
        pipe_diameter: Pipe inner diameter in m
        fluid_density: Fluid density in kg/m³
        fluid_viscosity: Dynamic viscosity in Pa·s
        pipe_roughness: Absolute roughness in m
        velocity_ft_s: Velocity in ft/s
        pipe_diameter_in: Pipe inner diameter in inches
        fluid_density_lbft3: Density in lb/ft³
        fluid_viscosity_cp: Viscosity in centipoise

    Returns:
        JSON string with Reynolds number, flow regime and friction factor
    """
    results_log = []
    error_log = []

    local_Re = reynolds_number
    local_eD = relative_roughness

    if local_Re is None:
        local_velocity = velocity if velocity is not None else (
            velocity_ft_s * FT_to_M if velocity_ft_s is not None else None)
        local_D = pipe_diameter if pipe_diameter is not None else (
            pipe_diameter_in * INCH_to_M if pipe_diameter_in is not None else None)
        local_rho = fluid_density if fluid_density is not None else (
            fluid_density_lbft3 * LBFT3_to_KGM3 if fluid_density_lbft3 is not None else None)
        local_mu = fluid_viscosity if fluid_viscosity is not None else (
            fluid_viscosity_cp * CENTIPOISE_to_PAS if fluid_viscosity_cp is not None else None)

        missing = [name for name, value in (("velocity", local_velocity), ("pipe_diameter", local_D),
                                            ("fluid_density", local_rho), ("fluid_viscosity", local_mu))
                   if value is None]
        if missing:
            error_log.append(f"Missing required inputs: reynolds_number, or {', '.join(missing)}.")
            return json.dumps({"errors": error_log, "log": results_log})

        local_Re = _reynolds_number(local_rho, local_velocity, local_D, local_mu)
        results_log.append(f"Calculated Reynolds number {local_Re:.1f} from flow data.")
        if local_eD is None:
            local_eD = _relative_roughness(pipe_roughness, local_D)
            results_log.append(f"Relative roughness {local_eD:.3g} from pipe roughness.")

    if local_eD is None:
        local_eD = 0.0
        results_log.append("No roughness given; assuming smooth pipe.")

    try:
        fd = darcy_friction_factor(local_Re, local_eD)
    except FrictionSolveError as e:
        logger.warning("Friction factor failed: %s", e)
        error_log.append(str(e))
        return json.dumps({"errors": error_log, "log": results_log})

    regime = determine_flow_regime(local_Re)
    results_log.append(f"Flow is {regime.value}; Darcy friction factor {fd:.6f}.")
    return json.dumps({
        "reynolds_number": local_Re,
        "relative_roughness": local_eD,
        "flow_regime": regime.value,
        "darcy_friction_factor": fd,
        "fanning_friction_factor": fd / 4.0,
        "log": results_log,
    })
