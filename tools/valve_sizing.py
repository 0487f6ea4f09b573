"""
Control valve and orifice element tools.

Standalone access to the element equations used by control valve and orifice
segments: Cv/Cg <-> pressure drop for valves and the sharp-edged orifice K.
"""

import json
import logging
from typing import Literal, Optional

from hydraulics.context import gas_density
from hydraulics.valves import (
    gas_pressure_drop_from_cg, gas_required_cg, liquid_cv_from_pressure_drop,
    liquid_pressure_drop_from_cv, orifice_beta_for_k, orifice_k
)
from utils.constants import (
    CG_C1_FACTOR, DEFAULT_VALVE_XT, GPM_to_M3S, PSI_to_PA, LBFT3_to_KGM3, DEG_C_to_K
)
from utils.errors import HydraulicsError

logger = logging.getLogger("hydronet-mcp.valve_sizing")


def calculate_control_valve_sizing(
    phase: Literal["liquid", "gas"] = "liquid",

    # --- Flow ---
    flow_rate: Optional[float] = None,           # m³/s (liquid)
    flow_rate_gpm: Optional[float] = None,       # US gpm (liquid)
    mass_flow_rate: Optional[float] = None,      # kg/s (liquid or gas)

    # --- Valve: give one of pressure drop or coefficient ---
    pressure_drop: Optional[float] = None,       # Pa
    pressure_drop_psi: Optional[float] = None,
    valve_cv: Optional[float] = None,
    valve_cg: Optional[float] = None,
    valve_xt: Optional[float] = None,

    # --- Fluid ---
    fluid_density: Optional[float] = None,       # kg/m³ (liquid)
    fluid_density_lbft3: Optional[float] = None,
    inlet_pressure: Optional[float] = None,      # Pa absolute (gas)
    inlet_temperature_c: Optional[float] = None,  # °C (gas)
    gas_mw: Optional[float] = None,              # kg/kmol
    gas_gamma: float = 1.4,
    gas_z_factor: float = 1.0,
) -> str:
    """Size a control valve or find its pressure drop.

    With a pressure drop the required Cv (liquid) or Cg and Cv (gas) is
    returned; with Cv or Cg the resulting pressure drop is returned.

    Args:
        phase: "liquid" or "gas"
        flow_rate: Liquid volumetric flow in m³/s
        flow_rate_gpm: Liquid volumetric flow in US gpm
        mass_flow_rate: Mass flow in kg/s (required for gas)
        pressure_drop: Valve pressure drop in Pa
        pressure_drop_psi: Valve pressure drop in psi
        valve_cv: Flow coefficient Cv
        valve_cg: Gas sizing coefficient Cg
        valve_xt: Pressure drop ratio factor (gas, default 0.72)
        fluid_density: Liquid density in kg/m³
        fluid_density_lbft3: Liquid density in lb/ft³
        inlet_pressure: Gas inlet pressure in Pa absolute
        inlet_temperature_c: Gas inlet temperature in °C
        gas_mw: Gas molecular weight in kg/kmol
        gas_gamma: Gas heat capacity ratio
        gas_z_factor: Gas compressibility factor

    Returns:
        JSON string with the valve coefficient and pressure drop
    """
    results_log = []
    error_log = []

    local_dp = pressure_drop if pressure_drop is not None else (
        pressure_drop_psi * PSI_to_PA if pressure_drop_psi is not None else None)

    try:
        if phase == "liquid":
            local_rho = fluid_density if fluid_density is not None else (
                fluid_density_lbft3 * LBFT3_to_KGM3 if fluid_density_lbft3 is not None else None)
            if local_rho is None:
                error_log.append("Missing required input: fluid_density or fluid_density_lbft3.")
            if flow_rate is not None:
                local_Q = flow_rate
            elif flow_rate_gpm is not None:
                local_Q = flow_rate_gpm * GPM_to_M3S
            elif mass_flow_rate is not None and local_rho:
                local_Q = mass_flow_rate / local_rho
                results_log.append("Converted mass flow to volumetric flow.")
            else:
                local_Q = None
                error_log.append("Missing required input: flow_rate, flow_rate_gpm or mass_flow_rate.")
            if error_log:
                return json.dumps({"errors": error_log, "log": results_log})

            if local_dp is not None:
                cv = liquid_cv_from_pressure_drop(local_Q, local_rho, local_dp)
                results_log.append("Calculated required Cv from pressure drop.")
            elif valve_cv is not None:
                cv = valve_cv
                local_dp = liquid_pressure_drop_from_cv(local_Q, local_rho, cv)
                results_log.append("Calculated pressure drop from Cv.")
            else:
                error_log.append("Provide pressure_drop (or pressure_drop_psi) or valve_cv.")
                return json.dumps({"errors": error_log, "log": results_log})

            return json.dumps({
                "phase": "liquid",
                "cv": cv,
                "pressure_drop_pa": local_dp,
                "pressure_drop_psi": local_dp / PSI_to_PA,
                "log": results_log,
            })

        # Gas
        missing = [name for name, value in (("mass_flow_rate", mass_flow_rate), ("inlet_pressure", inlet_pressure),
                                            ("inlet_temperature_c", inlet_temperature_c), ("gas_mw", gas_mw))
                   if value is None]
        if missing:
            error_log.append(f"Missing required inputs for gas valve: {', '.join(missing)}.")
            return json.dumps({"errors": error_log, "log": results_log})

        xt = valve_xt if valve_xt is not None and 0 < valve_xt < 1 else DEFAULT_VALVE_XT
        c1 = CG_C1_FACTOR * xt ** 0.5
        T_k = inlet_temperature_c + DEG_C_to_K
        if local_dp is not None:
            cg = gas_required_cg(mass_flow_rate, gas_mw, inlet_pressure, local_dp, T_k, gas_gamma, xt, c1)
            results_log.append("Calculated required Cg from pressure drop.")
        elif valve_cg is not None or valve_cv is not None:
            cg = valve_cg if valve_cg is not None else valve_cv * c1
            local_dp = gas_pressure_drop_from_cg(cg, mass_flow_rate, gas_mw, inlet_pressure, T_k, gas_gamma, xt, c1)
            results_log.append("Calculated pressure drop from Cg.")
        else:
            error_log.append("Provide pressure_drop (or pressure_drop_psi), valve_cg or valve_cv.")
            return json.dumps({"errors": error_log, "log": results_log})

        return json.dumps({
            "phase": "gas",
            "cg": cg,
            "cv": cg / c1,
            "c1": c1,
            "xt": xt,
            "pressure_drop_pa": local_dp,
            "outlet_pressure_pa": inlet_pressure - local_dp,
            "inlet_density_kg_m3": gas_density(inlet_pressure, T_k, gas_mw, gas_z_factor),
            "log": results_log,
        })
    except HydraulicsError as e:
        logger.warning("Control valve sizing failed: %s", e)
        error_log.append(str(e))
        return json.dumps({"errors": error_log, "log": results_log})


def calculate_orifice_loss(
    reynolds_number: float,
    beta_ratio: Optional[float] = None,
    pressure_drop: Optional[float] = None,     # Pa
    fluid_density: Optional[float] = None,     # kg/m³
    velocity: Optional[float] = None,          # pipe velocity, m/s
) -> str:
    """Sharp-edged orifice loss coefficient, pressure drop, or beta for a drop.

    Args:
        reynolds_number: Pipe Reynolds number
        beta_ratio: Orifice to pipe diameter ratio (0-1)
        pressure_drop: Target pressure drop in Pa (solves for beta when beta_ratio is omitted)
        fluid_density: Fluid density in kg/m³ (needed for pressure drop)
        velocity: Pipe velocity in m/s (needed for pressure drop)

    Returns:
        JSON string with K, beta ratio and pressure drop
    """
    results_log = []
    error_log = []

    dynamic_pressure = None
    if fluid_density is not None and velocity is not None:
        dynamic_pressure = 0.5 * fluid_density * velocity ** 2

    try:
        if beta_ratio is not None:
            K = orifice_k(beta_ratio, reynolds_number)
            results_log.append(f"Orifice K = {K:.4f} for beta {beta_ratio}.")
            dp = K * dynamic_pressure if dynamic_pressure is not None else None
        elif pressure_drop is not None and dynamic_pressure:
            K = pressure_drop / dynamic_pressure
            beta_ratio = orifice_beta_for_k(K, reynolds_number)
            dp = pressure_drop
            results_log.append(f"Solved beta ratio {beta_ratio:.4f} for the pressure drop.")
        else:
            error_log.append("Provide beta_ratio, or pressure_drop with fluid_density and velocity.")
            return json.dumps({"errors": error_log, "log": results_log})
    except HydraulicsError as e:
        logger.warning("Orifice calculation failed: %s", e)
        error_log.append(str(e))
        return json.dumps({"errors": error_log, "log": results_log})

    return json.dumps({
        "k_factor": K,
        "beta_ratio": beta_ratio,
        "pressure_drop_pa": dp,
        "log": results_log,
    })
