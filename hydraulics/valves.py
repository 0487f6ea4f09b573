"""
Control valve and orifice plate element equations.

Liquid control valves use the US flow coefficient:
    Cv = Q[gpm] / sqrt(dP[psi] / SG),  SG = rho / 1000
Gas control valves use the universal gas sizing equation (Cg) with the
pressure-drop ratio limited at the choked value xT * k / 1.4.
Orifice plates use the sharp-edged plate loss coefficient referenced to the
pipe velocity, with a Reynolds-dependent flow factor.
"""

import logging
import math
from typing import Optional

# --- Third-Party Libraries ---
from scipy.optimize import brentq

from hydraulics.models import (
    ControlValve, Orifice, OrificeInputMode, ValveInputMode
)
from utils.constants import (
    GPM_to_M3S, PSI_to_PA, LB_to_KG, SCF_PER_LBMOL, MW_AIR, DEFAULT_VALVE_XT,
    CG_C1_FACTOR, CG_ANGLE_FACTOR, CG_BASE_TEMPERATURE_R, MIN_OUTLET_PRESSURE_MARGIN,
    ORIFICE_LAMINAR_REYNOLDS_LIMIT
)
from utils.errors import InsufficientInputError, NonPhysicalSolutionError

logger = logging.getLogger("hydronet-mcp.valves")


def _require_positive(**values):
    for name, value in values.items():
        if value is None or not math.isfinite(value) or value <= 0:
            raise InsufficientInputError(f"{name} must be positive, got {value}")


# --- Liquid control valve ---

def liquid_cv_from_pressure_drop(volumetric_flow: float, density: float, pressure_drop: float) -> float:
    """Required Cv for a liquid valve.

    Args:
        volumetric_flow: Flow in m³/s
        density: Liquid density in kg/m³
        pressure_drop: Valve pressure drop in Pa

    Returns:
        Flow coefficient Cv (US gpm at 1 psi, SG 1)
    """
    _require_positive(volumetric_flow=volumetric_flow, density=density, pressure_drop=pressure_drop)
    q_gpm = volumetric_flow / GPM_to_M3S
    dp_psi = pressure_drop / PSI_to_PA
    sg = density / 1000.0
    return q_gpm / math.sqrt(dp_psi / sg)


def liquid_pressure_drop_from_cv(volumetric_flow: float, density: float, cv: float) -> float:
    """Liquid valve pressure drop in Pa for a given Cv."""
    _require_positive(volumetric_flow=volumetric_flow, density=density, cv=cv)
    q_gpm = volumetric_flow / GPM_to_M3S
    sg = density / 1000.0
    return (q_gpm / cv) ** 2 * sg * PSI_to_PA


def resolve_valve_mode(valve: ControlValve) -> ValveInputMode:
    """Explicit mode, else pressure drop when one is given, else flow coefficient."""
    if valve.input_mode is not None:
        return ValveInputMode(valve.input_mode)
    if valve.pressure_drop is not None and valve.pressure_drop.value > 0:
        return ValveInputMode.PRESSURE_DROP
    return ValveInputMode.FLOW_COEFFICIENT


# --- Gas control valve ---

def valve_xt(valve: ControlValve) -> float:
    if valve.xt is not None and 0 < valve.xt < 1:
        return valve.xt
    return DEFAULT_VALVE_XT


def valve_c1(valve: ControlValve) -> float:
    """Cg/Cv ratio; given on the valve or derived as 39.76 * sqrt(xT)."""
    if valve.c1 is not None and valve.c1 > 0:
        return valve.c1
    return CG_C1_FACTOR * math.sqrt(valve_xt(valve))


def standard_flow_scfh(mass_flow: float, molar_mass: float) -> float:
    """Mass flow (kg/s) as standard cubic feet per hour."""
    lb_per_hr = mass_flow / LB_to_KG * 3600.0
    return lb_per_hr / molar_mass * SCF_PER_LBMOL


def gas_required_cg(mass_flow: float, molar_mass: float, inlet_pressure: float, pressure_drop: float,
                    temperature: float, gamma: float = 1.4, xt: float = DEFAULT_VALVE_XT,
                    c1: Optional[float] = None) -> float:
    """Required Cg from the universal gas sizing equation.

        Q[scfh] = sqrt(520 / (G T[R])) * Cg * P1[psia] * sin((3417 / C1) * sqrt(x)) [deg]

    with x = dP / P1 limited to the choked ratio xT * k / 1.4 and the sine
    argument capped at 90 degrees.
    """
    _require_positive(mass_flow=mass_flow, molar_mass=molar_mass, inlet_pressure=inlet_pressure,
                      pressure_drop=pressure_drop, temperature=temperature, gamma=gamma)
    c1 = c1 if c1 is not None and c1 > 0 else CG_C1_FACTOR * math.sqrt(xt)
    x = min(pressure_drop / inlet_pressure, xt * gamma / 1.4)
    angle = min(CG_ANGLE_FACTOR / c1 * math.sqrt(x), 90.0)
    sg = molar_mass / MW_AIR
    temperature_r = temperature * 1.8
    p1_psia = inlet_pressure / PSI_to_PA
    q_scfh = standard_flow_scfh(mass_flow, molar_mass)
    return q_scfh / (math.sqrt(CG_BASE_TEMPERATURE_R / (sg * temperature_r)) * p1_psia
                     * math.sin(math.radians(angle)))


def gas_pressure_drop_from_cg(target_cg: float, mass_flow: float, molar_mass: float,
                              inlet_pressure: float, temperature: float, gamma: float = 1.4,
                              xt: float = DEFAULT_VALVE_XT, c1: Optional[float] = None) -> float:
    """Invert the gas sizing equation for the pressure drop (Pa).

    Raises:
        NonPhysicalSolutionError: if the valve is too small to pass the flow
            before it chokes (or before the outlet pressure reaches zero).
    """
    _require_positive(target_cg=target_cg, inlet_pressure=inlet_pressure)
    max_drop = max(inlet_pressure - MIN_OUTLET_PRESSURE_MARGIN, MIN_OUTLET_PRESSURE_MARGIN)
    max_drop = min(max_drop, xt * gamma / 1.4 * inlet_pressure)
    min_drop = min(max_drop, 1e-9 * inlet_pressure)

    def residual(drop):
        return gas_required_cg(mass_flow, molar_mass, inlet_pressure, drop, temperature,
                               gamma, xt, c1) - target_cg

    if residual(max_drop) > 0:
        raise NonPhysicalSolutionError(
            f"Cg {target_cg:.4g} cannot pass the flow without choking "
            f"(choked Cg {target_cg + residual(max_drop):.4g})"
        )
    if residual(min_drop) <= 0:
        return min_drop
    return brentq(residual, min_drop, max_drop, xtol=1e-6)


# --- Orifice plate ---

def orifice_k(beta: float, reynolds: float) -> float:
    """Sharp-edged orifice loss coefficient on the pipe velocity.

    Args:
        beta: Orifice to pipe diameter ratio, strictly between 0 and 1
        reynolds: Pipe Reynolds number

    Returns:
        K such that dP = K * rho * v^2 / 2 with v the pipe velocity
    """
    if beta is None or not (0.0 < beta < 1.0):
        raise InsufficientInputError(f"Orifice beta ratio must be between 0 and 1, got {beta}")
    _require_positive(reynolds=reynolds)
    beta2 = beta * beta
    geometry = (1.0 - beta2) * (1.0 / (beta2 * beta2) - 1.0)
    if reynolds <= ORIFICE_LAMINAR_REYNOLDS_LIMIT:
        flow = 2.72 + beta2 * (120.0 / reynolds - 1.0)
    else:
        flow = 2.72 - 4000.0 * beta2 / reynolds
    return flow * geometry


def orifice_beta_for_k(target_k: float, reynolds: float,
                       beta_min: float = 0.01, beta_max: float = 0.99) -> float:
    """Beta ratio producing the target loss coefficient."""
    _require_positive(target_k=target_k, reynolds=reynolds)

    def residual(beta):
        return orifice_k(beta, reynolds) - target_k

    low, high = residual(beta_min), residual(beta_max)
    if low * high > 0:
        raise NonPhysicalSolutionError(
            f"No beta ratio in [{beta_min}, {beta_max}] gives K = {target_k:.4g}"
        )
    return brentq(residual, beta_min, beta_max, xtol=1e-10)


def resolve_orifice_mode(orifice: Orifice) -> OrificeInputMode:
    if orifice.input_mode is not None:
        return OrificeInputMode(orifice.input_mode)
    if orifice.beta_ratio is None and orifice.pressure_drop is not None and orifice.pressure_drop.value > 0:
        return OrificeInputMode.PRESSURE_DROP
    return OrificeInputMode.BETA_RATIO
