"""
Compressible single-phase gas flow through a pipe with lumped losses.

Two models are supported:

* isothermal: the complete isothermal flow equation from
  ``fluids.compressible.isothermal_gas``. The segment's total K is passed as an
  equivalent length so that fittings are included in ``fd * L / D``.
* adiabatic: Fanno flow. The total K plays the role of ``4 f L* / D``; the
  outlet Mach number satisfies ``Fanno(M2) = Fanno(M1) - K``.

Both can march downstream from a known inlet state or upstream from a known
outlet state. States are always returned in hydraulic order (inlet, outlet).
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

# --- Third-Party Libraries ---
import fluids.compressible
from scipy.optimize import brentq

from hydraulics.context import gas_density
from hydraulics.models import GasFlowModel
from utils.constants import R_UNIV
from utils.errors import InsufficientInputError, NonPhysicalSolutionError

logger = logging.getLogger("hydronet-mcp.gas_flow")

_MACH_FLOOR = 1e-9


@dataclass(frozen=True)
class GasState:
    pressure: float
    temperature: float
    density: float
    velocity: float
    mach: float
    critical_pressure: Optional[float] = None


def speed_of_sound(temperature: float, molar_mass: float, z_factor: float, gamma: float) -> float:
    return math.sqrt(gamma * z_factor * R_UNIV * temperature / molar_mass)


def _make_state(pressure, temperature, mass_flow, area, molar_mass, z_factor, gamma,
                critical_pressure=None) -> GasState:
    density = gas_density(pressure, temperature, molar_mass, z_factor)
    velocity = mass_flow / (density * area)
    mach = velocity / speed_of_sound(temperature, molar_mass, z_factor, gamma)
    return GasState(pressure, temperature, density, velocity, mach, critical_pressure)


def fanno_parameter(mach: float, gamma: float) -> float:
    """Fanno flow parameter 4fL*/D for a subsonic Mach number."""
    m2 = mach * mach
    return ((1.0 - m2) / (gamma * m2)
            + (gamma + 1.0) / (2.0 * gamma) * math.log((gamma + 1.0) * m2 / (2.0 + (gamma - 1.0) * m2)))


def _temperature_ratio(mach: float, gamma: float) -> float:
    """T / T* for Fanno flow."""
    return (gamma + 1.0) / (2.0 + (gamma - 1.0) * mach * mach)


def _pressure_ratio(mach: float, gamma: float) -> float:
    """P / P* for Fanno flow."""
    return math.sqrt(_temperature_ratio(mach, gamma)) / mach


def _solve_adiabatic(pressure, temperature, mass_flow, area, total_k, molar_mass, z_factor,
                     gamma, is_forward_flow) -> Tuple[GasState, GasState]:
    known = _make_state(pressure, temperature, mass_flow, area, molar_mass, z_factor, gamma)
    if known.mach >= 1.0:
        raise NonPhysicalSolutionError(f"Gas flow is sonic or supersonic (Mach {known.mach:.3f})")

    if is_forward_flow:
        m_in = known.mach
        target = fanno_parameter(m_in, gamma) - total_k
        if target < 0:
            raise NonPhysicalSolutionError(
                f"Flow chokes: total K {total_k:.4g} exceeds the Fanno limit "
                f"{fanno_parameter(m_in, gamma):.4g} at inlet Mach {m_in:.3f}"
            )
        if total_k <= 0:
            m_out = m_in
        else:
            m_out = brentq(lambda m: fanno_parameter(m, gamma) - target, m_in, 1.0, xtol=1e-12)
        p_in, t_in = pressure, temperature
        p_out = p_in * _pressure_ratio(m_out, gamma) / _pressure_ratio(m_in, gamma)
        t_out = t_in * _temperature_ratio(m_out, gamma) / _temperature_ratio(m_in, gamma)
    else:
        m_out = known.mach
        target = fanno_parameter(m_out, gamma) + total_k
        if total_k <= 0:
            m_in = m_out
        else:
            m_in = brentq(lambda m: fanno_parameter(m, gamma) - target, _MACH_FLOOR, m_out, xtol=1e-14)
        p_out, t_out = pressure, temperature
        p_in = p_out * _pressure_ratio(m_in, gamma) / _pressure_ratio(m_out, gamma)
        t_in = t_out * _temperature_ratio(m_in, gamma) / _temperature_ratio(m_out, gamma)

    critical = p_in / _pressure_ratio(m_in, gamma)
    inlet = _make_state(p_in, t_in, mass_flow, area, molar_mass, z_factor, gamma, critical)
    outlet = _make_state(p_out, t_out, mass_flow, area, molar_mass, z_factor, gamma, critical)
    return inlet, outlet


def _isothermal_mass_flow(p_in, p_out, temperature, fd, L_eq, diameter, molar_mass, z_factor):
    rho = gas_density(p_in, temperature, molar_mass, z_factor)
    return fluids.compressible.isothermal_gas(rho=rho, fd=fd, P1=p_in, P2=p_out, L=L_eq, D=diameter)


def _check_critical(critical, total_k):
    # Underflows to zero once fd*L/D is large enough that any flow chokes
    if not math.isfinite(critical) or critical <= 0:
        raise NonPhysicalSolutionError(
            f"Isothermal flow chokes: no finite critical pressure for total K {total_k:.6g}"
        )


def _solve_isothermal(pressure, temperature, mass_flow, diameter, area, friction_factor, total_k,
                      molar_mass, z_factor, gamma, is_forward_flow) -> Tuple[GasState, GasState]:
    known = _make_state(pressure, temperature, mass_flow, area, molar_mass, z_factor, gamma)
    if known.mach >= 1.0:
        raise NonPhysicalSolutionError(f"Gas flow is sonic or supersonic (Mach {known.mach:.3f})")
    if total_k <= 0:
        return known, known

    # Only fd * L / D matters; a zero friction factor (zero-length pipe) still carries fittings
    fd = friction_factor if friction_factor and friction_factor > 0 else 1.0
    L_eq = total_k * diameter / fd

    if is_forward_flow:
        p_in = pressure
        critical = fluids.compressible.P_isothermal_critical_flow(P=p_in, fd=fd, D=diameter, L=L_eq)
        _check_critical(critical, total_k)
        try:
            m_max = _isothermal_mass_flow(p_in, critical * (1.0 + 1e-9), temperature, fd, L_eq,
                                          diameter, molar_mass, z_factor)
        except (ValueError, ArithmeticError) as e:
            raise NonPhysicalSolutionError(f"Isothermal flow has no solution: {e}") from e
        if mass_flow > m_max:
            raise NonPhysicalSolutionError(
                f"Isothermal flow chokes: mass flow {mass_flow:.6g} kg/s exceeds the choked "
                f"limit {m_max:.6g} kg/s"
            )
        rho_in = gas_density(p_in, temperature, molar_mass, z_factor)
        try:
            p_out = fluids.compressible.isothermal_gas(
                rho=rho_in, fd=fd, P1=p_in, L=L_eq, D=diameter, m=mass_flow
            )
        except (ValueError, ArithmeticError) as e:
            raise NonPhysicalSolutionError(f"Isothermal flow has no solution: {e}") from e
        if not math.isfinite(p_out) or p_out <= 0 or p_out < critical:
            raise NonPhysicalSolutionError(
                f"Isothermal flow chokes: outlet pressure would fall below the critical {critical:.6g} Pa"
            )
    else:
        p_out = pressure
        ratio = fluids.compressible.P_isothermal_critical_flow(P=1.0, fd=fd, D=diameter, L=L_eq)
        _check_critical(ratio, total_k)
        p_upper = p_out / ratio * (1.0 - 1e-9)
        try:
            m_max = _isothermal_mass_flow(p_upper, p_out, temperature, fd, L_eq, diameter, molar_mass, z_factor)
        except (ValueError, ArithmeticError) as e:
            raise NonPhysicalSolutionError(f"Isothermal flow has no solution: {e}") from e
        if mass_flow > m_max:
            raise NonPhysicalSolutionError(
                f"Mass flow {mass_flow:.6g} kg/s exceeds the choked limit {m_max:.6g} kg/s"
            )
        p_in = brentq(
            lambda p: _isothermal_mass_flow(p, p_out, temperature, fd, L_eq, diameter,
                                            molar_mass, z_factor) - mass_flow,
            p_out * (1.0 + 1e-12), p_upper, xtol=1e-6,
        )
        critical = p_in * ratio

    inlet = _make_state(p_in, temperature, mass_flow, area, molar_mass, z_factor, gamma, critical)
    outlet = _make_state(p_out, temperature, mass_flow, area, molar_mass, z_factor, gamma, critical)
    return inlet, outlet


def solve(
    pressure: float,
    temperature: float,
    mass_flow: float,
    diameter: float,
    friction_factor: Optional[float],
    total_k: float,
    molar_mass: float,
    z_factor: float,
    gamma: float,
    is_forward_flow: bool = True,
    model: GasFlowModel = GasFlowModel.ADIABATIC,
) -> Tuple[GasState, GasState]:
    """Solve a gas segment from one known end state.

    Args:
        pressure: Known absolute pressure in Pa (inlet if ``is_forward_flow``, else outlet)
        temperature: Known temperature in K at the same end
        mass_flow: Mass flow in kg/s
        diameter: Pipe inner diameter in m
        friction_factor: Darcy friction factor used to express K as a length
        total_k: Total loss coefficient of the segment (pipe length and fittings)
        molar_mass: Molecular weight in kg/kmol
        z_factor: Compressibility factor
        gamma: Heat capacity ratio Cp/Cv
        is_forward_flow: True to march downstream from the inlet, False to march upstream
        model: Isothermal or adiabatic (Fanno) flow

    Returns:
        (inlet_state, outlet_state)

    Raises:
        InsufficientInputError: on missing or non-positive inputs
        NonPhysicalSolutionError: on supersonic or choked flow
    """
    for name, value in (("pressure", pressure), ("temperature", temperature),
                        ("mass flow", mass_flow), ("diameter", diameter),
                        ("molar mass", molar_mass), ("Z factor", z_factor), ("gamma", gamma)):
        if value is None or not math.isfinite(value) or value <= 0:
            raise InsufficientInputError(f"Gas flow {name} must be positive, got {value}")
    if total_k is None or not math.isfinite(total_k) or total_k < 0:
        raise InsufficientInputError(f"Total K must be non-negative, got {total_k}")

    area = math.pi * diameter ** 2 / 4.0
    if GasFlowModel(model) == GasFlowModel.ISOTHERMAL:
        inlet, outlet = _solve_isothermal(pressure, temperature, mass_flow, diameter, area,
                                          friction_factor, total_k, molar_mass, z_factor,
                                          gamma, is_forward_flow)
    else:
        inlet, outlet = _solve_adiabatic(pressure, temperature, mass_flow, area, total_k,
                                         molar_mass, z_factor, gamma, is_forward_flow)
    logger.debug("%s gas flow: P_in=%.6g Pa, P_out=%.6g Pa, Mach_out=%.4f",
                 GasFlowModel(model).value, inlet.pressure, outlet.pressure, outlet.mach)
    return inlet, outlet
