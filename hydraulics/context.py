"""
Resolution of a segment's inputs into a single SI hydraulic context.

The context is what every calculator consumes: fluid properties, flow,
geometry and the boundary (inlet) state, all in SI units. Gas density is
always derived from the boundary state, never taken from the fluid record.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from hydraulics.models import Fluid, Phase, SegmentBase
from utils.constants import R_UNIV
from utils.errors import InsufficientInputError
from utils.helpers import pipe_inner_diameter

logger = logging.getLogger("hydronet-mcp.context")


@dataclass(frozen=True)
class HydraulicContext:
    phase: Phase
    mass_flow: float
    viscosity: float
    density: float
    diameter: Optional[float] = None
    inlet_diameter: Optional[float] = None
    outlet_diameter: Optional[float] = None
    length: Optional[float] = None
    roughness: float = 0.0
    elevation_change: Optional[float] = None
    pressure: Optional[float] = None
    temperature: Optional[float] = None
    molar_mass: Optional[float] = None
    z_factor: Optional[float] = None
    gamma: Optional[float] = None

    @property
    def is_gas(self) -> bool:
        return self.phase == Phase.GAS

    @property
    def volumetric_flow(self) -> float:
        return self.mass_flow / self.density

    @property
    def area(self) -> Optional[float]:
        if self.diameter is None:
            return None
        return math.pi * self.diameter ** 2 / 4.0

    @property
    def velocity(self) -> Optional[float]:
        area = self.area
        if area is None:
            return None
        return self.volumetric_flow / area


def _positive(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def gas_density(pressure: float, temperature: float, molar_mass: float, z_factor: float) -> float:
    """Real-gas density P*MW / (Z*R*T) in kg/m³."""
    return pressure * molar_mass / (z_factor * R_UNIV * temperature)


def resolve_diameter(segment: SegmentBase) -> Optional[float]:
    """Inner diameter in m: explicit value, else nominal size and schedule."""
    if segment.diameter is not None:
        diameter = segment.diameter.to_si()
        return diameter if diameter > 0 else None
    if segment.nominal_size is not None and segment.nominal_size > 0:
        try:
            diameter, _ = pipe_inner_diameter(segment.nominal_size, segment.schedule or "40")
        except ValueError as e:
            raise InsufficientInputError(
                f"No pipe matches NPS {segment.nominal_size} schedule {segment.schedule}: {e}"
            ) from e
        return diameter
    return None


def resolve_mass_flow(segment: SegmentBase) -> Optional[float]:
    """Mass flow in kg/s including the design margin (percent)."""
    if segment.mass_flow_rate is None:
        return None
    mass_flow = segment.mass_flow_rate.to_si()
    if segment.design_margin:
        mass_flow *= 1.0 + segment.design_margin / 100.0
    return mass_flow


def _optional_si(quantity) -> Optional[float]:
    return quantity.to_si() if quantity is not None else None


def build_hydraulic_context(segment: SegmentBase, fluid: Optional[Fluid] = None) -> HydraulicContext:
    """Collect a segment's inputs into SI units.

    Args:
        segment: The segment being calculated
        fluid: Fluid to use; overrides ``segment.fluid`` when given

    Returns:
        HydraulicContext for the segment

    Raises:
        InsufficientInputError: if the fluid, viscosity, mass flow or the
            phase-specific properties (liquid density; gas molar mass, Z,
            heat-capacity ratio and boundary state) are missing or non-positive.
    """
    fluid = fluid or segment.fluid
    if fluid is None:
        raise InsufficientInputError("Fluid properties missing")

    viscosity = _optional_si(fluid.viscosity)
    if not _positive(viscosity):
        raise InsufficientInputError("Fluid viscosity missing or non-positive")

    mass_flow = resolve_mass_flow(segment)
    if not _positive(mass_flow):
        raise InsufficientInputError("Mass flow rate missing or non-positive")

    pressure = _optional_si(segment.boundary_pressure)
    temperature = _optional_si(segment.boundary_temperature)
    roughness = _optional_si(segment.roughness)

    geometry = dict(
        diameter=resolve_diameter(segment),
        inlet_diameter=_optional_si(segment.inlet_diameter),
        outlet_diameter=_optional_si(segment.outlet_diameter),
        length=_optional_si(segment.length),
        roughness=roughness if _positive(roughness) else 0.0,
        elevation_change=_optional_si(segment.elevation_change),
    )

    if fluid.phase == Phase.GAS:
        molar_mass = _optional_si(fluid.molecular_weight)
        if not _positive(molar_mass):
            raise InsufficientInputError("Gas molecular weight missing or non-positive")
        if not _positive(fluid.z_factor):
            raise InsufficientInputError("Gas compressibility factor missing or non-positive")
        if not _positive(fluid.specific_heat_ratio):
            raise InsufficientInputError("Gas heat capacity ratio missing or non-positive")
        if not _positive(pressure) or not _positive(temperature):
            raise InsufficientInputError("Gas boundary pressure and temperature are required")
        density = gas_density(pressure, temperature, molar_mass, fluid.z_factor)
        return HydraulicContext(
            phase=Phase.GAS, mass_flow=mass_flow, viscosity=viscosity, density=density,
            pressure=pressure, temperature=temperature, molar_mass=molar_mass,
            z_factor=fluid.z_factor, gamma=fluid.specific_heat_ratio, **geometry
        )

    density = _optional_si(fluid.density)
    if not _positive(density):
        raise InsufficientInputError("Liquid density missing or non-positive")
    return HydraulicContext(
        phase=Phase.LIQUID, mass_flow=mass_flow, viscosity=viscosity, density=density,
        pressure=pressure, temperature=temperature, **geometry
    )
