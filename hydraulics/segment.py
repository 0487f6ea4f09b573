"""
Segment hydraulics calculator.

Given a segment (pipeline, control valve or orifice) and optionally a fluid,
returns an updated copy with freshly computed
``pressure_drop_calculation_results`` and ``result_summary``. The input
segment is never mutated.

Calculation failures (missing data, friction non-convergence, choked flow)
never escape: the affected values are left undefined (None) and a short
description is collected in ``SegmentCalculation.issues``.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from hydraulics import gas_flow
from hydraulics.context import HydraulicContext, build_hydraulic_context, gas_density
from hydraulics.fittings import compute_fitting_contribution, ensure_swage_fittings
from hydraulics.friction import (
    darcy_friction_factor, determine_flow_regime, relative_roughness, reynolds_number
)
from hydraulics.models import (
    ControlValveSegment, Fluid, OrificeInputMode, OrificeSegment, PipeState,
    PressureDropCalculationResults, ResultSummary, SegmentBase, ValveInputMode
)
from hydraulics.valves import (
    gas_pressure_drop_from_cg, gas_required_cg, liquid_cv_from_pressure_drop,
    liquid_pressure_drop_from_cv, orifice_beta_for_k, orifice_k, resolve_orifice_mode,
    resolve_valve_mode, valve_c1, valve_xt
)
from utils.constants import (
    G_GRAVITY, FT_to_M, LBFT3_to_KGM3, DEFAULT_EROSIONAL_CONSTANT,
    DEFAULT_ATMOSPHERIC_PRESSURE,
    DEFAULT_VALVE_PRESSURE_DROP_UNIT, MIN_OUTLET_PRESSURE_MARGIN
)
from utils.errors import (
    FrictionSolveError, HydraulicsError, InsufficientInputError
)
from utils.units import PressureDifference

logger = logging.getLogger("hydronet-mcp.segment")


@dataclass
class SegmentCalculation:
    segment: SegmentBase
    issues: List[str] = field(default_factory=list)

    @property
    def total_pressure_drop(self) -> Optional[float]:
        results = self.segment.pressure_drop_calculation_results
        return results.total_segment_pressure_drop if results is not None else None


def recalculate_segment(segment: SegmentBase, fluid: Optional[Fluid] = None) -> SegmentBase:
    """Recompute a segment's derived results.

    Args:
        segment: Pipeline, control valve or orifice segment
        fluid: Fluid flowing through the segment; ``segment.fluid`` is used when omitted

    Returns:
        Updated copy of the segment
    """
    return calculate_segment(segment, fluid).segment


def calculate_segment(segment: SegmentBase, fluid: Optional[Fluid] = None) -> SegmentCalculation:
    """Same as ``recalculate_segment`` but also returns the list of issues found."""
    issues: List[str] = []
    fittings = ensure_swage_fittings(segment)
    try:
        context = build_hydraulic_context(segment, fluid)
    except InsufficientInputError as e:
        logger.debug("Segment %s: %s", segment.display_name, e)
        issues.append(str(e))
        context = None

    calculator = _CALCULATORS[segment.segment_type]
    updates = calculator(segment, context, fittings, issues)
    updates.setdefault("fittings", fittings)
    return SegmentCalculation(segment.model_copy(update=updates), issues)


# --- Shared helpers ---

def _sum_defined(*values: Optional[float]) -> Optional[float]:
    defined = [v for v in values if v is not None]
    return sum(defined) if defined else None


def _user_pressure_drop(segment: SegmentBase) -> Optional[float]:
    if segment.user_specified_pressure_drop is None:
        return None
    return segment.user_specified_pressure_drop.to_si()


def erosional_velocity(density: Optional[float], constant: Optional[float] = None) -> Optional[float]:
    """API RP 14E erosional velocity in m/s: Ve[ft/s] = C / sqrt(rho[lb/ft³])."""
    if density is None or density <= 0:
        return None
    c = constant if constant is not None and constant > 0 else DEFAULT_EROSIONAL_CONSTANT
    return c / math.sqrt(density / LBFT3_to_KGM3) * FT_to_M


def _state(segment, pressure, temperature, density, velocity, mach=None) -> PipeState:
    return PipeState(
        pressure=pressure,
        temperature=temperature,
        density=density,
        velocity=velocity,
        erosional_velocity=erosional_velocity(density, segment.erosional_constant),
        mach_number=mach,
        flow_momentum=density * velocity ** 2 if density is not None and velocity is not None else None,
    )


def _drop_summary(segment: SegmentBase, context: HydraulicContext,
                  total_drop: Optional[float]) -> ResultSummary:
    """Summary for elements without a dedicated compressible solution.

    Liquid temperature is unchanged across the segment. For gas the outlet
    density is re-evaluated at the outlet pressure.
    """
    if context.is_gas:
        p_in, t_in = context.pressure, context.temperature
    else:
        p_in = context.pressure if context.pressure is not None else DEFAULT_ATMOSPHERIC_PRESSURE
        t_in = context.temperature
    p_out = p_in - total_drop if total_drop is not None else None

    velocity_in = context.velocity
    density_out = context.density
    velocity_out = velocity_in
    if context.is_gas and p_out is not None and p_out > 0:
        density_out = gas_density(p_out, t_in, context.molar_mass, context.z_factor)
        if velocity_in is not None:
            velocity_out = velocity_in * context.density / density_out

    return ResultSummary(
        inlet_state=_state(segment, p_in, t_in, context.density, velocity_in),
        outlet_state=_state(segment, p_out, t_in, density_out, velocity_out),
    )


def _flow_characteristics(context: HydraulicContext, issues: List[str]):
    """Reynolds number, friction factor and regime in the pipe bore."""
    velocity = context.velocity
    if velocity is None:
        issues.append("Pipe diameter missing")
        return None, None, None
    reynolds = reynolds_number(context.density, velocity, context.diameter, context.viscosity)
    regime = determine_flow_regime(reynolds)
    try:
        friction = darcy_friction_factor(reynolds, relative_roughness(context.roughness, context.diameter))
    except FrictionSolveError as e:
        logger.warning("Friction factor failed: %s", e)
        issues.append(str(e))
        friction = None
    return reynolds, friction, regime


# --- Pipelines ---

def _calculate_pipeline(segment: SegmentBase, context: Optional[HydraulicContext],
                        fittings, issues: List[str]) -> Dict:
    user_drop = _user_pressure_drop(segment)

    if context is not None and context.diameter is None:
        issues.append("Pipe diameter missing")
        context = None

    if context is None:
        contribution = compute_fitting_contribution(fittings, segment, None, None)
        results = None
        if user_drop is not None:
            results = PressureDropCalculationResults(
                user_specified_pressure_drop=user_drop,
                total_segment_pressure_drop=user_drop,
            )
        return dict(fittings=contribution.fittings,
                    pressure_drop_calculation_results=results, result_summary=None)

    reynolds, friction, regime = _flow_characteristics(context, issues)

    length = context.length
    if length is None or length < 0:
        issues.append("Pipe length missing")
        pipe_length_k = None
    elif length == 0:
        pipe_length_k = 0.0
    elif friction is None:
        pipe_length_k = None
    else:
        pipe_length_k = friction * length / context.diameter

    contribution = compute_fitting_contribution(fittings, segment, context, reynolds)
    if contribution.issue:
        issues.append(contribution.issue)

    user_k = segment.user_k or 0.0
    safety_factor = 1.0 + (segment.piping_fitting_safety_factor or 0.0) / 100.0
    total_k = None
    if pipe_length_k is not None and contribution.fitting_k is not None:
        total_k = (pipe_length_k + contribution.fitting_k + user_k) * safety_factor

    equivalent_length = None
    if total_k is not None and friction is not None and friction > 0:
        equivalent_length = total_k * context.diameter / friction

    base = dict(
        pipe_length_k=pipe_length_k,
        fitting_k=contribution.fitting_k,
        user_k=user_k,
        safety_factor=safety_factor,
        total_k=total_k,
        reynolds_number=reynolds,
        friction_factor=friction,
        flow_regime=regime,
        equivalent_length=equivalent_length,
        user_specified_pressure_drop=user_drop,
    )

    if context.is_gas:
        results, summary = _gas_pipeline(segment, context, base, friction, total_k, issues)
    else:
        results, summary = _liquid_pipeline(segment, context, base, total_k, equivalent_length)
    return dict(fittings=contribution.fittings,
                pressure_drop_calculation_results=results, result_summary=summary)


def _liquid_pipeline(segment, context, base, total_k, equivalent_length):
    velocity = context.velocity
    pipe_and_fitting = None
    if total_k is not None and velocity is not None:
        pipe_and_fitting = total_k * 0.5 * context.density * velocity ** 2

    elevation = None
    if context.elevation_change is not None:
        elevation = context.density * G_GRAVITY * context.elevation_change

    total = _sum_defined(pipe_and_fitting, elevation, base["user_specified_pressure_drop"])
    normalized = None
    if pipe_and_fitting is not None and equivalent_length:
        normalized = pipe_and_fitting / equivalent_length

    results = PressureDropCalculationResults(
        pipe_and_fitting_pressure_drop=pipe_and_fitting,
        elevation_pressure_drop=elevation,
        total_segment_pressure_drop=total,
        normalized_pressure_drop=normalized,
        **base
    )
    return results, _drop_summary(segment, context, total)


def _gas_pipeline(segment, context, base, friction, total_k, issues):
    if total_k is None or context.diameter is None:
        issues.append("Gas flow needs a defined total K and diameter")
        return PressureDropCalculationResults(**base), None
    try:
        inlet, outlet = gas_flow.solve(
            context.pressure, context.temperature, context.mass_flow, context.diameter,
            friction, total_k, context.molar_mass, context.z_factor, context.gamma,
            is_forward_flow=True, model=segment.gas_flow_model,
        )
    except (HydraulicsError, ValueError, ArithmeticError) as e:
        logger.warning("Gas flow in segment %s has no solution: %s", segment.display_name, e)
        issues.append(str(e))
        return PressureDropCalculationResults(**base), None

    pipe_and_fitting = abs(inlet.pressure - outlet.pressure)
    elevation = None
    if context.elevation_change is not None:
        elevation = 0.5 * (inlet.density + outlet.density) * G_GRAVITY * context.elevation_change
    total = _sum_defined(pipe_and_fitting, elevation, base["user_specified_pressure_drop"])
    normalized = None
    if base["equivalent_length"]:
        normalized = pipe_and_fitting / base["equivalent_length"]

    results = PressureDropCalculationResults(
        pipe_and_fitting_pressure_drop=pipe_and_fitting,
        elevation_pressure_drop=elevation,
        total_segment_pressure_drop=total,
        normalized_pressure_drop=normalized,
        gas_flow_critical_pressure=inlet.critical_pressure,
        **base
    )
    outlet_pressure = inlet.pressure - total
    summary = ResultSummary(
        inlet_state=_state(segment, inlet.pressure, inlet.temperature, inlet.density,
                           inlet.velocity, inlet.mach),
        outlet_state=_state(segment, outlet_pressure, outlet.temperature, outlet.density,
                            outlet.velocity, outlet.mach),
    )
    return results, summary


# --- Control valves ---

def _element_results(**drops) -> PressureDropCalculationResults:
    """Results for an element whose loss is not expressed through K."""
    total = _sum_defined(*drops.values())
    return PressureDropCalculationResults(
        pipe_length_k=0.0, fitting_k=0.0, user_k=0.0, safety_factor=1.0, total_k=0.0,
        total_segment_pressure_drop=total, **drops
    )


def _calculate_control_valve(segment: ControlValveSegment, context: Optional[HydraulicContext],
                             fittings, issues: List[str]) -> Dict:
    valve = segment.control_valve
    cleared = dict(pressure_drop_calculation_results=None, result_summary=None)
    if context is None:
        return cleared

    mode = resolve_valve_mode(valve)
    drop_unit = valve.pressure_drop.unit if valve.pressure_drop is not None else DEFAULT_VALVE_PRESSURE_DROP_UNIT
    updates = {"input_mode": mode}
    try:
        if context.is_gas:
            xt = valve_xt(valve)
            c1 = valve_c1(valve)
            args = (context.mass_flow, context.molar_mass, context.pressure)
            if mode == ValveInputMode.PRESSURE_DROP:
                if valve.pressure_drop is None:
                    raise InsufficientInputError("Control valve pressure drop missing")
                drop = min(valve.pressure_drop.to_si(), context.pressure - MIN_OUTLET_PRESSURE_MARGIN)
                cg = gas_required_cg(*args, drop, context.temperature, context.gamma, xt, c1)
                updates.update(cg=cg, cv=cg / c1)
            else:
                if valve.cg is not None and valve.cg > 0:
                    cg = valve.cg
                elif valve.cv is not None and valve.cv > 0:
                    cg = valve.cv * c1
                else:
                    raise InsufficientInputError("Control valve Cv or Cg missing")
                drop = gas_pressure_drop_from_cg(cg, *args, context.temperature, context.gamma, xt, c1)
                updates.update(cg=cg, cv=cg / c1,
                               pressure_drop=PressureDifference.from_si(drop, drop_unit))
        else:
            flow = context.volumetric_flow
            if mode == ValveInputMode.PRESSURE_DROP:
                if valve.pressure_drop is None:
                    raise InsufficientInputError("Control valve pressure drop missing")
                drop = valve.pressure_drop.to_si()
                updates["cv"] = liquid_cv_from_pressure_drop(flow, context.density, drop)
            else:
                drop = liquid_pressure_drop_from_cv(flow, context.density, valve.cv)
                updates["pressure_drop"] = PressureDifference.from_si(drop, drop_unit)
    except (HydraulicsError, ValueError) as e:
        logger.warning("Control valve %s: %s", segment.display_name, e)
        issues.append(str(e))
        return cleared

    results = _element_results(control_valve_pressure_drop=drop)
    return dict(
        control_valve=valve.model_copy(update=updates),
        pressure_drop_calculation_results=results,
        result_summary=_drop_summary(segment, context, results.total_segment_pressure_drop),
    )


# --- Orifices ---

def _calculate_orifice(segment: OrificeSegment, context: Optional[HydraulicContext],
                       fittings, issues: List[str]) -> Dict:
    orifice = segment.orifice
    cleared = dict(pressure_drop_calculation_results=None, result_summary=None)
    if context is None:
        return cleared

    reynolds, friction, regime = _flow_characteristics(context, issues)
    if reynolds is None:
        return cleared

    mode = resolve_orifice_mode(orifice)
    dynamic_pressure = 0.5 * context.density * context.velocity ** 2
    drop_unit = orifice.pressure_drop.unit if orifice.pressure_drop is not None else DEFAULT_VALVE_PRESSURE_DROP_UNIT
    updates = {"input_mode": mode}
    try:
        if mode == OrificeInputMode.PRESSURE_DROP:
            if orifice.pressure_drop is None:
                raise InsufficientInputError("Orifice pressure drop missing")
            drop = orifice.pressure_drop.to_si()
            k_factor = drop / dynamic_pressure
            updates["beta_ratio"] = orifice_beta_for_k(k_factor, reynolds)
        else:
            k_factor = orifice_k(orifice.beta_ratio, reynolds)
            drop = k_factor * dynamic_pressure
            updates["pressure_drop"] = PressureDifference.from_si(drop, drop_unit)
    except (HydraulicsError, ValueError) as e:
        logger.warning("Orifice %s: %s", segment.display_name, e)
        issues.append(str(e))
        return cleared
    updates["k_factor"] = k_factor

    results = _element_results(orifice_pressure_drop=drop).model_copy(update=dict(
        reynolds_number=reynolds, friction_factor=friction, flow_regime=regime,
    ))
    return dict(
        orifice=orifice.model_copy(update=updates),
        pressure_drop_calculation_results=results,
        result_summary=_drop_summary(segment, context, drop),
    )


_CALCULATORS: Dict[str, Callable] = {
    "pipeline": _calculate_pipeline,
    "control_valve": _calculate_control_valve,
    "orifice": _calculate_orifice,
}
