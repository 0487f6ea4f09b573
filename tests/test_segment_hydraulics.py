"""
Tests for the segment hydraulics calculator (pipelines).

Reference case: 10 kg/s of water (1000 kg/m³, 1 cP) in a 0.1 m bore,
v = 1.2732 m/s and Re = 127324.
"""

import math

import pytest
from pydantic import ValidationError

from hydraulics.friction import darcy_friction_factor
from hydraulics.segment import calculate_segment, erosional_velocity, recalculate_segment
from utils.constants import G_GRAVITY, P_ATM
from utils.helpers import pipe_inner_diameter
from utils.units import Density

VELOCITY = 10.0 / 1000.0 / (math.pi * 0.1 ** 2 / 4.0)
REYNOLDS = 1000.0 * VELOCITY * 0.1 / 0.001
DYNAMIC_PRESSURE = 0.5 * 1000.0 * VELOCITY ** 2


class TestLiquidPipeline:
    """Incompressible pipe flow."""

    def test_flow_characteristics(self, make_pipeline):
        results = recalculate_segment(make_pipeline()).pressure_drop_calculation_results
        assert results.reynolds_number == pytest.approx(REYNOLDS, rel=1e-9)
        assert results.friction_factor == pytest.approx(darcy_friction_factor(REYNOLDS, 4.5e-4), rel=1e-12)
        assert results.flow_regime.value == "turbulent"

    def test_straight_pipe_drop(self, make_pipeline):
        results = recalculate_segment(make_pipeline()).pressure_drop_calculation_results
        f = results.friction_factor
        assert results.pipe_length_k == pytest.approx(f * 100.0 / 0.1)
        assert results.fitting_k == 0.0
        assert results.user_k == 0.0
        assert results.safety_factor == 1.0
        assert results.pipe_and_fitting_pressure_drop == pytest.approx(results.total_k * DYNAMIC_PRESSURE)
        assert results.total_segment_pressure_drop == pytest.approx(results.pipe_and_fitting_pressure_drop)
        assert results.equivalent_length == pytest.approx(100.0)
        assert results.normalized_pressure_drop == pytest.approx(
            results.pipe_and_fitting_pressure_drop / 100.0)

    def test_total_k_identity(self, make_pipeline):
        """total K = (pipe K + fitting K + user K) * safety factor."""
        segment = make_pipeline(
            fittings=[{"type": "elbow_90", "count": 2}, {"type": "globe_valve", "count": 1}],
            user_k=1.5,
            piping_fitting_safety_factor=10.0,
        )
        results = recalculate_segment(segment).pressure_drop_calculation_results
        assert results.safety_factor == pytest.approx(1.1)
        assert results.fitting_k > 0
        assert results.total_k == pytest.approx(
            (results.pipe_length_k + results.fitting_k + results.user_k) * results.safety_factor)
        assert results.equivalent_length == pytest.approx(results.total_k * 0.1 / results.friction_factor)

    def test_fitting_k_written_back(self, make_pipeline):
        segment = recalculate_segment(make_pipeline(fittings=[{"type": "elbow_90", "count": 2}]))
        elbow = segment.fittings[0]
        assert elbow.k_each > 0
        assert elbow.k_total == pytest.approx(2 * elbow.k_each)
        assert segment.pressure_drop_calculation_results.fitting_k == pytest.approx(elbow.k_total)

    def test_elevation_and_user_drop_add_up(self, make_pipeline):
        segment = make_pipeline(
            elevation_change={"value": 10.0, "unit": "m"},
            user_specified_pressure_drop={"value": 50.0, "unit": "kPa"},
        )
        results = recalculate_segment(segment).pressure_drop_calculation_results
        assert results.elevation_pressure_drop == pytest.approx(1000.0 * G_GRAVITY * 10.0)
        assert results.user_specified_pressure_drop == pytest.approx(50000.0)
        assert results.total_segment_pressure_drop == pytest.approx(
            results.pipe_and_fitting_pressure_drop + results.elevation_pressure_drop + 50000.0)

    def test_downhill_elevation_recovers_pressure(self, make_pipeline):
        results = recalculate_segment(
            make_pipeline(elevation_change={"value": -30.0, "unit": "m"})
        ).pressure_drop_calculation_results
        assert results.elevation_pressure_drop < 0
        assert results.total_segment_pressure_drop < results.pipe_and_fitting_pressure_drop

    def test_zero_length_keeps_fittings(self, make_pipeline):
        segment = make_pipeline(length={"value": 0.0, "unit": "m"},
                                fittings=[{"type": "pipe_exit", "count": 1}])
        results = recalculate_segment(segment).pressure_drop_calculation_results
        assert results.pipe_length_k == 0.0
        assert results.total_k == pytest.approx(1.0)
        assert results.pipe_and_fitting_pressure_drop == pytest.approx(DYNAMIC_PRESSURE)

    def test_missing_length_leaves_drop_undefined(self, make_pipeline):
        segment = make_pipeline(length=None, elevation_change={"value": 5.0, "unit": "m"})
        calculation = calculate_segment(segment)
        results = calculation.segment.pressure_drop_calculation_results
        assert results.pipe_length_k is None
        assert results.total_k is None
        assert results.pipe_and_fitting_pressure_drop is None
        assert results.total_segment_pressure_drop == pytest.approx(1000.0 * G_GRAVITY * 5.0)
        assert "Pipe length missing" in calculation.issues

    def test_design_margin_scales_flow(self, make_pipeline):
        results = recalculate_segment(make_pipeline(design_margin=10.0)).pressure_drop_calculation_results
        assert results.reynolds_number == pytest.approx(REYNOLDS * 1.1, rel=1e-9)

    def test_nominal_size_and_schedule(self, make_pipeline):
        segment = make_pipeline(diameter=None, nominal_size=4, schedule="40")
        diameter, _ = pipe_inner_diameter(4, "40")
        results = recalculate_segment(segment).pressure_drop_calculation_results
        assert results.reynolds_number == pytest.approx(4 * 10.0 / (math.pi * diameter * 0.001), rel=1e-9)

    def test_result_summary(self, make_pipeline):
        segment = make_pipeline(boundary_pressure={"value": 5.0, "unit": "barg"},
                                boundary_temperature={"value": 20.0, "unit": "C"})
        segment = recalculate_segment(segment)
        total = segment.pressure_drop_calculation_results.total_segment_pressure_drop
        inlet, outlet = segment.result_summary.inlet_state, segment.result_summary.outlet_state
        assert inlet.pressure == pytest.approx(5e5 + P_ATM)
        assert outlet.pressure == pytest.approx(5e5 + P_ATM - total)
        assert inlet.temperature == pytest.approx(293.15)
        assert outlet.temperature == pytest.approx(293.15)
        assert inlet.velocity == pytest.approx(VELOCITY)
        assert inlet.flow_momentum == pytest.approx(1000.0 * VELOCITY ** 2)
        assert inlet.erosional_velocity == pytest.approx(erosional_velocity(1000.0))
        assert inlet.mach_number is None

    def test_erosional_velocity(self):
        """API RP 14E with C = 100: about 3.86 m/s for water."""
        assert erosional_velocity(1000.0) == pytest.approx(3.8577, rel=1e-3)
        assert erosional_velocity(1000.0, 150.0) == pytest.approx(1.5 * erosional_velocity(1000.0))
        assert erosional_velocity(None) is None

    def test_input_not_mutated_and_idempotent(self, make_pipeline):
        segment = make_pipeline(fittings=[{"type": "elbow_90", "count": 2}],
                                inlet_diameter={"value": 0.15, "unit": "m"})
        before = segment.model_dump()
        first = recalculate_segment(segment)
        second = recalculate_segment(first)
        assert segment.model_dump() == before
        assert segment.pressure_drop_calculation_results is None
        assert first.model_dump() == second.model_dump()


class TestInsufficientInputs:
    """Missing data leaves results undefined instead of raising."""

    def test_no_fluid_no_results(self, make_pipeline):
        calculation = calculate_segment(make_pipeline(fluid=None))
        assert calculation.segment.pressure_drop_calculation_results is None
        assert calculation.segment.result_summary is None
        assert "Fluid properties missing" in calculation.issues

    def test_no_fluid_with_user_drop(self, make_pipeline):
        segment = make_pipeline(fluid=None, user_specified_pressure_drop={"value": 1.0, "unit": "bar"})
        results = recalculate_segment(segment).pressure_drop_calculation_results
        assert results.total_segment_pressure_drop == pytest.approx(1e5)
        assert results.total_k is None

    def test_fluid_argument_overrides_segment_fluid(self, make_pipeline, water):
        results = recalculate_segment(make_pipeline(fluid=None), water).pressure_drop_calculation_results
        assert results.reynolds_number == pytest.approx(REYNOLDS, rel=1e-9)

    def test_missing_mass_flow(self, make_pipeline):
        calculation = calculate_segment(make_pipeline(mass_flow_rate=None))
        assert calculation.segment.pressure_drop_calculation_results is None

    def test_missing_diameter(self, make_pipeline):
        calculation = calculate_segment(make_pipeline(diameter=None))
        assert calculation.segment.pressure_drop_calculation_results is None
        assert calculation.segment.result_summary is None
        assert "Pipe diameter missing" in calculation.issues

    def test_missing_diameter_ignores_elevation(self, make_pipeline):
        segment = make_pipeline(diameter=None, elevation_change={"value": 5.0, "unit": "m"})
        calculation = calculate_segment(segment)
        assert calculation.total_pressure_drop is None
        assert "Pipe diameter missing" in calculation.issues

    def test_missing_diameter_keeps_user_drop(self, make_pipeline):
        segment = make_pipeline(diameter=None, elevation_change={"value": 5.0, "unit": "m"},
                                user_specified_pressure_drop={"value": 0.5, "unit": "bar"})
        results = recalculate_segment(segment).pressure_drop_calculation_results
        assert results.total_segment_pressure_drop == pytest.approx(5e4)
        assert results.elevation_pressure_drop is None

    def test_unknown_unit_rejected_on_input(self, make_pipeline):
        with pytest.raises(ValidationError):
            make_pipeline(length={"value": 100.0, "unit": "furlong"})


class TestGasPipeline:
    """Compressible pipe flow: 0.5 kg/s of air at 5 bar(a), 20 °C in a 0.1 m bore."""

    @pytest.fixture
    def gas_pipeline(self, make_pipeline, air):
        def build(**overrides):
            data = dict(
                fluid=air,
                mass_flow_rate={"value": 0.5, "unit": "kg/s"},
                boundary_pressure={"value": 5.0, "unit": "bar"},
                boundary_temperature={"value": 20.0, "unit": "C"},
            )
            data.update(overrides)
            return make_pipeline(**data)
        return build

    def test_adiabatic_drop(self, gas_pipeline):
        segment = recalculate_segment(gas_pipeline())
        results = segment.pressure_drop_calculation_results
        summary = segment.result_summary
        assert results.total_segment_pressure_drop > 0
        assert summary.inlet_state.pressure == pytest.approx(5e5)
        assert summary.outlet_state.pressure == pytest.approx(5e5 - results.total_segment_pressure_drop)
        assert 0 < summary.inlet_state.mach_number < summary.outlet_state.mach_number < 1
        assert summary.outlet_state.temperature < summary.inlet_state.temperature
        assert results.gas_flow_critical_pressure < summary.outlet_state.pressure

    def test_low_mach_close_to_incompressible(self, gas_pipeline):
        segment = recalculate_segment(gas_pipeline())
        results = segment.pressure_drop_calculation_results
        inlet = segment.result_summary.inlet_state
        incompressible = results.total_k * 0.5 * inlet.density * inlet.velocity ** 2
        assert results.pipe_and_fitting_pressure_drop == pytest.approx(incompressible, rel=0.02)

    def test_isothermal_and_adiabatic_agree_at_low_mach(self, gas_pipeline):
        adiabatic = recalculate_segment(gas_pipeline()).pressure_drop_calculation_results
        isothermal_segment = recalculate_segment(gas_pipeline(gas_flow_model="isothermal"))
        isothermal = isothermal_segment.pressure_drop_calculation_results
        assert isothermal.total_segment_pressure_drop == pytest.approx(
            adiabatic.total_segment_pressure_drop, rel=0.02)
        summary = isothermal_segment.result_summary
        assert summary.outlet_state.temperature == pytest.approx(summary.inlet_state.temperature)

    def test_gas_density_derived_from_state(self, gas_pipeline, air):
        """A density on a gas fluid is ignored."""
        heavy_air = air.model_copy(update={"density": Density(value=1000.0, unit="kg/m3")})
        plain = recalculate_segment(gas_pipeline()).pressure_drop_calculation_results
        with_density = recalculate_segment(gas_pipeline(fluid=heavy_air)).pressure_drop_calculation_results
        assert with_density.total_segment_pressure_drop == pytest.approx(plain.total_segment_pressure_drop)

    def test_missing_boundary_pressure(self, gas_pipeline):
        calculation = calculate_segment(gas_pipeline(boundary_pressure=None))
        assert calculation.segment.pressure_drop_calculation_results is None
        assert any("boundary" in issue for issue in calculation.issues)

    def test_choked_flow_keeps_k_but_no_drop(self, gas_pipeline):
        segment = recalculate_segment(gas_pipeline(diameter={"value": 0.01, "unit": "m"},
                                                   length={"value": 1000.0, "unit": "m"}))
        results = segment.pressure_drop_calculation_results
        assert results.total_k is not None
        assert results.reynolds_number is not None
        assert results.pipe_and_fitting_pressure_drop is None
        assert results.total_segment_pressure_drop is None
        assert segment.result_summary is None
