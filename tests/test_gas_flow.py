"""
Tests for compressible gas flow (isothermal and adiabatic Fanno flow).

Base case: 0.5 kg/s of air at 5 bar(a) and 293.15 K in a 0.1 m bore,
inlet Mach about 0.03.
"""

import pytest

from hydraulics import gas_flow
from hydraulics.gas_flow import fanno_parameter, speed_of_sound
from hydraulics.models import GasFlowModel
from utils.errors import InsufficientInputError, NonPhysicalSolutionError

BASE = dict(
    pressure=5e5,
    temperature=293.15,
    mass_flow=0.5,
    diameter=0.1,
    friction_factor=0.018,
    molar_mass=28.964,
    z_factor=1.0,
    gamma=1.4,
)


def _solve(total_k, **overrides):
    args = dict(BASE, total_k=total_k)
    args.update(overrides)
    return gas_flow.solve(**args)


class TestHelpers:
    def test_fanno_parameter_vanishes_at_sonic(self):
        assert fanno_parameter(1.0, 1.4) == pytest.approx(0.0, abs=1e-12)

    def test_fanno_parameter_decreases_towards_sonic(self):
        assert fanno_parameter(0.2, 1.4) > fanno_parameter(0.5, 1.4) > fanno_parameter(0.9, 1.4) > 0

    def test_speed_of_sound_in_air(self):
        assert speed_of_sound(293.15, 28.964, 1.0, 1.4) == pytest.approx(343.2, rel=1e-3)


@pytest.mark.parametrize("model", [GasFlowModel.ADIABATIC, GasFlowModel.ISOTHERMAL])
class TestBothModels:
    """Behavior shared by the isothermal and adiabatic models."""

    def test_outlet_below_inlet(self, model):
        inlet, outlet = _solve(20.0, model=model)
        assert inlet.pressure == pytest.approx(5e5)
        assert 0 < outlet.pressure < inlet.pressure
        assert outlet.velocity > inlet.velocity
        assert outlet.critical_pressure < outlet.pressure

    def test_low_mach_matches_incompressible(self, model):
        inlet, outlet = _solve(2.0, model=model)
        incompressible = 2.0 * 0.5 * inlet.density * inlet.velocity ** 2
        assert inlet.pressure - outlet.pressure == pytest.approx(incompressible, rel=0.01)

    def test_zero_k_has_no_drop(self, model):
        inlet, outlet = _solve(0.0, model=model)
        assert outlet.pressure == pytest.approx(inlet.pressure)

    def test_backward_marching_recovers_inlet(self, model):
        inlet, outlet = _solve(50.0, model=model)
        back_in, back_out = _solve(
            50.0, model=model, pressure=outlet.pressure,
            temperature=outlet.temperature, is_forward_flow=False,
        )
        assert back_out.pressure == pytest.approx(outlet.pressure)
        assert back_in.pressure == pytest.approx(inlet.pressure, rel=1e-6)
        assert back_in.temperature == pytest.approx(inlet.temperature, rel=1e-6)

    def test_choked_flow_raises(self, model):
        with pytest.raises(NonPhysicalSolutionError):
            _solve(1e6, model=model)

    def test_supersonic_inlet_raises(self, model):
        with pytest.raises(NonPhysicalSolutionError):
            _solve(1.0, model=model, diameter=0.01)

    def test_missing_inputs_raise(self, model):
        with pytest.raises(InsufficientInputError):
            _solve(1.0, model=model, molar_mass=None)
        with pytest.raises(InsufficientInputError):
            _solve(-1.0, model=model)


class TestIsothermalChoke:
    """Choked isothermal lines are rejected before the outlet pressure is solved."""

    def test_mass_flow_above_choked_limit(self):
        # Inlet Mach about 0.12, far past the isothermal limit at K = 200
        with pytest.raises(NonPhysicalSolutionError, match="choked limit"):
            _solve(200.0, model=GasFlowModel.ISOTHERMAL, mass_flow=2.0)

    def test_huge_k_critical_pressure_underflows(self):
        with pytest.raises(NonPhysicalSolutionError, match="chokes"):
            _solve(1e6, model=GasFlowModel.ISOTHERMAL)

    def test_huge_k_backward(self):
        with pytest.raises(NonPhysicalSolutionError, match="chokes"):
            _solve(1e6, model=GasFlowModel.ISOTHERMAL, is_forward_flow=False)


class TestModelDifferences:
    def test_isothermal_keeps_temperature(self):
        inlet, outlet = _solve(200.0, model=GasFlowModel.ISOTHERMAL)
        assert outlet.temperature == inlet.temperature

    def test_adiabatic_cools_and_accelerates(self):
        inlet, outlet = _solve(200.0, model=GasFlowModel.ADIABATIC)
        assert outlet.temperature < inlet.temperature
        assert outlet.mach > inlet.mach
