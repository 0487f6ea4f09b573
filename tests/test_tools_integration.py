#!/usr/bin/env python3
"""
Pytest tests for the hydronet MCP tools.

The tools take plain JSON-like arguments and return JSON strings; these tests
go through that interface end to end.
"""

import json

import pytest

from tools.friction_factor import calculate_friction_factor
from tools.network_propagation import propagate_network_pressure
from tools.network_validation import validate_network
from tools.segment_hydraulics import calculate_segment_hydraulics
from tools.valve_sizing import calculate_control_valve_sizing, calculate_orifice_loss
from omnitools.element_sizing import element_sizing
from omnitools.network_hydraulics import network_hydraulics

WATER = {
    "phase": "liquid",
    "density": {"value": 998.0, "unit": "kg/m3"},
    "viscosity": {"value": 1.0, "unit": "cP"},
}

PIPE = {
    "id": "p1",
    "start_node_id": "src",
    "end_node_id": "out",
    "fluid": WATER,
    "mass_flow_rate": {"value": 20.0, "unit": "t/h"},
    "diameter": {"value": 102.3, "unit": "mm"},
    "length": {"value": 250.0, "unit": "m"},
    "fittings": [{"type": "elbow_90", "count": 4}],
}

NODES = [
    {"id": "src", "pressure": {"value": 3.0, "unit": "barg"}, "temperature": {"value": 20.0, "unit": "C"}},
    {"id": "out"},
]


class TestSegmentHydraulicsTool:
    """calculate_segment_hydraulics"""

    def test_pipeline(self):
        result = json.loads(calculate_segment_hydraulics(PIPE))
        assert "errors" not in result
        assert result["total_segment_pressure_drop_pa"] > 0
        results = result["pressure_drop_calculation_results"]
        assert results["flow_regime"] == "turbulent"
        assert results["fitting_k"] > 0
        assert result["segment"]["fittings"][0]["k_total"] == pytest.approx(results["fitting_k"])
        assert result["issues"] == []

    def test_fluid_override(self):
        segment = {k: v for k, v in PIPE.items() if k != "fluid"}
        without = json.loads(calculate_segment_hydraulics(segment))
        assert without["total_segment_pressure_drop_pa"] is None
        assert "Fluid properties missing" in without["issues"]

        with_fluid = json.loads(calculate_segment_hydraulics(segment, fluid=WATER))
        assert with_fluid["total_segment_pressure_drop_pa"] > 0

    def test_orifice_segment(self):
        segment = dict(PIPE, segment_type="orifice", orifice={"beta_ratio": 0.5})
        result = json.loads(calculate_segment_hydraulics(segment))
        assert result["segment"]["orifice"]["k_factor"] > 0
        assert result["pressure_drop_calculation_results"]["orifice_pressure_drop"] == pytest.approx(
            result["total_segment_pressure_drop_pa"])

    def test_unknown_unit_is_reported(self):
        segment = dict(PIPE, length={"value": 250.0, "unit": "furlong"})
        result = json.loads(calculate_segment_hydraulics(segment))
        assert result["errors"]
        assert any("furlong" in e for e in result["errors"])


class TestNetworkTools:
    """propagate_network_pressure and validate_network"""

    def test_propagation(self):
        result = json.loads(propagate_network_pressure("src", NODES, [PIPE]))
        nodes = {n["id"]: n for n in result["updated_nodes"]}
        assert nodes["out"]["pressure"]["unit"] == "Pa"
        assert nodes["out"]["pressure"]["value"] < 3e5 + 101325
        assert nodes["out"]["temperature"]["value"] == pytest.approx(20.0)
        assert result["visit_order"] == ["src", "out"]
        assert result["conflicts"] == []

    def test_non_finite_pressure_serializes_as_null(self):
        segments = [{"id": "p1", "start_node_id": "src", "end_node_id": "out",
                     "user_specified_pressure_drop": {"value": float("inf"), "unit": "Pa"}}]
        text = propagate_network_pressure("src", NODES, segments)
        assert "Infinity" not in text
        result = json.loads(text)
        nodes = {n["id"]: n for n in result["updated_nodes"]}
        assert nodes["out"]["pressure"] is None

    def test_invalid_network(self):
        result = json.loads(propagate_network_pressure("src", [{"id": "a"}, {"id": "a"}], []))
        assert result["errors"]

    def test_validation(self):
        result = json.loads(validate_network(NODES, [PIPE, {"id": "p2", "start_node_id": "out", "end_node_id": "src"}]))
        assert "p2" in result["segments"]
        assert "p1" not in result["segments"]


class TestElementTools:
    """calculate_friction_factor, calculate_control_valve_sizing, calculate_orifice_loss"""

    def test_laminar_friction_factor(self):
        result = json.loads(calculate_friction_factor(reynolds_number=1000.0))
        assert result["darcy_friction_factor"] == pytest.approx(0.064)
        assert result["fanning_friction_factor"] == pytest.approx(0.016)
        assert result["flow_regime"] == "laminar"

    def test_friction_factor_from_flow_data(self):
        result = json.loads(calculate_friction_factor(
            velocity=2.0, pipe_diameter=0.1, fluid_density=1000.0, fluid_viscosity=0.001,
            pipe_roughness=4.5e-5,
        ))
        assert result["reynolds_number"] == pytest.approx(2e5)
        assert result["relative_roughness"] == pytest.approx(4.5e-4)
        assert 0.015 < result["darcy_friction_factor"] < 0.025

    def test_friction_factor_missing_inputs(self):
        result = json.loads(calculate_friction_factor(velocity=2.0))
        assert result["errors"]

    def test_invalid_reynolds(self):
        result = json.loads(calculate_friction_factor(reynolds_number=-5.0))
        assert result["errors"]

    def test_liquid_valve(self):
        result = json.loads(calculate_control_valve_sizing(
            phase="liquid", flow_rate_gpm=100.0, pressure_drop_psi=1.0, fluid_density=1000.0))
        assert result["cv"] == pytest.approx(100.0)

    def test_gas_valve_round_trip(self):
        sized = json.loads(calculate_control_valve_sizing(
            phase="gas", mass_flow_rate=1.0, pressure_drop=1e5, inlet_pressure=1e6,
            inlet_temperature_c=26.85, gas_mw=28.964))
        checked = json.loads(calculate_control_valve_sizing(
            phase="gas", mass_flow_rate=1.0, valve_cg=sized["cg"], inlet_pressure=1e6,
            inlet_temperature_c=26.85, gas_mw=28.964))
        assert checked["pressure_drop_pa"] == pytest.approx(1e5, rel=1e-6)
        assert checked["outlet_pressure_pa"] == pytest.approx(9e5, rel=1e-6)

    def test_orifice_reference_k(self):
        result = json.loads(calculate_orifice_loss(reynolds_number=1e4, beta_ratio=0.5))
        assert result["k_factor"] == pytest.approx(29.475)
        assert result["pressure_drop_pa"] is None

    def test_orifice_beta_from_drop(self):
        result = json.loads(calculate_orifice_loss(
            reynolds_number=1e4, pressure_drop=29.475 * 500.0, fluid_density=1000.0, velocity=1.0))
        assert result["beta_ratio"] == pytest.approx(0.5, rel=1e-6)


class TestOmnitools:
    """Dispatch through the unified tools registered with the server."""

    def test_network_hydraulics_actions(self):
        segment = json.loads(network_hydraulics(action="recalculate_segment", segment=PIPE))
        propagated = json.loads(network_hydraulics(
            action="propagate_pressure", start_node_id="src", nodes=NODES, segments=[PIPE]))
        out = {n["id"]: n for n in propagated["updated_nodes"]}["out"]
        assert out["pressure"]["value"] == pytest.approx(
            3e5 + 101325 - segment["total_segment_pressure_drop_pa"])

        report = json.loads(network_hydraulics(action="validate_network", nodes=NODES, segments=[PIPE]))
        assert "segments" in report

    def test_network_hydraulics_missing_arguments(self):
        assert "error" in json.loads(network_hydraulics(action="recalculate_segment"))
        assert "error" in json.loads(network_hydraulics(action="propagate_pressure", nodes=NODES))
        assert "error" in json.loads(network_hydraulics(action="not_an_action"))

    def test_element_sizing_modes(self):
        friction = json.loads(element_sizing(mode="friction_factor", reynolds_number=2000.0))
        assert friction["darcy_friction_factor"] == pytest.approx(0.032)

        valve = json.loads(element_sizing(mode="control_valve", flow_rate_gpm=100.0,
                                          pressure_drop_psi=4.0, fluid_density=1000.0))
        assert valve["cv"] == pytest.approx(50.0)

        orifice = json.loads(element_sizing(mode="orifice", reynolds_number=1e4, beta_ratio=0.5))
        assert orifice["k_factor"] == pytest.approx(29.475)

        assert "error" in json.loads(element_sizing(mode="orifice", beta_ratio=0.5))
