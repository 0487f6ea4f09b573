"""Shared fixtures for the hydronet-mcp test suite."""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from hydraulics.models import Fluid, PipelineSegment

WATER = {
    "phase": "liquid",
    "name": "water",
    "density": {"value": 1000.0, "unit": "kg/m3"},
    "viscosity": {"value": 1.0, "unit": "cP"},
}

AIR = {
    "phase": "gas",
    "name": "air",
    "viscosity": {"value": 1.8e-5, "unit": "Pa.s"},
    "molecular_weight": {"value": 28.964, "unit": "kg/kmol"},
    "z_factor": 1.0,
    "specific_heat_ratio": 1.4,
}


def _pipeline(**overrides) -> PipelineSegment:
    """10 kg/s of water through 100 m of 0.1 m steel pipe unless overridden."""
    data = dict(
        id="p1",
        start_node_id="a",
        end_node_id="b",
        fluid=WATER,
        mass_flow_rate={"value": 10.0, "unit": "kg/s"},
        diameter={"value": 0.1, "unit": "m"},
        length={"value": 100.0, "unit": "m"},
        roughness={"value": 4.5e-5, "unit": "m"},
    )
    data.update(overrides)
    return PipelineSegment.model_validate(data)


@pytest.fixture
def water():
    return Fluid.model_validate(WATER)


@pytest.fixture
def air():
    return Fluid.model_validate(AIR)


@pytest.fixture
def make_pipeline():
    return _pipeline
