"""
Data model for piping networks.

Nodes and segments are frozen pydantic models. Calculators never mutate them;
they return updated copies built with ``model_copy(update=...)``. Derived
results (``pressure_drop_calculation_results`` and ``result_summary``) are
owned by the segment calculator and always regenerated together.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from utils.units import (
    Density, Length, MassFlow, MolarMass, Pressure, PressureDifference,
    Temperature, Viscosity
)


class Phase(str, Enum):
    LIQUID = "liquid"
    GAS = "gas"


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class FlowRegime(str, Enum):
    LAMINAR = "laminar"
    TURBULENT = "turbulent"


class GasFlowModel(str, Enum):
    ISOTHERMAL = "isothermal"
    ADIABATIC = "adiabatic"


class ElbowStyle(str, Enum):
    """Fitting construction: threaded, long-radius welded or short-radius welded."""
    SCRD = "SCRD"
    LR = "LR"
    SR = "SR"


class ValveInputMode(str, Enum):
    PRESSURE_DROP = "pressure_drop"
    FLOW_COEFFICIENT = "flow_coefficient"


class OrificeInputMode(str, Enum):
    BETA_RATIO = "beta_ratio"
    PRESSURE_DROP = "pressure_drop"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Fluid(_Frozen):
    """Fluid properties. For gas, density is derived from P, T, MW and Z."""
    phase: Phase = Phase.LIQUID
    name: Optional[str] = None
    density: Optional[Density] = None
    viscosity: Optional[Viscosity] = None
    molecular_weight: Optional[MolarMass] = None
    z_factor: Optional[float] = None
    specific_heat_ratio: Optional[float] = None


class Node(_Frozen):
    id: str
    label: Optional[str] = None
    pressure: Optional[Pressure] = None
    temperature: Optional[Temperature] = None
    fluid: Optional[Fluid] = None

    @property
    def display_name(self) -> str:
        return self.label or self.id


class Fitting(_Frozen):
    type: str
    count: int = Field(default=0, ge=0)
    k_each: float = 0.0
    k_total: float = 0.0


class PressureDropCalculationResults(_Frozen):
    """Derived per-segment hydraulics. Pressures in Pa, lengths in m.

    ``safety_factor`` is the multiplier applied to the K sum, so that
    ``total_k == (pipe_length_k + fitting_k + user_k) * safety_factor``.
    """
    pipe_length_k: Optional[float] = None
    fitting_k: Optional[float] = None
    user_k: Optional[float] = None
    safety_factor: Optional[float] = None
    total_k: Optional[float] = None
    reynolds_number: Optional[float] = None
    friction_factor: Optional[float] = None
    flow_regime: Optional[FlowRegime] = None
    equivalent_length: Optional[float] = None
    pipe_and_fitting_pressure_drop: Optional[float] = None
    elevation_pressure_drop: Optional[float] = None
    control_valve_pressure_drop: Optional[float] = None
    orifice_pressure_drop: Optional[float] = None
    user_specified_pressure_drop: Optional[float] = None
    total_segment_pressure_drop: Optional[float] = None
    normalized_pressure_drop: Optional[float] = None
    gas_flow_critical_pressure: Optional[float] = None


class PipeState(_Frozen):
    """Thermodynamic and flow state at one end of a segment (SI units)."""
    pressure: Optional[float] = None
    temperature: Optional[float] = None
    density: Optional[float] = None
    velocity: Optional[float] = None
    erosional_velocity: Optional[float] = None
    mach_number: Optional[float] = None
    flow_momentum: Optional[float] = None


class ResultSummary(_Frozen):
    inlet_state: PipeState
    outlet_state: PipeState


class ControlValve(_Frozen):
    tag: Optional[str] = None
    input_mode: Optional[ValveInputMode] = None
    cv: Optional[float] = None
    cg: Optional[float] = None
    pressure_drop: Optional[PressureDifference] = None
    xt: Optional[float] = None
    c1: Optional[float] = None


class Orifice(_Frozen):
    tag: Optional[str] = None
    input_mode: Optional[OrificeInputMode] = None
    beta_ratio: Optional[float] = None
    pressure_drop: Optional[PressureDifference] = None
    k_factor: Optional[float] = None


class SegmentBase(_Frozen):
    id: str
    name: Optional[str] = None
    start_node_id: str
    end_node_id: str
    direction: Direction = Direction.FORWARD
    fluid: Optional[Fluid] = None

    mass_flow_rate: Optional[MassFlow] = None
    design_margin: Optional[float] = None  # percent added to the mass flow

    diameter: Optional[Length] = None
    nominal_size: Optional[float] = None  # NPS, inches
    schedule: Optional[str] = None
    inlet_diameter: Optional[Length] = None
    outlet_diameter: Optional[Length] = None
    length: Optional[Length] = None
    roughness: Optional[Length] = None
    elevation_change: Optional[Length] = None

    elbow_style: ElbowStyle = ElbowStyle.LR
    fittings: List[Fitting] = Field(default_factory=list)
    user_k: Optional[float] = None
    piping_fitting_safety_factor: Optional[float] = None  # percent
    user_specified_pressure_drop: Optional[PressureDifference] = None
    erosional_constant: Optional[float] = None
    gas_flow_model: GasFlowModel = GasFlowModel.ADIABATIC

    boundary_pressure: Optional[Pressure] = None
    boundary_temperature: Optional[Temperature] = None

    pressure_drop_calculation_results: Optional[PressureDropCalculationResults] = None
    result_summary: Optional[ResultSummary] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def is_forward(self) -> bool:
        return self.direction == Direction.FORWARD

    @property
    def inlet_node_id(self) -> str:
        """Node the fluid enters from, given the flow direction."""
        return self.start_node_id if self.is_forward else self.end_node_id

    @property
    def outlet_node_id(self) -> str:
        return self.end_node_id if self.is_forward else self.start_node_id


class PipelineSegment(SegmentBase):
    segment_type: Literal["pipeline"] = "pipeline"


class ControlValveSegment(SegmentBase):
    segment_type: Literal["control_valve"] = "control_valve"
    control_valve: ControlValve = Field(default_factory=ControlValve)


class OrificeSegment(SegmentBase):
    segment_type: Literal["orifice"] = "orifice"
    orifice: Orifice = Field(default_factory=Orifice)


Segment = Annotated[
    Union[PipelineSegment, ControlValveSegment, OrificeSegment],
    Field(discriminator="segment_type"),
]

SEGMENT_ADAPTER = TypeAdapter(Segment)


def parse_segment(data) -> SegmentBase:
    """Validate a segment mapping; ``segment_type`` defaults to ``pipeline``."""
    if isinstance(data, SegmentBase):
        return data
    data = dict(data)
    data.setdefault("segment_type", "pipeline")
    return SEGMENT_ADAPTER.validate_python(data)


class Network(_Frozen):
    nodes: List[Node] = Field(default_factory=list)
    segments: List[Segment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _default_segment_type(cls, data):
        if isinstance(data, dict) and data.get("segments"):
            segments = []
            for segment in data["segments"]:
                if isinstance(segment, dict) and "segment_type" not in segment:
                    segment = {**segment, "segment_type": "pipeline"}
                segments.append(segment)
            data = {**data, "segments": segments}
        return data

    @model_validator(mode="after")
    def _unique_ids(self):
        node_ids = [node.id for node in self.nodes]
        if len(node_ids) != len(set(node_ids)):
            raise ValueError("Node ids must be unique")
        segment_ids = [segment.id for segment in self.segments]
        if len(segment_ids) != len(set(segment_ids)):
            raise ValueError("Segment ids must be unique")
        return self


class PressureConflict(_Frozen):
    """A node reached by a second path with a different pressure (Pa)."""
    node_id: str
    segment_id: str
    existing_pressure: float
    incoming_pressure: float


class PropagationResult(_Frozen):
    updated_nodes: List[Node] = Field(default_factory=list)
    updated_segments: List[Segment] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    visit_order: List[str] = Field(default_factory=list)
    conflicts: List[PressureConflict] = Field(default_factory=list)
