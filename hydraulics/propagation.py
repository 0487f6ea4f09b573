"""
Single-pass pressure propagation across a piping network.

Starting from a node with a known pressure, the network is walked breadth
first along the flow direction of each segment. Every segment leaving the
current node receives the node's pressure and temperature as its boundary
condition, is recalculated, and the downstream node is assigned
``P_downstream = P_upstream - total_segment_pressure_drop``.

The first path to reach a node wins. A later path that arrives with a
different pressure (beyond PRESSURE_CONFLICT_TOLERANCE_PA) is reported as a
conflict and does not overwrite the node. Loops are not solved simultaneously.
"""

import logging
import math
from collections import deque
from typing import Dict, List, Optional, Set

from hydraulics.models import (
    Fluid, Network, Node, PipelineSegment, PressureConflict, PropagationResult, SegmentBase
)
from hydraulics.segment import calculate_segment
from utils.constants import (
    DEFAULT_LENGTH_UNIT, DEFAULT_PRESSURE_UNIT, DEFAULT_TEMPERATURE_UNIT,
    LENGTH_PROBE_M, PRESSURE_CONFLICT_TOLERANCE_PA
)
from utils.units import Length, Pressure, Temperature

logger = logging.getLogger("hydronet-mcp.propagation")


def _pressure_in_unit_of(node: Node, pressure_pa: float) -> Pressure:
    unit = node.pressure.unit if node.pressure is not None else DEFAULT_PRESSURE_UNIT
    return Pressure.from_si(pressure_pa, unit)


def _temperature_in_unit_of(node: Node, temperature_k: float) -> Temperature:
    unit = node.temperature.unit if node.temperature is not None else DEFAULT_TEMPERATURE_UNIT
    return Temperature.from_si(temperature_k, unit)


class _Propagation:
    """Mutable traversal state over private copies of the network."""

    def __init__(self, network: Network):
        self.nodes: Dict[str, Node] = {node.id: node for node in network.nodes}
        self.segments: Dict[str, SegmentBase] = {segment.id: segment for segment in network.segments}
        self.outgoing: Dict[str, List[str]] = {}
        for segment in network.segments:
            self.outgoing.setdefault(segment.inlet_node_id, []).append(segment.id)

        self.queue = deque()
        self.visited: Set[str] = set()
        self.assigned: Set[str] = set()
        self.carried_fluid: Dict[str, Fluid] = {}
        self.touched: Dict[str, SegmentBase] = {}
        self.visit_order: List[str] = []
        self.warnings: List[str] = []
        self.conflicts: List[PressureConflict] = []

    def warn(self, message: str):
        logger.info(message)
        self.warnings.append(message)

    def run(self, start_node_id: str) -> PropagationResult:
        if start_node_id not in self.nodes:
            self.warn(f"Start node {start_node_id} not found in network.")
        else:
            self.queue.append(start_node_id)

        while self.queue:
            node_id = self.queue.popleft()
            if node_id in self.visited:
                continue
            self.visited.add(node_id)
            self.visit_order.append(node_id)
            self.expand(self.nodes[node_id])

        return PropagationResult(
            updated_nodes=list(self.nodes.values()),
            updated_segments=list(self.touched.values()),
            warnings=self.warnings,
            visit_order=self.visit_order,
            conflicts=self.conflicts,
        )

    def expand(self, node: Node):
        if node.pressure is None:
            self.warn(f"Node {node.display_name} has no pressure defined. "
                      f"Propagation stopped for this branch.")
            return
        for segment_id in self.outgoing.get(node.id, []):
            self.follow(node, self.segments[segment_id])

    def resolve_fluid(self, node: Node, segment: SegmentBase) -> Optional[Fluid]:
        return segment.fluid or node.fluid or self.carried_fluid.get(node.id)

    def follow(self, node: Node, segment: SegmentBase):
        target_id = segment.outlet_node_id
        target = self.nodes.get(target_id)
        if target is None:
            self.warn(f"Segment {segment.display_name} leads to unknown node {target_id}.")
            return

        segment = segment.model_copy(update=dict(
            boundary_pressure=node.pressure,
            boundary_temperature=node.temperature,
        ))
        fluid = self.resolve_fluid(node, segment)
        current_pa = node.pressure.to_si()

        if isinstance(segment, PipelineSegment) and target.pressure is not None and \
                (segment.length is None or segment.length.value <= 0):
            segment = self.estimate_length(segment, fluid, current_pa, target)

        calculation = calculate_segment(segment, fluid)
        segment = calculation.segment
        self.segments[segment.id] = segment
        self.touched[segment.id] = segment

        drop = calculation.total_pressure_drop
        if drop is None:
            detail = f" ({'; '.join(calculation.issues)})" if calculation.issues else ""
            self.warn(f"Segment {segment.display_name} has no calculated pressure drop{detail}. "
                      f"Assuming 0 drop.")
            drop = 0.0
        elif calculation.issues:
            self.warn(f"Segment {segment.display_name}: {'; '.join(calculation.issues)}.")

        target_pa = current_pa - drop
        temperature_k = self.outlet_temperature(node, segment)
        if fluid is not None:
            self.carried_fluid.setdefault(target_id, fluid)

        if target_id in self.visited or target_id in self.assigned:
            self.check_conflict(target, segment, target_pa)
            return

        if math.isfinite(target_pa):
            updates = {"pressure": _pressure_in_unit_of(target, target_pa)}
        else:
            self.warn(f"Calculated pressure for node {target.display_name} via segment "
                      f"{segment.display_name} is not finite; pressure cleared.")
            updates = {"pressure": None}
        if temperature_k is not None:
            updates["temperature"] = _temperature_in_unit_of(target, temperature_k)

        self.nodes[target_id] = target.model_copy(update=updates)
        self.assigned.add(target_id)
        self.queue.append(target_id)

    def outlet_temperature(self, node: Node, segment: SegmentBase) -> Optional[float]:
        """Segment outlet temperature in K, else the upstream node's (isothermal)."""
        summary = segment.result_summary
        if summary is not None and summary.outlet_state.temperature is not None:
            return summary.outlet_state.temperature
        if node.temperature is not None:
            return node.temperature.to_si()
        return None

    def estimate_length(self, segment: PipelineSegment, fluid: Optional[Fluid],
                        current_pa: float, target: Node) -> PipelineSegment:
        """Infer a missing pipe length from the known pressure at both ends.

        The segment is evaluated at zero length and at a 1 m probe length. The
        zero-length drop carries the length-independent terms (elevation,
        fittings, user K and user drop); the difference is the friction
        gradient, assumed uniform along the pipe.
        """
        required = current_pa - target.pressure.to_si()

        def drop_at(length_m: float) -> Optional[float]:
            trial = segment.model_copy(update={"length": Length(value=length_m, unit="m")})
            drop = calculate_segment(trial, fluid).total_pressure_drop
            return drop if drop is not None and math.isfinite(drop) else None

        fixed = drop_at(0.0)
        probe = drop_at(LENGTH_PROBE_M)
        if fixed is None or probe is None or probe - fixed <= 0:
            self.warn(f"Cannot estimate length for segment {segment.display_name}: "
                      f"no positive pressure gradient.")
            return segment
        if required <= fixed:
            self.warn(f"Cannot estimate length for segment {segment.display_name}: "
                      f"target node {target.display_name} pressure needs a drop of {required:.1f} Pa, "
                      f"not more than the {fixed:.1f} Pa the segment loses at zero length.")
            return segment

        gradient = (probe - fixed) / LENGTH_PROBE_M
        length_m = (required - fixed) / gradient
        unit = segment.length.unit if segment.length is not None else DEFAULT_LENGTH_UNIT
        self.warn(f"Estimated length of segment {segment.display_name}: {length_m:.3f} m "
                  f"to drop {required:.1f} Pa at {gradient:.3f} Pa/m.")
        return segment.model_copy(update={"length": Length.from_si(length_m, unit)})

    def check_conflict(self, target: Node, segment: SegmentBase, incoming_pa: float):
        existing = target.pressure.to_si() if target.pressure is not None else None
        if existing is None or not math.isfinite(incoming_pa):
            return
        if abs(existing - incoming_pa) > PRESSURE_CONFLICT_TOLERANCE_PA:
            self.conflicts.append(PressureConflict(
                node_id=target.id, segment_id=segment.id,
                existing_pressure=existing, incoming_pressure=incoming_pa,
            ))
            self.warn(f"Node {target.display_name} already has {existing:.1f} Pa; segment "
                      f"{segment.display_name} gives {incoming_pa:.1f} Pa. Keeping the first value.")


def propagate_pressure(start_node_id: str, network: Network) -> PropagationResult:
    """Propagate pressure and temperature downstream from ``start_node_id``.

    Args:
        start_node_id: Id of the node whose pressure seeds the traversal
        network: Nodes and segments; not modified

    Returns:
        PropagationResult with every node (updated or untouched), the
        recalculated segments in traversal order, warnings, the node visit
        order and any pressure conflicts between converging paths.
    """
    logger.debug("Propagating from %s over %d nodes, %d segments",
                 start_node_id, len(network.nodes), len(network.segments))
    return _Propagation(network).run(start_node_id)
