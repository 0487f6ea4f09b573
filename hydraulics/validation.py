"""
Data-entry checks for nodes and segments.

These do not stop a calculation; they list what is missing or inconsistent
so it can be shown next to the element.
"""

import logging
from typing import Dict, List

from hydraulics.models import Network, Node, PipelineSegment, SegmentBase
from utils.constants import MASS_BALANCE_TOLERANCE_KGS, PRESSURE_CONFLICT_TOLERANCE_PA

logger = logging.getLogger("hydronet-mcp.validation")


def segment_warnings(segment: SegmentBase) -> List[str]:
    warnings = []
    if segment.mass_flow_rate is None:
        warnings.append("Mass flow rate missing")
    if segment.diameter is None and segment.nominal_size is None:
        warnings.append("Diameter missing")

    length = segment.length.to_si() if segment.length is not None else 0.0
    if isinstance(segment, PipelineSegment) and length <= 0:
        warnings.append("Length is 0 or missing")

    elevation = segment.elevation_change.to_si() if segment.elevation_change is not None else 0.0
    if abs(elevation) > length:
        warnings.append("Elevation change > Length")

    if segment.fluid is None:
        warnings.append("Fluid properties missing")
    return warnings


def node_warnings(node: Node, segments: List[SegmentBase]) -> List[str]:
    """Warnings for one node given the segments of its network."""
    warnings = []
    if node.fluid is None:
        warnings.append("Fluid properties missing")
    if node.pressure is None:
        warnings.append("Pressure not set")

    connected = [s for s in segments if node.id in (s.start_node_id, s.end_node_id)]
    incoming = [s for s in connected if s.outlet_node_id == node.id]
    outgoing = [s for s in connected if s.inlet_node_id == node.id]

    if outgoing and not incoming and node.temperature is None:
        warnings.append("Temperature missing")

    if node.pressure is not None:
        pressure = node.pressure.to_si()
        for segment in connected:
            summary = segment.result_summary
            if summary is None:
                continue
            state = summary.inlet_state if segment.inlet_node_id == node.id else summary.outlet_state
            if state.pressure is not None and abs(state.pressure - pressure) > PRESSURE_CONFLICT_TOLERANCE_PA:
                warnings.append(f"Pressure mismatch with segment {segment.display_name}")

    if incoming and outgoing:
        mass_in = sum(s.mass_flow_rate.to_si() for s in incoming if s.mass_flow_rate is not None)
        mass_out = sum(s.mass_flow_rate.to_si() for s in outgoing if s.mass_flow_rate is not None)
        if abs(mass_in - mass_out) > MASS_BALANCE_TOLERANCE_KGS:
            warnings.append(f"Mass balance mismatch: In {mass_in:.3f} kg/s, Out {mass_out:.3f} kg/s")
    return warnings


def validate_network(network: Network) -> Dict[str, Dict[str, List[str]]]:
    """Warnings per node id and per segment id; elements without warnings are omitted."""
    report = {"nodes": {}, "segments": {}}
    for node in network.nodes:
        found = node_warnings(node, network.segments)
        if found:
            report["nodes"][node.id] = found
    for segment in network.segments:
        found = segment_warnings(segment)
        if found:
            report["segments"][segment.id] = found
    logger.debug("Validation: %d nodes and %d segments with warnings",
                 len(report["nodes"]), len(report["segments"]))
    return report
