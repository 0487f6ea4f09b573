"""Unified network hydraulics: segment recalculation, pressure propagation and validation."""

from typing import Any, Dict, List, Literal, Optional
import inspect
import json
from tools.segment_hydraulics import calculate_segment_hydraulics
from tools.network_propagation import propagate_network_pressure
from tools.network_validation import validate_network


def network_hydraulics(
    action: Literal["recalculate_segment", "propagate_pressure", "validate_network"] = "propagate_pressure",

    # Single segment
    segment: Optional[Dict[str, Any]] = None,
    fluid: Optional[Dict[str, Any]] = None,

    # Whole network
    start_node_id: Optional[str] = None,
    nodes: Optional[List[Dict[str, Any]]] = None,
    segments: Optional[List[Dict[str, Any]]] = None,
) -> str:
    """Unified piping network calculations.

    Consolidates the network tools:
    - action='recalculate_segment': pressure drop of one segment (needs segment, optional fluid)
    - action='propagate_pressure': walk the network from start_node_id (needs nodes, segments)
    - action='validate_network': list missing or inconsistent inputs (needs nodes, segments)

    Returns:
        JSON string with the results of the selected action
    """
    params = locals().copy()
    params.pop("action")

    if action == "recalculate_segment":
        if segment is None:
            return json.dumps({"error": "segment is required for action 'recalculate_segment'"})
        fn = calculate_segment_hydraulics
    elif action == "propagate_pressure":
        if start_node_id is None or nodes is None or segments is None:
            return json.dumps({"error": "start_node_id, nodes and segments are required for action 'propagate_pressure'"})
        fn = propagate_network_pressure
    elif action == "validate_network":
        if nodes is None or segments is None:
            return json.dumps({"error": "nodes and segments are required for action 'validate_network'"})
        fn = validate_network
    else:
        return json.dumps({"error": f"Invalid action: {action}"})

    sig = inspect.signature(fn)
    allowed = set(sig.parameters.keys())
    forwarded = {k: v for k, v in params.items() if k in allowed and v is not None}

    return fn(**forwarded)
