"""
Network pressure propagation tool.

Propagates a known source pressure through a piping network and returns the
resulting node pressures, recalculated segments and warnings as JSON.
"""

import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from hydraulics.models import Network
from hydraulics.propagation import propagate_pressure
from utils.json_helpers import safe_json_dumps, validation_messages

logger = logging.getLogger("hydronet-mcp.network_propagation")


def propagate_network_pressure(
    start_node_id: str,
    nodes: List[Dict[str, Any]],
    segments: List[Dict[str, Any]],
) -> str:
    """Propagate pressure downstream from a source node.

    Args:
        start_node_id: Id of the node whose pressure is known
        nodes: Node definitions: id, label, pressure, temperature, fluid
        segments: Segment definitions (see calculate_segment_hydraulics); each
            connects start_node_id to end_node_id, flowing start to end unless
            direction is "backward"

    Returns:
        JSON string with updated nodes, updated segments, warnings, the node
        visit order and pressure conflicts between converging branches
    """
    results_log = []
    error_log = []

    try:
        network = Network.model_validate({"nodes": nodes, "segments": segments})
    except ValidationError as e:
        error_log.extend(validation_messages(e))
        return json.dumps({"errors": error_log, "log": results_log})

    results_log.append(f"Network has {len(network.nodes)} nodes and {len(network.segments)} segments.")

    try:
        result = propagate_pressure(start_node_id, network)
    except Exception as e:
        logger.error("Pressure propagation failed: %s", e, exc_info=True)
        error_log.append(f"Pressure propagation failed: {e}")
        return json.dumps({"errors": error_log, "log": results_log})

    results_log.append(
        f"Visited {len(result.visit_order)} nodes and recalculated {len(result.updated_segments)} segments."
    )
    payload = result.model_dump(mode="json")
    payload["log"] = results_log
    return safe_json_dumps(payload)
