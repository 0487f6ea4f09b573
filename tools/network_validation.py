"""
Network data-entry validation tool.
"""

import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from hydraulics.models import Network
from hydraulics.validation import validate_network as _validate
from utils.json_helpers import validation_messages

logger = logging.getLogger("hydronet-mcp.network_validation")


def validate_network(
    nodes: List[Dict[str, Any]],
    segments: List[Dict[str, Any]],
) -> str:
    """List missing or inconsistent inputs for each node and segment.

    Args:
        nodes: Node definitions
        segments: Segment definitions

    Returns:
        JSON string {"nodes": {id: [warnings]}, "segments": {id: [warnings]}}
    """
    try:
        network = Network.model_validate({"nodes": nodes, "segments": segments})
    except ValidationError as e:
        return json.dumps({"errors": validation_messages(e), "log": []})

    report = _validate(network)
    count = len(report["nodes"]) + len(report["segments"])
    report["log"] = [f"{count} elements have warnings."]
    return json.dumps(report)
