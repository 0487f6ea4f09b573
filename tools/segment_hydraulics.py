"""
Segment pressure drop tool.

This module provides a tool to recalculate a single pipeline, control valve
or orifice segment and return its derived hydraulics as JSON.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from hydraulics.models import Fluid, parse_segment
from hydraulics.segment import calculate_segment
from utils.json_helpers import safe_json_dumps, validation_messages

logger = logging.getLogger("hydronet-mcp.segment_hydraulics")


def calculate_segment_hydraulics(
    segment: Dict[str, Any],
    fluid: Optional[Dict[str, Any]] = None,
) -> str:
    """Calculate the pressure drop of one network segment.

    Args:
        segment: Segment definition. ``segment_type`` is "pipeline" (default),
            "control_valve" or "orifice". Quantities are given as
            {"value": ..., "unit": ...}, e.g. "length": {"value": 100, "unit": "m"}.
            ``boundary_pressure`` and ``boundary_temperature`` describe the inlet.
        fluid: Optional fluid definition overriding ``segment.fluid``
            (phase, density, viscosity, molecular_weight, z_factor, specific_heat_ratio)

    Returns:
        JSON string with the updated segment, its results, and any issues
    """
    results_log = []
    error_log = []

    try:
        parsed_segment = parse_segment(segment)
        parsed_fluid = Fluid.model_validate(fluid) if fluid is not None else None
    except ValidationError as e:
        error_log.extend(validation_messages(e))
        return json.dumps({"errors": error_log, "log": results_log})

    results_log.append(f"Parsed {parsed_segment.segment_type} segment {parsed_segment.display_name}.")
    if parsed_fluid is not None:
        results_log.append("Using provided fluid instead of segment fluid.")

    try:
        calculation = calculate_segment(parsed_segment, parsed_fluid)
    except Exception as e:
        logger.error("Segment calculation failed: %s", e, exc_info=True)
        error_log.append(f"Segment calculation failed: {e}")
        return json.dumps({"errors": error_log, "log": results_log})

    updated = calculation.segment
    total = calculation.total_pressure_drop
    if total is not None:
        results_log.append(f"Total segment pressure drop: {total:.2f} Pa.")
    else:
        results_log.append("Total segment pressure drop could not be determined.")

    return safe_json_dumps({
        "segment": updated.model_dump(mode="json"),
        "pressure_drop_calculation_results": updated.pressure_drop_calculation_results,
        "result_summary": updated.result_summary,
        "total_segment_pressure_drop_pa": total,
        "issues": calculation.issues,
        "log": results_log,
    })
