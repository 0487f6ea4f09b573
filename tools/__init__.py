"""
Tools package for the hydronet-mcp server.

This package contains the individual calculation tools that can be registered with the MCP server.
"""

from .segment_hydraulics import calculate_segment_hydraulics
from .network_propagation import propagate_network_pressure
from .network_validation import validate_network
from .friction_factor import calculate_friction_factor
from .valve_sizing import calculate_control_valve_sizing, calculate_orifice_loss

__all__ = [
    'calculate_segment_hydraulics',
    'propagate_network_pressure',
    'validate_network',
    'calculate_friction_factor',
    'calculate_control_valve_sizing',
    'calculate_orifice_loss',
]
