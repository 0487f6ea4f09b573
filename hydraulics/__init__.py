"""
Steady-state hydraulics engine for piping networks.

``recalculate_segment`` computes one segment's pressure drop; ``propagate_pressure``
walks a network from a source node and assigns downstream pressures.
"""

from .models import Network, Node, Fluid, PipelineSegment, ControlValveSegment, OrificeSegment
from .segment import recalculate_segment, calculate_segment
from .propagation import propagate_pressure

__all__ = [
    'Network',
    'Node',
    'Fluid',
    'PipelineSegment',
    'ControlValveSegment',
    'OrificeSegment',
    'recalculate_segment',
    'calculate_segment',
    'propagate_pressure',
]
