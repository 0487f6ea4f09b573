"""
Exception hierarchy for the hydraulics engine.

Calculations raise these internally; the segment calculator catches them at
its boundary and records undefined results instead of failing the network.
"""


class HydraulicsError(Exception):
    """Base class for calculation failures."""


class InsufficientInputError(HydraulicsError):
    """A required fluid, geometry or flow input is missing or non-positive."""


class NumericalConvergenceError(HydraulicsError):
    """An iterative solver did not converge."""


class FrictionSolveError(NumericalConvergenceError):
    """The Darcy friction factor could not be determined."""


class NonPhysicalSolutionError(HydraulicsError):
    """The equations have no physical solution for the given inputs (e.g. choked flow)."""


class UnitConversionError(HydraulicsError, ValueError):
    """Unknown unit, or a unit used for the wrong kind of quantity."""
