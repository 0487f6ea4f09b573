"""
Darcy friction factor and flow-regime classification.

Laminar flow uses the Hagen-Poiseuille result f = 64/Re. Turbulent flow
solves the Colebrook-White equation by fixed-point iteration on 1/sqrt(f),
seeded with the explicit Swamee-Jain approximation.
"""

import logging
import math
from typing import Optional, Tuple

# --- Third-Party Libraries ---
import fluids.core
import fluids.friction

from hydraulics.models import FlowRegime
from utils.constants import (
    LAMINAR_REYNOLDS_LIMIT, COLEBROOK_TOLERANCE, COLEBROOK_MAX_ITERATIONS
)
from utils.errors import FrictionSolveError

logger = logging.getLogger("hydronet-mcp.friction")


def reynolds_number(density: float, velocity: float, diameter: float, viscosity: float) -> float:
    """Reynolds number based on the absolute velocity."""
    return fluids.core.Reynolds(V=abs(velocity), D=diameter, rho=density, mu=viscosity)


def relative_roughness(roughness: Optional[float], diameter: float) -> float:
    """Roughness over diameter; a missing or non-positive roughness is smooth pipe."""
    if roughness is None or roughness <= 0 or diameter <= 0:
        return 0.0
    return roughness / diameter


def determine_flow_regime(reynolds: float) -> FlowRegime:
    return FlowRegime.LAMINAR if reynolds <= LAMINAR_REYNOLDS_LIMIT else FlowRegime.TURBULENT


def darcy_friction_factor(
    reynolds: float,
    rel_roughness: float = 0.0,
    tolerance: float = COLEBROOK_TOLERANCE,
    max_iterations: int = COLEBROOK_MAX_ITERATIONS,
) -> float:
    """Darcy friction factor for fully developed pipe flow.

    Args:
        reynolds: Reynolds number, must be positive
        rel_roughness: Roughness divided by diameter, must be non-negative
        tolerance: Convergence tolerance on the relative change of 1/sqrt(f)
        max_iterations: Upper bound on Colebrook iterations

    Returns:
        Darcy friction factor (dimensionless)

    Raises:
        FrictionSolveError: on non-positive Re, negative roughness, a
            non-finite iterate or failure to converge.
    """
    if reynolds is None or not math.isfinite(reynolds) or reynolds <= 0:
        raise FrictionSolveError(f"Reynolds number must be positive, got {reynolds}")
    if rel_roughness is None or not math.isfinite(rel_roughness) or rel_roughness < 0:
        raise FrictionSolveError(f"Relative roughness must be non-negative, got {rel_roughness}")

    if determine_flow_regime(reynolds) == FlowRegime.LAMINAR:
        return 64.0 / reynolds

    seed = fluids.friction.Swamee_Jain_1976(Re=reynolds, eD=rel_roughness)
    x = 1.0 / math.sqrt(seed)
    for iteration in range(max_iterations):
        argument = rel_roughness / 3.7 + 2.51 * x / reynolds
        if argument <= 0:
            raise FrictionSolveError(f"Colebrook iteration left its domain at Re={reynolds:.4g}")
        x_new = -2.0 * math.log10(argument)
        if not math.isfinite(x_new) or x_new <= 0:
            raise FrictionSolveError(f"Colebrook iteration diverged at Re={reynolds:.4g}")
        if abs(x_new - x) <= tolerance * x_new:
            logger.debug("Colebrook converged in %d iterations (Re=%.4g, eD=%.3g)",
                         iteration + 1, reynolds, rel_roughness)
            return 1.0 / (x_new * x_new)
        x = x_new

    raise FrictionSolveError(
        f"Colebrook equation did not converge within {max_iterations} iterations "
        f"(Re={reynolds:.4g}, eD={rel_roughness:.3g})"
    )


def friction_and_regime(reynolds: float, rel_roughness: float = 0.0) -> Tuple[float, FlowRegime]:
    return darcy_friction_factor(reynolds, rel_roughness), determine_flow_regime(reynolds)
