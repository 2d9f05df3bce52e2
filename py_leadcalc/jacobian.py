"""Miss-vector Jacobian with respect to the launch angles.

The Jacobian is the 3×2 matrix J = [∂E/∂az, ∂E/∂el] of the CPA miss vector E.  It is
estimated by forward finite differences on the first iteration (and whenever the solver
detects oscillation) and refreshed by Broyden's rank-1 secant update otherwise:

    J₊ = J + ((ΔE − J·Δx) / ‖Δx‖²) · Δxᵀ,   Δx = (Δaz, Δel)

The finite-difference estimate reuses the iterate's own CPA as the baseline, so it
costs two extra trajectory evaluations; the Broyden update costs none.
"""
from typing import Callable, NamedTuple, Optional

from py_leadcalc.constants import cAnglePerturbation, cBroydenFloor
from py_leadcalc.trajectory import CPAResult
from py_leadcalc.vector import Vector3, ZERO_VECTOR

__all__ = (
    'Jacobian',
    'EvaluateAngles',
    'finite_difference_jacobian',
    'broyden_update',
)

EvaluateAngles = Callable[[float, float], Optional[CPAResult]]


class Jacobian(NamedTuple):
    """Columns of the 3×2 miss-vector Jacobian, in metres per degree."""

    d_azimuth: Vector3
    d_elevation: Vector3

    def apply(self, delta_azimuth: float, delta_elevation: float) -> Vector3:
        """J·Δx."""
        return self.d_azimuth * delta_azimuth + self.d_elevation * delta_elevation


def finite_difference_jacobian(evaluate: EvaluateAngles, azimuth: float, elevation: float,
                               baseline: Vector3, delta: float = cAnglePerturbation) -> Jacobian:
    """Forward-difference Jacobian around (`azimuth`, `elevation`).

    Args:
        evaluate: Trajectory evaluation for an (azimuth, elevation) pair in degrees.
        azimuth: Current azimuth (deg).
        elevation: Current elevation (deg).
        baseline: Miss vector already evaluated at the current angles.
        delta: Perturbation step (deg).

    Returns:
        The Jacobian; a column is the zero vector when its perturbed evaluation failed.
    """
    inv_delta = 1.0 / delta

    perturbed = evaluate(azimuth + delta, elevation)
    d_azimuth = ZERO_VECTOR if perturbed is None else (perturbed.error_vector - baseline) * inv_delta

    perturbed = evaluate(azimuth, elevation + delta)
    d_elevation = ZERO_VECTOR if perturbed is None else (perturbed.error_vector - baseline) * inv_delta

    return Jacobian(d_azimuth, d_elevation)


def broyden_update(jacobian: Jacobian, delta_azimuth: float, delta_elevation: float,
                   delta_error: Vector3, floor: float = cBroydenFloor) -> Jacobian:
    """Broyden rank-1 update of `jacobian` after an angle step.

    Returns `jacobian` unchanged when both components of the step are within `floor`.
    """
    if abs(delta_azimuth) <= floor and abs(delta_elevation) <= floor:
        return jacobian
    residual = delta_error - jacobian.apply(delta_azimuth, delta_elevation)
    update = residual * (1.0 / (delta_azimuth * delta_azimuth + delta_elevation * delta_elevation))
    return Jacobian(jacobian.d_azimuth + update * delta_azimuth,
                    jacobian.d_elevation + update * delta_elevation)
