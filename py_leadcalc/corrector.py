"""Damped least-squares Newton correction.

The miss vector has three components and there are two unknown angles, so the update
solves the normal equations of the overdetermined system J·Δ = E:

    (JᵀJ)·Δ = JᵀE

The 2×2 system is solved by Cramer's rule.  When |det(JᵀJ)| falls below
`singular_threshold`, a Tikhonov-regularised solve (λ added to the diagonal) is tried,
and when that is singular too, a steepest-descent step along JᵀE.  The correction is
subtracted from the current angles by the caller.

This module never raises: every degenerate case produces a finite (possibly zero)
correction.
"""
import math
from enum import Enum
from typing import NamedTuple

from py_leadcalc.config import DampingPolicy, COLD_DAMPING
from py_leadcalc.constants import cRegularization, cSingularThreshold
from py_leadcalc.jacobian import Jacobian
from py_leadcalc.vector import Vector3

__all__ = (
    'CorrectionMethod',
    'AngleCorrection',
    'compute_correction',
)


class CorrectionMethod(Enum):
    """Which branch of the linear solve produced a correction."""
    NEWTON = 'newton'
    REGULARIZED = 'regularized'
    STEEPEST_DESCENT = 'steepest_descent'
    NONE = 'none'


class AngleCorrection(NamedTuple):
    """Angle correction in degrees, to be subtracted from the current iterate.

    Attributes:
        azimuth: Azimuth correction (deg).
        elevation: Elevation correction (deg).
        damping: Damping factor applied (1.0 outside the Newton branch).
        scaling: Clamp or step scale applied.
        method: Solve branch taken.
    """

    azimuth: float
    elevation: float
    damping: float
    scaling: float
    method: CorrectionMethod

    @property
    def magnitude(self) -> float:
        return math.hypot(self.azimuth, self.elevation)


_NO_CORRECTION = AngleCorrection(0.0, 0.0, 1.0, 0.0, CorrectionMethod.NONE)


def compute_correction(jacobian: Jacobian, error_vector: Vector3, is_oscillating: bool = False,
                       policy: DampingPolicy = COLD_DAMPING,
                       singular_threshold: float = cSingularThreshold,
                       regularization: float = cRegularization) -> AngleCorrection:
    """Compute the damped, clamped angle correction for one Newton iteration.

    Args:
        jacobian: Current miss-vector Jacobian.
        error_vector: Current miss vector E.
        is_oscillating: Whether the oscillation detector fired this iteration.
        policy: Damping and clamp rules (cold or warm start).
        singular_threshold: |det| below which the normal matrix is singular.
        regularization: Tikhonov λ for the singular fallback.

    Returns:
        The correction; zero when the error is negligible.
    """
    a, b = jacobian.d_azimuth, jacobian.d_elevation

    # Normal matrix JᵀJ (symmetric) and right-hand side JᵀE
    m11 = a.dot(a)
    m12 = a.dot(b)
    m22 = b.dot(b)
    r1 = a.dot(error_vector)
    r2 = b.dot(error_vector)
    det = m11 * m22 - m12 * m12

    error_magnitude = error_vector.magnitude()

    if abs(det) < singular_threshold:
        if error_magnitude < 1e-6:
            return _NO_CORRECTION

        reg11 = m11 + regularization
        reg22 = m22 + regularization
        reg_det = reg11 * reg22 - m12 * m12
        if abs(reg_det) > singular_threshold:
            step = policy.regularized_step(error_magnitude)
            return AngleCorrection((r1 * reg22 - r2 * m12) / reg_det * step,
                                   (reg11 * r2 - m12 * r1) / reg_det * step,
                                   1.0, step, CorrectionMethod.REGULARIZED)

        step = policy.descent_step(error_magnitude)
        return AngleCorrection(step * r1 / math.sqrt(m11 + 1e-12),
                               step * r2 / math.sqrt(m22 + 1e-12),
                               1.0, step, CorrectionMethod.STEEPEST_DESCENT)

    d_azimuth = (r1 * m22 - r2 * m12) / det
    d_elevation = (m11 * r2 - m12 * r1) / det
    raw_magnitude = math.hypot(d_azimuth, d_elevation)

    damping = policy.damping(error_magnitude, is_oscillating)
    scaling = min(1.0, policy.correction_limit(raw_magnitude) / (raw_magnitude + 1e-12))
    factor = damping * scaling
    return AngleCorrection(d_azimuth * factor, d_elevation * factor, damping, scaling,
                           CorrectionMethod.NEWTON)
