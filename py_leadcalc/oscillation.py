"""Oscillation detection over the iterates of a single solve.

A damped Newton iteration on the CPA miss vector can settle into a two-cycle, bouncing
between two error levels or two elevations.  The detector recognises an A-B-A-B pattern
in the last four iterations; the solver reacts by recomputing the Jacobian by finite
differences and by switching to the oscillation damping factor.

`IterationHistory` is created inside every solve call and never shared, which keeps the
solver reentrant.
"""
from typing import List, NamedTuple

from py_leadcalc.config import OscillationThresholds, COLD_OSCILLATION

__all__ = (
    'AnglePair',
    'IterationHistory',
    'is_oscillating',
)


class AnglePair(NamedTuple):
    """Launch angles in degrees: azimuth clockwise from north, elevation above the horizon."""
    azimuth: float
    elevation: float


class IterationHistory:
    """Bounded record of `(final_error, angles)` for the iterations of one solve."""

    __slots__ = ('capacity', 'errors', 'angles')

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.errors: List[float] = []
        self.angles: List[AnglePair] = []

    def record(self, error: float, angles: AnglePair) -> None:
        self.errors.append(error)
        self.angles.append(angles)
        if len(self.errors) > self.capacity:
            del self.errors[0]
            del self.angles[0]

    def __len__(self) -> int:
        return len(self.errors)


def is_oscillating(history: IterationHistory,
                   thresholds: OscillationThresholds = COLD_OSCILLATION) -> bool:
    """Detect an A-B-A-B pattern in the last four errors or elevations.

    Errors oscillate when e1≈e3 and e2≈e4 (relative `same_ratio`) while e1 and e2 differ
    by more than `swing_ratio`·e1.  Elevations oscillate when el1≈el3 and el2≈el4 (within
    `elevation_tolerance`) while el1 and el2 differ by more than `elevation_swing`.

    Returns:
        False when fewer than four iterations have been recorded.
    """
    if len(history) < 4:
        return False

    e1, e2, e3, e4 = history.errors[-4:]
    error_pattern = (abs(e1 - e3) < e1 * thresholds.same_ratio
                     and abs(e2 - e4) < e2 * thresholds.same_ratio
                     and abs(e1 - e2) > e1 * thresholds.swing_ratio)
    if error_pattern:
        return True

    a1, a2, a3, a4 = (a.elevation for a in history.angles[-4:])
    return (abs(a1 - a3) < thresholds.elevation_tolerance
            and abs(a2 - a4) < thresholds.elevation_tolerance
            and abs(a1 - a2) > thresholds.elevation_swing)
