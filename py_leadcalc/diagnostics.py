"""Structured solver telemetry.

The iteration loop emits one `IterationEvent` per iteration and the final result to an
optional observer.  Without an observer nothing is built or formatted per iteration.

Classes:
    IterationEvent: Snapshot of one solver iteration.
    SolverObserver: Protocol for telemetry consumers.
    LoggingObserver: Forwards events to the library logger.
    RecordingObserver: Keeps events and results in memory (tests, offline analysis).

Examples:
    ```python
    import logging
    from py_leadcalc import ShootingMethodSolver, create_default_ballistic_parameters
    from py_leadcalc.diagnostics import LoggingObserver

    solver = ShootingMethodSolver(create_default_ballistic_parameters(),
                                  observer=LoggingObserver(logging.INFO))
    ```
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, NamedTuple, Optional

from typing_extensions import Protocol, runtime_checkable

from py_leadcalc.corrector import AngleCorrection
from py_leadcalc.logger import logger

if TYPE_CHECKING:
    from py_leadcalc.solver import ShootingResult

__all__ = (
    'IterationEvent',
    'SolverObserver',
    'LoggingObserver',
    'RecordingObserver',
)


class IterationEvent(NamedTuple):
    """One iteration of a solve.

    Attributes:
        iteration: Zero-based iteration index.
        azimuth: Azimuth evaluated in this iteration (deg).
        elevation: Elevation evaluated in this iteration (deg).
        error: CPA distance of this iterate (m).
        flight_time: Time of the CPA (s).
        oscillating: Whether oscillation was detected.
        jacobian_recomputed: True when the Jacobian came from finite differences,
            False after a Broyden update.
        correction: Correction applied after this iteration, None on the converging one.
        warm_start: True for `solve_from_initial_guess` runs.
    """

    iteration: int
    azimuth: float
    elevation: float
    error: float
    flight_time: float
    oscillating: bool
    jacobian_recomputed: bool
    correction: Optional[AngleCorrection]
    warm_start: bool


@runtime_checkable
class SolverObserver(Protocol):
    """Consumer of solver telemetry."""

    def on_iteration(self, event: IterationEvent) -> None:
        ...

    def on_finish(self, result: ShootingResult) -> None:
        ...


class LoggingObserver:
    """Writes each event to the `py_leadcalc` logger at `level`."""

    def __init__(self, level: int = logging.DEBUG) -> None:
        self.level = level

    def on_iteration(self, event: IterationEvent) -> None:
        if not logger.isEnabledFor(self.level):
            return
        if event.correction is None:
            correction = "none"
        else:
            correction = (f"d_az={event.correction.azimuth:.4f}, d_el={event.correction.elevation:.4f}, "
                          f"damping={event.correction.damping:.2f}, scaling={event.correction.scaling:.2f}, "
                          f"{event.correction.method.value}")
        logger.log(self.level,
                   f"Iteration {event.iteration}: az={event.azimuth:.3f}, el={event.elevation:.3f}, "
                   f"miss={event.error:.2f}m at t={event.flight_time:.2f}s, "
                   f"oscillating={event.oscillating}, correction: {correction}")

    def on_finish(self, result: ShootingResult) -> None:
        logger.log(self.level,
                   f"Solve finished: {result.status.name}, az={result.azimuth:.3f}, "
                   f"el={result.elevation:.3f}, miss={result.final_error:.2f}m, "
                   f"evaluations={result.evaluations}")


class RecordingObserver:
    """Stores every event and result it receives."""

    def __init__(self) -> None:
        self.events: List[IterationEvent] = []
        self.results: List[ShootingResult] = []

    def on_iteration(self, event: IterationEvent) -> None:
        self.events.append(event)

    def on_finish(self, result: ShootingResult) -> None:
        self.results.append(result)

    def clear(self) -> None:
        self.events.clear()
        self.results.clear()
