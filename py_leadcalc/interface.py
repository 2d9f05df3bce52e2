"""Lead-angle calculator: the public firing-computer interface.

`LeadAngleCalculator` wraps a solver with the convenience layer a fire-control loop
needs: compass-style angles, artillery elevation limits, a confidence rating, a result
cache with a request rate limiter, and warm-started incremental re-solves for
continuously tracked targets.

Examples:
    ```python
    from py_leadcalc import LeadAngleCalculator, Vector3

    calc = LeadAngleCalculator()
    lead = calc.calculate_recommended_lead(Vector3(0, 0, 0),
                                           Vector3(3000, 3000, 100),
                                           Vector3(-10, 0, 0))
    print(lead.lead_angle.azimuth, lead.lead_angle.elevation, lead.confidence)
    ```
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Hashable, Any, NamedTuple, Optional

from py_leadcalc.cache import RateLimiter, ResultCache, make_cache_key
from py_leadcalc.conditions import BallisticParameters, create_default_ballistic_parameters
from py_leadcalc.generics.solver import SolverProtocol
from py_leadcalc.helpers import clamp, normalize_azimuth_compass, require_vector
from py_leadcalc.logger import logger
from py_leadcalc.solver import ShootingMethodSolver, ShootingResult
from py_leadcalc.tracking import TargetContinuityTracker
from py_leadcalc.vector import Vector3

__all__ = (
    'Confidence',
    'LeadAngle',
    'RecommendedLeadResult',
    'classify_confidence',
    'LeadAngleCalculator',
)

_MIN_LEAD_ELEVATION = 5.0
_MAX_LEAD_ELEVATION = 85.0
_INCREMENTAL_MAX_ITERATIONS = 8
_INCREMENTAL_TOLERANCE = 10.0


class Confidence(Enum):
    """Qualitative reliability of a firing solution."""
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'


class LeadAngle(NamedTuple):
    """Firing angles for display and gun laying.

    Attributes:
        azimuth: Degrees clockwise from north, within [0, 360).
        elevation: Degrees above the horizon, within [5, 85].
    """
    azimuth: float
    elevation: float


@dataclass(frozen=True)
class RecommendedLeadResult:
    """Firing solution with quality information.

    Attributes:
        lead_angle: Angles to lay the gun at.
        confidence: Reliability rating, see `classify_confidence`.
        flight_time: Time to the closest point of approach (s).
        converged: Whether the solver met its tolerance.
        iterations: Solver's reported iteration estimate.
        accuracy: Miss distance at the closest point of approach (m).
        lead_distance: Distance the target travels during the flight (m).
        warm_started: True when the solve started from the target's previous solution.
    """

    lead_angle: LeadAngle
    confidence: Confidence
    flight_time: float
    converged: bool
    iterations: int
    accuracy: float
    lead_distance: float
    warm_started: bool = False


def classify_confidence(converged: bool, final_error: float, iterations: int) -> Confidence:
    """Rate a solution.

    HIGH requires convergence with error < 5 m and fewer than 8 iterations, MEDIUM error
    < 15 m and fewer than 12 iterations; everything else, and any unconverged solution,
    is LOW.
    """
    if not converged:
        return Confidence.LOW
    if final_error < 5.0 and iterations < 8:
        return Confidence.HIGH
    if final_error < 15.0 and iterations < 12:
        return Confidence.MEDIUM
    return Confidence.LOW


def _lead_angle(result: ShootingResult) -> LeadAngle:
    return LeadAngle(normalize_azimuth_compass(result.azimuth),
                     clamp(result.elevation, _MIN_LEAD_ELEVATION, _MAX_LEAD_ELEVATION))


def _recommended(result: ShootingResult, target_velocity: Vector3, warm_started: bool) -> RecommendedLeadResult:
    return RecommendedLeadResult(
        lead_angle=_lead_angle(result),
        confidence=classify_confidence(result.converged, result.final_error, result.iterations),
        flight_time=result.flight_time,
        converged=result.converged,
        iterations=result.iterations,
        accuracy=result.final_error,
        lead_distance=target_velocity.magnitude() * result.flight_time,
        warm_started=warm_started,
    )


class LeadAngleCalculator:
    """Firing computer facade over a shooting-method solver.

    Args:
        params: Ballistic parameters; the process-wide defaults when omitted.
        solver: Solver to use; a `ShootingMethodSolver` for `params` when omitted.
        clock: Monotonic clock in seconds, used for the cache, the rate limiter and
            latency measurement.
        cache: Result cache; `ResultCache()` when omitted.
        rate_limiter: Rate limiter; `RateLimiter()` when omitted.
        tracker: Continuity tracker; `TargetContinuityTracker()` when omitted.

    All methods may be called from several threads; shared state is guarded by a
    reentrant lock, which also serialises the solves themselves.
    """

    def __init__(self, params: Optional[BallisticParameters] = None,
                 solver: Optional[SolverProtocol] = None,
                 clock: Callable[[], float] = time.monotonic,
                 cache: Optional[ResultCache[RecommendedLeadResult]] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 tracker: Optional[TargetContinuityTracker] = None) -> None:
        if solver is None:
            solver = ShootingMethodSolver(params if params is not None else create_default_ballistic_parameters())
        elif params is not None and solver.params != params:
            raise ValueError("params and solver.params disagree; pass one or the other")
        self.solver: SolverProtocol = solver
        self.params: BallisticParameters = solver.params
        self.clock = clock
        self.cache: ResultCache[RecommendedLeadResult] = cache if cache is not None else ResultCache()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.tracker = tracker if tracker is not None else TargetContinuityTracker()
        self._lock = threading.RLock()

    def calculate_lead_angle(self, firer: Vector3, target_position: Vector3,
                             target_velocity: Vector3) -> LeadAngle:
        """Uncached cold solve; azimuth in [0, 360), elevation clamped to [5, 85]."""
        with self._lock:
            return _lead_angle(self.solver.solve(firer, target_position, target_velocity))

    def calculate_recommended_lead(self, firer: Vector3, target_position: Vector3,
                                   target_velocity: Vector3) -> RecommendedLeadResult:
        """Cached cold solve with a confidence rating.

        Identical rounded inputs within the cache TTL return the same result object.
        A request arriving before the rate limiter's interval has passed is also served
        from an expired entry for the same inputs, when one exists.
        """
        firer = require_vector('firer', firer)
        target_position = require_vector('target_position', target_position)
        target_velocity = require_vector('target_velocity', target_velocity)
        key = make_cache_key(firer, target_position, target_velocity)

        with self._lock:
            now = self.clock()
            # get() drops an expired entry, peek first to keep it for rate-limited requests
            stale = self.cache.peek(key)
            cached = self.cache.get(key, now)
            if cached is not None:
                return cached.result
            if not self.rate_limiter.allow(now):
                if stale is not None:
                    logger.debug(f"Rate limited, serving {now - stale.timestamp:.3f}s old result")
                    return stale.result

            result = _recommended(self.solver.solve(firer, target_position, target_velocity),
                                  target_velocity, warm_started=False)
            self.cache.put(key, result, now)
            self.rate_limiter.mark(now)
            return result

    def calculate_recommended_lead_incremental(self, firer: Vector3, target_position: Vector3,
                                               target_velocity: Vector3,
                                               target_id: Hashable) -> RecommendedLeadResult:
        """Solve for a continuously tracked target, warm-starting when continuity holds.

        When the target's previous solution is usable, the target is advanced along its
        velocity by the estimated solve latency and the solver starts from the previous
        angles with a reduced budget.  Otherwise, or when that warm solve does not
        converge, a cold solve runs.  Either way the target's record is refreshed.
        """
        firer = require_vector('firer', firer)
        target_position = require_vector('target_position', target_position)
        target_velocity = require_vector('target_velocity', target_velocity)

        with self._lock:
            now = self.clock()
            state = self.tracker.can_warm_start(target_id, target_position, target_velocity, now)

            started = self.clock()
            result: Optional[ShootingResult] = None
            if state is not None:
                latency = self.tracker.estimated_latency(target_id)
                aim_position = target_position + target_velocity * latency
                result = self.solver.solve_from_initial_guess(
                    firer, aim_position, target_velocity, state.angles.azimuth, state.angles.elevation,
                    max_iterations=_INCREMENTAL_MAX_ITERATIONS, tolerance=_INCREMENTAL_TOLERANCE)
                if not result.converged:
                    logger.debug(f"Warm start for target {target_id!r} did not converge, solving cold")
                    result = None
            warm_started = result is not None
            if result is None:
                result = self.solver.solve(firer, target_position, target_velocity)
            duration = self.clock() - started

            self.tracker.record(target_id, target_position, target_velocity, now, result.angles, duration)
            return _recommended(result, target_velocity, warm_started)

    def reset_target_tracking(self, target_id: Optional[Hashable] = None) -> None:
        """Forget the tracked solution of one target, or of every target."""
        with self._lock:
            self.tracker.reset(target_id)

    def clear_cache(self) -> None:
        with self._lock:
            self.cache.clear()
            self.rate_limiter.reset()

    def cache_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = self.cache.stats()
            stats['tracked_targets'] = len(self.tracker)
            return stats
