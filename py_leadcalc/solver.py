"""Shooting-method solver for artillery firing angles.

The solver adjusts launch azimuth and elevation until the simulated trajectory's closest
point of approach (CPA) to the target's predicted track is within tolerance:

    1. Evaluate the CPA of the current angles (`TrajectoryEvaluator`).
    2. Record the iterate; stop when the CPA distance is below tolerance.
    3. From the fourth iteration on, check for an A-B-A-B oscillation.
    4. Estimate the Jacobian by finite differences on the first iteration and after an
       oscillation, otherwise refresh it with a Broyden update.
    5. Solve the damped least-squares Newton step and subtract it from the angles.
    6. Wrap azimuth into (-180, 180] and clamp elevation into the configured range.

States: INITIALIZING → ITERATING → {CONVERGED | EXHAUSTED | FAILED}.  Non-convergence and
numerical failure are reported through `ShootingResult.status`, never raised.

Two entry points share the loop: `solve` starts from the drag-free estimate with the cold
damping policy, `solve_from_initial_guess` starts from caller-supplied angles (typically a
previous solution for the same target) with the warm policy.  All per-solve state lives
in local variables, so one instance can serve concurrent callers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from py_leadcalc.conditions import BallisticParameters
from py_leadcalc.config import (SolverConfig, DampingPolicy, OscillationThresholds, COLD_DAMPING,
                                WARM_DAMPING, COLD_OSCILLATION, WARM_OSCILLATION, create_solver_config)
from py_leadcalc.corrector import compute_correction
from py_leadcalc.diagnostics import IterationEvent, SolverObserver
from py_leadcalc.exceptions import TargetPreconditionError
from py_leadcalc.helpers import clamp, normalize_azimuth_signed, require_vector, vacuum_range_to_height
from py_leadcalc.jacobian import Jacobian, broyden_update, finite_difference_jacobian
from py_leadcalc.logger import logger
from py_leadcalc.oscillation import AnglePair, IterationHistory, is_oscillating
from py_leadcalc.trajectory import CPAResult, TrajectoryEvaluator
from py_leadcalc.vector import Vector3

__all__ = (
    'SolverStatus',
    'AnglePair',
    'ShootingResult',
    'ShootingMethodSolver',
)

_DIRECT_AIM_RANGE = 100.0  # m, closer targets are aimed at directly
_GUESS_ELEVATIONS = range(10, 81, 10)  # deg, sampled by the drag-free estimate
_HEIGHT_CORRECTION_GAIN = 0.3
_MIN_GUESS_ELEVATION = 5.0
_MAX_GUESS_ELEVATION = 80.0


class SolverStatus(Enum):
    """Solver state; a returned result carries one of the terminal states."""
    INITIALIZING = auto()
    ITERATING = auto()
    CONVERGED = auto()
    EXHAUSTED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class ShootingResult:
    """Outcome of a solve.

    Attributes:
        azimuth: Azimuth in degrees clockwise from north, within (-180, 180].
        elevation: Elevation in degrees above the horizon.
        converged: True when the CPA distance fell below tolerance.
        iterations: Reporting estimate derived from the final error when converged,
            the iteration cap otherwise.  Not a loop counter; see `evaluations`.
        final_error: CPA distance of the returned angles (m); `inf` when no trajectory
            could be evaluated.
        flight_time: Time to the CPA of the returned angles (s).
        status: Terminal solver state.
        evaluations: Number of trajectory simulations performed.
    """

    azimuth: float
    elevation: float
    converged: bool
    iterations: int
    final_error: float
    flight_time: float
    status: SolverStatus = SolverStatus.CONVERGED
    evaluations: int = 0

    @property
    def angles(self) -> AnglePair:
        return AnglePair(self.azimuth, self.elevation)


class ShootingMethodSolver:
    """Newton-Raphson shooting-method solver over launch azimuth and elevation.

    Args:
        params: Projectile and environment parameters.
        config: Solver settings; the process-wide defaults when omitted.
        observer: Optional telemetry consumer receiving every iteration and the result.
    """

    def __init__(self, params: BallisticParameters, config: Optional[SolverConfig] = None,
                 observer: Optional[SolverObserver] = None) -> None:
        self.params = params
        self.config = config if config is not None else create_solver_config()
        self.observer = observer
        self.evaluator = TrajectoryEvaluator(params, self.config)

    @staticmethod
    def estimate_iteration_count(error: float, max_iterations: int) -> int:
        """Monotonic iteration estimate from a converged error, for display only."""
        if error < 1.0:
            return 1
        if error < 10.0:
            return math.ceil(math.log10(error) * 3)
        return max_iterations

    def initial_guess(self, firer: Vector3, target: Vector3) -> AnglePair:
        """Drag-free estimate of the launch angles.

        Azimuth is the bearing to the target.  Elevation is the sampled angle (10°..80°)
        whose vacuum range at the target's height best matches the horizontal distance,
        nudged by the height difference and clamped to [5, 80].  Targets closer than
        100 m are aimed at directly.
        """
        firer = require_vector('firer', firer)
        target = require_vector('target_position', target)
        delta = target - firer
        azimuth = normalize_azimuth_signed(math.degrees(math.atan2(delta.x, delta.y)))
        horizontal = math.hypot(delta.x, delta.y)

        if horizontal < _DIRECT_AIM_RANGE:
            return AnglePair(azimuth, max(_MIN_GUESS_ELEVATION, math.degrees(math.atan2(delta.z, horizontal))))

        best_elevation = 30.0
        best_mismatch = math.inf
        for elevation in _GUESS_ELEVATIONS:
            distance = vacuum_range_to_height(self.params.initial_velocity, elevation, delta.z,
                                              self.params.gravity)
            if distance is None:
                continue
            mismatch = abs(distance - horizontal)
            if mismatch < best_mismatch:
                best_mismatch = mismatch
                best_elevation = float(elevation)

        fine = best_elevation + math.degrees(delta.z / horizontal) * _HEIGHT_CORRECTION_GAIN
        return AnglePair(azimuth, clamp(fine, _MIN_GUESS_ELEVATION, _MAX_GUESS_ELEVATION))

    def solve(self, firer: Vector3, target_position: Vector3, target_velocity: Vector3) -> ShootingResult:
        """Solve from the drag-free initial guess with the cold-start policy."""
        firer = require_vector('firer', firer)
        target_position = require_vector('target_position', target_position)
        target_velocity = require_vector('target_velocity', target_velocity)
        start = self.initial_guess(firer, target_position)
        return self._iterate(firer, target_position, target_velocity, start,
                             self.config.max_iterations, self.config.tolerance,
                             COLD_DAMPING, COLD_OSCILLATION, warm_start=False)

    def solve_from_initial_guess(self, firer: Vector3, target_position: Vector3, target_velocity: Vector3,
                                 azimuth: float, elevation: float,
                                 max_iterations: Optional[int] = None,
                                 tolerance: Optional[float] = None) -> ShootingResult:
        """Solve from caller-supplied angles with the warm-start policy.

        Args:
            firer: Firer position.
            target_position: Target position at time zero.
            target_velocity: Target velocity.
            azimuth: Starting azimuth in degrees (any range; wrapped into (-180, 180]).
            elevation: Starting elevation in degrees (clamped to the configured range).
            max_iterations: Iteration cap; the configured cap when omitted.
            tolerance: Convergence tolerance (m); the configured tolerance when omitted.

        Raises:
            TargetPreconditionError: On missing or non-finite inputs or starting angles.
        """
        firer = require_vector('firer', firer)
        target_position = require_vector('target_position', target_position)
        target_velocity = require_vector('target_velocity', target_velocity)
        if azimuth is None or elevation is None or not (math.isfinite(azimuth) and math.isfinite(elevation)):
            raise TargetPreconditionError(f"starting angles must be finite, got ({azimuth}, {elevation})")
        if max_iterations is None:
            max_iterations = self.config.max_iterations
        if tolerance is None:
            tolerance = self.config.tolerance
        if max_iterations < 1 or not tolerance > 0:
            raise TargetPreconditionError(f"invalid budget: max_iterations={max_iterations}, "
                                          f"tolerance={tolerance}")
        start = AnglePair(normalize_azimuth_signed(azimuth),
                          clamp(elevation, self.config.min_elevation, self.config.max_elevation))
        return self._iterate(firer, target_position, target_velocity, start,
                             max_iterations, tolerance, WARM_DAMPING, WARM_OSCILLATION, warm_start=True)

    def _iterate(self, firer: Vector3, target_position: Vector3, target_velocity: Vector3,
                 start: AnglePair, max_iterations: int, tolerance: float,
                 policy: DampingPolicy, thresholds: OscillationThresholds,
                 warm_start: bool) -> ShootingResult:
        config = self.config
        observer = self.observer
        evaluator = self.evaluator
        evaluations = 0

        def evaluate(az: float, el: float) -> Optional[CPAResult]:
            nonlocal evaluations
            evaluations += 1
            return evaluator.evaluate(firer, az, el, target_position, target_velocity)

        logger.debug(f"{'Warm' if warm_start else 'Cold'} solve from az={start.azimuth:.3f}, "
                     f"el={start.elevation:.3f}, budget={max_iterations}, tolerance={tolerance}m")

        history = IterationHistory(max_iterations)
        azimuth, elevation = start
        jacobian: Optional[Jacobian] = None
        previous: Optional[AnglePair] = None
        previous_error: Optional[Vector3] = None

        last: Optional[AnglePair] = None
        last_error = math.inf
        last_time = 0.0
        best: Optional[AnglePair] = None
        best_error = math.inf
        best_time = 0.0
        status = SolverStatus.ITERATING

        for iteration in range(max_iterations):
            cpa = evaluate(azimuth, elevation)
            if cpa is None:
                status = SolverStatus.FAILED
                logger.warning(f"Trajectory evaluation failed at iteration {iteration} "
                               f"(az={azimuth:.3f}, el={elevation:.3f}); returning last valid angles")
                break

            current = AnglePair(azimuth, elevation)
            error_vector = cpa.error_vector
            last, last_error, last_time = current, cpa.min_distance, cpa.cpa_time
            if cpa.min_distance < best_error:
                best, best_error, best_time = current, cpa.min_distance, cpa.cpa_time
            history.record(cpa.min_distance, current)

            if cpa.min_distance < tolerance:
                status = SolverStatus.CONVERGED
                if observer is not None:
                    observer.on_iteration(IterationEvent(iteration, azimuth, elevation, cpa.min_distance,
                                                         cpa.cpa_time, False, False, None, warm_start))
                break

            oscillating = iteration >= thresholds.start_iteration and is_oscillating(history, thresholds)
            if oscillating:
                logger.debug(f"Oscillation detected at iteration {iteration}")

            recomputed = jacobian is None or oscillating
            if recomputed:
                jacobian = finite_difference_jacobian(evaluate, azimuth, elevation, error_vector,
                                                      config.angle_perturbation)
            elif previous is not None and previous_error is not None:
                # azimuth step measured across the ±180° seam
                jacobian = broyden_update(jacobian, normalize_azimuth_signed(azimuth - previous.azimuth),
                                          elevation - previous.elevation,
                                          error_vector - previous_error, config.broyden_floor)
            previous, previous_error = current, error_vector

            correction = compute_correction(jacobian, error_vector, oscillating, policy,
                                            config.singular_threshold, config.regularization)
            if observer is not None:
                observer.on_iteration(IterationEvent(iteration, azimuth, elevation, cpa.min_distance,
                                                     cpa.cpa_time, oscillating, recomputed, correction,
                                                     warm_start))

            azimuth = normalize_azimuth_signed(azimuth - correction.azimuth)
            elevation = clamp(elevation - correction.elevation, config.min_elevation, config.max_elevation)
        else:
            status = SolverStatus.EXHAUSTED

        if status is SolverStatus.CONVERGED and last is not None:
            result = ShootingResult(last.azimuth, last.elevation, True,
                                    self.estimate_iteration_count(last_error, max_iterations),
                                    last_error, last_time, status, evaluations)
        elif status is SolverStatus.EXHAUSTED and best is not None:
            result = ShootingResult(best.azimuth, best.elevation, False, max_iterations,
                                    best_error, best_time, status, evaluations)
        else:
            angles = last if last is not None else start
            result = ShootingResult(angles.azimuth, angles.elevation, False, max_iterations,
                                    last_error, last_time, SolverStatus.FAILED, evaluations)

        logger.debug(f"Solve {result.status.name.lower()}: az={result.azimuth:.3f}, el={result.elevation:.3f}, "
                     f"miss={result.final_error:.2f}m, evaluations={evaluations}")
        if observer is not None:
            observer.on_finish(result)
        return result
