"""Closest-point-of-approach (CPA) trajectory evaluation.

`TrajectoryEvaluator.evaluate` fires one simulated round for a pair of launch angles and
measures the minimum distance between the projectile and the target's linearly predicted
track.  The vector from target to projectile at that instant is the miss vector the
Newton corrector drives to zero.

Early exit:
    The simulation normally runs until ground impact or the flight-time limit.  Once the
    distance has stopped decreasing for `SolverConfig.early_exit_steps` consecutive steps
    and the minimum found is below `SolverConfig.early_exit_distance`, the search stops.
    This trades accuracy for speed: a trajectory that recedes briefly and then closes in
    again (possible for a fast target on a converging course) reports the first local
    minimum.  The distance bound keeps wildly wrong early iterates from exiting on a
    meaningless local minimum.
"""
from __future__ import annotations

import math
from typing import Iterator, NamedTuple, Optional, Tuple

from py_leadcalc.conditions import BallisticParameters, create_acceleration_function
from py_leadcalc.config import SolverConfig, DEFAULT_SOLVER_CONFIG
from py_leadcalc.integrator import State3D, integrate, propagate
from py_leadcalc.logger import logger
from py_leadcalc.vector import Vector3

__all__ = ('CPAResult', 'TrajectoryEvaluator')


class CPAResult(NamedTuple):
    """Closest point of approach of one simulated trajectory.

    Attributes:
        min_distance: Distance between projectile and target at the CPA (m).
        cpa_time: Flight time at the CPA (s).
        projectile_position: Projectile position at the CPA.
        target_position: Predicted target position at the CPA.
    """

    min_distance: float
    cpa_time: float
    projectile_position: Vector3
    target_position: Vector3

    @property
    def error_vector(self) -> Vector3:
        """Miss vector: projectile position minus target position at the CPA."""
        return self.projectile_position - self.target_position


class TrajectoryEvaluator:
    """Simulates trajectories for given launch angles and reports their CPA.

    The evaluator holds only immutable configuration and may be shared between threads.
    """

    def __init__(self, params: BallisticParameters, config: Optional[SolverConfig] = None) -> None:
        self.params = params
        self.config = config if config is not None else DEFAULT_SOLVER_CONFIG
        self.accel = create_acceleration_function(params)

    def launch_velocity(self, azimuth: float, elevation: float) -> Vector3:
        """Muzzle velocity vector for an azimuth (clockwise from north) and elevation in degrees."""
        az = math.radians(azimuth)
        el = math.radians(elevation)
        v0 = self.params.initial_velocity
        return Vector3(v0 * math.cos(el) * math.sin(az),
                       v0 * math.cos(el) * math.cos(az),
                       v0 * math.sin(el))

    def trajectory(self, start: Vector3, azimuth: float, elevation: float) -> Iterator[Tuple[float, State3D]]:
        """Full predicted flight path as `(time, state)` pairs, stepping exactly as `evaluate` does."""
        state = State3D(start, self.launch_velocity(azimuth, elevation))
        return propagate(state, self.accel, self.config.time_step, self.config.max_flight_time,
                         self.config.ground_level)

    def evaluate(self, start: Vector3, azimuth: float, elevation: float,
                 target_position: Vector3, target_velocity: Vector3) -> Optional[CPAResult]:
        """Simulate one trajectory and return its closest point of approach to the target.

        Args:
            start: Firer (muzzle) position.
            azimuth: Launch azimuth in degrees clockwise from north.
            elevation: Launch elevation in degrees above the horizon.
            target_position: Target position at time zero.
            target_velocity: Constant target velocity.

        Returns:
            The CPA, or None when an input or any intermediate state is not finite.
        """
        if not (math.isfinite(azimuth) and math.isfinite(elevation)
                and start.is_finite() and target_position.is_finite() and target_velocity.is_finite()):
            logger.warning(f"CPA evaluation rejected non-finite input: az={azimuth}, el={elevation}")
            return None

        config = self.config
        dt = config.time_step
        accel = self.accel
        velocity = self.launch_velocity(azimuth, elevation)
        if not velocity.is_finite():
            logger.warning(f"CPA evaluation produced non-finite launch velocity {velocity}")
            return None

        moving = target_velocity.magnitude() > config.moving_target_speed
        state = State3D(start, velocity)
        time = 0.0
        min_distance = math.inf
        cpa_time = 0.0
        cpa_projectile = start
        cpa_target = target_position
        receding_steps = 0

        while time < config.max_flight_time:
            state = integrate(state, time, dt, accel)
            if not state.is_finite():
                logger.warning(f"Non-finite state in CPA evaluation at t={time:.3f}s "
                               f"(az={azimuth:.3f}, el={elevation:.3f})")
                return None
            time += dt

            if moving:
                target_now = target_position + target_velocity * time
            else:
                target_now = target_position
            distance = (state.position - target_now).magnitude()

            if distance < min_distance:
                min_distance = distance
                cpa_time = time
                cpa_projectile = state.position
                cpa_target = target_now
                receding_steps = 0
            else:
                receding_steps += 1

            if receding_steps >= config.early_exit_steps and min_distance < config.early_exit_distance:
                break
            if state.position.z <= config.ground_level:
                break

        return CPAResult(min_distance, cpa_time, cpa_projectile, cpa_target)
