"""Per-target continuity tracking for incremental re-solves.

A continuously tracked target moves little between two solves, so its previous solution
is an excellent starting point.  `TargetContinuityTracker` decides whether that holds:
the record must be recent, the target must be close to where its last velocity
predicted, and the velocity must not have jumped.  It also keeps a rolling window of
measured solve durations per target; the solver's latency is compensated by advancing
the target along its velocity before a warm start.

Not thread-safe; `LeadAngleCalculator` guards it with its lock.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Hashable, Optional

from py_leadcalc.logger import logger
from py_leadcalc.oscillation import AnglePair
from py_leadcalc.vector import Vector3

__all__ = (
    'TargetTrackingState',
    'TargetContinuityTracker',
)


@dataclass
class TargetTrackingState:
    """Last solution recorded for one target.

    Attributes:
        target_id: Caller-assigned target identity.
        position: Target position used for the last solve.
        velocity: Target velocity used for the last solve.
        timestamp: Clock time (s) of the last solve.
        angles: Solution of the last solve (azimuth in (-180, 180]).
        durations: Recent measured solve durations (s).
    """

    target_id: Hashable
    position: Vector3
    velocity: Vector3
    timestamp: float
    angles: AnglePair
    durations: Deque[float] = field(default_factory=deque)

    def expected_position(self, now: float) -> Vector3:
        """Linear extrapolation of the recorded position to `now`."""
        return self.position + self.velocity * (now - self.timestamp)


class TargetContinuityTracker:
    """Decides when a target's previous solution may seed the next solve.

    Args:
        max_gap: Longest time (s) between solves for continuity to hold.
        position_tolerance: Largest allowed deviation (m) from the extrapolated position.
        velocity_tolerance: Largest allowed change of velocity (m/s).
        latency_window: Number of recent solve durations kept per target.
        latency_margin: Safety margin (s) added to the mean solve duration.
    """

    def __init__(self, max_gap: float = 2.0, position_tolerance: float = 500.0,
                 velocity_tolerance: float = 50.0, latency_window: int = 10,
                 latency_margin: float = 0.005) -> None:
        if latency_window < 1:
            raise ValueError(f"latency_window must be positive, got {latency_window}")
        self.max_gap = max_gap
        self.position_tolerance = position_tolerance
        self.velocity_tolerance = velocity_tolerance
        self.latency_window = latency_window
        self.latency_margin = latency_margin
        self._states: Dict[Hashable, TargetTrackingState] = {}

    def __contains__(self, target_id: Hashable) -> bool:
        return target_id in self._states

    def get(self, target_id: Hashable) -> Optional[TargetTrackingState]:
        return self._states.get(target_id)

    def can_warm_start(self, target_id: Hashable, position: Vector3, velocity: Vector3,
                       now: float) -> Optional[TargetTrackingState]:
        """Tracking state to warm-start from, or None.

        A record that fails any continuity check is discarded, so the next solve for the
        target starts fresh.
        """
        state = self._states.get(target_id)
        if state is None:
            return None

        elapsed = now - state.timestamp
        if elapsed < 0 or elapsed > self.max_gap:
            reason = f"gap of {elapsed:.3f}s"
        else:
            deviation = (position - state.expected_position(now)).magnitude()
            velocity_change = (velocity - state.velocity).magnitude()
            if deviation > self.position_tolerance:
                reason = f"position deviation of {deviation:.1f}m"
            elif velocity_change > self.velocity_tolerance:
                reason = f"velocity change of {velocity_change:.1f}m/s"
            else:
                return state

        logger.debug(f"Continuity lost for target {target_id!r}: {reason}")
        del self._states[target_id]
        return None

    def record(self, target_id: Hashable, position: Vector3, velocity: Vector3, now: float,
               angles: AnglePair, duration: Optional[float] = None) -> TargetTrackingState:
        """Store the latest solution for a target, keeping its latency history."""
        previous = self._states.get(target_id)
        durations: Deque[float] = previous.durations if previous is not None else deque(maxlen=self.latency_window)
        if duration is not None:
            durations.append(max(0.0, duration))
        state = TargetTrackingState(target_id, position, velocity, now, angles, durations)
        self._states[target_id] = state
        return state

    def estimated_latency(self, target_id: Hashable) -> float:
        """Mean of the recent solve durations for a target plus the safety margin."""
        state = self._states.get(target_id)
        if state is None or not state.durations:
            return self.latency_margin
        return sum(state.durations) / len(state.durations) + self.latency_margin

    def reset(self, target_id: Optional[Hashable] = None) -> None:
        """Forget one target, or every target when `target_id` is None."""
        if target_id is None:
            self._states.clear()
        else:
            self._states.pop(target_id, None)

    def __len__(self) -> int:
        return len(self._states)
