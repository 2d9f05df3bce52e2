"""Runge-Kutta 4th order fixed-step integrator.

The same `integrate` function drives both the solver's internal trajectory evaluation
(`py_leadcalc.trajectory`) and any external "ground truth" or predicted-path simulation
(`propagate`).  Given the same acceleration function and step, the two must produce
identical states; nothing here may depend on who is calling.

Mathematical Background:
    For the coupled first-order system dp/dt = v, dv/dt = a(p, v, t):

    k₁ = f(tₙ, yₙ)
    k₂ = f(tₙ + h/2, yₙ + h·k₁/2)
    k₃ = f(tₙ + h/2, yₙ + h·k₂/2)
    k₄ = f(tₙ + h, yₙ + h·k₃)

    yₙ₊₁ = yₙ + h·(k₁ + 2k₂ + 2k₃ + k₄)/6

Algorithm Properties:
    - Order: 4 (local truncation error is O(h⁵))
    - Four acceleration evaluations per step
    - Fixed step size (not adaptive)
"""
from typing import Callable, Iterator, NamedTuple, Tuple

from py_leadcalc.vector import Vector3

__all__ = (
    'State3D',
    'AccelerationFunction',
    'integrate',
    'propagate',
)


class State3D(NamedTuple):
    """Instantaneous kinematic state.

    Attributes:
        position: World position (m).
        velocity: World velocity (m/s).
    """
    position: Vector3
    velocity: Vector3

    def is_finite(self) -> bool:
        return self.position.is_finite() and self.velocity.is_finite()


AccelerationFunction = Callable[[State3D, float], Vector3]


def integrate(state: State3D, time: float, dt: float, accel: AccelerationFunction) -> State3D:
    """Advance `state` from `time` by one RK4 step of `dt` seconds.

    Deterministic and side-effect free.  Non-finite values produced by `accel` are
    propagated, not trapped; callers detect them on the returned state.
    """
    p0, v0 = state
    half = dt * 0.5

    a1 = accel(state, time)

    p2 = Vector3(p0.x + v0.x * half, p0.y + v0.y * half, p0.z + v0.z * half)
    v2 = Vector3(v0.x + a1.x * half, v0.y + a1.y * half, v0.z + a1.z * half)
    a2 = accel(State3D(p2, v2), time + half)

    p3 = Vector3(p0.x + v2.x * half, p0.y + v2.y * half, p0.z + v2.z * half)
    v3 = Vector3(v0.x + a2.x * half, v0.y + a2.y * half, v0.z + a2.z * half)
    a3 = accel(State3D(p3, v3), time + half)

    p4 = Vector3(p0.x + v3.x * dt, p0.y + v3.y * dt, p0.z + v3.z * dt)
    v4 = Vector3(v0.x + a3.x * dt, v0.y + a3.y * dt, v0.z + a3.z * dt)
    a4 = accel(State3D(p4, v4), time + dt)

    k = dt / 6.0
    position = Vector3(p0.x + (v0.x + 2.0 * v2.x + 2.0 * v3.x + v4.x) * k,
                       p0.y + (v0.y + 2.0 * v2.y + 2.0 * v3.y + v4.y) * k,
                       p0.z + (v0.z + 2.0 * v2.z + 2.0 * v3.z + v4.z) * k)
    velocity = Vector3(v0.x + (a1.x + 2.0 * a2.x + 2.0 * a3.x + a4.x) * k,
                       v0.y + (a1.y + 2.0 * a2.y + 2.0 * a3.y + a4.y) * k,
                       v0.z + (a1.z + 2.0 * a2.z + 2.0 * a3.z + a4.z) * k)
    return State3D(position, velocity)


def propagate(state: State3D, accel: AccelerationFunction, dt: float, max_time: float,
              ground_level: float = 0.0) -> Iterator[Tuple[float, State3D]]:
    """Simulate a full flight, yielding `(time, state)` after every step.

    Stops after the first step at or below `ground_level`, at `max_time`, or on the
    first non-finite state (which is not yielded).

    Args:
        state: Initial state at time zero.
        accel: Acceleration function of (state, time).
        dt: Fixed integration step in seconds.
        max_time: Flight time limit in seconds.
        ground_level: Height of the impact plane in metres.
    """
    time = 0.0
    while time < max_time:
        state = integrate(state, time, dt, accel)
        if not state.is_finite():
            return
        time += dt
        yield time, state
        if state.position.z <= ground_level:
            return
