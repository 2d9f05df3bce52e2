"""Point-mass ballistic force model.

Stateless functions returning force vectors (newtons) in the East-North-Up frame:

    - gravity: F = m·g·d̂
    - drag: F = -½·ρ·Cd·A·|v|·v  (quadratic drag, opposite to velocity)
    - coriolis: F = -2·m·(Ω × v)
    - sum_forces: element-wise sum of any number of forces

The combined acceleration used by the integrator is built by
`py_leadcalc.conditions.create_acceleration_function`.
"""
import math

from py_leadcalc.constants import cEarthAngularVelocityRadS
from py_leadcalc.vector import Vector3, ZERO_VECTOR

__all__ = (
    'DOWN',
    'gravity',
    'drag',
    'coriolis',
    'sum_forces',
    'earth_rotation_vector',
)

DOWN: Vector3 = Vector3(0.0, 0.0, -1.0)


def gravity(mass: float, g: float, direction: Vector3 = DOWN) -> Vector3:
    """Gravity force along `direction` (normalized before use)."""
    return direction.normalize().mul_by_const(mass * g)


def drag(velocity: Vector3, air_density: float, drag_coefficient: float, area: float) -> Vector3:
    """Quadratic air drag opposing `velocity`; zero when the projectile is at rest."""
    speed = velocity.magnitude()
    if speed == 0.0:
        return ZERO_VECTOR
    return velocity.mul_by_const(-0.5 * air_density * drag_coefficient * area * speed)


def coriolis(mass: float, angular_velocity: Vector3, velocity: Vector3) -> Vector3:
    """Coriolis force in the rotating frame: -2·m·(Ω × v)."""
    return angular_velocity.cross(velocity).mul_by_const(-2.0 * mass)


def sum_forces(*forces: Vector3) -> Vector3:
    """Sum any number of force vectors."""
    x = y = z = 0.0
    for f in forces:
        x += f.x
        y += f.y
        z += f.z
    return Vector3(x, y, z)


def earth_rotation_vector(latitude: float) -> Vector3:
    """Earth's angular velocity expressed in the local ENU frame at `latitude` degrees.

    Ω = ω·(0, cos L, sin L): no east component, the north component is largest at the
    equator and the vertical component is largest at the poles.
    """
    lat_rad = math.radians(latitude)
    return Vector3(0.0,
                   cEarthAngularVelocityRadS * math.cos(lat_rad),
                   cEarthAngularVelocityRadS * math.sin(lat_rad))
