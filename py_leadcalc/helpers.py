"""Drag-free ballistic formulas and angle utilities.

The vacuum formulas ignore drag and therefore overestimate range; the solver only uses
them to seed its first iterate.
"""
import math
from typing import Any, Optional

from py_leadcalc.constants import cGravityAcceleration
from py_leadcalc.exceptions import TargetPreconditionError
from py_leadcalc.vector import Vector3

__all__ = (
    'vacuum_time_to_height',
    'vacuum_range_to_height',
    'normalize_azimuth_signed',
    'normalize_azimuth_compass',
    'clamp',
    'require_vector',
)


def vacuum_time_to_height(
        velocity: float,
        launch_angle_deg: float,
        height: float,
        gravity: float = cGravityAcceleration
) -> Optional[float]:
    """
    Time at which a vacuum trajectory reaches `height` on its descending branch.

    Solves ½·g·t² − v·sin(θ)·t + h = 0 and takes the larger root.

    Args:
        velocity: Launch velocity (m/s).
        launch_angle_deg: Launch angle in degrees above horizontal.
        height: Height of the target plane relative to the muzzle (m).
        gravity: Acceleration due to gravity (default: cGravityAcceleration).

    Returns:
        Time in seconds, or None when the trajectory never reaches `height` after launch.
    """
    if gravity < 0:
        gravity = -gravity
    a = 0.5 * gravity
    b = -velocity * math.sin(math.radians(launch_angle_deg))
    discriminant = b * b - 4.0 * a * height
    if discriminant < 0:
        return None
    t = (-b + math.sqrt(discriminant)) / (2.0 * a)
    return t if t > 0 else None


def vacuum_range_to_height(
        velocity: float,
        launch_angle_deg: float,
        height: float,
        gravity: float = cGravityAcceleration
) -> Optional[float]:
    """
    Horizontal distance covered by a vacuum trajectory when it descends to `height`.

    Returns:
        The horizontal range in metres, or None when `height` is out of reach.
    """
    t = vacuum_time_to_height(velocity, launch_angle_deg, height, gravity)
    if t is None:
        return None
    return velocity * math.cos(math.radians(launch_angle_deg)) * t


def normalize_azimuth_signed(azimuth: float) -> float:
    """Wrap an azimuth in degrees into (-180, 180]."""
    while azimuth > 180.0:
        azimuth -= 360.0
    while azimuth <= -180.0:
        azimuth += 360.0
    return azimuth


def normalize_azimuth_compass(azimuth: float) -> float:
    """Wrap an azimuth in degrees into [0, 360)."""
    azimuth = math.fmod(azimuth, 360.0)
    if azimuth < 0:
        azimuth += 360.0
    # fmod of a tiny negative value can round up to exactly 360
    return 0.0 if azimuth >= 360.0 else azimuth


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def require_vector(name: str, value: Any) -> Vector3:
    """Coerce a solver input to a finite Vector3.

    Raises:
        TargetPreconditionError: When `value` is None, not a 3-sequence or not finite.
    """
    if value is None:
        raise TargetPreconditionError(f"{name} is required")
    try:
        vector = Vector3(float(value[0]), float(value[1]), float(value[2]))
    except (TypeError, ValueError, IndexError) as error:
        raise TargetPreconditionError(f"{name} must be a 3D vector, got {value!r}") from error
    if not vector.is_finite():
        raise TargetPreconditionError(f"{name} must be finite, got {vector}")
    return vector
