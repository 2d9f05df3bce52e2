"""Firing conditions: projectile ballistics and the Earth-rotation model.

Classes:
    BallisticParameters: Immutable, validated projectile and environment description.
    BallisticParametersDict: TypedDict for partial configuration (TOML tables, overrides).
    Coriolis: Precomputed Earth-rotation vector for a firing latitude.

Functions:
    create_default_ballistic_parameters: Build parameters from the process-wide defaults.
    set_ballistic_defaults: Replace the process-wide defaults (used by `basicConfig`).
    create_acceleration_function: Acceleration of the projectile as a function of state.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields

from typing_extensions import Any, Dict, Optional, TypedDict

from py_leadcalc.constants import (cAirDensitySeaLevel, cGravityAcceleration, cMuzzleVelocity,
                                   cProjectileCrossSectionalArea, cProjectileDragCoefficient,
                                   cProjectileMass)
from py_leadcalc.exceptions import BallisticConfigError
from py_leadcalc.forces import coriolis, drag, earth_rotation_vector, gravity, sum_forces
from py_leadcalc.integrator import AccelerationFunction, State3D
from py_leadcalc.vector import Vector3

__all__ = (
    'BallisticParameters',
    'BallisticParametersDict',
    'Coriolis',
    'create_default_ballistic_parameters',
    'set_ballistic_defaults',
    'reset_ballistic_defaults',
    'create_acceleration_function',
)


def _require(name: str, value: Any, condition: bool, reason: str) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise BallisticConfigError(name, value, "must be a number")
    if not math.isfinite(value):
        raise BallisticConfigError(name, value, "must be finite")
    if not condition:
        raise BallisticConfigError(name, value, reason)


@dataclass(frozen=True)
class BallisticParameters:
    """Projectile and environment description, fixed for the lifetime of a solver.

    Attributes:
        initial_velocity: Muzzle velocity (m/s), > 0.
        projectile_mass: Mass (kg), > 0.
        drag_coefficient: Dimensionless drag coefficient, >= 0.
        cross_sectional_area: Reference area (m²), > 0.
        latitude: Firing latitude in degrees [-90, 90]; `None` disables Coriolis.
        air_density: Air density (kg/m³), >= 0.
        gravity: Gravitational acceleration magnitude (m/s²), > 0.

    Raises:
        BallisticConfigError: On construction, when any value is out of range or not finite.
    """

    initial_velocity: float
    projectile_mass: float
    drag_coefficient: float
    cross_sectional_area: float
    latitude: Optional[float] = None
    air_density: float = cAirDensitySeaLevel
    gravity: float = cGravityAcceleration

    def __post_init__(self) -> None:
        _require('initial_velocity', self.initial_velocity, self.initial_velocity > 0, "must be positive")
        _require('projectile_mass', self.projectile_mass, self.projectile_mass > 0, "must be positive")
        _require('drag_coefficient', self.drag_coefficient, self.drag_coefficient >= 0,
                 "must not be negative")
        _require('cross_sectional_area', self.cross_sectional_area, self.cross_sectional_area > 0,
                 "must be positive")
        _require('air_density', self.air_density, self.air_density >= 0, "must not be negative")
        _require('gravity', self.gravity, self.gravity > 0, "must be positive")
        if self.latitude is not None:
            _require('latitude', self.latitude, -90.0 <= self.latitude <= 90.0,
                     "must be within [-90, 90] degrees")


class BallisticParametersDict(TypedDict, total=False):
    """Partial `BallisticParameters`, e.g. a `[leadcalc.ballistics]` TOML table."""

    initial_velocity: float
    projectile_mass: float
    drag_coefficient: float
    cross_sectional_area: float
    latitude: Optional[float]
    air_density: float
    gravity: float


_FACTORY_DEFAULTS: Dict[str, Any] = {
    'initial_velocity': cMuzzleVelocity,
    'projectile_mass': cProjectileMass,
    'drag_coefficient': cProjectileDragCoefficient,
    'cross_sectional_area': cProjectileCrossSectionalArea,
    'latitude': None,
    'air_density': cAirDensitySeaLevel,
    'gravity': cGravityAcceleration,
}
_defaults: Dict[str, Any] = dict(_FACTORY_DEFAULTS)


def _merge(base: Dict[str, Any], overrides: Optional[BallisticParametersDict]) -> Dict[str, Any]:
    merged = dict(base)
    if overrides:
        known = {f.name for f in fields(BallisticParameters)}
        for key, value in overrides.items():
            if key not in known:
                raise BallisticConfigError(key, value, "unknown ballistic parameter")
            merged[key] = value
    return merged


def create_default_ballistic_parameters(overrides: Optional[BallisticParametersDict] = None
                                        ) -> BallisticParameters:
    """Build `BallisticParameters` from the process-wide defaults.

    Defaults are the 155 mm howitzer shell (827 m/s, 43.5 kg, Cd 0.295, 0.0189 m², no
    latitude) unless replaced by `basicConfig` or `set_ballistic_defaults`.

    Args:
        overrides: Optional fields replacing the defaults for this instance only.

    Raises:
        BallisticConfigError: For unknown keys or invalid values.
    """
    return BallisticParameters(**_merge(_defaults, overrides))


def set_ballistic_defaults(overrides: BallisticParametersDict) -> None:
    """Replace the process-wide ballistic defaults.

    The merged result is validated before it is stored, so an invalid table leaves the
    previous defaults in place.
    """
    global _defaults
    merged = _merge(_FACTORY_DEFAULTS, overrides)
    BallisticParameters(**merged)
    _defaults = merged


def reset_ballistic_defaults() -> None:
    """Restore the built-in 155 mm defaults."""
    global _defaults
    _defaults = dict(_FACTORY_DEFAULTS)


@dataclass(frozen=True)
class Coriolis:
    r"""Precomputed Earth-rotation vector for a firing latitude.

    State is kept directly in the Earth-fixed East-North-Up frame, so the full 3D
    Coriolis acceleration needs no azimuth-dependent projection:

    $$
    a_c = -2\,\Omega \times v, \qquad \Omega = \omega\,(0, \cos L, \sin L)
    $$

    Attributes:
        latitude: Firing latitude in degrees.
        omega: Earth angular velocity vector in ENU (rad/s).
    """

    latitude: float
    omega: Vector3

    @classmethod
    def create(cls, latitude: Optional[float]) -> Optional[Coriolis]:
        """Build a `Coriolis` helper, or return `None` when latitude is not given."""
        if latitude is None:
            return None
        return cls(latitude=latitude, omega=earth_rotation_vector(latitude))

    def acceleration(self, velocity: Vector3) -> Vector3:
        """Coriolis acceleration (per unit mass) for `velocity`."""
        return coriolis(1.0, self.omega, velocity)


def create_acceleration_function(params: BallisticParameters) -> AccelerationFunction:
    """Return `accel(state, t) = (gravity + drag [+ coriolis]) / mass` for `params`.

    Coriolis is included only when `params.latitude` is set.  The returned callable is
    pure and can be shared by the solver and any external trajectory simulation.
    """
    mass = params.projectile_mass
    inv_mass = 1.0 / mass
    weight = gravity(mass, params.gravity)
    rho = params.air_density
    cd = params.drag_coefficient
    area = params.cross_sectional_area
    earth = Coriolis.create(params.latitude)

    if earth is None:
        def accel(state: State3D, time: float) -> Vector3:
            return sum_forces(weight, drag(state.velocity, rho, cd, area)).mul_by_const(inv_mass)
    else:
        omega = earth.omega

        def accel(state: State3D, time: float) -> Vector3:
            return sum_forces(weight,
                              drag(state.velocity, rho, cd, area),
                              coriolis(mass, omega, state.velocity)).mul_by_const(inv_mass)

    return accel
