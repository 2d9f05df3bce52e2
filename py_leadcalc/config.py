"""Solver configuration.

Classes:
    SolverConfig: Dataclass of numeric solver and trajectory-evaluation settings.
    SolverConfigDict: TypedDict version for partial configuration from dictionaries or TOML.
    DampingPolicy: Step damping and clamping rules for the Newton corrector.
    OscillationThresholds: Pattern thresholds for the oscillation detector.

The tuned values (tolerances, damping bands, clamp angles) were found empirically and are
defaults, not physical constants.  Two policy instances exist for each of the damping and
oscillation rules: `COLD_*` for a solve that starts from the drag-free estimate, and `WARM_*`
for an incremental re-solve that starts from a previous solution and must move smoothly.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, asdict, fields

from typing_extensions import Any, Dict, Optional, Tuple, TypedDict

from py_leadcalc.constants import (cAnglePerturbation, cBroydenFloor, cConvergenceTolerance,
                                   cEarlyExitDistance, cEarlyExitSteps, cGroundLevel, cMaxElevation,
                                   cMaxFlightTime, cMaxIterations, cMinElevation, cMovingTargetSpeed,
                                   cPhysicsTimeStep, cRegularization, cSingularThreshold)
from py_leadcalc.exceptions import BallisticConfigError

__all__ = (
    'SolverConfig',
    'SolverConfigDict',
    'DEFAULT_SOLVER_CONFIG',
    'create_solver_config',
    'set_solver_defaults',
    'reset_solver_defaults',
    'DampingPolicy',
    'OscillationThresholds',
    'COLD_DAMPING',
    'WARM_DAMPING',
    'COLD_OSCILLATION',
    'WARM_OSCILLATION',
)


@dataclass
class SolverConfig:
    """Configuration dataclass for the shooting-method solver.

    Attributes:
        max_iterations: Iteration cap of a cold solve.
        tolerance: CPA distance (m) below which a solve has converged.
        angle_perturbation: Finite-difference step (deg) for the Jacobian.
        time_step: Fixed RK4 step (s).
        max_flight_time: Simulation limit per trajectory evaluation (s).
        ground_level: Height (m) of the impact plane that ends a trajectory.
        early_exit_steps: Consecutive steps without approach before the CPA search stops.
        early_exit_distance: The early exit only applies once the CPA is below this (m).
        moving_target_speed: Targets slower than this (m/s) are treated as static.
        min_elevation: Lower elevation clamp (deg) applied to every iterate.
        max_elevation: Upper elevation clamp (deg) applied to every iterate.
        broyden_floor: Broyden update is skipped when both angle steps are below this (deg).
        singular_threshold: |det(JᵀJ)| below which the normal equations are treated as singular.
        regularization: Tikhonov λ added to the diagonal of a singular system.

    Examples:
        >>> config = SolverConfig(tolerance=5.0, time_step=1 / 120)
    """

    max_iterations: int = cMaxIterations
    tolerance: float = cConvergenceTolerance
    angle_perturbation: float = cAnglePerturbation
    time_step: float = cPhysicsTimeStep
    max_flight_time: float = cMaxFlightTime
    ground_level: float = cGroundLevel
    early_exit_steps: int = cEarlyExitSteps
    early_exit_distance: float = cEarlyExitDistance
    moving_target_speed: float = cMovingTargetSpeed
    min_elevation: float = cMinElevation
    max_elevation: float = cMaxElevation
    broyden_floor: float = cBroydenFloor
    singular_threshold: float = cSingularThreshold
    regularization: float = cRegularization

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise BallisticConfigError(f.name, value, "must be a finite number")
        if not isinstance(self.max_iterations, int) or self.max_iterations < 1:
            raise BallisticConfigError('max_iterations', self.max_iterations, "must be a positive integer")
        if not isinstance(self.early_exit_steps, int) or self.early_exit_steps < 1:
            raise BallisticConfigError('early_exit_steps', self.early_exit_steps, "must be a positive integer")
        for name in ('tolerance', 'angle_perturbation', 'time_step', 'max_flight_time',
                     'early_exit_distance', 'broyden_floor', 'singular_threshold', 'regularization'):
            if getattr(self, name) <= 0:
                raise BallisticConfigError(name, getattr(self, name), "must be positive")
        if self.moving_target_speed < 0:
            raise BallisticConfigError('moving_target_speed', self.moving_target_speed, "must not be negative")
        if not 0.0 <= self.min_elevation < self.max_elevation <= 90.0:
            raise BallisticConfigError('max_elevation', self.max_elevation,
                                       f"elevation range [{self.min_elevation}, {self.max_elevation}] "
                                       f"must lie within [0, 90] degrees")


#: Default configuration instance
DEFAULT_SOLVER_CONFIG: SolverConfig = SolverConfig()


class SolverConfigDict(TypedDict, total=False):
    """TypedDict for partial solver configuration.

    Unspecified fields take their values from the process-wide defaults when passed to
    `create_solver_config()`.

    Examples:
        >>> config = create_solver_config({'tolerance': 5.0, 'max_iterations': 10})
    """

    max_iterations: int
    tolerance: float
    angle_perturbation: float
    time_step: float
    max_flight_time: float
    ground_level: float
    early_exit_steps: int
    early_exit_distance: float
    moving_target_speed: float
    min_elevation: float
    max_elevation: float
    broyden_floor: float
    singular_threshold: float
    regularization: float


_defaults: Dict[str, Any] = asdict(DEFAULT_SOLVER_CONFIG)


def _merge(base: Dict[str, Any], overrides: Optional[SolverConfigDict]) -> Dict[str, Any]:
    config = dict(base)
    if overrides is not None and isinstance(overrides, dict):
        for key, value in overrides.items():
            if key not in base:
                raise BallisticConfigError(key, value, "unknown solver setting")
            config[key] = value
    return config


def create_solver_config(interface_config: Optional[SolverConfigDict] = None) -> SolverConfig:
    """Create a SolverConfig by merging the process-wide defaults with overrides.

    Args:
        interface_config: Optional dictionary of overrides; only specified fields change.

    Returns:
        A validated SolverConfig.

    Raises:
        BallisticConfigError: For unknown keys or invalid values.
    """
    return SolverConfig(**_merge(_defaults, interface_config))


def set_solver_defaults(interface_config: SolverConfigDict) -> None:
    """Replace the process-wide solver defaults (validated before they are stored)."""
    global _defaults
    config = _merge(asdict(DEFAULT_SOLVER_CONFIG), interface_config)
    SolverConfig(**config)
    _defaults = config


def reset_solver_defaults() -> None:
    """Restore the built-in solver defaults."""
    global _defaults
    _defaults = asdict(DEFAULT_SOLVER_CONFIG)


@dataclass(frozen=True)
class DampingPolicy:
    """Damping and per-step clamping rules of the Newton corrector.

    Attributes:
        oscillating_damping: Damping factor used while oscillation is detected.
        error_bands: `(threshold_m, damping)` pairs, highest threshold first; the first
            band whose threshold the error exceeds applies.
        base_damping: Damping when the error is below every band.
        max_correction: Largest allowed correction magnitude (deg) for a modest raw step.
        correction_bands: `(raw_threshold_deg, limit_deg)` pairs, highest threshold first;
            larger raw steps are clamped harder.
        regularized_cap: Upper bound of the regularized-solve step scale.
        regularized_gain: Numerator k of the regularized step scale `min(cap, k/|e|)`.
        descent_cap: Upper bound of the steepest-descent step scale.
        descent_gain: Numerator k of the steepest-descent step scale.
    """

    oscillating_damping: float
    error_bands: Tuple[Tuple[float, float], ...]
    base_damping: float
    max_correction: float
    correction_bands: Tuple[Tuple[float, float], ...]
    regularized_cap: float
    regularized_gain: float
    descent_cap: float
    descent_gain: float

    def damping(self, error_magnitude: float, is_oscillating: bool) -> float:
        if is_oscillating:
            return self.oscillating_damping
        for threshold, factor in self.error_bands:
            if error_magnitude > threshold:
                return factor
        return self.base_damping

    def correction_limit(self, raw_magnitude: float) -> float:
        for threshold, limit in self.correction_bands:
            if raw_magnitude > threshold:
                return limit
        return self.max_correction

    def regularized_step(self, error_magnitude: float) -> float:
        return min(self.regularized_cap, self.regularized_gain / error_magnitude)

    def descent_step(self, error_magnitude: float) -> float:
        return min(self.descent_cap, self.descent_gain / error_magnitude)


COLD_DAMPING: DampingPolicy = DampingPolicy(
    oscillating_damping=0.1,
    error_bands=((5000.0, 0.7), (1000.0, 0.8), (100.0, 0.9)),
    base_damping=0.8,
    max_correction=5.0,
    correction_bands=((30.0, 2.0), (15.0, 3.0)),
    regularized_cap=0.5,
    regularized_gain=10.0,
    descent_cap=0.1,
    descent_gain=5.0,
)
WARM_DAMPING: DampingPolicy = DampingPolicy(
    oscillating_damping=0.05,
    error_bands=((1000.0, 0.4), (200.0, 0.6), (50.0, 0.7)),
    base_damping=0.8,
    max_correction=2.0,
    correction_bands=((15.0, 1.0), (5.0, 1.5)),
    regularized_cap=0.3,
    regularized_gain=5.0,
    descent_cap=0.1,
    descent_gain=3.0,
)


@dataclass(frozen=True)
class OscillationThresholds:
    """A-B-A-B pattern thresholds over the last four iterations.

    Attributes:
        same_ratio: Errors two iterations apart count as equal within this relative band.
        swing_ratio: Neighbouring errors must differ by more than this fraction.
        elevation_tolerance: Elevations two iterations apart count as equal within this (deg).
        elevation_swing: Neighbouring elevations must differ by more than this (deg).
        start_iteration: First zero-based iteration at which detection runs.
    """

    same_ratio: float
    swing_ratio: float
    elevation_tolerance: float
    elevation_swing: float
    start_iteration: int = 3


COLD_OSCILLATION: OscillationThresholds = OscillationThresholds(0.10, 0.5, 2.0, 10.0)
WARM_OSCILLATION: OscillationThresholds = OscillationThresholds(0.15, 0.3, 1.5, 5.0)
