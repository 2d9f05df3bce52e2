"""Global physical constants and tuned solver defaults.

All quantities are SI (metres, seconds, kilograms) in an East-North-Up world frame.

Constant Categories:
    - Physical constants: gravity, sea-level air density, Earth rotation
    - Projectile defaults: 155 mm howitzer shell
    - Integration: fixed time step and flight-time limits
    - Solver tuning: empirically tuned iteration limits and tolerances

Note:
    The solver tuning values were found by experiment rather than derived.  They are
    defaults for `py_leadcalc.config.SolverConfig`, not load-bearing physical constants.
"""

# Third-party imports
from typing_extensions import Final

# =============================================================================
# Physical Constants
# =============================================================================

cGravityAcceleration: Final[float] = 9.81  # m/s²
"""Standard gravitational acceleration (m/s²)"""

cAirDensitySeaLevel: Final[float] = 1.225  # kg/m³
"""ISA air density at sea level (kg/m³)"""

cEarthAngularVelocityRadS: Final[float] = 7.2921159e-5  # rad/s
"""Sidereal angular velocity of the Earth (rad/s)"""

# =============================================================================
# Projectile Defaults (155 mm artillery shell)
# =============================================================================

cMuzzleVelocity: Final[float] = 827.0  # m/s
cProjectileMass: Final[float] = 43.5  # kg
cProjectileCrossSectionalArea: Final[float] = 0.0189  # m²
cProjectileDragCoefficient: Final[float] = 0.295  # dimensionless

# =============================================================================
# Integration
# =============================================================================

cPhysicsTimeStep: Final[float] = 1.0 / 60.0  # s, fixed 60 Hz step
cMaxFlightTime: Final[float] = 120.0  # s
cGroundLevel: Final[float] = 0.0  # m

# =============================================================================
# Solver Tuning
# =============================================================================

cMaxIterations: Final[int] = 15
cConvergenceTolerance: Final[float] = 10.0  # m
cAnglePerturbation: Final[float] = 0.5  # deg, finite-difference step
cEarlyExitSteps: Final[int] = 10  # steps without approach before leaving the CPA search
cEarlyExitDistance: Final[float] = 10000.0  # m, CPA must be below this for early exit
cMovingTargetSpeed: Final[float] = 0.1  # m/s, slower targets are treated as static
cMinElevation: Final[float] = 1.0  # deg
cMaxElevation: Final[float] = 89.0  # deg
cBroydenFloor: Final[float] = 1e-6  # deg
cSingularThreshold: Final[float] = 1e-12
cRegularization: Final[float] = 1e-8

__all__ = (
    # Physical constants
    'cGravityAcceleration',
    'cAirDensitySeaLevel',
    'cEarthAngularVelocityRadS',
    # Projectile defaults
    'cMuzzleVelocity',
    'cProjectileMass',
    'cProjectileCrossSectionalArea',
    'cProjectileDragCoefficient',
    # Integration
    'cPhysicsTimeStep',
    'cMaxFlightTime',
    'cGroundLevel',
    # Solver tuning
    'cMaxIterations',
    'cConvergenceTolerance',
    'cAnglePerturbation',
    'cEarlyExitSteps',
    'cEarlyExitDistance',
    'cMovingTargetSpeed',
    'cMinElevation',
    'cMaxElevation',
    'cBroydenFloor',
    'cSingularThreshold',
    'cRegularization',
)
