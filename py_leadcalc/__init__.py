"""Shooting-method firing solutions for artillery against static and moving targets."""

import importlib.metadata

__version__ = importlib.metadata.version("py_leadcalc")

# Standard library imports
import importlib.resources
import os
import sys

# Third-party imports
from typing_extensions import Any, Dict, Optional

# Local imports
from .logger import logger as log
from .conditions import BallisticParametersDict, set_ballistic_defaults, reset_ballistic_defaults
from .config import SolverConfigDict, set_solver_defaults, reset_solver_defaults
from .exceptions import BallisticConfigError

if sys.version_info[:2] < (3, 11):
    import tomli as tomllib
else:
    import tomllib


def _find_leadcalc_toml(start_dir: Optional[str] = None) -> Optional[str]:
    """Search for .leadcalc.toml or leadcalc.toml from `start_dir` upward.

    Args:
        start_dir: The directory to start searching from. Default is the current working directory.

    Returns:
        The absolute path to the configuration file if found, otherwise None.
    """
    current_dir = os.path.abspath(start_dir if start_dir is not None else os.getcwd())
    while True:
        for name in ('.leadcalc.toml', 'leadcalc.toml'):
            path = os.path.join(current_dir, name)
            if os.path.exists(path):
                return os.path.abspath(path)

        parent_dir = os.path.dirname(current_dir)
        if parent_dir == current_dir:
            return None
        current_dir = parent_dir


def _apply_config(ballistics: Optional[Dict[str, Any]], solver: Optional[Dict[str, Any]]) -> None:
    if ballistics is not None:
        set_ballistic_defaults(ballistics)  # type: ignore[arg-type]
    if solver is not None:
        set_solver_defaults(solver)  # type: ignore[arg-type]


def _load_config(filepath: Optional[str] = None, suppress_warnings: bool = False) -> None:
    """Load ballistic and solver defaults from a leadcalc.toml file.

    Args:
        filepath: Path to configuration file. If None, searches for .leadcalc.toml or leadcalc.toml
        suppress_warnings: If True, suppress warning messages

    Raises:
        BallisticConfigError: If the file contains unknown keys or invalid values.
    """
    if filepath is None:
        filepath = _find_leadcalc_toml()

    if filepath is None:
        log.debug("No leadcalc.toml found, using built-in defaults")
        return

    log.debug(f"Found {os.path.basename(filepath)} at {os.path.dirname(filepath)}")
    with open(filepath, "rb") as fp:
        _config = tomllib.load(fp)

    _leadcalc = _config.get('leadcalc')
    if not _leadcalc:
        if not suppress_warnings:
            log.warning("Config has no `leadcalc` section")
        return

    unknown = set(_leadcalc) - {'ballistics', 'solver'}
    if unknown:
        raise BallisticConfigError('leadcalc', sorted(unknown), "unknown configuration tables")

    ballistics = _leadcalc.get('ballistics')
    solver = _leadcalc.get('solver')
    if ballistics is None and solver is None and not suppress_warnings:
        log.warning("Config has no `leadcalc.ballistics` or `leadcalc.solver` section")
    _apply_config(ballistics, solver)
    log.debug("Ballistic and solver defaults load success")


def _basic_config(filename: Optional[str] = None,
                  ballistics: Optional[BallisticParametersDict] = None,
                  solver: Optional[SolverConfigDict] = None,
                  suppress_warnings: bool = False) -> None:
    """Set process-wide ballistic and solver defaults from a file or from mappings.

    Args:
        filename: Configuration file path
        ballistics: Overrides for `BallisticParameters` defaults
        solver: Overrides for `SolverConfig` defaults
        suppress_warnings: If True, suppress warning messages

    Raises:
        ValueError: If both a filename and mappings are provided
        BallisticConfigError: If a setting is unknown or invalid
    """
    if filename and (ballistics or solver):
        raise ValueError("Can't use mappings and config file at same time")
    if not filename and (ballistics or solver):
        _apply_config(ballistics, solver)  # type: ignore[arg-type]
    else:
        # trying to load definitions from leadcalc.toml
        _load_config(filename, suppress_warnings)


def _resolve_resource_path(path: str) -> str:
    """Resolve a resource path relative to the package."""
    return str(importlib.resources.files('py_leadcalc').joinpath(path))


def _load_default_155mm() -> None:
    """Restore the bundled 155 mm howitzer defaults."""
    reset_ballistic_defaults()
    reset_solver_defaults()
    _basic_config(_resolve_resource_path('assets/leadcalc-155mm.toml'), suppress_warnings=True)


load_default_155mm = _load_default_155mm

basicConfig = _basic_config

basicConfig()


from .cache import CachedResult, ResultCache, RateLimiter, make_cache_key
from .conditions import (BallisticParameters, Coriolis, create_default_ballistic_parameters,
                         create_acceleration_function)
from .config import (SolverConfig, DEFAULT_SOLVER_CONFIG, create_solver_config, DampingPolicy,
                     OscillationThresholds, COLD_DAMPING, WARM_DAMPING, COLD_OSCILLATION, WARM_OSCILLATION)
from .corrector import AngleCorrection, CorrectionMethod, compute_correction
from .diagnostics import IterationEvent, SolverObserver, LoggingObserver, RecordingObserver
from .exceptions import TargetPreconditionError
from .forces import gravity, drag, coriolis, sum_forces, earth_rotation_vector
from .generics import SolverProtocol
from .integrator import State3D, integrate, propagate
from .interface import Confidence, LeadAngle, RecommendedLeadResult, classify_confidence, LeadAngleCalculator
from .jacobian import Jacobian, finite_difference_jacobian, broyden_update
from .logger import logger, enable_file_logging, disable_file_logging
from .oscillation import IterationHistory, is_oscillating
from .solver import SolverStatus, AnglePair, ShootingResult, ShootingMethodSolver
from .tracking import TargetTrackingState, TargetContinuityTracker
from .trajectory import CPAResult, TrajectoryEvaluator
from .vector import Vector3, ZERO_VECTOR

# DRY: build __all__ from global symbols
_SKIP_GLOBALS = {
    # Skip Python builtins
    "__name__", "__doc__", "__package__", "__loader__", "__spec__",
    "__file__", "__cached__", "__builtins__", "__path__",
    # Skip imported modules and typing helpers
    "tomllib", "sys", "os", "importlib", "Any", "Dict", "Optional", "log",
    # Skip private/internal symbols
    "_find_leadcalc_toml", "_apply_config", "_load_config", "_basic_config",
    "_resolve_resource_path", "_load_default_155mm",
}
# Build __all__ from the module's global namespace
__all__ = [
    name for name in globals()
    if not name.startswith("_") and name not in _SKIP_GLOBALS
]
