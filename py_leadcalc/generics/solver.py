"""Solver protocol module for py_leadcalc.

Defines the structural type that `LeadAngleCalculator` expects from a solver, so that an
alternative solver (a different root finder, a lookup-table solver, a test double) can
be plugged in without inheriting from `ShootingMethodSolver`.

Classes:
    SolverProtocol: Type protocol for firing-angle solvers.
"""

# Standard library imports
from abc import abstractmethod
from typing import Optional

# Third-party imports
from typing_extensions import Protocol, runtime_checkable

# Local imports
from py_leadcalc.conditions import BallisticParameters
from py_leadcalc.solver import ShootingResult
from py_leadcalc.vector import Vector3

__all__ = ['SolverProtocol']


@runtime_checkable
class SolverProtocol(Protocol):
    """Protocol for firing-angle solvers.

    Required Attributes:
        - params: Ballistic parameters the solver was built for.

    Required Methods:
        - solve: Cold solve from the solver's own initial estimate.
        - solve_from_initial_guess: Warm solve from caller-supplied angles.

    Examples:
        ```python
        class FixedSolver:
            def __init__(self, params, result):
                self.params = params
                self.result = result

            def solve(self, firer, target_position, target_velocity):
                return self.result

            def solve_from_initial_guess(self, firer, target_position, target_velocity,
                                         azimuth, elevation, max_iterations=None, tolerance=None):
                return self.result

        assert isinstance(FixedSolver(params, result), SolverProtocol)
        ```
    """

    params: BallisticParameters

    @abstractmethod
    def solve(self, firer: Vector3, target_position: Vector3, target_velocity: Vector3) -> ShootingResult:
        """Solve for a target from the solver's own initial estimate.

        Args:
            firer: Firer position.
            target_position: Target position at time zero.
            target_velocity: Target velocity.

        Returns:
            ShootingResult with azimuth in (-180, 180] degrees.
        """
        raise NotImplementedError

    @abstractmethod
    def solve_from_initial_guess(self, firer: Vector3, target_position: Vector3, target_velocity: Vector3,
                                 azimuth: float, elevation: float,
                                 max_iterations: Optional[int] = None,
                                 tolerance: Optional[float] = None) -> ShootingResult:
        """Solve for a target starting from the given angles (degrees)."""
        raise NotImplementedError
