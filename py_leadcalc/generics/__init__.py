"""Generic type definitions for firing-angle solvers.

Protocol Definitions:
    SolverProtocol: Interface `LeadAngleCalculator` requires from a solver

Examples:
    >>> from py_leadcalc.generics import SolverProtocol
    >>> from py_leadcalc import ShootingMethodSolver, create_default_ballistic_parameters
    >>> isinstance(ShootingMethodSolver(create_default_ballistic_parameters()), SolverProtocol)
    True
"""

# Local imports
from .solver import SolverProtocol

__all__ = (
    'SolverProtocol',
)
