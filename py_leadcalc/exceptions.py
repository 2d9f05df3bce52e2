"""py_leadcalc exception types.

Exception Hierarchy
-------------------

Exception (built-in Python)
└── ValueError
    ├── BallisticConfigError
    └── TargetPreconditionError

Only configuration and precondition problems are raised.  Numerical failure inside a
trajectory evaluation, an exhausted iteration budget and an ill-conditioned Jacobian are
normal solver outcomes: they are reported through `ShootingResult.status` and
`ShootingResult.converged`, never as exceptions.

- BallisticConfigError: Raised when BallisticParameters or SolverConfig values are invalid
  (non-positive muzzle velocity, negative drag coefficient, unknown configuration key, ...).
  Contains:
  - field: Name of the offending field (may be empty)
  - value: The rejected value

- TargetPreconditionError: Raised when a solve is requested without a usable target,
  e.g. a missing target position or non-finite coordinates.
"""
from __future__ import annotations

from typing import Any

__all__ = (
    'BallisticConfigError',
    'TargetPreconditionError',
)


class BallisticConfigError(ValueError):
    """Invalid ballistic or solver configuration."""

    def __init__(self, field: str, value: Any, reason: str = ""):
        self.field: str = field
        self.value: Any = value
        self.reason: str = reason
        msg = f"Invalid value {value!r} for '{field}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class TargetPreconditionError(ValueError):
    """Solver input does not describe a valid target."""
