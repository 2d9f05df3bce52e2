import logging

import pytest

from py_leadcalc import (LeadAngleCalculator, ShootingMethodSolver, Vector3,
                         create_default_ballistic_parameters)
from py_leadcalc.logger import logger

logger.setLevel(logging.DEBUG)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def origin():
    return Vector3(0.0, 0.0, 0.0)


@pytest.fixture(scope="session")
def params():
    return create_default_ballistic_parameters()


@pytest.fixture(scope="session")
def solver(params):
    return ShootingMethodSolver(params)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def calculator(params, clock):
    return LeadAngleCalculator(params, clock=clock)
