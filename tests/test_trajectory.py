import math

import pytest

from py_leadcalc import (BallisticParameters, CPAResult, SolverConfig, TrajectoryEvaluator, Vector3,
                         ZERO_VECTOR)


@pytest.fixture
def evaluator(params):
    return TrajectoryEvaluator(params)


class TestLaunchVelocity:

    @pytest.mark.parametrize("azimuth, expected", [
        (0.0, Vector3(0, 1, 0)),
        (90.0, Vector3(1, 0, 0)),
        (180.0, Vector3(0, -1, 0)),
        (-90.0, Vector3(-1, 0, 0)),
    ])
    def test_azimuth_is_clockwise_from_north(self, evaluator, azimuth, expected):
        v = evaluator.launch_velocity(azimuth, 0.0)
        assert v == pytest.approx(expected * evaluator.params.initial_velocity, abs=1e-9)

    def test_elevation(self, evaluator):
        v = evaluator.launch_velocity(0.0, 30.0)
        v0 = evaluator.params.initial_velocity
        assert v.z == pytest.approx(v0 * 0.5)
        assert v.magnitude() == pytest.approx(v0)


class TestEvaluate:

    def test_error_vector(self):
        cpa = CPAResult(5.0, 1.0, Vector3(3, 4, 0), Vector3(0, 0, 0))
        assert cpa.error_vector == Vector3(3, 4, 0)

    def test_direct_hit_on_vacuum_trajectory(self, origin):
        params = BallisticParameters(200.0, 10.0, 0.0, 0.01)
        evaluator = TrajectoryEvaluator(params)
        el = 30.0
        v = 200.0
        t = 10.0
        # point the projectile passes through at t = 10 s
        target = Vector3(v * math.cos(math.radians(el)) * t, 0.0,
                         v * math.sin(math.radians(el)) * t - 0.5 * 9.81 * t * t)
        cpa = evaluator.evaluate(origin, 90.0, el, target, ZERO_VECTOR)
        assert cpa is not None
        assert cpa.min_distance < 1.0
        assert cpa.cpa_time == pytest.approx(t, abs=1 / 30)

    def test_moving_target_is_tracked_linearly(self, evaluator, origin):
        target = Vector3(3000.0, 3000.0, 100.0)
        velocity = Vector3(-10.0, 0.0, 0.0)
        cpa = evaluator.evaluate(origin, 45.0, 10.0, target, velocity)
        assert cpa is not None
        assert cpa.target_position == pytest.approx(target + velocity * cpa.cpa_time)

    def test_slow_target_is_static(self, evaluator, origin):
        target = Vector3(3000.0, 0.0, 0.0)
        cpa = evaluator.evaluate(origin, 90.0, 5.0, target, Vector3(0.05, 0.0, 0.0))
        assert cpa.target_position == target

    def test_ground_impact_ends_flight(self, evaluator, origin):
        cpa = evaluator.evaluate(origin, 90.0, 5.0, Vector3(100000.0, 0.0, 0.0), ZERO_VECTOR)
        assert cpa is not None
        assert cpa.projectile_position.z <= 0.0
        assert cpa.cpa_time < evaluator.config.max_flight_time

    def test_early_exit_after_passing_target(self, params, origin):
        target = Vector3(2000.0, 0.0, 50.0)
        early = TrajectoryEvaluator(params, SolverConfig(early_exit_steps=10))
        cpa = early.evaluate(origin, 90.0, 3.0, target, ZERO_VECTOR)
        full = TrajectoryEvaluator(params, SolverConfig(early_exit_distance=1e-9))
        cpa_full = full.evaluate(origin, 90.0, 3.0, target, ZERO_VECTOR)
        assert cpa.min_distance == cpa_full.min_distance
        assert cpa.cpa_time == cpa_full.cpa_time

    @pytest.mark.parametrize("kwargs", [
        dict(azimuth=math.nan, elevation=10.0),
        dict(azimuth=10.0, elevation=math.inf),
        dict(azimuth=10.0, elevation=10.0, target_position=Vector3(math.nan, 0, 0)),
        dict(azimuth=10.0, elevation=10.0, target_velocity=Vector3(0, math.inf, 0)),
    ])
    def test_non_finite_input_returns_none(self, evaluator, origin, kwargs):
        args = dict(start=origin, target_position=Vector3(1000, 0, 0), target_velocity=ZERO_VECTOR)
        args.update(kwargs)
        assert evaluator.evaluate(**args) is None

    def test_non_finite_state_returns_none(self, evaluator, origin):
        evaluator.accel = lambda state, time: Vector3(math.nan, 0.0, 0.0)
        assert evaluator.evaluate(origin, 10.0, 10.0, Vector3(1000, 0, 0), ZERO_VECTOR) is None
