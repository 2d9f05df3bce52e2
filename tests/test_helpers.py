import math

import pytest

from py_leadcalc import TargetPreconditionError, Vector3
from py_leadcalc.helpers import (clamp, normalize_azimuth_compass, normalize_azimuth_signed, require_vector,
                                 vacuum_range_to_height, vacuum_time_to_height)
from py_leadcalc.logger import logger, disable_file_logging, enable_file_logging


class TestVacuumCalcs:
    @pytest.mark.parametrize(
        "velocity,angle,expected_range",
        [
            (10, 45, 10.20),
            (20, 30, 35.31),
            (50, 60, 220.97),
        ],
    )
    def test_level_range(self, velocity, angle, expected_range):
        assert pytest.approx(vacuum_range_to_height(velocity, angle, 0.0), 0.01) == expected_range

    def test_range_time_consistency(self):
        v, angle, height = 300.0, 35.0, 120.0
        t = vacuum_time_to_height(v, angle, height)
        r = vacuum_range_to_height(v, angle, height)
        assert r == pytest.approx(v * math.cos(math.radians(angle)) * t, rel=1e-12)
        # the descending branch is at the requested height
        z = v * math.sin(math.radians(angle)) * t - 0.5 * 9.81 * t * t
        assert z == pytest.approx(height, abs=1e-6)

    def test_descending_root(self):
        t_up = vacuum_time_to_height(100.0, 45.0, 0.0)
        assert t_up == pytest.approx(2 * 100.0 * math.sin(math.radians(45.0)) / 9.81)

    def test_target_below(self):
        assert vacuum_time_to_height(100.0, 10.0, -500.0) > vacuum_time_to_height(100.0, 10.0, 0.0)

    def test_unreachable(self):
        assert vacuum_time_to_height(100.0, 45.0, 1000.0) is None
        assert vacuum_range_to_height(100.0, 45.0, 1000.0) is None

    def test_gravity_sign_ignored(self):
        assert vacuum_time_to_height(100.0, 30.0, 0.0, -9.81) == vacuum_time_to_height(100.0, 30.0, 0.0, 9.81)


class TestAngles:
    @pytest.mark.parametrize("azimuth, expected", [
        (0.0, 0.0), (180.0, 180.0), (-180.0, 180.0), (190.0, -170.0), (540.0, 180.0), (-350.0, 10.0),
        (719.0, -1.0),
    ])
    def test_signed(self, azimuth, expected):
        assert normalize_azimuth_signed(azimuth) == pytest.approx(expected)

    @pytest.mark.parametrize("azimuth, expected", [
        (0.0, 0.0), (-90.0, 270.0), (360.0, 0.0), (725.0, 5.0), (-1e-15, 0.0), (359.5, 359.5),
    ])
    def test_compass(self, azimuth, expected):
        result = normalize_azimuth_compass(azimuth)
        assert 0.0 <= result < 360.0
        assert result == pytest.approx(expected)

    def test_clamp(self):
        assert clamp(-5.0, 1.0, 89.0) == 1.0
        assert clamp(95.0, 1.0, 89.0) == 89.0
        assert clamp(45.0, 1.0, 89.0) == 45.0


class TestRequireVector:

    def test_accepts_sequences(self):
        assert require_vector('v', (1, 2, 3)) == Vector3(1.0, 2.0, 3.0)
        assert isinstance(require_vector('v', [1, 2, 3]), Vector3)

    @pytest.mark.parametrize("value", [None, (1, 2), "abc", 5, (1, 2, math.nan), Vector3(math.inf, 0, 0)])
    def test_rejects(self, value):
        with pytest.raises(TargetPreconditionError):
            require_vector('target_position', value)

    def test_message_names_argument(self):
        with pytest.raises(TargetPreconditionError, match='target_velocity'):
            require_vector('target_velocity', None)


class TestLogger:
    def test_logger_disable_idempotent(self):
        disable_file_logging()
        disable_file_logging()

    def test_file_logger(self, tmp_path):
        logfile = tmp_path / "solver_debug.log"
        enable_file_logging(str(logfile))
        logger.debug("hello file")
        disable_file_logging()
        assert logfile.exists() and "hello file" in logfile.read_text()

    def test_enable_twice_replaces_handler(self, tmp_path):
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"
        enable_file_logging(str(first))
        enable_file_logging(str(second))
        logger.warning("only in second")
        disable_file_logging()
        assert "only in second" not in first.read_text()
        assert "only in second" in second.read_text()
