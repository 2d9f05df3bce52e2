import pytest

from py_leadcalc import COLD_OSCILLATION, WARM_OSCILLATION, AnglePair, IterationHistory, is_oscillating


def history_of(errors, elevations=None):
    history = IterationHistory(15)
    elevations = elevations or [10.0] * len(errors)
    for error, elevation in zip(errors, elevations):
        history.record(error, AnglePair(45.0, elevation))
    return history


class TestIterationHistory:

    def test_bounded(self):
        history = IterationHistory(3)
        for i in range(5):
            history.record(float(i), AnglePair(0.0, float(i)))
        assert len(history) == 3
        assert history.errors == [2.0, 3.0, 4.0]
        assert [a.elevation for a in history.angles] == [2.0, 3.0, 4.0]


class TestIsOscillating:

    def test_needs_four_entries(self):
        assert not is_oscillating(history_of([100.0, 10.0, 100.0]))

    def test_error_two_cycle(self):
        assert is_oscillating(history_of([100.0, 20.0, 98.0, 21.0]), COLD_OSCILLATION)

    def test_converging_errors(self):
        assert not is_oscillating(history_of([1000.0, 300.0, 80.0, 15.0]), COLD_OSCILLATION)

    def test_elevation_two_cycle(self):
        errors = [500.0, 400.0, 300.0, 200.0]
        assert is_oscillating(history_of(errors, [10.0, 25.0, 11.0, 24.0]), COLD_OSCILLATION)

    def test_only_last_four_are_considered(self):
        assert not is_oscillating(history_of([100.0, 20.0, 98.0, 21.0, 10.0, 5.0, 2.0, 1.0]))

    @pytest.mark.parametrize("errors, cold, warm", [
        # swing of 40%: above the warm threshold (30%) only
        ([100.0, 60.0, 100.0, 60.0], False, True),
        # repeat within 12%: inside the warm band (15%) only
        ([100.0, 20.0, 112.0, 20.0], False, True),
    ])
    def test_warm_thresholds_are_more_sensitive(self, errors, cold, warm):
        history = history_of(errors)
        assert is_oscillating(history, COLD_OSCILLATION) is cold
        assert is_oscillating(history, WARM_OSCILLATION) is warm

    def test_warm_elevation_swing(self):
        history = history_of([500.0, 400.0, 300.0, 200.0], [10.0, 17.0, 11.0, 16.5])
        assert not is_oscillating(history, COLD_OSCILLATION)
        assert is_oscillating(history, WARM_OSCILLATION)
