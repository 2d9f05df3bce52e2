import pytest

from py_leadcalc import CPAResult, Jacobian, Vector3, ZERO_VECTOR, broyden_update, finite_difference_jacobian


def linear_model(azimuth, elevation):
    """Miss vector E = A·(az, el) + c for a fixed 3×2 matrix A."""
    error = Vector3(2.0 * azimuth - 1.0 * elevation + 5.0,
                    0.5 * azimuth + 3.0 * elevation - 2.0,
                    -1.0 * azimuth + 4.0 * elevation)
    return CPAResult(error.magnitude(), 1.0, error, ZERO_VECTOR)


class TestFiniteDifference:

    def test_linear_model_is_exact(self):
        calls = []

        def evaluate(az, el):
            calls.append((az, el))
            return linear_model(az, el)

        baseline = linear_model(10.0, 20.0).error_vector
        jacobian = finite_difference_jacobian(evaluate, 10.0, 20.0, baseline, delta=0.5)
        assert jacobian.d_azimuth == pytest.approx(Vector3(2.0, 0.5, -1.0))
        assert jacobian.d_elevation == pytest.approx(Vector3(-1.0, 3.0, 4.0))
        # the baseline is reused: only the two perturbed trajectories are evaluated
        assert calls == [(10.5, 20.0), (10.0, 20.5)]

    def test_failed_perturbation_gives_zero_column(self):
        def evaluate(az, el):
            return None if el > 20.0 else linear_model(az, el)

        baseline = linear_model(10.0, 20.0).error_vector
        jacobian = finite_difference_jacobian(evaluate, 10.0, 20.0, baseline)
        assert jacobian.d_azimuth == pytest.approx(Vector3(2.0, 0.5, -1.0))
        assert jacobian.d_elevation == ZERO_VECTOR


class TestBroyden:

    def test_secant_condition(self):
        jacobian = Jacobian(Vector3(1, 0, 0), Vector3(0, 1, 0))
        d_az, d_el = 0.3, -0.2
        delta_error = Vector3(0.5, 0.1, -0.4)
        updated = broyden_update(jacobian, d_az, d_el, delta_error)
        assert updated.apply(d_az, d_el) == pytest.approx(delta_error)

    def test_exact_jacobian_is_unchanged(self):
        jacobian = Jacobian(Vector3(2.0, 0.5, -1.0), Vector3(-1.0, 3.0, 4.0))
        delta_error = jacobian.apply(0.7, 0.2)
        updated = broyden_update(jacobian, 0.7, 0.2, delta_error)
        assert updated.d_azimuth == pytest.approx(jacobian.d_azimuth)
        assert updated.d_elevation == pytest.approx(jacobian.d_elevation)

    def test_tiny_step_skips_update(self):
        jacobian = Jacobian(Vector3(1, 2, 3), Vector3(4, 5, 6))
        assert broyden_update(jacobian, 1e-7, -1e-7, Vector3(100, 100, 100)) is jacobian

    def test_single_axis_step_only_changes_that_column(self):
        jacobian = Jacobian(Vector3(1, 2, 3), Vector3(4, 5, 6))
        updated = broyden_update(jacobian, 0.0, 0.5, Vector3(1, 1, 1))
        assert updated.d_azimuth == jacobian.d_azimuth
        assert updated.d_elevation != jacobian.d_elevation
