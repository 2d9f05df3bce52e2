import pytest

import py_leadcalc
from py_leadcalc import (BallisticConfigError, BallisticParameters, SolverConfig, create_default_ballistic_parameters,
                         create_solver_config)
from py_leadcalc.conditions import reset_ballistic_defaults, set_ballistic_defaults
from py_leadcalc.config import reset_solver_defaults, set_solver_defaults


@pytest.fixture(autouse=True)
def restore_defaults():
    yield
    reset_ballistic_defaults()
    reset_solver_defaults()


class TestSolverConfig:

    def test_defaults(self):
        config = create_solver_config()
        assert config.max_iterations == 15
        assert config.tolerance == 10.0
        assert config.angle_perturbation == 0.5
        assert config.time_step == pytest.approx(1 / 60)
        assert config.max_flight_time == 120.0
        assert config.early_exit_steps == 10
        assert (config.min_elevation, config.max_elevation) == (1.0, 89.0)

    def test_overrides(self):
        config = create_solver_config({'tolerance': 5.0, 'max_iterations': 10})
        assert config.tolerance == 5.0
        assert config.max_iterations == 10
        assert config.time_step == pytest.approx(1 / 60)

    def test_unknown_key(self):
        with pytest.raises(BallisticConfigError) as info:
            create_solver_config({'tolerence': 5.0})
        assert info.value.field == 'tolerence'

    @pytest.mark.parametrize("kwargs", [
        {'max_iterations': 0},
        {'max_iterations': 2.5},
        {'tolerance': 0.0},
        {'tolerance': float('nan')},
        {'time_step': -0.01},
        {'early_exit_steps': 0},
        {'moving_target_speed': -1.0},
        {'min_elevation': 50.0, 'max_elevation': 40.0},
        {'max_elevation': 95.0},
        {'regularization': True},
        {'angle_perturbation': '0.5'},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(BallisticConfigError):
            SolverConfig(**kwargs)

    def test_set_defaults(self):
        set_solver_defaults({'tolerance': 2.0})
        assert create_solver_config().tolerance == 2.0
        reset_solver_defaults()
        assert create_solver_config().tolerance == 10.0

    def test_invalid_defaults_are_not_stored(self):
        with pytest.raises(BallisticConfigError):
            set_solver_defaults({'tolerance': -1.0})
        assert create_solver_config().tolerance == 10.0


class TestBallisticParameters:

    def test_defaults(self):
        params = create_default_ballistic_parameters()
        assert params == BallisticParameters(827.0, 43.5, 0.295, 0.0189)
        assert params.latitude is None
        assert params.air_density == 1.225
        assert params.gravity == 9.81

    @pytest.mark.parametrize("overrides", [
        {'initial_velocity': 0.0},
        {'projectile_mass': -1.0},
        {'drag_coefficient': -0.1},
        {'cross_sectional_area': 0.0},
        {'latitude': 91.0},
        {'air_density': float('inf')},
        {'gravity': 0.0},
        {'initial_velocity': None},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(BallisticConfigError):
            create_default_ballistic_parameters(overrides)

    def test_unknown_key(self):
        with pytest.raises(BallisticConfigError):
            create_default_ballistic_parameters({'muzzle_velocity': 800.0})

    def test_frozen(self):
        params = create_default_ballistic_parameters()
        with pytest.raises(AttributeError):
            params.initial_velocity = 1.0

    def test_set_defaults(self):
        set_ballistic_defaults({'latitude': 50.0})
        assert create_default_ballistic_parameters().latitude == 50.0
        assert create_default_ballistic_parameters({'latitude': None}).latitude is None


class TestBasicConfig:

    def test_mappings(self):
        py_leadcalc.basicConfig(ballistics={'initial_velocity': 700.0}, solver={'max_iterations': 20})
        assert create_default_ballistic_parameters().initial_velocity == 700.0
        assert create_solver_config().max_iterations == 20

    def test_file_and_mappings_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            py_leadcalc.basicConfig(str(tmp_path / 'leadcalc.toml'), solver={'tolerance': 5.0})

    def test_toml_file(self, tmp_path):
        path = tmp_path / 'leadcalc.toml'
        path.write_text(
            "[leadcalc.ballistics]\n"
            "initial_velocity = 650.0\n"
            "latitude = 48.5\n"
            "\n"
            "[leadcalc.solver]\n"
            "tolerance = 3.0\n",
            encoding='utf-8',
        )
        py_leadcalc.basicConfig(str(path))
        params = create_default_ballistic_parameters()
        assert params.initial_velocity == 650.0
        assert params.latitude == 48.5
        assert params.projectile_mass == 43.5
        assert create_solver_config().tolerance == 3.0

    def test_toml_unknown_key(self, tmp_path):
        path = tmp_path / 'leadcalc.toml'
        path.write_text("[leadcalc.solver]\nmax_iter = 3\n", encoding='utf-8')
        with pytest.raises(BallisticConfigError):
            py_leadcalc.basicConfig(str(path))
        assert create_solver_config().max_iterations == 15

    def test_toml_unknown_table(self, tmp_path):
        path = tmp_path / 'leadcalc.toml'
        path.write_text("[leadcalc.cache]\nttl = 1.0\n", encoding='utf-8')
        with pytest.raises(BallisticConfigError):
            py_leadcalc.basicConfig(str(path))

    def test_toml_without_section(self, tmp_path, caplog):
        path = tmp_path / 'leadcalc.toml'
        path.write_text("[other]\nvalue = 1\n", encoding='utf-8')
        py_leadcalc.basicConfig(str(path))
        assert "no `leadcalc` section" in caplog.text
        assert create_solver_config().tolerance == 10.0

    def test_find_config_upward(self, tmp_path):
        nested = tmp_path / 'a' / 'b'
        nested.mkdir(parents=True)
        (tmp_path / '.leadcalc.toml').write_text("[leadcalc.solver]\ntolerance = 4.0\n", encoding='utf-8')
        assert py_leadcalc._find_leadcalc_toml(str(nested)) == str(tmp_path / '.leadcalc.toml')

    def test_find_config_missing(self, tmp_path):
        found = py_leadcalc._find_leadcalc_toml(str(tmp_path))
        assert found is None or not found.startswith(str(tmp_path))

    def test_load_default_155mm(self):
        py_leadcalc.basicConfig(ballistics={'initial_velocity': 500.0}, solver={'tolerance': 1.0})
        py_leadcalc.load_default_155mm()
        assert create_default_ballistic_parameters() == BallisticParameters(827.0, 43.5, 0.295, 0.0189)
        assert create_solver_config() == SolverConfig()


def test_public_names():
    for name in ('LeadAngleCalculator', 'ShootingMethodSolver', 'basicConfig', 'load_default_155mm',
                 'Vector3', 'logger'):
        assert name in py_leadcalc.__all__
    assert 'tomllib' not in py_leadcalc.__all__
    assert not any(name.startswith('_') for name in py_leadcalc.__all__)
