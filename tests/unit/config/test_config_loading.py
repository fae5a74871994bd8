"""
Unit tests for configuration loading.

Tests the flat and nested YAML forms, programmatic overrides, validation
errors and the dict-style accessors of HydrotuneConfig.
"""

from pathlib import Path

import pandas as pd
import pytest

from hydrotune.core.config import HydrotuneConfig
from hydrotune.core.config.factories import _is_nested_config
from hydrotune.core.config.transformers import transform_flat_to_nested
from hydrotune.core.exceptions import ConfigurationError
from hydrotune.optimization.core.model_executor import SimulationWindow

pytestmark = [pytest.mark.unit]


class TestFlatConfig:
    """Test loading of flat (uppercase key) configurations."""

    def test_flat_file_loads_typed_sections(self, base_config, write_config):
        config = HydrotuneConfig.from_file(write_config(base_config))

        assert config.system.experiment_id == 'test_run'
        assert config.optimization.algorithm == 'SCE-UA'
        assert config.optimization.iterations == 2
        assert config.optimization.random_seed == 42
        assert config.objective.metric == 'NSE'
        assert [p.name for p in config.parameters] == ['offset', 'scale']

    def test_defaults_applied(self, base_config):
        config = HydrotuneConfig.from_dict(base_config)

        assert config.objective.failure_policy == 'abort'
        assert config.optimization.parallel_workers == 1
        assert config.optimization.parallel_backend == 'thread'
        assert config.simulation.warmup_days == 0
        assert config.optimization.lbfgs.history_size == 10
        assert config.optimization.sce_ua.number_of_complexes == 2

    def test_flat_access(self, base_config):
        config = HydrotuneConfig.from_dict(base_config)

        assert config['OPTIMIZATION_ALGORITHM'] == 'SCE-UA'
        assert config.get('MAX_EVALUATIONS', 500) == 500
        assert 'LBFGS_LR' in config
        with pytest.raises(KeyError):
            config['NOT_A_KEY']

    def test_command_string_is_split(self, base_config):
        base_config['SIMULATOR_COMMAND'] = 'model.exe --params {param_file}'
        config = HydrotuneConfig.from_dict(base_config)

        assert config.simulation.command == ['model.exe', '--params', '{param_file}']

    def test_algorithm_aliases_normalized(self, base_config):
        base_config['OPTIMIZATION_ALGORITHM'] = 'lbfgs'
        assert HydrotuneConfig.from_dict(base_config).optimization.algorithm == 'LBFGS'

        base_config['OPTIMIZATION_ALGORITHM'] = 'sce_ua'
        assert HydrotuneConfig.from_dict(base_config).optimization.algorithm == 'SCE-UA'

    def test_named_unit_conversion(self, base_config):
        base_config['UNIT_CONVERSION_FACTOR'] = 'cfs_to_cms'
        config = HydrotuneConfig.from_dict(base_config)

        assert config.objective.unit_conversion == pytest.approx(0.028316846592)


class TestNestedConfig:
    """Test loading of nested (section) configurations."""

    def test_nested_file(self, tmp_path, write_config, observations_csv):
        nested = {
            'system': {'experiment_id': 'nested_run', 'output_dir': str(tmp_path)},
            'simulation': {
                'SIMULATOR_COMMAND': 'model {param_file}',
                'SIMULATION_START': '2020-01-01',
                'SIMULATION_END': '2020-12-31',
                'WARMUP_DAYS': 30,
            },
            'objective': {'metric': 'kge', 'observations_path': str(observations_csv)},
            'optimization': {'algorithm': 'LBFGS', 'lbfgs': {'lr': 0.05}},
            'parameters': [
                {'name': 'k_sat', 'lower': 0.1, 'upper': 10.0, 'initial': 1.0},
                {'name': 'fc', 'bounds': [50, 500]},
            ],
        }
        config = HydrotuneConfig.from_file(write_config(nested))

        assert config.system.experiment_id == 'nested_run'
        assert config.simulation.warmup_days == 30
        assert config.objective.metric == 'KGE'
        assert config.optimization.algorithm == 'LBFGS'
        assert config.optimization.lbfgs.lr == 0.05
        assert config.parameters[1].lower == 50
        assert config.parameters[1].upper == 500

    def test_nested_detection(self):
        assert _is_nested_config({'optimization': {}})
        assert not _is_nested_config({'OPTIMIZATION_ALGORITHM': 'LBFGS'})

    def test_flat_to_nested_transform(self):
        nested = transform_flat_to_nested({'LBFGS_LR': 0.1, 'EXPERIMENT_ID': 'a'})

        assert nested == {'optimization': {'lbfgs': {'lr': 0.1}}, 'system': {'experiment_id': 'a'}}


class TestOverrides:
    """Test that overrides take precedence over the file."""

    def test_flat_overrides(self, base_config, write_config):
        config = HydrotuneConfig.from_file(
            write_config(base_config),
            overrides={'NUMBER_OF_ITERATIONS': 7, 'PARALLEL_WORKERS': 3, 'RANDOM_SEED': None},
        )

        assert config.optimization.iterations == 7
        assert config.optimization.parallel_workers == 3
        # None overrides are ignored
        assert config.optimization.random_seed == 42

    def test_override_keeps_other_section_values(self, base_config):
        config = HydrotuneConfig.from_dict(base_config, overrides={'LBFGS_LR': 0.5})

        assert config.optimization.lbfgs.lr == 0.5
        assert config.optimization.lbfgs.history_size == 10
        assert config.optimization.iterations == 2


class TestConfigErrors:
    """Test validation failures surface as ConfigurationError."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            HydrotuneConfig.from_file(tmp_path / 'missing.yaml')

    def test_unparseable_yaml(self, tmp_path):
        path = tmp_path / 'broken.yaml'
        path.write_text("PARAMETERS: [unclosed\n")
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_file(path)

    def test_no_parameters(self, base_config):
        del base_config['PARAMETERS']
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(base_config)

    def test_unknown_metric(self, base_config):
        base_config['OPTIMIZATION_METRIC'] = 'not_a_metric'
        with pytest.raises(ConfigurationError, match="OPTIMIZATION_METRIC|metric"):
            HydrotuneConfig.from_dict(base_config)

    def test_unknown_algorithm(self, base_config):
        base_config['OPTIMIZATION_ALGORITHM'] = 'DDS'
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(base_config)

    def test_reversed_window(self, base_config):
        base_config['SIMULATION_END'] = '2019-01-01'
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(base_config)

    def test_warmup_covering_window(self, base_config):
        base_config['WARMUP_DAYS'] = 30
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(base_config)

    def test_warmup_boundary_matches_window(self, base_config):
        base_config['WARMUP_DAYS'] = 9
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(base_config)

        base_config['WARMUP_DAYS'] = 8
        config = HydrotuneConfig.from_dict(base_config)
        window = SimulationWindow.from_config(config.simulation)
        assert window.scoring_start == pd.Timestamp('2020-01-09')

    def test_subcomplex_larger_than_complex(self, base_config):
        base_config['POINTS_PER_COMPLEX'] = 3
        base_config['POINTS_PER_SUBCOMPLEX'] = 5
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(base_config)

    def test_non_mapping(self):
        with pytest.raises(ConfigurationError):
            HydrotuneConfig.from_dict(['not', 'a', 'mapping'])

    def test_config_is_frozen(self, base_config):
        config = HydrotuneConfig.from_dict(base_config)
        with pytest.raises(Exception):
            config.optimization.iterations = 10

    def test_output_dir_is_path(self, base_config):
        config = HydrotuneConfig.from_dict(base_config)
        assert isinstance(config.system.output_dir, Path)
