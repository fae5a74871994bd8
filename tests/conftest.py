"""
Root conftest.py - fixtures shared across all hydrotune tests.

Provides a small observed hydrograph, a matching simulation window and a
linear toy model whose optimum is known, so calibration behaviour can be
checked without an external simulator.
"""

import logging
import sys
from pathlib import Path

import pandas as pd
import pytest
import yaml

from hydrotune.core.exceptions import SimulationTimeout
from hydrotune.optimization.core.model_executor import CallableSimulator, SimulationWindow
from hydrotune.optimization.core.parameter_space import ParameterSpace
from hydrotune.optimization.core.timeseries import TimeSeries
from hydrotune.optimization.objectives import ObjectiveFunction

TESTS_DIR = Path(__file__).parent.resolve()
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from helpers import SIMULATOR_SCRIPT, CountingModel, make_linear_model  # noqa: E402

OBSERVED_VALUES = [1.0, 3.0, 2.0, 5.0, 4.0, 6.0, 8.0, 7.0, 9.0, 10.0]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast isolated tests")
    config.addinivalue_line("markers", "cli: Command-line interface tests")


# ============================================================================
# Logger fixtures
# ============================================================================

@pytest.fixture
def test_logger():
    """Create a test logger."""
    logger = logging.getLogger('test_hydrotune')
    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
        logger.addHandler(handler)
    return logger


# ============================================================================
# Data fixtures
# ============================================================================

@pytest.fixture
def observed():
    """Ten daily observations starting 2020-01-01."""
    return TimeSeries.from_arrays(
        pd.date_range('2020-01-01', periods=len(OBSERVED_VALUES), freq='D'),
        OBSERVED_VALUES,
        name='discharge',
    )


@pytest.fixture
def window():
    """Window covering the observations, no warm-up."""
    return SimulationWindow(pd.Timestamp('2020-01-01'), pd.Timestamp('2020-01-10'))


@pytest.fixture
def toy_space():
    """Two parameters; the optimum lies on offset + 10 * scale == 10."""
    return ParameterSpace.from_bounds({'offset': (0.0, 10.0), 'scale': (0.0, 1.0)})


@pytest.fixture
def linear_simulator(observed):
    """CallableSimulator around the linear toy model."""
    return CallableSimulator(make_linear_model(observed))


@pytest.fixture
def timeout_model():
    """Model that always reports a timeout."""
    def model(vector, window):
        raise SimulationTimeout("simulated run exceeded its limit", timeout=1.0)
    return CountingModel(model)


@pytest.fixture
def timeout_simulator(timeout_model):
    return CallableSimulator(timeout_model)


@pytest.fixture
def linear_objective(linear_simulator, observed, window, test_logger):
    """NSE objective for the linear toy model."""
    return ObjectiveFunction(linear_simulator, observed, window, metric='NSE', logger=test_logger)


# ============================================================================
# Configuration fixtures
# ============================================================================

@pytest.fixture
def observations_csv(tmp_path, observed):
    """Observations written as a date/discharge CSV."""
    path = tmp_path / 'observations.csv'
    observed.to_frame('discharge').to_csv(path, index=False)
    return path


@pytest.fixture
def simulator_script(tmp_path):
    """External model script: reads the parameter CSV, writes the output CSV."""
    path = tmp_path / 'toy_model.py'
    path.write_text(SIMULATOR_SCRIPT)
    return path


@pytest.fixture
def base_config(tmp_path, observations_csv, simulator_script):
    """Flat configuration for a tiny calibration of the linear toy model."""
    return {
        'EXPERIMENT_ID': 'test_run',
        'OUTPUT_DIR': str(tmp_path / 'output'),
        'LOG_TO_FILE': False,
        'SIMULATOR_COMMAND': [
            sys.executable, str(simulator_script),
            '{param_file}', '{output_file}', str(observations_csv),
        ],
        'SIMULATION_START': '2020-01-01',
        'SIMULATION_END': '2020-01-10',
        'SIMULATION_TIMEOUT': 60,
        'OBSERVATIONS_PATH': str(observations_csv),
        'OBSERVATIONS_COLUMN': 'discharge',
        'OPTIMIZATION_METRIC': 'NSE',
        'OPTIMIZATION_ALGORITHM': 'SCE-UA',
        'NUMBER_OF_ITERATIONS': 2,
        'RANDOM_SEED': 42,
        'TOP_CANDIDATES': 2,
        'PARAMETERS': {
            'offset': [0.0, 10.0],
            'scale': [0.0, 1.0],
        },
    }


@pytest.fixture
def write_config(tmp_path):
    """Write a configuration dict to YAML and return its path."""
    def _write(config, name='config.yaml'):
        path = tmp_path / name
        with open(path, 'w') as f:
            yaml.safe_dump(config, f, sort_keys=False)
        return path
    return _write
