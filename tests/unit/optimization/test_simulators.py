"""
Unit tests for simulator adapters and scratch directory management.

CommandLineSimulator tests run small Python scripts through
``sys.executable`` so no external model is needed.
"""

import sys
import time

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from hydrotune.core.constants import ModelDefaults
from hydrotune.core.exceptions import (
    ConfigurationError,
    MalformedOutput,
    SimulationError,
    SimulationNonZeroExit,
    SimulationTimeout,
)
from hydrotune.optimization.core.model_executor import (
    CallableSimulator,
    CommandLineSimulator,
    SimulationWindow,
)
from hydrotune.optimization.mixins.parallel import DirectoryManager

pytestmark = [pytest.mark.unit, pytest.mark.optimization]


@pytest.fixture
def scratch(tmp_path):
    return tmp_path / 'scratch'


@pytest.fixture
def script_command(simulator_script, observations_csv):
    return [sys.executable, str(simulator_script), '{param_file}', '{output_file}', str(observations_csv)]


class TestSimulationWindow:
    """Test window validation and warm-up trimming."""

    def test_reversed_window(self):
        with pytest.raises(ConfigurationError):
            SimulationWindow(pd.Timestamp('2020-02-01'), pd.Timestamp('2020-01-01'))

    def test_warmup_longer_than_window(self):
        with pytest.raises(ConfigurationError):
            SimulationWindow(pd.Timestamp('2020-01-01'), pd.Timestamp('2020-01-05'), pd.Timedelta(days=10))

    def test_warmup_must_end_before_window_end(self):
        start, end = pd.Timestamp('2020-01-01'), pd.Timestamp('2020-01-10')
        with pytest.raises(ConfigurationError):
            SimulationWindow(start, end, pd.Timedelta(days=9))
        assert SimulationWindow(start, end, pd.Timedelta(days=8)).scoring_start == pd.Timestamp('2020-01-09')

    def test_trim_drops_warmup(self, observed):
        window = SimulationWindow(pd.Timestamp('2020-01-01'), pd.Timestamp('2020-01-10'), pd.Timedelta(days=3))
        trimmed = window.trim(observed)
        assert window.scoring_start == pd.Timestamp('2020-01-04')
        assert trimmed.start == pd.Timestamp('2020-01-04')
        assert len(trimmed) == 7


class TestCallableSimulator:
    """Test the in-process adapter."""

    def test_run_returns_trimmed_series(self, toy_space, linear_simulator, observed):
        window = SimulationWindow(pd.Timestamp('2020-01-01'), pd.Timestamp('2020-01-10'), pd.Timedelta(days=2))
        series = linear_simulator.run(toy_space.vector([5.0, 0.5]), window)
        assert series == window.trim(observed)

    def test_pandas_series_accepted(self, toy_space, window, observed):
        simulator = CallableSimulator(lambda vector, window: observed.series)
        assert len(simulator.run(toy_space.initial_vector(), window)) == len(observed)

    def test_wrong_return_type(self, toy_space, window):
        simulator = CallableSimulator(lambda vector, window: [1.0, 2.0])
        with pytest.raises(MalformedOutput):
            simulator.run(toy_space.initial_vector(), window)

    def test_exception_wrapped_with_vector(self, toy_space, window):
        def broken(vector, window):
            raise ZeroDivisionError("bad parameter set")

        vector = toy_space.initial_vector()
        with pytest.raises(SimulationError) as exc_info:
            CallableSimulator(broken).run(vector, window)
        assert exc_info.value.vector == vector
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_timeout(self, toy_space, window, observed):
        def slow(vector, window):
            time.sleep(0.5)
            return observed

        simulator = CallableSimulator(slow, timeout=0.05)
        with pytest.raises(SimulationTimeout) as exc_info:
            simulator.run(toy_space.initial_vector(), window)
        assert exc_info.value.reason == 'timeout'

    def test_empty_after_trim(self, toy_space, window):
        outside = pd.Series([1.0], index=pd.to_datetime(['2021-06-01']))
        simulator = CallableSimulator(lambda vector, window: outside)
        with pytest.raises(MalformedOutput):
            simulator.run(toy_space.initial_vector(), window)

    def test_workdir_passed_when_managed(self, toy_space, window, observed, scratch):
        seen = []

        def model(vector, window, workdir):
            seen.append(workdir)
            assert workdir.is_dir()
            return observed

        simulator = CallableSimulator(model, directory_manager=DirectoryManager(scratch))
        simulator.run(toy_space.initial_vector(), window)
        assert len(seen) == 1
        assert not seen[0].exists()

    def test_not_callable(self):
        with pytest.raises(ConfigurationError):
            CallableSimulator('model.exe')

    def test_timeout_defaults_to_model_default(self, linear_simulator):
        assert linear_simulator.timeout == ModelDefaults.DEFAULT_SIMULATION_TIMEOUT

    @pytest.mark.parametrize('timeout', [None, 0, -1.0])
    def test_timeout_required(self, observed, timeout):
        with pytest.raises(ConfigurationError):
            CallableSimulator(lambda vector, window: observed, timeout=timeout)


class TestCommandLineSimulator:
    """Test the external process adapter."""

    def test_successful_run(self, toy_space, window, observed, scratch, script_command):
        simulator = CommandLineSimulator(script_command, DirectoryManager(scratch), timeout=60)
        series = simulator.run(toy_space.vector([3.0, 0.5]), window)

        np.testing.assert_allclose(series.values, observed.values + 2.0)
        assert list(scratch.iterdir()) == []

    def test_parameter_file(self, toy_space, tmp_path):
        path = tmp_path / 'params.csv'
        CommandLineSimulator.write_parameter_file(toy_space.vector([2.0, 0.25]), path)
        frame = pd.read_csv(path)

        assert list(frame.columns) == ['name', 'attribute', 'change_mode', 'value']
        assert frame['value'].tolist() == [2.0, 0.25]

    def test_non_zero_exit(self, toy_space, window, scratch):
        command = [sys.executable, '-c', 'import sys; print("diverged"); sys.exit(3)']
        simulator = CommandLineSimulator(command, DirectoryManager(scratch), timeout=60)

        with pytest.raises(SimulationNonZeroExit) as exc_info:
            simulator.run(toy_space.initial_vector(), window)
        assert exc_info.value.returncode == 3
        assert 'diverged' in exc_info.value.partial_output
        assert list(scratch.iterdir()) == []

    def test_timeout_kills_process(self, toy_space, window, scratch):
        command = [sys.executable, '-c', 'import time; time.sleep(30)']
        simulator = CommandLineSimulator(command, DirectoryManager(scratch), timeout=0.5)

        start = time.time()
        with pytest.raises(SimulationTimeout):
            simulator.run(toy_space.initial_vector(), window)
        assert time.time() - start < 20

    def test_missing_output(self, toy_space, window, scratch):
        simulator = CommandLineSimulator([sys.executable, '-c', 'pass'], DirectoryManager(scratch), timeout=60)
        with pytest.raises(MalformedOutput, match='no output file'):
            simulator.run(toy_space.initial_vector(), window)

    def test_malformed_output(self, toy_space, window, scratch):
        command = [sys.executable, '-c', 'open("output.csv", "w").write("x,y\\n1,2\\n")']
        simulator = CommandLineSimulator(command, DirectoryManager(scratch), timeout=60)
        with pytest.raises(MalformedOutput):
            simulator.run(toy_space.initial_vector(), window)

    def test_keep_failed_attaches_workdir(self, toy_space, window, scratch):
        command = [sys.executable, '-c', 'import sys; sys.exit(1)']
        simulator = CommandLineSimulator(command, DirectoryManager(scratch, keep_failed=True), timeout=60)

        with pytest.raises(SimulationNonZeroExit) as exc_info:
            simulator.run(toy_space.initial_vector(), window)
        assert exc_info.value.workdir is not None
        assert exc_info.value.workdir.is_dir()

    def test_netcdf_output(self, tmp_path, scratch, observed):
        path = tmp_path / 'output.nc'
        xr.Dataset(
            {'discharge': ('time', observed.values.copy())},
            coords={'time': observed.index},
        ).to_netcdf(path)

        simulator = CommandLineSimulator(['model'], DirectoryManager(scratch), output_format='netcdf')
        series = simulator.read_output(path)
        assert list(series.index) == list(observed.index)
        np.testing.assert_allclose(series.values, observed.values)

    def test_bad_placeholder(self, scratch):
        simulator = CommandLineSimulator(['model', '{unknown}'], DirectoryManager(scratch))
        with pytest.raises(ConfigurationError):
            simulator.build_command({'param_file': 'p.csv'})

    def test_empty_command(self, scratch):
        with pytest.raises(ConfigurationError):
            CommandLineSimulator([], DirectoryManager(scratch))


class TestDirectoryManager:
    """Test exclusive scratch directories."""

    def test_directories_are_exclusive(self, scratch):
        manager = DirectoryManager(scratch)
        with manager.acquire(1) as first, manager.acquire(2) as second:
            assert first != second
            assert set(manager.active) == {1, 2}
            with pytest.raises(RuntimeError):
                with manager.acquire(1):
                    pass
        assert manager.active == {}
        assert not first.exists()
        assert not second.exists()

    def test_cleanup_removes_empty_root(self, scratch):
        manager = DirectoryManager(scratch)
        with manager.acquire(1):
            pass
        manager.cleanup()
        assert not scratch.exists()
