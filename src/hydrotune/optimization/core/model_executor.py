# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Simulator adapters.

A SimulatorAdapter turns a ParameterVector into a simulated TimeSeries over
a SimulationWindow. Two adapters are provided:

- CallableSimulator wraps an in-process Python function.
- CommandLineSimulator runs an external model executable in its own scratch
  directory: it writes the parameter file, runs the command with a timeout,
  and reads the output file (CSV or NetCDF).

Every failure surfaces as a SimulationError subclass carrying the vector
that was being simulated; no adapter returns a partial or default series.
"""

import logging
import subprocess
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pandas as pd
import xarray as xr

from hydrotune.core.constants import ModelDefaults
from hydrotune.core.exceptions import (
    ConfigurationError,
    MalformedOutput,
    SimulationError,
    SimulationNonZeroExit,
    SimulationTimeout,
    ValidationError,
)
from hydrotune.optimization.core.parameter_space import ParameterVector
from hydrotune.optimization.core.timeseries import TimeSeries
from hydrotune.optimization.mixins.parallel import DirectoryManager, WorkerEnvironmentConfig


@dataclass(frozen=True)
class SimulationWindow:
    """
    Period to simulate, with a leading warm-up excluded from scoring.

    Attributes:
        start: First simulated timestamp
        end: Last simulated timestamp (inclusive)
        warmup: Length of the spin-up period discarded before scoring
    """

    start: pd.Timestamp
    end: pd.Timestamp
    warmup: pd.Timedelta = pd.Timedelta(0)

    def __post_init__(self):
        start, end = pd.Timestamp(self.start), pd.Timestamp(self.end)
        warmup = pd.Timedelta(self.warmup)
        if end <= start:
            raise ConfigurationError(f"Simulation end {end} must be after start {start}")
        if warmup < pd.Timedelta(0):
            raise ConfigurationError(f"Warm-up must not be negative, got {warmup}")
        if start + warmup >= end:
            raise ConfigurationError(
                f"Warm-up of {warmup} leaves nothing to score in {start} .. {end}"
            )
        object.__setattr__(self, 'start', start)
        object.__setattr__(self, 'end', end)
        object.__setattr__(self, 'warmup', warmup)

    @classmethod
    def from_config(cls, simulation_config: Any) -> 'SimulationWindow':
        """Build from a SimulationConfig section."""
        return cls(
            start=simulation_config.start,
            end=simulation_config.end,
            warmup=pd.Timedelta(days=simulation_config.warmup_days),
        )

    @property
    def scoring_start(self) -> pd.Timestamp:
        return self.start + self.warmup

    def trim(self, series: TimeSeries) -> TimeSeries:
        """Drop the warm-up and anything outside the window."""
        return series.between(self.scoring_start, self.end)


class SimulatorAdapter(ABC):
    """
    Base class for simulators.

    Subclasses implement ``_execute``; ``run`` adds invocation bookkeeping,
    warm-up trimming and uniform error reporting.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._invocations = 0
        self._lock = threading.Lock()

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()

    def _next_invocation_id(self) -> int:
        with self._lock:
            self._invocations += 1
            return self._invocations

    @abstractmethod
    def _execute(self, vector: ParameterVector, window: SimulationWindow, invocation_id: int) -> TimeSeries:
        """Produce the raw simulated series, raising SimulationError on failure."""

    def run(self, vector: ParameterVector, window: SimulationWindow) -> TimeSeries:
        """
        Simulate ``vector`` over ``window``.

        Returns:
            Simulated series with the warm-up period removed

        Raises:
            SimulationError: On any failure, with ``vector`` attached
        """
        invocation_id = self._next_invocation_id()
        try:
            series = self._execute(vector, window, invocation_id)
        except SimulationError as e:
            if e.vector is None:
                e.vector = vector
            self.logger.debug(f"Invocation {invocation_id} failed ({e.reason}): {e}")
            raise
        except Exception as e:
            raise SimulationError(
                f"Simulator raised {type(e).__name__}: {e}", vector=vector
            ) from e

        trimmed = window.trim(series)
        if len(trimmed) == 0:
            raise MalformedOutput(
                f"Simulator output has no values between {window.scoring_start} and {window.end}",
                vector=vector,
            )
        return trimmed

    __call__ = run


def _coerce_series(result: Any) -> TimeSeries:
    if isinstance(result, TimeSeries):
        return result
    if isinstance(result, pd.Series):
        return TimeSeries(result)
    raise MalformedOutput(
        f"Simulator returned {type(result).__name__}, expected TimeSeries or pandas Series"
    )


class CallableSimulator(SimulatorAdapter):
    """
    Adapter for an in-process model function.

    The function is called as ``fn(vector, window)``, or as
    ``fn(vector, window, workdir)`` when a DirectoryManager is given.

    A timeout stops waiting for the function and raises SimulationTimeout;
    the function's thread cannot be interrupted and runs to completion in the
    background. Use CommandLineSimulator when runs must be killed.

    Args:
        fn: Model function returning a TimeSeries or pandas Series
        timeout: Wall-clock limit in seconds per run
        directory_manager: Optional scratch directories for the function
        logger: Logger instance
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        timeout: float = ModelDefaults.DEFAULT_SIMULATION_TIMEOUT,
        directory_manager: Optional[DirectoryManager] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        if not callable(fn):
            raise ConfigurationError(f"Simulator function is not callable: {fn!r}")
        if timeout is None or timeout <= 0:
            raise ConfigurationError(f"Simulator timeout must be a positive number of seconds, got {timeout!r}")
        self.fn = fn
        self.timeout = timeout
        self.directory_manager = directory_manager

    def _call(self, vector: ParameterVector, window: SimulationWindow, invocation_id: int) -> Any:
        if self.directory_manager is None:
            return self.fn(vector, window)
        with self.directory_manager.acquire(invocation_id) as workdir:
            return self.fn(vector, window, workdir)

    def _execute(self, vector, window, invocation_id):
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='hydrotune-callable')
        try:
            future = executor.submit(self._call, vector, window, invocation_id)
            try:
                result = future.result(timeout=self.timeout)
            except FutureTimeoutError:
                raise SimulationTimeout(
                    f"Simulator function exceeded {self.timeout}s",
                    timeout=self.timeout,
                    vector=vector,
                ) from None
        finally:
            executor.shutdown(wait=False)
        return _coerce_series(result)


class CommandLineSimulator(SimulatorAdapter):
    """
    Adapter for an external simulator executable.

    For every invocation a fresh scratch directory is allocated, a CSV
    parameter file is written into it (columns ``name, attribute,
    change_mode, value``), the command is run there with a timeout, and the
    output file is read back.

    The command is a list of argv tokens; these placeholders are substituted
    in each token: ``{param_file}``, ``{output_file}``, ``{workdir}``,
    ``{start}``, ``{end}``, ``{invocation_id}``.

    Args:
        command: argv template
        directory_manager: Scratch directory allocation
        timeout: Wall-clock limit per run in seconds
        output_format: 'csv' or 'netcdf'
        output_variable: CSV column or NetCDF variable holding the output
        time_column: CSV column holding timestamps
        parameter_file_name: Name of the parameter file in the run directory
        output_file_name: Name of the output file in the run directory
        environment: Extra environment variables for the process
        logger: Logger instance
    """

    LOG_FILE_NAME = 'run.log'
    LOG_TAIL_CHARS = 4000

    def __init__(
        self,
        command: Sequence[str],
        directory_manager: DirectoryManager,
        timeout: float = ModelDefaults.DEFAULT_SIMULATION_TIMEOUT,
        output_format: str = 'csv',
        output_variable: str = 'discharge',
        time_column: str = 'date',
        parameter_file_name: str = 'parameters.csv',
        output_file_name: str = 'output.csv',
        environment: Optional[Dict[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        if not command:
            raise ConfigurationError("Simulator command must not be empty")
        if output_format not in ('csv', 'netcdf'):
            raise ConfigurationError(f"Unsupported output format: {output_format}")
        self.command = [str(token) for token in command]
        self.directory_manager = directory_manager
        self.timeout = timeout
        self.output_format = output_format
        self.output_variable = output_variable
        self.time_column = time_column
        self.parameter_file_name = parameter_file_name
        self.output_file_name = output_file_name
        self.worker_env = WorkerEnvironmentConfig(custom_vars=environment)

    @classmethod
    def from_config(
        cls,
        simulation_config: Any,
        scratch_root: Union[str, Path],
        logger: Optional[logging.Logger] = None,
    ) -> 'CommandLineSimulator':
        """Build from a SimulationConfig section."""
        if not simulation_config.command:
            raise ConfigurationError("SIMULATOR_COMMAND is required for an external simulator")
        directory_manager = DirectoryManager(
            simulation_config.scratch_root or scratch_root,
            keep_failed=simulation_config.keep_failed_runs,
            logger=logger,
        )
        return cls(
            command=simulation_config.command,
            directory_manager=directory_manager,
            timeout=simulation_config.timeout,
            output_format=simulation_config.output_format,
            output_variable=simulation_config.output_variable,
            time_column=simulation_config.output_time_column,
            parameter_file_name=simulation_config.parameter_file_name,
            output_file_name=simulation_config.output_file_name,
            environment=simulation_config.environment,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def build_command(self, context: Dict[str, str]) -> List[str]:
        """Substitute placeholders into the argv template."""
        try:
            return [token.format(**context) for token in self.command]
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid placeholder in simulator command {self.command}: {e}"
            ) from e

    def _execute(self, vector, window, invocation_id):
        with self.directory_manager.acquire(invocation_id) as workdir:
            param_file = workdir / self.parameter_file_name
            output_file = workdir / self.output_file_name
            log_file = workdir / self.LOG_FILE_NAME
            self.write_parameter_file(vector, param_file)

            cmd = self.build_command({
                'param_file': str(param_file),
                'output_file': str(output_file),
                'workdir': str(workdir),
                'start': window.start.isoformat(),
                'end': window.end.isoformat(),
                'invocation_id': str(invocation_id),
            })
            self.logger.debug(f"Invocation {invocation_id}: {' '.join(cmd)}")

            try:
                with open(log_file, 'w') as f:
                    subprocess.run(
                        cmd,
                        stdout=f,
                        stderr=subprocess.STDOUT,
                        check=True,
                        timeout=self.timeout,
                        cwd=str(workdir),
                        env=self.worker_env.merge_with_current_env(),
                    )
            except subprocess.CalledProcessError as e:
                raise SimulationNonZeroExit(
                    f"Simulator exited with code {e.returncode}",
                    returncode=e.returncode,
                    partial_output=self._log_tail(log_file),
                    vector=vector,
                ) from e
            except subprocess.TimeoutExpired as e:
                raise SimulationTimeout(
                    f"Simulator exceeded {self.timeout}s and was killed",
                    timeout=self.timeout,
                    partial_output=self._log_tail(log_file),
                    vector=vector,
                ) from e
            except OSError as e:
                raise SimulationError(
                    f"Could not start simulator '{cmd[0]}': {e}", vector=vector
                ) from e

            return self.read_output(output_file)

    def _log_tail(self, log_file: Path) -> Optional[str]:
        try:
            text = log_file.read_text(errors='replace')
        except OSError:
            return None
        return text[-self.LOG_TAIL_CHARS:]

    # ------------------------------------------------------------------
    # File exchange
    # ------------------------------------------------------------------

    @staticmethod
    def write_parameter_file(vector: ParameterVector, path: Path) -> None:
        """Write the parameter vector as a CSV table."""
        rows = [
            {
                'name': param.name,
                'attribute': param.attribute,
                'change_mode': param.change_mode.value,
                'value': vector[param.name],
            }
            for param in vector.space
        ]
        pd.DataFrame(rows, columns=['name', 'attribute', 'change_mode', 'value']).to_csv(
            path, index=False, float_format='%.10g'
        )

    def read_output(self, path: Path) -> TimeSeries:
        """
        Read the simulator's output file.

        Raises:
            MalformedOutput: If the file is missing or not a valid time series
        """
        if not path.exists():
            raise MalformedOutput(f"Simulator produced no output file at {path}")
        try:
            if self.output_format == 'netcdf':
                return self._read_netcdf(path)
            frame = pd.read_csv(path)
            if self.time_column not in frame.columns:
                raise MalformedOutput(
                    f"Output {path.name} has no time column '{self.time_column}'"
                )
            return TimeSeries.from_frame(frame, self.output_variable, self.time_column)
        except MalformedOutput:
            raise
        except (ValidationError, ValueError, KeyError, OSError) as e:
            raise MalformedOutput(f"Could not read simulator output {path.name}: {e}") from e

    def _read_netcdf(self, path: Path) -> TimeSeries:
        with xr.open_dataset(path, engine='netcdf4') as ds:
            if self.output_variable not in ds.variables:
                raise MalformedOutput(
                    f"Output {path.name} has no variable '{self.output_variable}'"
                )
            data = ds[self.output_variable].squeeze(drop=True)
            if data.ndim != 1 or 'time' not in data.dims:
                raise MalformedOutput(
                    f"Variable '{self.output_variable}' must be one-dimensional over 'time', "
                    f"got dims {data.dims}"
                )
            series = data.to_series()
        return TimeSeries(series, name=self.output_variable)
