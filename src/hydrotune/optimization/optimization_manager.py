# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Optimization manager: wires a configuration into a runnable calibration.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from hydrotune.core.config.models import HydrotuneConfig
from hydrotune.core.exceptions import ConfigurationError, OptimizationError, hydrotune_error_handler
from hydrotune.core.mixins import ConfigurableMixin
from hydrotune.evaluation import list_available_metrics
from hydrotune.optimization.core.model_executor import (
    CommandLineSimulator,
    SimulationWindow,
    SimulatorAdapter,
)
from hydrotune.optimization.core.parameter_space import ParameterSpace
from hydrotune.optimization.core.timeseries import TimeSeries
from hydrotune.optimization.objectives import ObjectiveFunction
from hydrotune.optimization.optimizers import (
    CandidateReport,
    FinalEvaluationOrchestrator,
    FinalResultsSaver,
    OptimizationEngine,
    OptimizationTrace,
    ProgressCallback,
    list_algorithms,
)
from hydrotune.optimization.run_batcher import RunBatcher


class OptimizationManager(ConfigurableMixin):
    """
    Coordinates model calibration.

    Builds every component of a calibration from a HydrotuneConfig:

    - the ParameterSpace from ``PARAMETERS``
    - the SimulationWindow from ``SIMULATION_START``/``SIMULATION_END``/``WARMUP_DAYS``
    - the simulator (a CommandLineSimulator for ``SIMULATOR_COMMAND`` unless
      an adapter is injected)
    - the observed series (``OBSERVATIONS_PATH`` unless injected)
    - the ObjectiveFunction, RunBatcher and OptimizationEngine

    A simulator injected for the 'process' backend must be picklable.

    Args:
        config: HydrotuneConfig instance
        logger: Logger instance
        simulator: Adapter to use instead of the configured command
        observed: Observations to use instead of OBSERVATIONS_PATH
        callbacks: Progress observers forwarded to the engine
    """

    def __init__(
        self,
        config: HydrotuneConfig,
        logger: Optional[logging.Logger] = None,
        simulator: Optional[SimulatorAdapter] = None,
        observed: Optional[TimeSeries] = None,
        callbacks: Iterable[ProgressCallback] = (),
    ):
        if not isinstance(config, HydrotuneConfig):
            raise ConfigurationError(
                f"OptimizationManager requires a HydrotuneConfig, got {type(config).__name__}"
            )
        self.config = config
        self._logger = logger
        self.callbacks = list(callbacks)

        self.experiment_id = config.system.experiment_id
        self.output_dir = Path(config.system.output_dir) / self.experiment_id

        self.space = ParameterSpace.from_config(config.parameters)
        self.window = SimulationWindow.from_config(config.simulation)
        self.simulator = simulator if simulator is not None else self._create_simulator()
        self.observed = observed if observed is not None else self.load_observations()

        opt = config.optimization
        self.batcher = RunBatcher(
            self.simulator,
            max_workers=opt.parallel_workers,
            strategy=opt.parallel_backend,
            logger=self.logger,
        )
        self.objective = ObjectiveFunction(
            self.simulator,
            self.observed,
            self.window,
            metric=config.objective.metric,
            unit_conversion=config.objective.unit_conversion,
            logger=self.logger,
        )

    # ------------------------------------------------------------------
    # Component construction
    # ------------------------------------------------------------------

    def _create_simulator(self) -> SimulatorAdapter:
        return CommandLineSimulator.from_config(
            self.config.simulation,
            scratch_root=self.output_dir / 'scratch',
            logger=self.logger,
        )

    def load_observations(self) -> TimeSeries:
        """
        Read observations from OBSERVATIONS_PATH.

        Raises:
            ConfigurationError: If no path is configured
            FileNotFoundError: If the file does not exist
        """
        obj = self.config.objective
        if obj.observations_path is None:
            raise ConfigurationError(
                "OBSERVATIONS_PATH is required when no observed series is supplied"
            )
        path = Path(obj.observations_path)
        if not path.exists():
            raise FileNotFoundError(f"Observations file not found: {path}")

        with hydrotune_error_handler("loading observations", self.logger, error_type=ConfigurationError):
            observed = TimeSeries.read_csv(
                path,
                value_column=obj.observations_column,
                time_column=obj.observations_time_column,
            )
        self.logger.info(
            f"Loaded {len(observed)} observations from {path} ({observed.start} to {observed.end})"
        )
        return observed

    def create_engine(self, algorithm: Optional[str] = None) -> OptimizationEngine:
        """Engine for the configured (or given) algorithm; population batches use the batcher."""
        return OptimizationEngine.from_config(
            self.config,
            logger=self.logger,
            callbacks=self.callbacks,
            batcher=self.batcher,
            algorithm=algorithm,
        )

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def run_calibration(
        self,
        algorithm: Optional[str] = None,
        initial: Optional[Any] = None,
        save: bool = True,
    ) -> OptimizationTrace:
        """
        Run the calibration and optionally persist its results.

        A run stopped by an OptimizationError still saves the partial trace
        it carries before the error is re-raised.

        Returns:
            The OptimizationTrace of the run
        """
        engine = self.create_engine(algorithm)
        self.logger.info(
            f"Calibrating {len(self.space)} parameters with {engine.algorithm.name} "
            f"against {self.objective.metric_name} "
            f"({self.window.scoring_start.date()} to {self.window.end.date()})"
        )
        with self.time_limit(f"{engine.algorithm.name} calibration"):
            try:
                trace = engine.optimize(self.space, self.objective, initial=initial)
            except OptimizationError as e:
                if save and e.trace is not None:
                    self.logger.warning(f"Saving partial results of stopped run: {e}")
                    self.save_results(e.trace)
                raise

        candidates: List[CandidateReport] = []
        top_n = self.config.optimization.top_candidates
        if top_n > 0 and trace.best is not None:
            candidates = self.compare_top_candidates(trace, top_n)

        if save:
            self.save_results(trace, candidates)
        return trace

    def compare_top_candidates(self, trace: OptimizationTrace, n: Optional[int] = None) -> List[CandidateReport]:
        """Re-run the best distinct solutions in parallel and report their metrics."""
        orchestrator = FinalEvaluationOrchestrator(self.objective, self.batcher, self.logger)
        return orchestrator.compare_candidates(
            trace,
            n if n is not None else self.config.optimization.top_candidates,
            rtol=self.config.optimization.distinct_rtol,
        )

    def save_results(
        self,
        trace: OptimizationTrace,
        candidates: Optional[List[CandidateReport]] = None,
    ) -> Path:
        saver = FinalResultsSaver(self.output_dir, self.logger)
        return saver.save_results(
            trace,
            metadata={
                'experiment_id': self.experiment_id,
                'metric': self.objective.metric_name,
                'unit_conversion': self.objective.unit_conversion,
                'simulation_start': str(self.window.start),
                'simulation_end': str(self.window.end),
                'warmup': str(self.window.warmup),
            },
            candidates=candidates,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_optimization_status(self) -> Dict[str, Union[str, int, bool]]:
        opt = self.config.optimization
        return {
            'optimization_algorithm': opt.algorithm,
            'optimization_metric': self.objective.metric_name,
            'parameters': len(self.space),
            'parallel_workers': opt.parallel_workers,
            'output_dir': str(self.output_dir),
            'results_exist': any(self.output_dir.glob('*_results.json')) if self.output_dir.exists() else False,
        }

    @staticmethod
    def get_available_optimizers() -> List[str]:
        return list_algorithms()

    @staticmethod
    def get_available_metrics() -> List[str]:
        return list_available_metrics()
