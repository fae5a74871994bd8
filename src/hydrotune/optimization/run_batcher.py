# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Concurrent execution of independent simulator runs.

RunBatcher fans a list of parameter vectors out to at most ``max_workers``
concurrent simulator invocations and fans the results back in, in input
order. A failed run is reported in its own slot and never cancels the
others.
"""

import logging
import time
from typing import Iterable, List, Optional, Union

from hydrotune.core.exceptions import ConfigurationError, require
from hydrotune.core.mixins import LoggingMixin
from hydrotune.optimization.core.model_executor import SimulationWindow, SimulatorAdapter
from hydrotune.optimization.core.parameter_space import ParameterVector
from hydrotune.optimization.mixins.parallel import ExecutionStrategy, get_execution_strategy
from hydrotune.optimization.workers import SimulationOutcome, SimulationTask, SimulationWorker


class RunBatcher(LoggingMixin):
    """
    Runs batches of simulations with bounded concurrency.

    Args:
        simulator: Adapter used for every run
        max_workers: Upper bound on simultaneous invocations (>= 1)
        strategy: 'thread', 'process', 'sequential' or an ExecutionStrategy
        logger: Logger instance
    """

    def __init__(
        self,
        simulator: SimulatorAdapter,
        max_workers: int = 1,
        strategy: Union[str, ExecutionStrategy] = 'thread',
        logger: Optional[logging.Logger] = None,
    ):
        require(max_workers >= 1, f"max_workers must be at least 1, got {max_workers}", ConfigurationError)
        self.simulator = simulator
        self.max_workers = max_workers
        self._logger = logger
        if isinstance(strategy, ExecutionStrategy):
            self.strategy = strategy
        else:
            try:
                self.strategy = get_execution_strategy(strategy, logger=self.logger)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        self._worker = SimulationWorker(simulator)

    @property
    def is_parallel(self) -> bool:
        return self.max_workers > 1 and self.strategy.name != 'sequential'

    def run_all(
        self,
        vectors: Iterable[ParameterVector],
        window: SimulationWindow,
    ) -> List[SimulationOutcome]:
        """
        Simulate every vector.

        Returns:
            One outcome per input vector, in input order; ``outcome.error`` is
            set for runs that failed
        """
        tasks = [
            SimulationTask(slot=i, vector=vector, window=window)
            for i, vector in enumerate(vectors)
        ]
        if not tasks:
            return []

        start = time.time()
        outcomes = self.strategy.execute(self._worker, tasks, self.max_workers)

        failures = sum(1 for outcome in outcomes if not outcome.success)
        self.logger.debug(
            f"Batch of {len(tasks)} runs finished in {time.time() - start:.1f}s "
            f"({failures} failed, {self.strategy.name} x{self.max_workers})"
        )
        return outcomes
