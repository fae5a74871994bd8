# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Simulation worker for batched model runs.

Provides ``SimulationTask`` and ``SimulationOutcome`` dataclasses and the
``SimulationWorker`` that runs one task and captures a simulator failure in
the outcome instead of raising, so one failed run never aborts its siblings.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from hydrotune.core.exceptions import SimulationError
from hydrotune.optimization.core.model_executor import SimulationWindow, SimulatorAdapter
from hydrotune.optimization.core.parameter_space import ParameterVector
from hydrotune.optimization.core.timeseries import TimeSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationTask:
    """Single simulation: batch slot, parameter vector, window."""
    slot: int
    vector: ParameterVector
    window: SimulationWindow


@dataclass
class SimulationOutcome:
    """Result of one simulation: either a series or the error that prevented it."""
    slot: int
    vector: ParameterVector
    series: Optional[TimeSeries] = None
    error: Optional[SimulationError] = None
    runtime: Optional[float] = None

    @property
    def success(self) -> bool:
        """Check if the simulation produced a series."""
        return self.error is None and self.series is not None

    def unwrap(self) -> TimeSeries:
        """Return the series or raise the captured error."""
        if self.error is not None:
            raise self.error
        if self.series is None:
            raise SimulationError("Simulation produced no series", vector=self.vector)
        return self.series


class SimulationWorker:
    """
    Runs simulation tasks against one simulator.

    Instances are picklable when the simulator is, so the worker can be
    shipped to process pools.
    """

    def __init__(self, simulator: SimulatorAdapter):
        self.simulator = simulator

    def __call__(self, task: SimulationTask) -> SimulationOutcome:
        start_time = time.time()
        try:
            series = self.simulator.run(task.vector, task.window)
        except SimulationError as e:
            logger.debug(f"Slot {task.slot} failed: {e}")
            return SimulationOutcome(
                slot=task.slot,
                vector=task.vector,
                error=e,
                runtime=time.time() - start_time,
            )
        return SimulationOutcome(
            slot=task.slot,
            vector=task.vector,
            series=series,
            runtime=time.time() - start_time,
        )
