# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Objective function: simulate, convert units, align with observations, score.

Scores are always on the minimization scale. A registered metric is
transformed through MetricTransformer (NSE 0.8 becomes -0.8); a custom
scorer declares its own direction.
"""

import logging
import math
from typing import Callable, Optional, Tuple, Union

import numpy as np

from hydrotune.core.exceptions import (
    ConfigurationError,
    NoOverlap,
    ScoringFailed,
    SimulationError,
    SimulationFailed,
)
from hydrotune.evaluation.metric_transformer import MetricTransformer
from hydrotune.evaluation.metrics_registry import get_metric_info
from hydrotune.optimization.core.model_executor import SimulationWindow, SimulatorAdapter
from hydrotune.optimization.core.parameter_space import ParameterVector
from hydrotune.optimization.core.timeseries import TimeSeries

Scorer = Callable[[np.ndarray, np.ndarray], float]


class ObjectiveFunction:
    """
    Maps a parameter vector to a scalar score, lower is better.

    The observed series is trimmed to the scoring part of the window once at
    construction and shared read-only by every evaluation.

    Args:
        simulator: Adapter producing the simulated series
        observed: Observations in their own units
        window: Simulation window; the warm-up is excluded from scoring
        metric: Registered metric name or a callable ``scorer(obs, sim)``
        unit_conversion: Factor applied to simulated values before scoring
        direction: 'minimize' or 'maximize'; required for a callable metric
        logger: Logger instance
    """

    def __init__(
        self,
        simulator: SimulatorAdapter,
        observed: TimeSeries,
        window: SimulationWindow,
        metric: Union[str, Scorer] = 'NSE',
        unit_conversion: float = 1.0,
        direction: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.simulator = simulator
        self.window = window
        self.unit_conversion = float(unit_conversion)
        self.logger = logger or logging.getLogger(__name__)
        if self.unit_conversion == 0.0 or not math.isfinite(self.unit_conversion):
            raise ConfigurationError(f"Invalid unit conversion factor: {unit_conversion}")

        if callable(metric):
            if direction not in ('minimize', 'maximize'):
                raise ConfigurationError(
                    "A custom scorer needs direction='minimize' or 'maximize'"
                )
            self.metric_name = getattr(metric, '__name__', 'custom')
            self._scorer = metric
            self.direction = direction
            self._registered = False
        else:
            info = get_metric_info(metric)
            if info is None:
                raise ConfigurationError(f"Unknown metric: {metric}")
            self.metric_name = info.name
            self._scorer = info.function
            self.direction = info.direction
            self._registered = True

        self.observed = window.trim(observed)
        if len(self.observed) == 0:
            raise ConfigurationError(
                f"No observations between {window.scoring_start} and {window.end}"
            )

    def _to_minimization(self, value: float) -> float:
        if self._registered:
            return MetricTransformer.transform_for_minimization(self.metric_name, value)
        return -value if self.direction == 'maximize' else value

    def score_series(self, simulated: TimeSeries, vector: Optional[ParameterVector] = None) -> float:
        """
        Score an already simulated series against the observations.

        Raises:
            NoOverlap: If simulated and observed share no timestamps
            ScoringFailed: If the metric is NaN or infinite
        """
        converted = simulated.scale(self.unit_conversion)
        try:
            _, obs, sim = self.observed.align(converted)
        except NoOverlap as e:
            raise NoOverlap(e.message, vector=vector) from None

        try:
            raw = float(self._scorer(obs, sim))
        except (ValueError, TypeError, ZeroDivisionError, FloatingPointError) as e:
            raise ScoringFailed(f"{self.metric_name} raised {type(e).__name__}: {e}", vector=vector) from e
        if not math.isfinite(raw):
            raise ScoringFailed(
                f"{self.metric_name} is {raw} over {len(obs)} aligned values", vector=vector
            )
        return float(self._to_minimization(raw))

    def evaluate_with_series(self, vector: ParameterVector) -> Tuple[float, TimeSeries]:
        """
        Simulate and score one vector.

        Returns:
            (score, simulated series after warm-up trimming)

        Raises:
            SimulationFailed: Wrapping the simulator's SimulationError
            NoOverlap, ScoringFailed: As for score_series
        """
        try:
            simulated = self.simulator.run(vector, self.window)
        except SimulationError as e:
            raise SimulationFailed(f"{e.reason}: {e.message}", vector=vector) from e
        return self.score_series(simulated, vector), simulated

    def evaluate(self, vector: ParameterVector) -> float:
        """Simulate and score one vector; see evaluate_with_series."""
        score, _ = self.evaluate_with_series(vector)
        return score

    __call__ = evaluate

    def raw_metric(self, score: float) -> float:
        """Convert a minimization-scale score back to the metric's natural value."""
        return -score if self.direction == 'maximize' else score
