# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Base Algorithm Interface

Abstract base class for optimization algorithms using the Strategy pattern.
Algorithms search the unit hypercube and minimize; mapping to parameter
values, failure handling, budgets and bookkeeping live in the engine, which
hands the algorithm its evaluation callbacks.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import numpy as np

from hydrotune.core.mixins import ConfigMixin

EvaluateSolution = Callable[[np.ndarray, int], float]
EvaluatePopulation = Callable[[np.ndarray, int], np.ndarray]
RecordIteration = Callable[..., None]


class OptimizationAlgorithm(ConfigMixin, ABC):
    """
    Abstract base class for optimization algorithms.

    Args:
        config: HydrotuneConfig, flat dict, or None for defaults
        logger: Logger instance
    """

    def __init__(self, config: Any, logger):
        self._config = config
        self.logger = logger

        self.max_iterations = int(self._get_config_value(
            lambda: self.config.optimization.iterations,
            default=100,
            dict_key='NUMBER_OF_ITERATIONS'
        ))

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the algorithm name (e.g., 'LBFGS', 'SCE-UA')."""

    @abstractmethod
    def optimize(
        self,
        n_params: int,
        evaluate_solution: EvaluateSolution,
        evaluate_population: EvaluatePopulation,
        record_iteration: RecordIteration,
        initial_solution: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Run the optimization algorithm.

        Args:
            n_params: Number of parameters to optimize
            evaluate_solution: ``score = evaluate_solution(x, iteration)`` for one
                normalized point; lower is better
            evaluate_population: ``scores = evaluate_population(X, iteration)`` for
                an (n, n_params) array, evaluated as one batch
            record_iteration: ``record_iteration(iteration, best_score, worst_score=None)``
                called once per iteration/cycle
            initial_solution: Normalized starting point
            rng: Random generator; algorithms draw randomness only from it
            **kwargs: Algorithm-specific options; ``sample_population(n)`` may
                supply the initial sample

        Returns:
            Dictionary containing:
                - best_solution: Best normalized solution found
                - best_score: Best score
                - iterations: Iterations/cycles completed
                - converged: Whether the stopping tolerance was met
                - message: Why the run stopped
        """

    def _clip_to_bounds(self, x: np.ndarray) -> np.ndarray:
        """Clip solution to [0, 1] bounds."""
        return np.clip(x, 0.0, 1.0)

    def _start_point(self, n_params: int, initial_solution: Optional[np.ndarray]) -> np.ndarray:
        if initial_solution is None:
            return np.full(n_params, 0.5)
        x = self._clip_to_bounds(np.asarray(initial_solution, dtype=float).reshape(-1))
        if x.size != n_params:
            raise ValueError(f"Initial solution has {x.size} values, expected {n_params}")
        return x

    @staticmethod
    def _result(best_x: np.ndarray, best_f: float, iterations: int, converged: bool, message: str) -> Dict[str, Any]:
        return {
            'best_solution': best_x,
            'best_score': float(best_f),
            'iterations': iterations,
            'converged': converged,
            'message': message,
        }
