# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Optimization engine: runs a search algorithm against an objective function.

The engine is the only place that knows about both sides of a calibration.
Algorithms see the unit hypercube and scalar scores; the objective sees
parameter vectors and series. In between, the engine

- maps normalized points to ParameterVectors,
- dispatches population batches through the RunBatcher,
- applies the failure policy (abort or penalize),
- enforces the evaluation budget,
- records every evaluation in the OptimizationTrace,
- emits progress events to callbacks.
"""

import logging
import math
import time
from typing import Any, Iterable, List, Optional, Union

import numpy as np

from hydrotune.core.constants import ModelDefaults
from hydrotune.core.exceptions import (
    ConfigurationError,
    DidNotConverge,
    EvaluationAborted,
    MaxEvaluationsExceeded,
    ObjectiveError,
    SimulationFailed,
)
from hydrotune.core.mixins import LoggingMixin
from hydrotune.optimization.core.parameter_space import ParameterSpace, ParameterVector
from hydrotune.optimization.core.timeseries import TimeSeries
from hydrotune.optimization.objectives import FailurePolicy, ObjectiveFunction
from hydrotune.optimization.run_batcher import RunBatcher

from .algorithms import OptimizationAlgorithm, get_algorithm
from .metrics_tracker import EvaluationMetricsTracker, ProgressCallback, ProgressEvent
from .results import ObjectiveResult, OptimizationTrace


class OptimizationEngine(LoggingMixin):
    """
    Drives one optimization algorithm over a parameter space.

    Args:
        algorithm: Algorithm instance or registered name ('LBFGS', 'SCE-UA', ...)
        config: Configuration handed to the algorithm when given by name
        logger: Logger instance
        callbacks: Progress observers, called once per iteration/cycle
        batcher: RunBatcher used for population batches when it is parallel
        failure_policy: 'abort' or 'penalize'
        penalty_score: Score recorded for a failed evaluation under 'penalize'
        max_evaluations: Evaluation budget; None for unlimited
        random_seed: Seed of the generator handed to the algorithm
        raise_on_nonconvergence: Raise DidNotConverge/MaxEvaluationsExceeded
            instead of only recording the termination on the trace
        retain_series: Which simulated series the trace keeps ('best', 'all', 'none')
        sampling_method: Initial population sampling ('lhs' or 'random')
    """

    def __init__(
        self,
        algorithm: Union[str, OptimizationAlgorithm],
        config: Any = None,
        logger: Optional[logging.Logger] = None,
        callbacks: Iterable[ProgressCallback] = (),
        batcher: Optional[RunBatcher] = None,
        failure_policy: Union[str, FailurePolicy] = FailurePolicy.ABORT,
        penalty_score: float = ModelDefaults.PENALTY_SCORE,
        max_evaluations: Optional[int] = None,
        random_seed: Optional[int] = None,
        raise_on_nonconvergence: bool = False,
        retain_series: str = 'best',
        sampling_method: str = 'lhs',
    ):
        self._logger = logger
        if isinstance(algorithm, str):
            try:
                algorithm = get_algorithm(algorithm, config, self.logger)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        self.algorithm = algorithm
        self.callbacks: List[ProgressCallback] = list(callbacks)
        self.batcher = batcher
        self.failure_policy = FailurePolicy.parse(failure_policy)
        self.penalty_score = float(penalty_score)
        if not math.isfinite(self.penalty_score):
            raise ConfigurationError(f"Penalty score must be finite, got {penalty_score}")
        if max_evaluations is not None and max_evaluations < 1:
            raise ConfigurationError(f"max_evaluations must be at least 1, got {max_evaluations}")
        self.max_evaluations = max_evaluations
        self.random_seed = random_seed
        self.raise_on_nonconvergence = raise_on_nonconvergence
        self.retain_series = retain_series
        self.sampling_method = sampling_method
        self._start_time: Optional[float] = None

    @classmethod
    def from_config(
        cls,
        config,
        logger: Optional[logging.Logger] = None,
        callbacks: Iterable[ProgressCallback] = (),
        batcher: Optional[RunBatcher] = None,
        algorithm: Optional[str] = None,
    ) -> 'OptimizationEngine':
        """Build an engine from a HydrotuneConfig."""
        opt = config.optimization
        return cls(
            algorithm or opt.algorithm,
            config=config,
            logger=logger,
            callbacks=callbacks,
            batcher=batcher,
            failure_policy=config.objective.failure_policy,
            penalty_score=config.objective.penalty_score,
            max_evaluations=opt.max_evaluations,
            random_seed=opt.random_seed,
            raise_on_nonconvergence=opt.raise_on_nonconvergence,
            sampling_method=opt.sce_ua.sampling_method if opt.sce_ua else 'lhs',
        )

    def format_elapsed_time(self) -> str:
        """Elapsed time of the current run as H:MM:SS."""
        if self._start_time is None:
            return "0:00:00"
        seconds = int(time.time() - self._start_time)
        hours, remainder = divmod(seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours}:{minutes:02d}:{seconds:02d}"

    def _elapsed(self) -> float:
        return 0.0 if self._start_time is None else time.time() - self._start_time

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def optimize(
        self,
        space: ParameterSpace,
        objective: ObjectiveFunction,
        initial: Optional[Any] = None,
    ) -> OptimizationTrace:
        """
        Minimize ``objective`` over ``space``.

        Args:
            space: Parameter space
            objective: Objective function (lower is better)
            initial: Starting vector; defaults to the parameters' initial values

        Returns:
            The trace of every evaluation, with ``termination`` set to
            'converged', 'max_iterations' or 'max_evaluations'

        Raises:
            BoundsViolation: If ``initial`` lies outside the space
            EvaluationAborted: Under the abort policy, at the first failed
                evaluation; carries the trace so far
            DidNotConverge, MaxEvaluationsExceeded: Only with raise_on_nonconvergence
        """
        initial_vector = space.initial_vector() if initial is None else space.vector(initial)
        trace = OptimizationTrace(space, self.algorithm.name, retain_series=self.retain_series)
        tracker = EvaluationMetricsTracker(
            self.algorithm.max_iterations, self.logger, self.format_elapsed_time, self.callbacks
        )
        rng = np.random.default_rng(self.random_seed)
        self._start_time = time.time()
        last_iteration = 0

        def evaluate_solution(x: np.ndarray, iteration: int = 0) -> float:
            self._check_budget(trace)
            vector = space.denormalize(x)
            try:
                score, series = objective.evaluate_with_series(vector)
            except ObjectiveError as e:
                return self._record_failure(trace, tracker, vector, iteration, e)
            return self._record_success(trace, tracker, vector, series, score, iteration)

        def evaluate_population(population: np.ndarray, iteration: int = 0) -> np.ndarray:
            return self._evaluate_population(
                trace, tracker, space, objective, population, iteration, evaluate_solution
            )

        def record_iteration(iteration: int, best_score: float, worst_score: Optional[float] = None) -> None:
            nonlocal last_iteration
            last_iteration = iteration
            tracker.emit(ProgressEvent(
                algorithm=self.algorithm.name,
                iteration=iteration,
                max_iterations=self.algorithm.max_iterations,
                n_evaluations=trace.n_evaluations,
                best_score=float(best_score),
                worst_score=None if worst_score is None else float(worst_score),
                elapsed=self._elapsed(),
            ))

        self.logger.info(
            f"Starting {self.algorithm.name} calibration of {len(space)} parameters "
            f"({', '.join(space.names())}) | failure policy: {self.failure_policy.value}"
            + (f" | budget: {self.max_evaluations} evaluations" if self.max_evaluations else "")
        )

        try:
            result = self.algorithm.optimize(
                n_params=len(space),
                evaluate_solution=evaluate_solution,
                evaluate_population=evaluate_population,
                record_iteration=record_iteration,
                initial_solution=space.normalize(initial_vector),
                rng=rng,
                sample_population=lambda n: space.sample(n, rng, self.sampling_method),
            )
        except MaxEvaluationsExceeded:
            trace.finish(
                'max_evaluations',
                f"evaluation budget of {self.max_evaluations} exhausted",
                iterations=last_iteration,
            )
        else:
            trace.finish(
                'converged' if result.get('converged') else 'max_iterations',
                result.get('message', ''),
                iterations=result.get('iterations', last_iteration),
            )

        self._log_summary(trace, tracker)

        if self.raise_on_nonconvergence and not trace.converged:
            if trace.termination == 'max_evaluations':
                raise MaxEvaluationsExceeded(trace.message, trace)
            raise DidNotConverge(
                f"{self.algorithm.name} did not converge: {trace.message}", trace
            )
        return trace

    # ------------------------------------------------------------------
    # Evaluation bookkeeping
    # ------------------------------------------------------------------

    def _remaining_budget(self, trace: OptimizationTrace) -> Optional[int]:
        if self.max_evaluations is None:
            return None
        return self.max_evaluations - trace.n_evaluations

    def _check_budget(self, trace: OptimizationTrace) -> None:
        remaining = self._remaining_budget(trace)
        if remaining is not None and remaining <= 0:
            raise MaxEvaluationsExceeded(
                f"Evaluation budget of {self.max_evaluations} exhausted", trace
            )

    def _record_success(
        self,
        trace: OptimizationTrace,
        tracker: EvaluationMetricsTracker,
        vector: ParameterVector,
        series: Optional[TimeSeries],
        score: float,
        iteration: int,
    ) -> float:
        trace.record(ObjectiveResult(
            score=score,
            vector=vector,
            series=series,
            iteration=iteration,
            elapsed=self._elapsed(),
        ))
        tracker.track_evaluation(failed=False)
        return score

    def _record_failure(
        self,
        trace: OptimizationTrace,
        tracker: EvaluationMetricsTracker,
        vector: ParameterVector,
        iteration: int,
        error: ObjectiveError,
    ) -> float:
        """Record a failed evaluation, then abort or return the penalty score."""
        abort = self.failure_policy is FailurePolicy.ABORT
        result = trace.record(ObjectiveResult(
            score=math.inf if abort else self.penalty_score,
            vector=vector,
            iteration=iteration,
            elapsed=self._elapsed(),
            error=str(error),
        ))
        tracker.track_evaluation(failed=True)
        self.logger.warning(f"Evaluation {result.evaluation} failed: {error}")

        if abort:
            message = f"Evaluation {result.evaluation} failed under the abort policy: {error}"
            trace.finish('aborted', message, iterations=iteration)
            raise EvaluationAborted(message, trace) from error
        return self.penalty_score

    def _evaluate_population(
        self,
        trace: OptimizationTrace,
        tracker: EvaluationMetricsTracker,
        space: ParameterSpace,
        objective: ObjectiveFunction,
        population: np.ndarray,
        iteration: int,
        evaluate_solution,
    ) -> np.ndarray:
        """
        Evaluate a batch of normalized points, in parallel when the batcher allows.

        A batch larger than the remaining budget is evaluated up to the budget
        and then MaxEvaluationsExceeded is raised.
        """
        population = np.atleast_2d(np.asarray(population, dtype=float))
        self._check_budget(trace)
        remaining = self._remaining_budget(trace)
        truncated = remaining is not None and len(population) > remaining
        if truncated:
            population = population[:remaining]

        if self.batcher is not None and self.batcher.is_parallel:
            scores = self._score_batch(trace, tracker, space, objective, population, iteration)
        else:
            scores = [evaluate_solution(x, iteration) for x in population]

        if truncated:
            raise MaxEvaluationsExceeded(
                f"Evaluation budget of {self.max_evaluations} exhausted", trace
            )
        return np.asarray(scores, dtype=float)

    def _score_batch(
        self,
        trace: OptimizationTrace,
        tracker: EvaluationMetricsTracker,
        space: ParameterSpace,
        objective: ObjectiveFunction,
        population: np.ndarray,
        iteration: int,
    ) -> List[float]:
        vectors = [space.denormalize(x) for x in population]
        outcomes = self.batcher.run_all(vectors, objective.window)

        scores: List[float] = []
        for outcome in outcomes:
            if not outcome.success:
                cause = outcome.error
                error = SimulationFailed(
                    f"{cause.reason}: {cause.message}" if cause else "simulation produced no series",
                    vector=outcome.vector,
                )
                error.__cause__ = cause
                scores.append(self._record_failure(trace, tracker, outcome.vector, iteration, error))
                continue
            try:
                score = objective.score_series(outcome.series, outcome.vector)
            except ObjectiveError as e:
                scores.append(self._record_failure(trace, tracker, outcome.vector, iteration, e))
                continue
            scores.append(self._record_success(
                trace, tracker, outcome.vector, outcome.series, score, iteration
            ))
        return scores

    def _log_summary(self, trace: OptimizationTrace, tracker: EvaluationMetricsTracker) -> None:
        stats = tracker.get_failure_stats()
        self.logger.info(
            f"{self.algorithm.name} finished ({trace.termination}: {trace.message}) in "
            f"{self.format_elapsed_time()} | {trace.n_evaluations} evaluations, "
            f"{stats['failure_count']} failed | Best score: {trace.best_score:.6g}"
        )
        if trace.best_vector is not None:
            self.logger.info(
                "Best parameters: "
                + ", ".join(f"{name}={value:.6g}" for name, value in trace.best_vector.items())
            )
