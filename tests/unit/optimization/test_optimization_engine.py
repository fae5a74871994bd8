"""
Unit tests for OptimizationEngine.

Covers the failure policies, the evaluation budget, non-convergence
reporting, progress callbacks and the parallel batch path.
"""

import math

import numpy as np
import pytest

from hydrotune.core.exceptions import (
    BoundsViolation,
    ConfigurationError,
    DidNotConverge,
    EvaluationAborted,
    MaxEvaluationsExceeded,
    SimulationFailed,
)
from hydrotune.optimization.core.model_executor import CallableSimulator
from hydrotune.optimization.objectives import FailurePolicy, ObjectiveFunction
from hydrotune.optimization.optimizers import OptimizationEngine
from hydrotune.optimization.run_batcher import RunBatcher

pytestmark = [pytest.mark.unit, pytest.mark.optimization]


def sce_engine(logger, iterations=5, **kwargs):
    return OptimizationEngine(
        'SCE-UA', config={'NUMBER_OF_ITERATIONS': iterations}, logger=logger, **kwargs
    )


class TestConstruction:
    """Test engine construction errors."""

    def test_unknown_algorithm(self, test_logger):
        with pytest.raises(ConfigurationError, match='Unknown algorithm'):
            OptimizationEngine('simulated_annealing', logger=test_logger)

    def test_infinite_penalty_rejected(self, test_logger):
        with pytest.raises(ConfigurationError):
            sce_engine(test_logger, penalty_score=math.inf)

    def test_zero_budget_rejected(self, test_logger):
        with pytest.raises(ConfigurationError):
            sce_engine(test_logger, max_evaluations=0)

    def test_unknown_failure_policy(self, test_logger):
        with pytest.raises(ConfigurationError):
            sce_engine(test_logger, failure_policy='ignore')

    def test_initial_vector_out_of_bounds(self, toy_space, linear_objective, test_logger):
        with pytest.raises(BoundsViolation):
            sce_engine(test_logger).optimize(toy_space, linear_objective, initial=[12.0, 0.5])


class TestAbortPolicy:
    """The first failed evaluation ends the run."""

    def test_abort_on_first_failure(self, toy_space, timeout_simulator, timeout_model, observed, window, test_logger):
        objective = ObjectiveFunction(timeout_simulator, observed, window)
        engine = sce_engine(test_logger, failure_policy='abort', random_seed=0)

        with pytest.raises(EvaluationAborted) as exc_info:
            engine.optimize(toy_space, objective)

        trace = exc_info.value.trace
        assert timeout_model.calls == 1
        assert trace.n_evaluations == 1
        assert trace.termination == 'aborted'
        assert trace.history[0].failed
        assert 'timeout' in trace.history[0].error
        assert isinstance(exc_info.value.__cause__, SimulationFailed)

    def test_abort_with_lbfgs(self, toy_space, timeout_simulator, observed, window, test_logger):
        objective = ObjectiveFunction(timeout_simulator, observed, window)
        engine = OptimizationEngine('LBFGS', logger=test_logger)

        with pytest.raises(EvaluationAborted) as exc_info:
            engine.optimize(toy_space, objective)
        assert exc_info.value.trace.n_evaluations == 1
        assert exc_info.value.trace.best is None


class TestPenalizePolicy:
    """Failed evaluations receive the penalty score and the run continues."""

    def test_penalized_failures_recorded(self, toy_space, flaky_simulator, observed, window, test_logger):
        objective = ObjectiveFunction(flaky_simulator, observed, window)
        engine = sce_engine(
            test_logger, failure_policy=FailurePolicy.PENALIZE, penalty_score=1e6, random_seed=4
        )

        trace = engine.optimize(toy_space, objective)

        assert trace.termination in ('converged', 'max_iterations')
        assert trace.n_failures >= 1
        failed = [r for r in trace if r.failed]
        assert all(r.score == 1e6 for r in failed)
        assert all(r.vector['offset'] > 8.0 for r in failed)
        assert trace.best is not None
        assert not trace.best.failed
        assert trace.best_vector['offset'] <= 8.0


class TestBudget:
    """Test the evaluation budget."""

    def test_budget_truncates_population(self, toy_space, linear_objective, test_logger):
        trace = sce_engine(test_logger, max_evaluations=7, random_seed=0).optimize(
            toy_space, linear_objective
        )
        assert trace.n_evaluations == 7
        assert trace.termination == 'max_evaluations'

    def test_budget_with_lbfgs(self, toy_space, linear_objective, test_logger):
        engine = OptimizationEngine(
            'LBFGS', config={'NUMBER_OF_ITERATIONS': 50}, logger=test_logger, max_evaluations=4
        )
        trace = engine.optimize(toy_space, linear_objective, initial={'offset': 2.0, 'scale': 0.2})
        assert trace.n_evaluations == 4
        assert trace.termination == 'max_evaluations'

    def test_budget_raises_when_requested(self, toy_space, linear_objective, test_logger):
        engine = sce_engine(
            test_logger, max_evaluations=7, random_seed=0, raise_on_nonconvergence=True
        )
        with pytest.raises(MaxEvaluationsExceeded) as exc_info:
            engine.optimize(toy_space, linear_objective)
        assert exc_info.value.trace.n_evaluations == 7

    def test_did_not_converge_raised(self, toy_space, linear_objective, test_logger):
        engine = OptimizationEngine(
            'LBFGS', config={'NUMBER_OF_ITERATIONS': 1}, logger=test_logger,
            raise_on_nonconvergence=True,
        )
        with pytest.raises(DidNotConverge) as exc_info:
            engine.optimize(toy_space, linear_objective, initial={'offset': 2.0, 'scale': 0.2})
        assert exc_info.value.trace.termination == 'max_iterations'


class TestTrace:
    """Test what the engine records."""

    def test_every_evaluation_recorded(self, toy_space, observed, window, test_logger):
        from helpers import CountingModel, make_linear_model

        model = CountingModel(make_linear_model(observed))
        objective = ObjectiveFunction(CallableSimulator(model), observed, window)
        trace = sce_engine(test_logger, iterations=3, random_seed=2).optimize(toy_space, objective)

        assert trace.n_evaluations == model.calls
        assert [r.evaluation for r in trace] == list(range(1, model.calls + 1))
        assert trace.algorithm == 'SCE-UA'
        assert trace.iterations >= 1

    def test_best_series_retained(self, toy_space, linear_objective, test_logger):
        trace = sce_engine(test_logger, random_seed=5).optimize(toy_space, linear_objective)
        assert trace.best.series is not None
        assert sum(1 for r in trace if r.series is not None) == 1

    def test_initial_vector_evaluated_first(self, toy_space, linear_objective, test_logger):
        engine = OptimizationEngine('LBFGS', config={'NUMBER_OF_ITERATIONS': 3}, logger=test_logger)
        trace = engine.optimize(toy_space, linear_objective, initial={'offset': 2.0, 'scale': 0.2})
        assert trace.history[0].vector == toy_space.vector([2.0, 0.2])


class TestCallbacks:
    """Test progress events."""

    def test_events_per_cycle(self, toy_space, linear_objective, test_logger, progress_recorder):
        trace = sce_engine(
            test_logger, iterations=3, random_seed=1, callbacks=[progress_recorder]
        ).optimize(toy_space, linear_objective)

        events = progress_recorder.events
        assert [e.iteration for e in events] == list(range(trace.iterations + 1))
        assert all(e.algorithm == 'SCE-UA' for e in events)
        assert all(e.worst_score >= e.best_score for e in events)

    def test_callback_exception_ignored(self, toy_space, linear_objective, test_logger, progress_recorder):
        def broken(event):
            raise RuntimeError("observer failed")

        engine = sce_engine(
            test_logger, iterations=2, random_seed=1, callbacks=[broken, progress_recorder]
        )
        trace = engine.optimize(toy_space, linear_objective)

        assert trace.termination in ('converged', 'max_iterations')
        assert len(progress_recorder.events) >= 2


@pytest.mark.parallel
class TestParallelEvaluation:
    """Population batches through a parallel RunBatcher."""

    def test_parallel_matches_sequential(self, toy_space, linear_simulator, linear_objective, test_logger):
        sequential = sce_engine(test_logger, random_seed=9).optimize(toy_space, linear_objective)

        batcher = RunBatcher(linear_simulator, max_workers=4, strategy='thread')
        parallel = sce_engine(test_logger, random_seed=9, batcher=batcher).optimize(
            toy_space, linear_objective
        )

        assert [r.vector for r in parallel] == [r.vector for r in sequential]
        np.testing.assert_allclose(
            [r.score for r in parallel], [r.score for r in sequential]
        )

    def test_parallel_penalize(self, toy_space, flaky_simulator, observed, window, test_logger):
        objective = ObjectiveFunction(flaky_simulator, observed, window)
        batcher = RunBatcher(flaky_simulator, max_workers=3, strategy='thread')
        engine = sce_engine(
            test_logger, random_seed=4, batcher=batcher,
            failure_policy='penalize', penalty_score=500.0,
        )
        trace = engine.optimize(toy_space, objective)

        assert trace.n_failures >= 1
        assert all(r.score == 500.0 for r in trace if r.failed)

    def test_parallel_budget(self, toy_space, linear_simulator, linear_objective, test_logger):
        batcher = RunBatcher(linear_simulator, max_workers=4, strategy='thread')
        trace = sce_engine(test_logger, max_evaluations=7, random_seed=0, batcher=batcher).optimize(
            toy_space, linear_objective
        )
        assert trace.n_evaluations == 7
