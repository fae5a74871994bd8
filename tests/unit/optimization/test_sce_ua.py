"""
Unit tests for the SCE-UA algorithm.

Covers population sizing, seeded reproducibility, monotone best-so-far and
the stopping rules, both directly and through the engine.
"""

from unittest.mock import Mock

import numpy as np
import pytest

from hydrotune.optimization.optimizers import OptimizationEngine
from hydrotune.optimization.optimizers.algorithms import SCEUAAlgorithm, get_algorithm

pytestmark = [pytest.mark.unit, pytest.mark.optimization]


def sphere_population(center):
    center = np.asarray(center, dtype=float)

    def evaluate(X, iteration=0):
        return np.sum((np.atleast_2d(X) - center) ** 2, axis=1)
    return evaluate


def run_sce(config, logger, n_params=3, seed=0, evaluate=None):
    evaluate = evaluate or sphere_population([0.2, 0.5, 0.8][:n_params])
    batches = []

    def evaluate_population(X, iteration=0):
        batches.append(np.array(X))
        return evaluate(X, iteration)

    callback = Mock()
    algorithm = get_algorithm('SCE-UA', config, logger)
    result = algorithm.optimize(
        n_params=n_params,
        evaluate_solution=lambda x, it=0: float(evaluate(x, it)[0]),
        evaluate_population=evaluate_population,
        record_iteration=callback,
        rng=np.random.default_rng(seed),
    )
    return result, batches, callback


class TestSCEUAAlgorithm:
    """Test the algorithm against analytic functions."""

    def test_default_population_sizes(self, test_logger):
        algorithm = SCEUAAlgorithm({}, test_logger)
        assert algorithm._population_sizes(3) == (2, 7, 4, 7)

    def test_configured_sizes_are_sanitized(self, test_logger):
        algorithm = SCEUAAlgorithm(
            {'NUMBER_OF_COMPLEXES': 3, 'POINTS_PER_COMPLEX': 4, 'POINTS_PER_SUBCOMPLEX': 9},
            test_logger,
        )
        ngs, npg, nps, _ = algorithm._population_sizes(2)
        assert (ngs, npg, nps) == (3, 4, 4)

    def test_initial_population_is_one_batch(self, test_logger):
        _, batches, callback = run_sce({'NUMBER_OF_ITERATIONS': 1}, test_logger)
        assert batches[0].shape == (14, 3)
        first = callback.call_args_list[0]
        assert first.args[0] == 0
        assert first.args[1] <= first.args[2]

    def test_points_stay_in_unit_cube(self, test_logger):
        _, batches, _ = run_sce({'NUMBER_OF_ITERATIONS': 5}, test_logger)
        points = np.vstack(batches)
        assert points.min() >= 0.0
        assert points.max() <= 1.0

    def test_finds_sphere_minimum(self, test_logger):
        result, _, _ = run_sce(
            {'NUMBER_OF_ITERATIONS': 60, 'PERCENT_CHANGE_THRESHOLD': 0.0}, test_logger, seed=3
        )
        np.testing.assert_allclose(result['best_solution'], [0.2, 0.5, 0.8], atol=0.05)
        assert result['best_score'] < 1e-2

    def test_seeded_runs_identical(self, test_logger):
        _, first, _ = run_sce({'NUMBER_OF_ITERATIONS': 4}, test_logger, seed=11)
        _, second, _ = run_sce({'NUMBER_OF_ITERATIONS': 4}, test_logger, seed=11)
        assert len(first) == len(second)
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_different_seeds_differ(self, test_logger):
        _, first, _ = run_sce({'NUMBER_OF_ITERATIONS': 1}, test_logger, seed=1)
        _, second, _ = run_sce({'NUMBER_OF_ITERATIONS': 1}, test_logger, seed=2)
        assert not np.array_equal(first[0], second[0])

    def test_cycle_best_non_increasing(self, test_logger):
        _, _, callback = run_sce({'NUMBER_OF_ITERATIONS': 10}, test_logger, seed=5)
        bests = [c.args[1] for c in callback.call_args_list]
        assert [c.args[0] for c in callback.call_args_list] == list(range(len(bests)))
        assert all(b2 <= b1 for b1, b2 in zip(bests, bests[1:]))

    def test_stagnation_converges(self, test_logger):
        config = {
            'NUMBER_OF_ITERATIONS': 50,
            'EVOLUTION_STAGNATION': 2,
            'PERCENT_CHANGE_THRESHOLD': 1e6,
            'POPULATION_CONVERGENCE': 0.0,
        }
        result, _, _ = run_sce(config, test_logger)
        assert result['converged']
        assert result['iterations'] == 2
        assert 'improved by less than' in result['message']

    def test_iteration_limit_not_converged(self, test_logger):
        config = {
            'NUMBER_OF_ITERATIONS': 2,
            'EVOLUTION_STAGNATION': 100,
            'POPULATION_CONVERGENCE': 0.0,
        }
        result, _, callback = run_sce(config, test_logger)
        assert not result['converged']
        assert result['iterations'] == 2
        assert callback.call_count == 3

    def test_subcomplex_selection(self):
        rng = np.random.default_rng(0)
        for _ in range(20):
            sub = SCEUAAlgorithm._select_subcomplex_indices(7, 4, rng)
            assert len(set(sub.tolist())) == 4
            assert sub.min() >= 0 and sub.max() < 7

    def test_uses_sample_population(self, test_logger):
        algorithm = SCEUAAlgorithm({'NUMBER_OF_ITERATIONS': 1}, test_logger)
        sampler = Mock(return_value=np.full((10, 2), 0.5))
        seen = []

        def evaluate_population(X, iteration=0):
            seen.append(np.array(X))
            return np.sum(np.atleast_2d(X), axis=1)

        algorithm.optimize(
            n_params=2,
            evaluate_solution=None,
            evaluate_population=evaluate_population,
            record_iteration=Mock(),
            rng=np.random.default_rng(0),
            sample_population=sampler,
        )
        sampler.assert_called_once_with(10)
        np.testing.assert_array_equal(seen[0], np.full((10, 2), 0.5))


class TestSCEUAThroughEngine:
    """Test SCE-UA runs recorded by the engine."""

    def _engine(self, logger, **kwargs):
        config = kwargs.pop('config', {'NUMBER_OF_ITERATIONS': 8})
        return OptimizationEngine('SCE-UA', config=config, logger=logger, **kwargs)

    def test_best_so_far_monotone(self, toy_space, linear_objective, test_logger, progress_recorder):
        engine = self._engine(test_logger, random_seed=7, callbacks=[progress_recorder])
        trace = engine.optimize(toy_space, linear_objective)

        running = trace.best_so_far()
        assert np.all(np.diff(running) <= 0)
        assert running[-1] == trace.best_score

        events = progress_recorder.events
        assert events[0].iteration == 0
        assert all(e2.best_score <= e1.best_score for e1, e2 in zip(events, events[1:]))
        assert events[-1].n_evaluations <= trace.n_evaluations

    def test_seed_reproduces_history(self, toy_space, linear_objective, test_logger):
        first = self._engine(test_logger, random_seed=42).optimize(toy_space, linear_objective)
        second = self._engine(test_logger, random_seed=42).optimize(toy_space, linear_objective)

        assert first.n_evaluations == second.n_evaluations
        assert [r.vector for r in first] == [r.vector for r in second]
        assert [r.score for r in first] == [r.score for r in second]

    def test_approaches_optimum(self, toy_space, linear_objective, test_logger):
        engine = self._engine(
            test_logger,
            config={'NUMBER_OF_ITERATIONS': 30, 'PERCENT_CHANGE_THRESHOLD': 0.0},
            random_seed=1,
        )
        trace = engine.optimize(toy_space, linear_objective)
        assert trace.best_score < -0.99
        assert all(toy_space.is_valid(r.vector) for r in trace)

    def test_budget_respected(self, toy_space, linear_objective, test_logger):
        engine = self._engine(test_logger, random_seed=3, max_evaluations=25)
        trace = engine.optimize(toy_space, linear_objective)

        assert trace.n_evaluations == 25
        assert trace.termination == 'max_evaluations'
        assert not trace.converged
