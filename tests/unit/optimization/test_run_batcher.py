"""
Unit tests for RunBatcher and the execution strategies.

Verifies that results come back in input order whatever the completion
order, and that one failed run never affects its siblings.
"""

import time

import numpy as np
import pytest

from hydrotune.core.exceptions import ConfigurationError, SimulationError
from hydrotune.optimization.core.model_executor import CallableSimulator
from hydrotune.optimization.mixins.parallel import get_execution_strategy
from hydrotune.optimization.run_batcher import RunBatcher

from helpers import CountingModel, ShiftModel

pytestmark = [pytest.mark.unit, pytest.mark.optimization, pytest.mark.parallel]


def vectors_for(space, n):
    return [space.vector([float(i), i / (n - 1)]) for i in range(n)]


class TestOrdering:
    """Outcomes are returned in input order."""

    def test_thread_pool_preserves_order(self, toy_space, observed, window):
        # Earlier vectors sleep longer, so they finish last
        simulator = CallableSimulator(ShiftModel(observed, delay=0.1))
        batcher = RunBatcher(simulator, max_workers=4, strategy='thread')
        vectors = vectors_for(toy_space, 6)

        outcomes = batcher.run_all(vectors, window)

        assert [o.slot for o in outcomes] == list(range(6))
        assert [o.vector for o in outcomes] == vectors
        for outcome, vector in zip(outcomes, vectors):
            shift = (5.0 - vector['offset']) + 10.0 * (0.5 - vector['scale'])
            np.testing.assert_allclose(outcome.unwrap().values, observed.values + shift)

    @pytest.mark.slow
    def test_process_pool_preserves_order(self, toy_space, observed, window):
        simulator = CallableSimulator(ShiftModel(observed, delay=0.05))
        batcher = RunBatcher(simulator, max_workers=2, strategy='process')
        vectors = vectors_for(toy_space, 4)

        outcomes = batcher.run_all(vectors, window)

        assert [o.vector for o in outcomes] == vectors
        assert all(o.success for o in outcomes)

    def test_runs_concurrently(self, toy_space, observed, window):
        def slow(vector, window):
            time.sleep(0.2)
            return observed

        batcher = RunBatcher(CallableSimulator(slow), max_workers=4, strategy='thread')
        start = time.time()
        batcher.run_all(vectors_for(toy_space, 4), window)
        assert time.time() - start < 0.6

    def test_empty_batch(self, linear_simulator, window):
        assert RunBatcher(linear_simulator, max_workers=2).run_all([], window) == []


class TestPartialFailure:
    """A failed run is reported in its own slot only."""

    def test_failure_isolated(self, toy_space, observed, window):
        base = ShiftModel(observed)

        def model(vector, window):
            if vector['offset'] == 2.0:
                raise RuntimeError("solver diverged")
            return base(vector, window)

        counting = CountingModel(model)
        batcher = RunBatcher(CallableSimulator(counting), max_workers=3, strategy='thread')
        outcomes = batcher.run_all(vectors_for(toy_space, 5), window)

        assert counting.calls == 5
        assert [o.success for o in outcomes] == [True, True, False, True, True]
        failed = outcomes[2]
        assert isinstance(failed.error, SimulationError)
        assert failed.error.vector == failed.vector
        with pytest.raises(SimulationError):
            failed.unwrap()


class TestConfiguration:
    """Test batcher construction."""

    def test_invalid_worker_count(self, linear_simulator):
        with pytest.raises(ConfigurationError):
            RunBatcher(linear_simulator, max_workers=0)

    def test_unknown_strategy(self, linear_simulator):
        with pytest.raises(ConfigurationError):
            RunBatcher(linear_simulator, max_workers=2, strategy='mpi')

    def test_is_parallel(self, linear_simulator):
        assert RunBatcher(linear_simulator, max_workers=2, strategy='thread').is_parallel
        assert not RunBatcher(linear_simulator, max_workers=1, strategy='thread').is_parallel
        assert not RunBatcher(linear_simulator, max_workers=4, strategy='sequential').is_parallel

    def test_strategy_instance_accepted(self, linear_simulator):
        strategy = get_execution_strategy('sequential')
        assert RunBatcher(linear_simulator, max_workers=2, strategy=strategy).strategy is strategy
