"""
Fixtures for optimization/calibration unit tests.

Provides simulators with controlled failure behaviour and small helpers
for building engines without an external model.
"""

import time

import pytest

from hydrotune.optimization.core.model_executor import CallableSimulator

from helpers import CountingModel, make_linear_model


# ============================================================================
# Pytest markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "optimization: Optimization/calibration tests")
    config.addinivalue_line("markers", "parallel: Tests that use parallel execution")


# ============================================================================
# Simulator fixtures
# ============================================================================

@pytest.fixture
def flaky_simulator(observed):
    """Linear toy model that fails whenever offset > 8."""
    base = make_linear_model(observed)

    def model(vector, window):
        if vector['offset'] > 8.0:
            raise RuntimeError("solver diverged")
        return base(vector, window)
    return CallableSimulator(CountingModel(model))


@pytest.fixture
def slow_linear_model(observed):
    """Linear toy model with a short sleep per run."""
    base = make_linear_model(observed)

    def model(vector, window):
        time.sleep(0.01)
        return base(vector, window)
    return CountingModel(model)


@pytest.fixture
def progress_recorder():
    """Callback collecting every ProgressEvent."""
    events = []

    def record(event):
        events.append(event)
    record.events = events
    return record
