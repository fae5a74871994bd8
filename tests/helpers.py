"""
Shared test helpers: toy models and simulator scripts with a known optimum.
"""

import threading
import time

from hydrotune.optimization.core.timeseries import TimeSeries

SIMULATOR_SCRIPT = '''\
import sys
import pandas as pd

params = pd.read_csv(sys.argv[1]).set_index('name')['value']
shift = (5.0 - params['offset']) + 10.0 * (0.5 - params['scale'])
obs = pd.read_csv(sys.argv[3])
obs['discharge'] = obs['discharge'] + shift
obs.to_csv(sys.argv[2], index=False)
'''


def make_linear_model(observed, calls=None):
    """
    Model returning ``observed + (5 - offset) + 10 * (0.5 - scale)``.

    The simulated series equals the observations (NSE = 1) whenever the
    shift vanishes. ``calls`` collects every vector the model is run with.
    """
    def model(vector, window):
        if calls is not None:
            calls.append(vector)
        shift = (5.0 - vector['offset']) + 10.0 * (0.5 - vector['scale'])
        return TimeSeries(observed.series + shift, name='discharge')
    return model


class CountingModel:
    """Wraps a model function and counts invocations (thread-safe)."""

    def __init__(self, fn):
        self.fn = fn
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, vector, window):
        with self._lock:
            self.calls += 1
        return self.fn(vector, window)


class ShiftModel:
    """Picklable form of the linear toy model, for process pools."""

    def __init__(self, observed, delay=0.0):
        self.observed = observed
        self.delay = delay

    def __call__(self, vector, window):
        if self.delay:
            time.sleep(self.delay * (1.0 - vector['scale']))
        shift = (5.0 - vector['offset']) + 10.0 * (0.5 - vector['scale'])
        return TimeSeries(self.observed.series + shift, name='discharge')
