# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Core domain types: parameter space, time series, simulator adapters."""

from .model_executor import (
    CallableSimulator,
    CommandLineSimulator,
    SimulationWindow,
    SimulatorAdapter,
)
from .parameter_space import ChangeMode, Parameter, ParameterSpace, ParameterVector
from .timeseries import TimeSeries

__all__ = [
    'ChangeMode',
    'Parameter',
    'ParameterSpace',
    'ParameterVector',
    'TimeSeries',
    'SimulationWindow',
    'SimulatorAdapter',
    'CallableSimulator',
    'CommandLineSimulator',
]
