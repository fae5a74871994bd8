# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""hydrotune: calibration harness for hydrological simulators."""

from .hydrotune_version import __version__

from .optimization.optimization_manager import OptimizationManager
from .optimization.core.parameter_space import ParameterSpace, Parameter, ParameterVector
from .optimization.core.timeseries import TimeSeries
from .optimization.core.model_executor import (
    SimulationWindow,
    SimulatorAdapter,
    CallableSimulator,
    CommandLineSimulator,
)
from .optimization.objectives import ObjectiveFunction
from .optimization.run_batcher import RunBatcher

__all__ = [
    "OptimizationManager",
    "ParameterSpace",
    "Parameter",
    "ParameterVector",
    "TimeSeries",
    "SimulationWindow",
    "SimulatorAdapter",
    "CallableSimulator",
    "CommandLineSimulator",
    "ObjectiveFunction",
    "RunBatcher",
    "__version__",
]
