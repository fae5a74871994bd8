# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Hierarchical configuration models for hydrotune.

Key design features:
- Type-safe hierarchical structure (config.optimization.algorithm vs
  config['OPTIMIZATION_ALGORITHM'])
- Factory methods: from_file(), from_dict()
- Dict-like access: to_dict(), get(), __getitem__()
- Immutable configs (frozen=True)
"""

from .objective import ObjectiveConfig
from .optimization import (
    ALGORITHM_ALIASES,
    LBFGSConfig,
    OptimizationAlgorithmType,
    OptimizationConfig,
    SCEUAConfig,
)
from .parameters import ParameterConfig
from .root import HydrotuneConfig
from .simulation import COMMAND_PLACEHOLDERS, SimulationConfig
from .system import SystemConfig

__all__ = [
    "HydrotuneConfig",
    "SystemConfig",
    "ParameterConfig",
    "SimulationConfig",
    "ObjectiveConfig",
    "OptimizationConfig",
    "LBFGSConfig",
    "SCEUAConfig",
    "OptimizationAlgorithmType",
    "ALGORITHM_ALIASES",
    "COMMAND_PLACEHOLDERS",
]
