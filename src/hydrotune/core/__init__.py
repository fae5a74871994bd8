# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Core infrastructure for hydrotune: exceptions, constants, configuration
models and shared mixins.
"""

from .exceptions import (
    HydrotuneError,
    ConfigurationError,
    InvalidBoundsError,
    ValidationError,
    BoundsViolation,
    SimulationError,
    SimulationTimeout,
    SimulationNonZeroExit,
    MalformedOutput,
    ObjectiveError,
    SimulationFailed,
    NoOverlap,
    ScoringFailed,
    OptimizationError,
    MaxEvaluationsExceeded,
    DidNotConverge,
    EvaluationAborted,
)
from .constants import ModelDefaults, UnitConversion

__all__ = [
    'HydrotuneError',
    'ConfigurationError',
    'InvalidBoundsError',
    'ValidationError',
    'BoundsViolation',
    'SimulationError',
    'SimulationTimeout',
    'SimulationNonZeroExit',
    'MalformedOutput',
    'ObjectiveError',
    'SimulationFailed',
    'NoOverlap',
    'ScoringFailed',
    'OptimizationError',
    'MaxEvaluationsExceeded',
    'DidNotConverge',
    'EvaluationAborted',
    'ModelDefaults',
    'UnitConversion',
]
