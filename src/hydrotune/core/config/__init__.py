# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Configuration loading and typed models."""

from .models import (
    HydrotuneConfig,
    LBFGSConfig,
    ObjectiveConfig,
    OptimizationConfig,
    ParameterConfig,
    SCEUAConfig,
    SimulationConfig,
    SystemConfig,
)

__all__ = [
    'HydrotuneConfig',
    'SystemConfig',
    'ParameterConfig',
    'SimulationConfig',
    'ObjectiveConfig',
    'OptimizationConfig',
    'LBFGSConfig',
    'SCEUAConfig',
]
