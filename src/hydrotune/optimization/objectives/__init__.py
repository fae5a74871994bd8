# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Objective functions mapping parameter vectors to scores."""

from .failure_policy import FailurePolicy
from .objective_function import ObjectiveFunction, Scorer

__all__ = ['ObjectiveFunction', 'FailurePolicy', 'Scorer']
