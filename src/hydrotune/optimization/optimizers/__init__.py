# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Optimization Engine Package

Pure search algorithms live in ``algorithms``; ``OptimizationEngine`` binds
one of them to a parameter space and an objective function and records the
run in an ``OptimizationTrace``.

    >>> from hydrotune.optimization.optimizers import OptimizationEngine
    >>> engine = OptimizationEngine('LBFGS', config, logger)
    >>> trace = engine.optimize(space, objective)
    >>> trace.best_vector, trace.best_score
"""

from .algorithms import (
    LBFGSAlgorithm,
    OptimizationAlgorithm,
    SCEUAAlgorithm,
    get_algorithm,
    list_algorithms,
)
from .final_evaluation import CandidateReport, FinalEvaluationOrchestrator, FinalResultsSaver
from .metrics_tracker import EvaluationMetricsTracker, ProgressCallback, ProgressEvent
from .optimization_engine import OptimizationEngine
from .results import TERMINATION_REASONS, ObjectiveResult, OptimizationTrace

__all__ = [
    'OptimizationEngine',
    'OptimizationAlgorithm',
    'LBFGSAlgorithm',
    'SCEUAAlgorithm',
    'get_algorithm',
    'list_algorithms',
    'ObjectiveResult',
    'OptimizationTrace',
    'TERMINATION_REASONS',
    'ProgressEvent',
    'ProgressCallback',
    'EvaluationMetricsTracker',
    'CandidateReport',
    'FinalEvaluationOrchestrator',
    'FinalResultsSaver',
]
