# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Optimization Algorithms

Available algorithms:
    - LBFGS: bounded limited-memory BFGS (deterministic local descent)
    - SCE-UA: Shuffled Complex Evolution (seeded population search)

Usage:
    from hydrotune.optimization.optimizers.algorithms import get_algorithm

    algorithm = get_algorithm('sce-ua', config, logger)
    result = algorithm.optimize(n_params, evaluate_solution, evaluate_population, record_iteration)
"""

from typing import Any, Dict, List, Type

from .base_algorithm import OptimizationAlgorithm
from .lbfgs import LBFGSAlgorithm
from .sce_ua import SCEUAAlgorithm

ALGORITHM_REGISTRY: Dict[str, Type[OptimizationAlgorithm]] = {
    'lbfgs': LBFGSAlgorithm,
    'l-bfgs': LBFGSAlgorithm,
    'l_bfgs': LBFGSAlgorithm,
    'l-bfgs-b': LBFGSAlgorithm,
    'l_bfgs_b': LBFGSAlgorithm,
    'bounded_descent': LBFGSAlgorithm,
    'sce-ua': SCEUAAlgorithm,
    'sce_ua': SCEUAAlgorithm,
    'sceua': SCEUAAlgorithm,
    'population_search': SCEUAAlgorithm,
}


def get_algorithm(name: str, config: Any, logger) -> OptimizationAlgorithm:
    """
    Get an algorithm instance by name.

    Args:
        name: Algorithm name (case-insensitive)
        config: Configuration (HydrotuneConfig or flat dict)
        logger: Logger instance

    Returns:
        Algorithm instance

    Raises:
        ValueError: If algorithm name is not recognized
    """
    algorithm_class = ALGORITHM_REGISTRY.get(name.lower().strip())
    if algorithm_class is None:
        available = ', '.join(list_algorithms())
        raise ValueError(f"Unknown algorithm: {name}. Available: {available}")
    return algorithm_class(config, logger)


def list_algorithms() -> List[str]:
    """List the canonical algorithm names."""
    return ['LBFGS', 'SCE-UA']


__all__ = [
    'OptimizationAlgorithm',
    'LBFGSAlgorithm',
    'SCEUAAlgorithm',
    'ALGORITHM_REGISTRY',
    'get_algorithm',
    'list_algorithms',
]
