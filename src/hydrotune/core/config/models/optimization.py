# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Optimization configuration models.

Contains configuration classes for the calibration engines:
LBFGSConfig, SCEUAConfig, and the parent OptimizationConfig.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .base import FROZEN_CONFIG

# Supported optimization algorithms
OptimizationAlgorithmType = Literal['LBFGS', 'SCE-UA']

# Alternative spellings accepted for OPTIMIZATION_ALGORITHM
ALGORITHM_ALIASES = {
    'L-BFGS': 'LBFGS',
    'L-BFGS-B': 'LBFGS',
    'LBFGSB': 'LBFGS',
    'BOUNDED_DESCENT': 'LBFGS',
    'BOUNDEDDESCENT': 'LBFGS',
    'SCEUA': 'SCE-UA',
    'SCE': 'SCE-UA',
    'SCE_UA': 'SCE-UA',
    'POPULATION_SEARCH': 'SCE-UA',
    'POPULATIONSEARCH': 'SCE-UA',
}


class LBFGSConfig(BaseModel):
    """Limited-memory BFGS (bounded descent) settings"""
    model_config = FROZEN_CONFIG

    history_size: int = Field(default=10, alias='LBFGS_HISTORY_SIZE', ge=1, le=100)
    lr: float = Field(default=0.2, alias='LBFGS_LR', gt=0, le=1.0)
    c1: float = Field(default=1e-4, alias='LBFGS_C1', gt=0, lt=1.0)
    max_line_search: int = Field(default=20, alias='LBFGS_MAX_LINE_SEARCH', ge=1)
    gradient_epsilon: float = Field(default=1e-4, alias='GRADIENT_EPSILON', gt=0, lt=0.5)
    ftol: float = Field(default=1e-8, alias='LBFGS_FTOL', ge=0)
    xtol: float = Field(default=1e-8, alias='LBFGS_XTOL', ge=0)
    gtol: float = Field(default=1e-6, alias='LBFGS_GTOL', ge=0)


class SCEUAConfig(BaseModel):
    """Shuffled Complex Evolution - University of Arizona algorithm settings"""
    model_config = FROZEN_CONFIG

    number_of_complexes: int = Field(default=2, alias='NUMBER_OF_COMPLEXES', ge=1)
    points_per_complex: Optional[int] = Field(default=None, alias='POINTS_PER_COMPLEX', ge=2)
    points_per_subcomplex: Optional[int] = Field(default=None, alias='POINTS_PER_SUBCOMPLEX', ge=2)
    number_of_evolution_steps: Optional[int] = Field(default=None, alias='NUMBER_OF_EVOLUTION_STEPS', ge=1)
    evolution_stagnation: int = Field(default=5, alias='EVOLUTION_STAGNATION', ge=1)
    percent_change_threshold: float = Field(default=0.01, alias='PERCENT_CHANGE_THRESHOLD', ge=0)
    population_convergence: float = Field(default=1e-3, alias='POPULATION_CONVERGENCE', ge=0)
    sampling_method: Literal['lhs', 'random'] = Field(default='lhs', alias='SAMPLING_METHOD')

    @model_validator(mode='after')
    def validate_complex_sizes(self) -> 'SCEUAConfig':
        if (
            self.points_per_complex is not None
            and self.points_per_subcomplex is not None
            and self.points_per_subcomplex > self.points_per_complex
        ):
            raise ValueError(
                f"POINTS_PER_SUBCOMPLEX ({self.points_per_subcomplex}) cannot exceed "
                f"POINTS_PER_COMPLEX ({self.points_per_complex})"
            )
        return self


class OptimizationConfig(BaseModel):
    """Calibration engine selection, budgets and parallelism"""
    model_config = FROZEN_CONFIG

    algorithm: OptimizationAlgorithmType = Field(default='SCE-UA', alias='OPTIMIZATION_ALGORITHM')
    iterations: int = Field(default=100, alias='NUMBER_OF_ITERATIONS', ge=1)
    max_evaluations: Optional[int] = Field(default=None, alias='MAX_EVALUATIONS', ge=1)
    random_seed: Optional[int] = Field(default=None, alias='RANDOM_SEED')
    parallel_workers: int = Field(default=1, alias='PARALLEL_WORKERS', ge=1)
    parallel_backend: Literal['thread', 'process', 'sequential'] = Field(default='thread', alias='PARALLEL_BACKEND')
    top_candidates: int = Field(default=5, alias='TOP_CANDIDATES', ge=0)
    distinct_rtol: float = Field(default=1e-3, alias='DISTINCT_SOLUTION_RTOL', ge=0)
    raise_on_nonconvergence: bool = Field(default=False, alias='RAISE_ON_NONCONVERGENCE')

    # Algorithm-specific settings
    lbfgs: Optional[LBFGSConfig] = Field(default_factory=LBFGSConfig)
    sce_ua: Optional[SCEUAConfig] = Field(default_factory=SCEUAConfig)

    @field_validator('algorithm', mode='before')
    @classmethod
    def normalize_algorithm(cls, v):
        """Normalize algorithm name to its canonical uppercase spelling"""
        if isinstance(v, str):
            key = v.strip().upper().replace(' ', '_')
            return ALGORITHM_ALIASES.get(key, key)
        return v

    @field_validator('parallel_backend', mode='before')
    @classmethod
    def normalize_backend(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v
