# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Objective configuration model.

Selects the goodness-of-fit metric, the observations it is computed
against, the unit conversion applied to simulated values and the policy for
failed evaluations.
"""

import math
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from hydrotune.core.constants import ModelDefaults, resolve_unit_conversion

from .base import FROZEN_CONFIG


class ObjectiveConfig(BaseModel):
    """Metric, observations, unit conversion and failure policy"""
    model_config = FROZEN_CONFIG

    metric: str = Field(default=ModelDefaults.DEFAULT_METRIC, alias='OPTIMIZATION_METRIC')
    unit_conversion: float = Field(default=1.0, alias='UNIT_CONVERSION_FACTOR')
    observations_path: Optional[Path] = Field(default=None, alias='OBSERVATIONS_PATH')
    observations_column: Optional[str] = Field(default=None, alias='OBSERVATIONS_COLUMN')
    observations_time_column: str = Field(default='date', alias='OBSERVATIONS_TIME_COLUMN')
    failure_policy: Literal['abort', 'penalize'] = Field(default='abort', alias='FAILURE_POLICY')
    penalty_score: float = Field(default=ModelDefaults.PENALTY_SCORE, alias='PENALTY_SCORE')

    @field_validator('metric')
    @classmethod
    def validate_metric(cls, v):
        """Resolve the metric name against the registry."""
        from hydrotune.evaluation.metrics_registry import METRIC_REGISTRY, get_metric_info

        info = get_metric_info(v)
        if info is None:
            raise ValueError(
                f"Unknown metric '{v}'. Available: {sorted(METRIC_REGISTRY)}"
            )
        return info.name

    @field_validator('unit_conversion', mode='before')
    @classmethod
    def resolve_conversion(cls, v):
        return resolve_unit_conversion(v)

    @field_validator('failure_policy', mode='before')
    @classmethod
    def normalize_policy(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return 'penalize' if v in ('penalise', 'penalty') else v
        return v

    @field_validator('penalty_score')
    @classmethod
    def validate_penalty(cls, v):
        if not math.isfinite(v):
            raise ValueError("PENALTY_SCORE must be finite")
        return v

    @field_validator('observations_path')
    @classmethod
    def expand_observations_path(cls, v):
        return Path(v).expanduser() if v is not None else None
