# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Simulation configuration model.

Describes how the simulator is invoked (external command template), the
simulation window with its warm-up period, and where run outputs are found.
"""

import shlex
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from hydrotune.core.constants import ModelDefaults

from .base import FROZEN_CONFIG


COMMAND_PLACEHOLDERS = ('param_file', 'output_file', 'workdir', 'start', 'end', 'invocation_id')


class SimulationConfig(BaseModel):
    """Simulator invocation, simulation window and output layout"""
    model_config = FROZEN_CONFIG

    command: Optional[List[str]] = Field(default=None, alias='SIMULATOR_COMMAND')
    start: datetime = Field(alias='SIMULATION_START')
    end: datetime = Field(alias='SIMULATION_END')
    warmup_days: int = Field(default=0, ge=0, alias='WARMUP_DAYS')
    timeout: float = Field(default=ModelDefaults.DEFAULT_SIMULATION_TIMEOUT, gt=0, alias='SIMULATION_TIMEOUT')
    scratch_root: Optional[Path] = Field(default=None, alias='SCRATCH_ROOT')
    keep_failed_runs: bool = Field(default=False, alias='KEEP_FAILED_RUNS')
    output_format: Literal['csv', 'netcdf'] = Field(default='csv', alias='OUTPUT_FORMAT')
    output_variable: str = Field(default='discharge', alias='OUTPUT_VARIABLE')
    output_time_column: str = Field(default='date', alias='OUTPUT_TIME_COLUMN')
    parameter_file_name: str = Field(default='parameters.csv', alias='PARAMETER_FILE_NAME')
    output_file_name: str = Field(default='output.csv', alias='OUTPUT_FILE_NAME')
    environment: Dict[str, str] = Field(default_factory=dict, alias='SIMULATOR_ENV')

    @field_validator('command', mode='before')
    @classmethod
    def split_command(cls, v):
        """Split a command string into argv tokens."""
        if isinstance(v, str):
            tokens = shlex.split(v)
            if not tokens:
                raise ValueError("SIMULATOR_COMMAND must not be empty")
            return tokens
        return v

    @field_validator('output_format', mode='before')
    @classmethod
    def normalize_output_format(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return 'netcdf' if v in ('nc', 'netcdf4') else v
        return v

    @field_validator('environment', mode='before')
    @classmethod
    def stringify_environment(cls, v):
        if v is None:
            return {}
        return {str(k): str(val) for k, val in dict(v).items()}

    @field_validator('scratch_root')
    @classmethod
    def expand_scratch_root(cls, v):
        return Path(v).expanduser() if v is not None else None

    @model_validator(mode='after')
    def validate_window(self) -> 'SimulationConfig':
        """Ensure the window is ordered and the warm-up leaves something to score."""
        if self.end <= self.start:
            raise ValueError(
                f"SIMULATION_END ({self.end}) must be after SIMULATION_START ({self.start})"
            )
        span_days = (self.end - self.start).total_seconds() / 86400.0
        if self.warmup_days >= span_days:
            raise ValueError(
                f"WARMUP_DAYS ({self.warmup_days}) covers the whole simulation window "
                f"({span_days:.1f} days)"
            )
        return self
