# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
System configuration model.

Contains SystemConfig for run-level settings: experiment identity, output
location and logging.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .base import FROZEN_CONFIG


class SystemConfig(BaseModel):
    """Run-level configuration: experiment id, output directory, logging"""
    model_config = FROZEN_CONFIG

    experiment_id: str = Field(default='run_1', alias='EXPERIMENT_ID')
    output_dir: Path = Field(default=Path('hydrotune_output'), alias='OUTPUT_DIR')
    log_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(default='INFO', alias='LOG_LEVEL')
    log_to_file: bool = Field(default=True, alias='LOG_TO_FILE')

    @field_validator('output_dir')
    @classmethod
    def validate_output_dir(cls, v):
        """Expand user home in the output path."""
        return Path(v).expanduser()

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('experiment_id')
    @classmethod
    def validate_experiment_id(cls, v):
        if not str(v).strip():
            raise ValueError("EXPERIMENT_ID must not be empty")
        return str(v).strip()
