# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Root configuration model.

HydrotuneConfig groups the section models and provides the factory and
dict-like accessors used throughout the harness::

    config = HydrotuneConfig.from_file('calibration.yaml')
    config.optimization.algorithm        # typed access
    config['OPTIMIZATION_ALGORITHM']     # flat access
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .base import FROZEN_CONFIG
from .objective import ObjectiveConfig
from .optimization import OptimizationConfig
from .parameters import ParameterConfig, normalize_parameter_entries
from .simulation import SimulationConfig
from .system import SystemConfig


class HydrotuneConfig(BaseModel):
    """Complete calibration run configuration"""
    model_config = FROZEN_CONFIG

    system: SystemConfig = Field(default_factory=SystemConfig)
    parameters: List[ParameterConfig] = Field(alias='PARAMETERS')
    simulation: SimulationConfig
    objective: ObjectiveConfig = Field(default_factory=ObjectiveConfig)
    optimization: OptimizationConfig = Field(default_factory=OptimizationConfig)

    @field_validator('parameters', mode='before')
    @classmethod
    def normalize_parameters(cls, v):
        entries = normalize_parameter_entries(v)
        if not entries:
            raise ValueError("At least one calibration parameter must be declared")
        return entries

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> 'HydrotuneConfig':
        """Load configuration from a flat or nested YAML file."""
        from hydrotune.core.config.factories import from_file_factory
        return from_file_factory(cls, Path(path), overrides)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        overrides: Optional[Dict[str, Any]] = None,
    ) -> 'HydrotuneConfig':
        """Build configuration from an in-memory flat or nested dictionary."""
        from hydrotune.core.config.factories import from_dict_factory
        return from_dict_factory(cls, data, overrides)

    # ------------------------------------------------------------------
    # Dict-like access
    # ------------------------------------------------------------------

    def to_dict(self, flatten: bool = True) -> Dict[str, Any]:
        """
        Convert to a dictionary.

        Args:
            flatten: If True, return uppercase flat keys; otherwise the nested
                section structure

        Returns:
            Configuration dictionary
        """
        if flatten:
            from hydrotune.core.config.flattening import flatten_nested_config
            return flatten_nested_config(self)
        return self.model_dump(by_alias=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Flat-key lookup with a default, mirroring dict.get."""
        value = self.to_dict(flatten=True).get(key)
        return default if value is None else value

    def __getitem__(self, key: str) -> Any:
        flat = self.to_dict(flatten=True)
        if key not in flat:
            raise KeyError(key)
        return flat[key]

    def __contains__(self, key: str) -> bool:
        return key in self.to_dict(flatten=True)
