# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Factory methods for creating hydrotune configurations.

- from_file_factory: Load from a YAML file, flat or nested
- from_dict_factory: Build from an in-memory dictionary

Both accept overrides (flat or nested) that take precedence over the
source, and wrap Pydantic validation errors into ConfigurationError.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

import yaml
from pydantic import ValidationError

from hydrotune.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from hydrotune.core.config.models import HydrotuneConfig

SECTION_KEYS = {'system', 'simulation', 'objective', 'optimization', 'parameters'}


def _is_nested_config(config: Dict[str, Any]) -> bool:
    """
    Detect if a configuration dictionary is in nested format.

    Nested format has lowercase section keys like 'system', 'simulation'.
    Flat format has uppercase keys like 'SIMULATION_START'.
    """
    return bool(SECTION_KEYS & {str(k) for k in config.keys()})


def _normalize_nested_config(nested_config: Dict[str, Any]) -> Dict[str, Any]:
    """Lowercase section keys and map flat keys found at the root level."""
    from hydrotune.core.config.transformers import transform_flat_to_nested

    normalized: Dict[str, Any] = {}
    flat_leftovers: Dict[str, Any] = {}
    for key, value in nested_config.items():
        key_lower = str(key).lower()
        if key_lower in SECTION_KEYS:
            normalized[key_lower] = value
        else:
            flat_leftovers[key] = value
    if flat_leftovers:
        normalized = _deep_merge(transform_flat_to_nested(flat_leftovers), normalized)
    return normalized


def _to_nested(config: Dict[str, Any]) -> Dict[str, Any]:
    from hydrotune.core.config.transformers import transform_flat_to_nested

    if _is_nested_config(config):
        return _normalize_nested_config(config)
    return transform_flat_to_nested(config)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _filter_none_values(d: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None overrides so unset CLI flags do not clobber file values."""
    filtered = {}
    for key, value in d.items():
        if isinstance(value, dict):
            value = _filter_none_values(value)
            if value:
                filtered[key] = value
        elif value is not None:
            filtered[key] = value
    return filtered


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for err in error.errors():
        location = '.'.join(str(part) for part in err.get('loc', ()))
        lines.append(f"  - {location or '<root>'}: {err.get('msg')}")
    return "Invalid configuration:\n" + "\n".join(lines)


def from_dict_factory(
    cls: type,
    data: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None,
) -> 'HydrotuneConfig':
    """
    Build a configuration from a flat or nested dictionary.

    Args:
        cls: HydrotuneConfig class
        data: Configuration dictionary
        overrides: Flat or nested overrides applied on top of data

    Returns:
        Validated HydrotuneConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(data).__name__}"
        )
    nested = _to_nested(data)
    if overrides:
        nested = _deep_merge(nested, _to_nested(_filter_none_values(overrides)))

    try:
        return cls(**nested)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e


def from_file_factory(
    cls: type,
    path: Path,
    overrides: Optional[Dict[str, Any]] = None,
) -> 'HydrotuneConfig':
    """
    Load configuration from YAML file.

    Loading precedence (highest to lowest):
    1. Overrides (CLI/programmatic)
    2. Config file (YAML)
    3. Defaults from nested Pydantic models

    Args:
        cls: HydrotuneConfig class
        path: Path to configuration YAML file
        overrides: Dictionary of CLI/programmatic overrides

    Returns:
        Validated HydrotuneConfig instance

    Raises:
        ConfigurationError: If configuration is invalid or unparseable
        FileNotFoundError: If config file is missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, "r") as f:
            file_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e

    return from_dict_factory(cls, file_config, overrides)
