# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Flatten a HydrotuneConfig back to an uppercase flat dictionary.

Inverse of ``transform_flat_to_nested``.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Tuple

from pydantic import BaseModel

if TYPE_CHECKING:
    from hydrotune.core.config.models import HydrotuneConfig


def _plain(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=False)
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def flatten_nested_config(config: 'HydrotuneConfig') -> Dict[str, Any]:
    """Convert HydrotuneConfig instance to flat dict with uppercase keys.

    Args:
        config: HydrotuneConfig instance

    Returns:
        Flat configuration dictionary with uppercase keys

    Example:
        >>> flat = flatten_nested_config(config)
        >>> flat['OPTIMIZATION_ALGORITHM']
        'SCE-UA'
    """
    from hydrotune.core.config.transformers import get_flat_to_nested_map

    flat: Dict[str, Any] = {}
    nested_to_flat: Dict[Tuple[str, ...], str] = {}
    for flat_key, nested_path in get_flat_to_nested_map().items():
        nested_to_flat.setdefault(nested_path, flat_key)

    for nested_path, flat_key in nested_to_flat.items():
        node: Any = config
        for part in nested_path:
            node = getattr(node, part, None)
            if node is None:
                break
        flat[flat_key] = _plain(node)

    # Extra keys preserved by extra='allow'
    for key, value in (config.model_extra or {}).items():
        flat.setdefault(key, _plain(value))

    return flat
