# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Flat-to-nested configuration transformation.

Flat configuration files use uppercase keys (``OPTIMIZATION_ALGORITHM``);
the Pydantic models are hierarchical (``optimization.algorithm``). The
mapping between the two is generated from model aliases on first use.
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_AUTO_GENERATED_MAP: Optional[Dict[str, Tuple[str, ...]]] = None
_GENERATION_LOCK = threading.Lock()


def get_flat_to_nested_map() -> Dict[str, Tuple[str, ...]]:
    """Get flat-to-nested mapping via lazy auto-generation.

    Thread-safe with caching for performance.

    Returns:
        Dictionary mapping flat keys to nested paths
    """
    global _AUTO_GENERATED_MAP

    if _AUTO_GENERATED_MAP is not None:
        return _AUTO_GENERATED_MAP

    with _GENERATION_LOCK:
        if _AUTO_GENERATED_MAP is None:
            from hydrotune.core.config.introspection import generate_flat_to_nested_map
            from hydrotune.core.config.models import HydrotuneConfig

            _AUTO_GENERATED_MAP = generate_flat_to_nested_map(HydrotuneConfig)
    return _AUTO_GENERATED_MAP


def _set_nested(target: Dict[str, Any], path: Tuple[str, ...], value: Any) -> None:
    node = target
    for part in path[:-1]:
        node = node.setdefault(part, {})
    node[path[-1]] = value


def transform_flat_to_nested(flat_config: Dict[str, Any]) -> Dict[str, Any]:
    """Transform flat configuration dict to nested structure.

    Unknown keys are kept under the root so that ``extra='allow'`` preserves
    them on the model.

    Args:
        flat_config: Flat configuration dictionary with uppercase keys

    Returns:
        Nested configuration dictionary

    Example:
        >>> transform_flat_to_nested({'LBFGS_LR': 0.1, 'EXPERIMENT_ID': 'a'})
        {'optimization': {'lbfgs': {'lr': 0.1}}, 'system': {'experiment_id': 'a'}}
    """
    mapping = get_flat_to_nested_map()
    nested: Dict[str, Any] = {}

    for key, value in flat_config.items():
        path = mapping.get(key)
        if path is None:
            path = mapping.get(str(key).upper())
        if path is None:
            logger.debug(f"Unrecognized configuration key kept as extra: {key}")
            nested[key] = value
            continue
        _set_nested(nested, path, value)

    return nested
