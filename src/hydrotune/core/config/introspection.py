# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Pydantic model introspection for the flat/nested configuration mapping.
"""

from typing import Any, Dict, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import AliasChoices, BaseModel


def _get_base_type(field_type: Any) -> Any:
    """Extract base type from Optional/Union types."""
    if get_origin(field_type) is Union:
        non_none_args = [arg for arg in get_args(field_type) if arg is not type(None)]
        if non_none_args:
            return non_none_args[0]
    return field_type


def _is_model(field_type: Any) -> bool:
    return isinstance(field_type, type) and issubclass(field_type, BaseModel)


def generate_flat_to_nested_map(root_model: Type[BaseModel]) -> Dict[str, Tuple[str, ...]]:
    """
    Auto-generate flat-to-nested mapping from Pydantic model structure.

    Walks all config models recursively and extracts:
    - Field aliases (becomes flat key, e.g., 'LBFGS_LR')
    - Model path in hierarchy (becomes nested path, e.g., ('optimization', 'lbfgs', 'lr'))

    Fields typed as nested models are descended into rather than mapped.

    Args:
        root_model: The root Pydantic model class (e.g., HydrotuneConfig)

    Returns:
        Dictionary mapping flat keys to nested paths.

    Example:
        >>> from hydrotune.core.config.models import HydrotuneConfig
        >>> mapping = generate_flat_to_nested_map(HydrotuneConfig)
        >>> mapping['OPTIMIZATION_ALGORITHM']
        ('optimization', 'algorithm')
    """
    mapping: Dict[str, Tuple[str, ...]] = {}

    def walk_model(model_class: Type[BaseModel], prefix: Tuple[str, ...], visited: Optional[set] = None) -> None:
        if visited is None:
            visited = set()
        if id(model_class) in visited:
            return
        visited.add(id(model_class))

        for field_name, field_info in model_class.model_fields.items():
            path = prefix + (field_name,)
            base_type = _get_base_type(field_info.annotation)
            if _is_model(base_type):
                walk_model(base_type, path, visited)
                continue

            aliases = []
            if field_info.alias and field_info.alias.isupper():
                aliases.append(field_info.alias)
            val_alias = field_info.validation_alias
            if isinstance(val_alias, AliasChoices):
                aliases.extend(
                    choice for choice in val_alias.choices
                    if isinstance(choice, str) and choice.isupper()
                )
            for alias in aliases:
                # First registration wins for duplicate aliases
                mapping.setdefault(alias, path)

    walk_model(root_model, ())
    return mapping
