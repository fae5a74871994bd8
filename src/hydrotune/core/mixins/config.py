# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Configuration mixin for hydrotune modules.

Gives components a single way to read settings whether they were handed a
typed ``HydrotuneConfig`` or a plain flat dictionary (as tests and worker
processes usually do).
"""

from typing import Any, Callable, Dict, Optional


class ConfigMixin:
    """
    Mixin for classes that use configuration settings.

    Provides a standardized way to access configuration regardless of whether
    it's a dictionary or a typed HydrotuneConfig object. Classes using this
    mixin store their configuration on ``self._config``.
    """

    @property
    def config(self) -> Any:
        """The configuration object (typed config or flat dict)."""
        return getattr(self, '_config', None)

    @config.setter
    def config(self, value: Any) -> None:
        self._config = value

    @property
    def config_dict(self) -> Dict[str, Any]:
        """
        Standardized access to configuration as a flat dictionary.

        Handles both dict-based and HydrotuneConfig-based configurations.
        """
        cfg = self.config
        if cfg is None:
            return {}
        if isinstance(cfg, dict):
            return cfg
        to_dict_func = getattr(cfg, 'to_dict', None)
        if callable(to_dict_func):
            try:
                return to_dict_func(flatten=True)
            except (TypeError, ValueError, AttributeError):
                return {}
        return {}

    def _get_config_value(
        self,
        typed_accessor: Optional[Callable[[], Any]] = None,
        default: Any = None,
        dict_key: Optional[str] = None
    ) -> Any:
        """
        Get a config value with typed accessor first and flat-dict fallback.

        Args:
            typed_accessor: Callable accessing typed config,
                e.g. ``lambda: self.config.optimization.iterations``
            default: Fallback value
            dict_key: Flat config key (e.g. 'NUMBER_OF_ITERATIONS')

        Returns:
            Configuration value or *default*.
        """
        cfg = self.config
        if typed_accessor is not None and cfg is not None and not isinstance(cfg, dict):
            try:
                value = typed_accessor()
                if value is not None:
                    return value
            except (AttributeError, KeyError, TypeError):
                pass

        if dict_key is not None:
            value = self.config_dict.get(dict_key)
            if value is not None:
                return value

        return default
