# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Configurable mixin for hydrotune modules.

Combines logging, config access and timing. This is the recommended mixin
for components that are built from a HydrotuneConfig.

Mixin Hierarchy
---------------
::

    ConfigurableMixin
    ├── LoggingMixin          # self.logger property
    ├── ConfigMixin           # self.config, config_dict, _get_config_value
    └── TimingMixin           # time_limit context manager
"""

from .config import ConfigMixin
from .logging import LoggingMixin
from .timing import TimingMixin


class ConfigurableMixin(LoggingMixin, ConfigMixin, TimingMixin):
    """Unified mixin: logging + config + timing.

    Subclasses must set ``self.config`` before using config-dependent helpers.
    """
    pass
