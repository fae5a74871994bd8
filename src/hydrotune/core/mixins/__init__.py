# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Core mixins for hydrotune modules.

Usage:
    from hydrotune.core.mixins import ConfigurableMixin

    class MyComponent(ConfigurableMixin):
        def run(self):
            with self.time_limit("calibration"):
                self.logger.info("Running")
"""

from .logging import LoggingMixin
from .config import ConfigMixin
from .timing import TimingMixin
from .configurable import ConfigurableMixin

__all__ = [
    "LoggingMixin",
    "ConfigMixin",
    "TimingMixin",
    "ConfigurableMixin",
]
