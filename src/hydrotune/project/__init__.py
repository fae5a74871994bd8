# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Run-level project services."""

from .logging_manager import LoggingManager

__all__ = ['LoggingManager']
