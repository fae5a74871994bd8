# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""CLI command handlers."""

from .base import BaseCommand, cli_exception_handler
from .calibration_commands import CalibrationCommands

__all__ = ['BaseCommand', 'CalibrationCommands', 'cli_exception_handler']
