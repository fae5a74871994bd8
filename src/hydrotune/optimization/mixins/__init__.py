# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Shared infrastructure mixed into the optimization layer."""

from .parallel import DirectoryManager, WorkerEnvironmentConfig, get_execution_strategy

__all__ = ['DirectoryManager', 'WorkerEnvironmentConfig', 'get_execution_strategy']
