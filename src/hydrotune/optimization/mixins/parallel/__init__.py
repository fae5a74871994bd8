# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Parallel Processing Module

Infrastructure for running simulator invocations concurrently: scratch
directory isolation, worker environment, and ordered batch execution.
"""

from .directory_manager import DirectoryManager
from .execution_strategies import (
    ExecutionStrategy,
    ProcessPoolExecutionStrategy,
    SequentialExecutionStrategy,
    ThreadPoolExecutionStrategy,
    get_execution_strategy,
)
from .worker_environment import WorkerEnvironmentConfig

__all__ = [
    'DirectoryManager',
    'WorkerEnvironmentConfig',
    'ExecutionStrategy',
    'SequentialExecutionStrategy',
    'ThreadPoolExecutionStrategy',
    'ProcessPoolExecutionStrategy',
    'get_execution_strategy',
]
