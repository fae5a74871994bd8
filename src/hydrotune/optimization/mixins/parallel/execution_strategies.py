# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Execution strategies for running a batch of independent tasks.

Every strategy returns results in input order regardless of the order in
which tasks finish. Tasks are expected to capture their own failures in
their result; an exception escaping a task propagates to the caller.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Type, TypeVar

T = TypeVar('T')
R = TypeVar('R')


class ExecutionStrategy(ABC):
    """Maps a function over tasks with bounded concurrency."""

    name = 'base'

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def execute(self, func: Callable[[T], R], tasks: Sequence[T], max_workers: int) -> List[R]:
        """Run ``func`` on every task; results are in task order."""


class SequentialExecutionStrategy(ExecutionStrategy):
    """Runs tasks one after another in the calling thread."""

    name = 'sequential'

    def execute(self, func, tasks, max_workers):
        return [func(task) for task in tasks]


class ThreadPoolExecutionStrategy(ExecutionStrategy):
    """
    Runs tasks on a thread pool.

    Suited to simulators that spend their time in an external process or
    release the GIL; the callable does not need to be picklable.
    """

    name = 'thread'

    def execute(self, func, tasks, max_workers):
        if max_workers <= 1 or len(tasks) <= 1:
            return [func(task) for task in tasks]
        workers = min(max_workers, len(tasks))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='hydrotune-run') as executor:
            futures = [executor.submit(func, task) for task in tasks]
            return [future.result() for future in futures]


class ProcessPoolExecutionStrategy(ExecutionStrategy):
    """
    Runs tasks on a process pool.

    The function and the tasks must be picklable.
    """

    name = 'process'

    def execute(self, func, tasks, max_workers):
        if max_workers <= 1 or len(tasks) <= 1:
            return [func(task) for task in tasks]
        workers = min(max_workers, len(tasks))
        # ProcessPoolExecutor.map preserves input order
        with ProcessPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(func, tasks))


_STRATEGIES: Dict[str, Type[ExecutionStrategy]] = {
    SequentialExecutionStrategy.name: SequentialExecutionStrategy,
    ThreadPoolExecutionStrategy.name: ThreadPoolExecutionStrategy,
    ProcessPoolExecutionStrategy.name: ProcessPoolExecutionStrategy,
}


def get_execution_strategy(name: str, logger: Optional[logging.Logger] = None) -> ExecutionStrategy:
    """
    Create an execution strategy by name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        strategy_cls = _STRATEGIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown execution strategy '{name}'. Available: {sorted(_STRATEGIES)}"
        ) from None
    return strategy_cls(logger=logger)
