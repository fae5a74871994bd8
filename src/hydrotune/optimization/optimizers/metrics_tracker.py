# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Evaluation Metrics Tracker

Tracks failure rates, logs optimization progress in a consistent format and
forwards progress events to user callbacks.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ProgressEvent:
    """Snapshot emitted once per optimizer iteration or cycle."""
    algorithm: str
    iteration: int
    max_iterations: int
    n_evaluations: int
    best_score: float
    worst_score: Optional[float] = None
    elapsed: float = 0.0


ProgressCallback = Callable[[ProgressEvent], Any]


class EvaluationMetricsTracker:
    """Tracks evaluation failure rates and logs iteration progress.

    Callback exceptions are logged and otherwise ignored: observers cannot
    change the course of a run.

    Args:
        max_iterations: Total iterations for progress reporting
        logger: Logger instance
        elapsed_time_fn: Callable returning formatted elapsed time string
        callbacks: Progress observers
    """

    def __init__(
        self,
        max_iterations: int,
        logger: logging.Logger,
        elapsed_time_fn: Callable[[], str],
        callbacks: Iterable[ProgressCallback] = (),
    ):
        self.max_iterations = max(1, max_iterations)
        self.logger = logger
        self._elapsed_time_fn = elapsed_time_fn
        self.callbacks: List[ProgressCallback] = list(callbacks)

        self._total_evaluations: int = 0
        self._failure_count: int = 0
        self._last_failure_warning: int = 0

    # ------------------------------------------------------------------
    # Failure tracking
    # ------------------------------------------------------------------

    def track_evaluation(self, failed: bool) -> None:
        """Record an evaluation result.

        Args:
            failed: Whether the evaluation failed
        """
        self._total_evaluations += 1
        if failed:
            self._failure_count += 1

        # Warn every 50 evaluations when failure rate exceeds 10%
        if (self._total_evaluations % 50 == 0
                and self._total_evaluations > self._last_failure_warning):
            rate = self._failure_count / self._total_evaluations
            if rate > 0.10:
                self.logger.warning(
                    f"High failure rate: {self._failure_count}/{self._total_evaluations} "
                    f"({rate:.1%}) evaluations were penalized"
                )
                self._last_failure_warning = self._total_evaluations

    def get_failure_stats(self) -> Dict[str, Any]:
        """Return failure rate statistics.

        Returns:
            Dictionary with 'failure_count', 'total_evaluations', 'failure_rate'.
        """
        rate = (self._failure_count / self._total_evaluations
                if self._total_evaluations > 0 else 0.0)
        return {
            'failure_count': self._failure_count,
            'total_evaluations': self._total_evaluations,
            'failure_rate': rate,
        }

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def log_iteration_progress(self, event: ProgressEvent) -> None:
        """Log optimization progress in consistent format.

        Format: "{ALG} {iter}/{max} ({%}) | Best: {score} | ... | Elapsed: {time}"
        """
        progress_pct = min(100.0, (event.iteration / self.max_iterations) * 100)
        msg_parts = [
            f"{event.algorithm} {event.iteration}/{self.max_iterations} ({progress_pct:.0f}%)",
            f"Best: {event.best_score:.6g}",
        ]
        if event.worst_score is not None:
            msg_parts.append(f"Worst: {event.worst_score:.6g}")
        msg_parts.append(f"Evals: {event.n_evaluations}")

        stats = self.get_failure_stats()
        if stats['failure_count']:
            msg_parts.append(
                f"Failures: {stats['failure_count']}/{stats['total_evaluations']} "
                f"({stats['failure_rate']:.1%})"
            )
        msg_parts.append(f"Elapsed: {self._elapsed_time_fn()}")

        self.logger.info(" | ".join(msg_parts))

    def emit(self, event: ProgressEvent) -> None:
        """Log the event and notify every callback."""
        self.log_iteration_progress(event)
        for callback in self.callbacks:
            try:
                callback(event)
            except Exception as e:
                self.logger.warning(
                    f"Progress callback {getattr(callback, '__name__', callback)!r} raised "
                    f"{type(e).__name__}: {e}"
                )
