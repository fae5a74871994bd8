# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Evaluation records and the optimization trace.

Every objective evaluation made during a run is recorded, in evaluation
order, as an ObjectiveResult in the OptimizationTrace. The trace is the
return value of a run and also rides on OptimizationError so that a failed
run still exposes everything evaluated up to the failure.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from hydrotune.optimization.core.parameter_space import ParameterSpace, ParameterVector
from hydrotune.optimization.core.timeseries import TimeSeries

TERMINATION_REASONS = ('converged', 'max_iterations', 'max_evaluations', 'aborted')


@dataclass
class ObjectiveResult:
    """
    One objective evaluation.

    Attributes:
        score: Minimization-scale score; the penalty score for a penalized failure
        vector: Parameter vector evaluated
        series: Simulated series; kept for the current best only by default
        evaluation: 1-based evaluation number within the run
        iteration: Optimizer iteration/cycle that requested the evaluation
        best_so_far: Lowest score seen up to and including this evaluation
        elapsed: Seconds since the start of the run
        error: Failure description if the evaluation failed
    """

    score: float
    vector: ParameterVector
    series: Optional[TimeSeries] = None
    evaluation: int = 0
    iteration: int = 0
    best_so_far: float = math.inf
    elapsed: float = 0.0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class OptimizationTrace:
    """
    Ordered record of all evaluations of a run and its outcome.

    Args:
        space: Parameter space of the run
        algorithm: Name of the optimizer
        retain_series: 'best' keeps the simulated series of the current best
            result only, 'all' keeps every series, 'none' keeps none
    """

    def __init__(self, space: ParameterSpace, algorithm: str = '', retain_series: str = 'best'):
        if retain_series not in ('best', 'all', 'none'):
            raise ValueError(f"retain_series must be 'best', 'all' or 'none', got {retain_series!r}")
        self.space = space
        self.algorithm = algorithm
        self.retain_series = retain_series
        self.history: List[ObjectiveResult] = []
        self.termination: Optional[str] = None
        self.message: str = ''
        self.iterations: int = 0
        self._best: Optional[ObjectiveResult] = None
        self._best_so_far = math.inf

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(self, result: ObjectiveResult) -> ObjectiveResult:
        """Append an evaluation, updating best-so-far and the best result."""
        self._best_so_far = min(self._best_so_far, result.score)
        result.evaluation = len(self.history) + 1
        result.best_so_far = self._best_so_far

        is_new_best = not result.failed and (self._best is None or result.score < self._best.score)
        if self.retain_series == 'none':
            result.series = None
        elif self.retain_series == 'best':
            if not is_new_best:
                result.series = None
            elif self._best is not None:
                self._best.series = None
        if is_new_best:
            self._best = result

        self.history.append(result)
        return result

    def finish(self, termination: str, message: str = '', iterations: Optional[int] = None) -> None:
        if termination not in TERMINATION_REASONS:
            raise ValueError(f"Unknown termination reason: {termination}")
        self.termination = termination
        self.message = message
        if iterations is not None:
            self.iterations = iterations

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def best(self) -> Optional[ObjectiveResult]:
        """Lowest-scoring successful evaluation, or None if none succeeded."""
        return self._best

    @property
    def best_score(self) -> float:
        return self._best.score if self._best is not None else math.inf

    @property
    def best_vector(self) -> Optional[ParameterVector]:
        return self._best.vector if self._best is not None else None

    @property
    def n_evaluations(self) -> int:
        return len(self.history)

    @property
    def n_failures(self) -> int:
        return sum(1 for r in self.history if r.failed)

    @property
    def converged(self) -> bool:
        return self.termination == 'converged'

    def best_so_far(self) -> np.ndarray:
        """Running minimum of the score, one entry per evaluation."""
        return np.array([r.best_so_far for r in self.history], dtype=float)

    def __len__(self) -> int:
        return len(self.history)

    def __iter__(self):
        return iter(self.history)

    def __repr__(self) -> str:
        return (
            f"OptimizationTrace({self.algorithm}, {self.n_evaluations} evaluations, "
            f"best={self.best_score:.6g}, termination={self.termination})"
        )

    def distinct_solutions(self, n: int = 5, rtol: float = 1e-3) -> List[ObjectiveResult]:
        """
        Up to ``n`` best successful results with pairwise-distinct vectors.

        Two vectors are the same solution when every normalized coordinate
        differs by at most ``rtol`` (a fraction of the parameter's range).
        Results are returned best first.
        """
        if n <= 0:
            return []
        candidates = sorted((r for r in self.history if not r.failed), key=lambda r: r.score)
        chosen: List[ObjectiveResult] = []
        chosen_points: List[np.ndarray] = []
        for result in candidates:
            point = self.space.normalize(result.vector)
            if any(np.max(np.abs(point - other)) <= rtol for other in chosen_points):
                continue
            chosen.append(result)
            chosen_points.append(point)
            if len(chosen) == n:
                break
        return chosen

    def to_dataframe(self) -> pd.DataFrame:
        """One row per evaluation with scores, metadata and parameter values."""
        rows: List[Dict[str, Any]] = []
        for r in self.history:
            row = {
                'evaluation': r.evaluation,
                'iteration': r.iteration,
                'score': r.score,
                'best_so_far': r.best_so_far,
                'elapsed': r.elapsed,
                'error': r.error,
            }
            row.update(r.vector.to_dict())
            rows.append(row)
        columns = ['evaluation', 'iteration', 'score', 'best_so_far', 'elapsed', 'error', *self.space.names()]
        return pd.DataFrame(rows, columns=columns)
