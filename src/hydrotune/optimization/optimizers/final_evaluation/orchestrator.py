# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Final Evaluation Orchestrator

Re-runs the best distinct candidates of a finished calibration as one
parallel batch and reports a full set of goodness-of-fit metrics for each,
so near-equivalent solutions can be compared side by side.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from hydrotune.core.exceptions import ObjectiveError
from hydrotune.evaluation import calculate_all_metrics
from hydrotune.optimization.core.parameter_space import ParameterVector
from hydrotune.optimization.objectives import ObjectiveFunction
from hydrotune.optimization.run_batcher import RunBatcher

from ..results import OptimizationTrace


@dataclass
class CandidateReport:
    """Re-run outcome of one candidate solution."""
    rank: int
    vector: ParameterVector
    calibration_score: float
    score: Optional[float] = None
    metrics: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            'rank': self.rank,
            'calibration_score': self.calibration_score,
            'score': self.score,
            'error': self.error,
        }
        row.update(self.vector.to_dict())
        row.update(self.metrics)
        return row


class FinalEvaluationOrchestrator:
    """Coordinates the post-calibration comparison of top candidates.

    Args:
        objective: Objective used during calibration (observations, window, metric)
        batcher: RunBatcher that re-simulates the candidates
        logger: Logger instance
    """

    def __init__(
        self,
        objective: ObjectiveFunction,
        batcher: RunBatcher,
        logger: Optional[logging.Logger] = None,
    ):
        self.objective = objective
        self.batcher = batcher
        self.logger = logger or logging.getLogger(__name__)

    def compare_candidates(
        self,
        trace: OptimizationTrace,
        n: int = 5,
        rtol: float = 1e-3,
    ) -> List[CandidateReport]:
        """
        Re-simulate the ``n`` best distinct solutions of ``trace``.

        A candidate whose re-run fails gets a report with ``error`` set; the
        other candidates are unaffected.

        Returns:
            Reports ordered by calibration rank (best first)
        """
        candidates = trace.distinct_solutions(n, rtol)
        if not candidates:
            self.logger.warning("No successful evaluations to compare")
            return []

        self.logger.info(f"Re-running {len(candidates)} distinct candidate solutions")
        outcomes = self.batcher.run_all([c.vector for c in candidates], self.objective.window)

        reports: List[CandidateReport] = []
        for rank, (candidate, outcome) in enumerate(zip(candidates, outcomes), start=1):
            report = CandidateReport(rank=rank, vector=candidate.vector, calibration_score=candidate.score)
            if not outcome.success:
                report.error = str(outcome.error)
            else:
                try:
                    report.score = self.objective.score_series(outcome.series, outcome.vector)
                    report.metrics = self._metrics(outcome.series)
                except ObjectiveError as e:
                    report.error = str(e)
            reports.append(report)

        self.log_results(reports)
        return reports

    def _metrics(self, series) -> Dict[str, float]:
        _, obs, sim = self.objective.observed.align(series.scale(self.objective.unit_conversion))
        return calculate_all_metrics(obs, sim)

    def log_results(self, reports: List[CandidateReport]) -> None:
        """Log one line per candidate."""
        for report in reports:
            if not report.success:
                self.logger.warning(f"Candidate {report.rank} failed on re-run: {report.error}")
                continue
            headline = ', '.join(
                f"{key}={report.metrics[key]:.4f}"
                for key in ('NSE', 'KGE', 'PBIAS')
                if key in report.metrics
            )
            self.logger.info(f"Candidate {report.rank}: score={report.score:.6g} | {headline}")

    @staticmethod
    def to_dataframe(reports: List[CandidateReport]) -> pd.DataFrame:
        return pd.DataFrame([report.to_row() for report in reports])
