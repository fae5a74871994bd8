# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Persists calibration results under ``OUTPUT_DIR/EXPERIMENT_ID``."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from ..results import OptimizationTrace
from .orchestrator import CandidateReport, FinalEvaluationOrchestrator


class FinalResultsSaver:
    """Writes the evaluation history, best parameters, metadata and candidate reports.

    Files written to ``output_dir``:
        - ``<algorithm>_history.csv``: one row per evaluation
        - ``best_parameters.csv``: parameter, value
        - ``<algorithm>_results.json``: termination, best score/parameters, settings
        - ``<algorithm>_candidates.csv``: post-hoc candidate comparison, if any
        - ``best_simulation.csv``: simulated series of the best run, if retained
    """

    def __init__(self, output_dir: Path, logger: Optional[logging.Logger] = None):
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    def save_results(
        self,
        trace: OptimizationTrace,
        metadata: Optional[Dict[str, Any]] = None,
        candidates: Optional[List[CandidateReport]] = None,
    ) -> Path:
        """Save everything and return the path of the results JSON."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        prefix = trace.algorithm.lower().replace('-', '')

        history_path = self.output_dir / f"{prefix}_history.csv"
        trace.to_dataframe().to_csv(history_path, index=False)
        self.logger.info(f"Saved optimization history to: {history_path}")

        best = trace.best
        if best is not None:
            best_path = self.output_dir / "best_parameters.csv"
            pd.DataFrame(
                {'parameter': list(best.vector.keys()), 'value': list(best.vector.values())}
            ).to_csv(best_path, index=False)
            self.logger.info(f"Saved best parameters to: {best_path}")

            if best.series is not None:
                best.series.to_frame().to_csv(self.output_dir / "best_simulation.csv", index=False)

        if candidates:
            candidates_path = self.output_dir / f"{prefix}_candidates.csv"
            FinalEvaluationOrchestrator.to_dataframe(candidates).to_csv(candidates_path, index=False)
            self.logger.info(f"Saved candidate comparison to: {candidates_path}")

        summary = {
            'algorithm': trace.algorithm,
            'termination': trace.termination,
            'message': trace.message,
            'iterations': trace.iterations,
            'n_evaluations': trace.n_evaluations,
            'n_failures': trace.n_failures,
            'best_score': None if best is None else best.score,
            'best_parameters': None if best is None else best.vector.to_dict(),
            'parameters': trace.space.to_records(),
            'completed_at': datetime.now().isoformat(),
        }
        if metadata:
            summary.update(metadata)

        results_path = self.output_dir / f"{prefix}_results.json"
        with open(results_path, 'w', encoding='utf-8') as f:
            json.dump(summary, f, indent=2, default=str)
        self.logger.info(f"Saved results to: {results_path}")
        return results_path
