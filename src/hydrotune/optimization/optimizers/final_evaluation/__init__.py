# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Post-calibration candidate comparison and results persistence."""

from .orchestrator import CandidateReport, FinalEvaluationOrchestrator
from .results_saver import FinalResultsSaver

__all__ = ['CandidateReport', 'FinalEvaluationOrchestrator', 'FinalResultsSaver']
