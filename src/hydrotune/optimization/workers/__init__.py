# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Workers executing individual simulator runs."""

from .base_worker import SimulationOutcome, SimulationTask, SimulationWorker

__all__ = ['SimulationTask', 'SimulationOutcome', 'SimulationWorker']
