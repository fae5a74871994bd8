# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Calibration harness.

- ``core``: parameter space, time series, simulator adapters
- ``objectives``: objective function and failure policy
- ``optimizers``: search algorithms, engine, trace, post-hoc comparison
- ``run_batcher``: ordered, bounded-concurrency batch simulation
- ``optimization_manager``: config-driven wiring of all of the above
"""

from .optimization_manager import OptimizationManager
from .run_batcher import RunBatcher

__all__ = ['OptimizationManager', 'RunBatcher']
