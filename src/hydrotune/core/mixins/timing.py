# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Wall-clock timing of calibration stages."""

import logging
import time
from contextlib import contextmanager
from typing import ContextManager


def format_duration(seconds: float) -> str:
    """Render seconds as ``1h 02m 03s``, ``2m 05s`` or ``4.20s``."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


class TimingMixin:
    """Logs how long a named stage took. Uses ``self.logger`` when present."""

    @contextmanager
    def time_limit(self, stage: str) -> ContextManager[None]:
        logger = getattr(self, 'logger', None) or logging.getLogger(__name__)
        logger.debug(f"{stage} started")
        started = time.perf_counter()
        try:
            yield
        except BaseException:
            logger.info(f"{stage} stopped after {format_duration(time.perf_counter() - started)}")
            raise
        logger.info(f"{stage} finished in {format_duration(time.perf_counter() - started)}")
