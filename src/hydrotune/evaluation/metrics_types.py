# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Metadata record for registered scoring metrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple

DIRECTIONS = ('minimize', 'maximize')


@dataclass(frozen=True)
class MetricInfo:
    """
    A goodness-of-fit metric as the registry knows it.

    ``function(observed, simulated)`` returns the raw score. ``direction``
    says which way is better. A ``signed`` metric is optimal at zero with
    either sign (bias, PBIAS).
    """

    name: str
    full_name: str
    function: Callable[..., float]
    range: Tuple[float, float]
    optimal: float
    direction: str
    description: str
    signed: bool = False

    def __post_init__(self):
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Metric {self.name}: direction must be one of {DIRECTIONS}")
        low, high = self.range
        if not low <= self.optimal <= high:
            raise ValueError(f"Metric {self.name}: optimal value {self.optimal} outside {self.range}")

    def is_better(self, a: float, b: float) -> bool:
        """True when raw score ``a`` is strictly better than ``b``."""
        if self.signed:
            return abs(a - self.optimal) < abs(b - self.optimal)
        return a > b if self.direction == 'maximize' else a < b
