# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Goodness-of-fit metrics and their optimization-direction handling."""

from .metric_transformer import MetricTransformer
from .metrics_core import calculate_all_metrics, kge, nse, pbias, rmse
from .metrics_registry import (
    METRIC_REGISTRY,
    get_metric_function,
    get_metric_info,
    interpret_metric,
    list_available_metrics,
    resolve_metric_name,
)
from .metrics_types import MetricInfo

__all__ = [
    'METRIC_REGISTRY',
    'MetricInfo',
    'MetricTransformer',
    'calculate_all_metrics',
    'get_metric_function',
    'get_metric_info',
    'interpret_metric',
    'list_available_metrics',
    'resolve_metric_name',
    'kge',
    'nse',
    'pbias',
    'rmse',
]
