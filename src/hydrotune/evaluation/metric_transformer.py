# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Metric Transformer for Optimization

All hydrotune optimizers minimize. This module maps metric values onto the
minimization scale and back, so that lower transformed values are always
better:

- NSE (maximize): 0.8 -> -0.8
- RMSE (minimize): 10.0 -> 10.0
- PBIAS (minimize, signed): -15% -> 15 and +15% -> 15

Usage
-----
>>> from hydrotune.evaluation.metric_transformer import MetricTransformer
>>> MetricTransformer.transform_for_minimization('NSE', 0.8)
-0.8
"""

from typing import Optional

import numpy as np

from .metrics_registry import get_metric_info


class MetricTransformer:
    """Transform metric values to a consistent optimization direction.

    Transformation Rules (minimization scale):
        - Maximize metrics (KGE, NSE, R2, correlation): negate
        - Minimize metrics (RMSE, MAE, NRMSE, MARE): unchanged
        - Signed minimize metrics (PBIAS, bias): absolute value, so that
          positive and negative bias are penalized equally

    Example:
        >>> MetricTransformer.transform_for_minimization('PBIAS', -20.0)
        20.0
        >>> MetricTransformer.inverse_transform('NSE', -0.75)
        0.75
    """

    @classmethod
    def get_direction(cls, metric_name: str) -> str:
        """Get the natural optimization direction of a metric.

        Returns:
            'maximize' or 'minimize'

        Raises:
            ValueError: If the metric is not registered
        """
        info = get_metric_info(metric_name)
        if info is None:
            raise ValueError(f"Unknown metric: {metric_name}")
        return info.direction

    @classmethod
    def is_signed_metric(cls, metric_name: str) -> bool:
        info = get_metric_info(metric_name)
        return bool(info is not None and info.signed)

    @classmethod
    def transform_for_minimization(
        cls,
        metric_name: str,
        value: Optional[float]
    ) -> Optional[float]:
        """Transform a metric value to the minimization convention.

        None and NaN are passed through unchanged; penalty handling happens
        in the objective function.
        """
        if value is None or (isinstance(value, float) and np.isnan(value)):
            return value

        if cls.get_direction(metric_name) == 'maximize':
            return -value
        if cls.is_signed_metric(metric_name):
            return abs(value)
        return value

    @classmethod
    def transform_for_maximization(
        cls,
        metric_name: str,
        value: Optional[float]
    ) -> Optional[float]:
        """Transform a metric value so that higher is always better."""
        minimized = cls.transform_for_minimization(metric_name, value)
        if minimized is None or (isinstance(minimized, float) and np.isnan(minimized)):
            return minimized
        return -minimized

    @classmethod
    def inverse_transform(
        cls,
        metric_name: str,
        transformed_value: Optional[float]
    ) -> Optional[float]:
        """Convert a minimization-scale score back to the metric's natural value.

        Note:
            For signed metrics the sign of the bias is lost during
            transformation; the magnitude is returned.
        """
        if transformed_value is None:
            return transformed_value
        if isinstance(transformed_value, float) and np.isnan(transformed_value):
            return transformed_value

        if cls.get_direction(metric_name) == 'maximize':
            return -transformed_value
        return transformed_value
