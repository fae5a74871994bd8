# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Metric registry, lookup helpers, and interpretation utilities."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import numpy as np

from hydrotune.evaluation import metrics_core as mc
from hydrotune.evaluation.metrics_types import MetricInfo

_UNBOUNDED_BELOW = (float("-inf"), 1.0)
_NON_NEGATIVE = (0.0, float("inf"))

METRIC_REGISTRY: Dict[str, MetricInfo] = {}
_ALIASES: Dict[str, str] = {}


def _register(info: MetricInfo, *aliases: str) -> None:
    METRIC_REGISTRY[info.name] = info
    for alias in (info.name, *aliases):
        _ALIASES[alias.lower()] = info.name


_register(MetricInfo("NSE", "Nash-Sutcliffe Efficiency", mc.nse, _UNBOUNDED_BELOW, 1.0,
                     "maximize", "Skill relative to the mean of observations"))
_register(MetricInfo("logNSE", "Log-transformed Nash-Sutcliffe Efficiency", mc.log_nse,
                     _UNBOUNDED_BELOW, 1.0, "maximize", "NSE on log values, emphasizes low flows"),
          "log_nse", "lnNSE")
_register(MetricInfo("KGE", "Kling-Gupta Efficiency", mc.kge, _UNBOUNDED_BELOW, 1.0,
                     "maximize", "Combines correlation, variability ratio and bias ratio"))
_register(MetricInfo("KGEp", "Modified Kling-Gupta Efficiency", mc.kge_prime, _UNBOUNDED_BELOW,
                     1.0, "maximize", "KGE with coefficient-of-variation ratio"), "kge_prime")
_register(MetricInfo("KGEnp", "Non-parametric Kling-Gupta Efficiency", mc.kge_np,
                     _UNBOUNDED_BELOW, 1.0, "maximize",
                     "KGE with Spearman correlation and flow duration curves"), "kge_np")
_register(MetricInfo("VE", "Volumetric Efficiency", mc.volumetric_efficiency, _UNBOUNDED_BELOW,
                     1.0, "maximize", "Fraction of water delivered at the proper time"))
_register(MetricInfo("RMSE", "Root Mean Square Error", mc.rmse, _NON_NEGATIVE, 0.0,
                     "minimize", "Average magnitude of errors, in data units"))
_register(MetricInfo("NRMSE", "Normalized Root Mean Square Error", mc.nrmse, _NON_NEGATIVE,
                     0.0, "minimize", "RMSE over the standard deviation of observations"))
_register(MetricInfo("MAE", "Mean Absolute Error", mc.mae, _NON_NEGATIVE, 0.0,
                     "minimize", "Average absolute error, in data units"))
_register(MetricInfo("MARE", "Mean Absolute Relative Error", mc.mare, _NON_NEGATIVE, 0.0,
                     "minimize", "Average error relative to observed magnitude"))
_register(MetricInfo("bias", "Mean Error", mc.bias, (float("-inf"), float("inf")), 0.0,
                     "minimize", "Mean of simulated minus observed", signed=True))
_register(MetricInfo("PBIAS", "Percent Bias", mc.pbias, (float("-inf"), float("inf")), 0.0,
                     "minimize", "Relative volume error in percent", signed=True))
_register(MetricInfo("correlation", "Pearson Correlation", mc.correlation, (-1.0, 1.0), 1.0,
                     "maximize", "Linear association between series"), "r", "pearson")
_register(MetricInfo("R2", "Coefficient of Determination", mc.r_squared, (0.0, 1.0), 1.0,
                     "maximize", "Proportion of variance explained"), "r_squared", "rsquared")


def resolve_metric_name(name: str) -> Optional[str]:
    """Return the canonical registry name for a metric or alias, if known."""
    if name in METRIC_REGISTRY:
        return name
    return _ALIASES.get(str(name).strip().lower())


def get_metric_function(name: str) -> Optional[Callable[..., float]]:
    """Get a metric function by name or alias."""
    info = get_metric_info(name)
    return info.function if info is not None else None


def get_metric_info(name: str) -> Optional[MetricInfo]:
    """Get metric metadata by name or alias."""
    canonical = resolve_metric_name(name)
    return METRIC_REGISTRY.get(canonical) if canonical else None


def list_available_metrics() -> List[str]:
    """List all canonical metric names (excluding aliases)."""
    return list(METRIC_REGISTRY)


def interpret_metric(name: str, value: float) -> str:
    """Provide a human-readable interpretation of a metric value."""
    info = get_metric_info(name)
    if info is None:
        return f"{name} = {value:.3f}: Unknown metric"
    if np.isnan(value):
        return f"{info.name} = NaN: Could not be calculated (insufficient data or invalid values)"

    if info.direction == "maximize" and info.optimal == 1.0:
        for threshold, label in ((0.9, "Excellent"), (0.75, "Good"), (0.5, "Satisfactory"), (0.0, "Poor")):
            if value >= threshold:
                return f"{info.name} = {value:.3f}: {label}"
        return f"{info.name} = {value:.3f}: Unsatisfactory"

    if value == 0:
        category = "Perfect"
    elif info.name == "PBIAS":
        magnitude = abs(value)
        category = ("Excellent" if magnitude < 10 else "Good" if magnitude < 25
                    else "Satisfactory" if magnitude < 50 else "Poor")
    else:
        category = "See context"
    return f"{info.name} = {value:.3f}: {category}"
