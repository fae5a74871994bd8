# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Goodness-of-fit metrics for paired observed/simulated series.

Every metric takes ``(observed, simulated)`` already aligned on a common
time axis, drops pairs where either side is NaN, and returns NaN when the
remaining data cannot support the metric (too short, zero variance, zero
mean). The objective function turns a NaN into a scoring failure.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

ArrayLike = Union[np.ndarray, pd.Series]

__all__ = [
    "paired_values",
    "nse",
    "log_nse",
    "kge",
    "kge_prime",
    "kge_np",
    "rmse",
    "nrmse",
    "mae",
    "mare",
    "bias",
    "pbias",
    "correlation",
    "r_squared",
    "volumetric_efficiency",
    "calculate_all_metrics",
]


def paired_values(
    observed: ArrayLike,
    simulated: ArrayLike,
    min_length: int = 1,
) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """
    Drop NaN pairs and return float arrays, or None if too few pairs remain.

    Raises:
        ValueError: If the two inputs differ in length
    """
    obs = np.asarray(observed, dtype=float)
    sim = np.asarray(simulated, dtype=float)
    if obs.shape != sim.shape:
        raise ValueError(f"Length mismatch: {obs.shape} observed vs {sim.shape} simulated")

    keep = np.isfinite(obs) & np.isfinite(sim)
    obs, sim = obs[keep], sim[keep]
    if obs.size < min_length:
        return None
    return obs, sim


def _negligible(sum_of_squares: float, reference: np.ndarray) -> bool:
    """True when a sum of squares is zero relative to the data's own scale."""
    scale = np.mean(np.abs(reference))
    if scale == 0:
        return True
    return abs(sum_of_squares) < 1e-10 * scale * scale * reference.size


def _pearson(obs: np.ndarray, sim: np.ndarray) -> float:
    if _negligible(np.sum((obs - obs.mean()) ** 2), obs):
        return np.nan
    if _negligible(np.sum((sim - sim.mean()) ** 2), sim):
        return np.nan
    return float(np.corrcoef(obs, sim)[0, 1])


def _euclidean_efficiency(*components: float) -> float:
    """1 - distance of the component vector from the ideal point (1, 1, ...)."""
    if any(np.isnan(c) for c in components):
        return np.nan
    return float(1.0 - np.sqrt(sum((c - 1.0) ** 2 for c in components)))


def nse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Nash-Sutcliffe Efficiency: 1 - SSE / variance of observations."""
    pairs = paired_values(observed, simulated, min_length=2)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    spread = np.sum((obs - obs.mean()) ** 2)
    if _negligible(spread, obs):
        return np.nan
    return float(1.0 - np.sum((obs - sim) ** 2) / spread)


def log_nse(observed: ArrayLike, simulated: ArrayLike, epsilon: Optional[float] = None) -> float:
    """NSE of log-transformed values; emphasizes low flows."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    if epsilon is None:
        epsilon = obs.mean() * 0.01 if obs.mean() > 0 else 1e-6
    keep = (obs > -epsilon) & (sim > -epsilon)
    return nse(np.log(obs[keep] + epsilon), np.log(sim[keep] + epsilon))


def kge(
    observed: ArrayLike,
    simulated: ArrayLike,
    return_components: bool = False,
) -> Union[float, Dict[str, float]]:
    """Kling-Gupta Efficiency (Gupta et al., 2009)."""
    r = alpha = beta = np.nan
    pairs = paired_values(observed, simulated, min_length=2)
    if pairs is not None:
        obs, sim = pairs
        r = _pearson(obs, sim)
        std_obs = np.std(obs, ddof=1)
        alpha = np.std(sim, ddof=1) / std_obs if std_obs != 0 else np.nan
        beta = sim.mean() / obs.mean() if obs.mean() != 0 else np.nan

    value = _euclidean_efficiency(r, alpha, beta)
    if return_components:
        return {"KGE": value, "r": float(r), "alpha": float(alpha), "beta": float(beta)}
    return value


def kge_prime(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Modified KGE (Kling et al., 2012) using the coefficient of variation ratio."""
    pairs = paired_values(observed, simulated, min_length=2)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    if obs.mean() == 0 or sim.mean() == 0:
        return np.nan
    cv_obs = np.std(obs, ddof=1) / obs.mean()
    cv_sim = np.std(sim, ddof=1) / sim.mean()
    gamma = cv_sim / cv_obs if cv_obs != 0 else np.nan
    return _euclidean_efficiency(_pearson(obs, sim), gamma, sim.mean() / obs.mean())


def kge_np(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Non-parametric KGE (Pool et al., 2018): Spearman rank and FDC shape."""
    pairs = paired_values(observed, simulated, min_length=2)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    if obs.sum() == 0 or sim.sum() == 0:
        return np.nan
    r_rank = float(stats.spearmanr(obs, sim)[0])
    fdc_obs = np.sort(obs) / obs.sum()
    fdc_sim = np.sort(sim) / sim.sum()
    alpha = 1.0 - 0.5 * np.sum(np.abs(fdc_sim - fdc_obs))
    return _euclidean_efficiency(r_rank, alpha, sim.mean() / obs.mean())


def rmse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Root Mean Square Error."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs
    return float(np.sqrt(np.mean((obs - sim) ** 2)))


def nrmse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """RMSE divided by the population standard deviation of observations."""
    pairs = paired_values(observed, simulated, min_length=2)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    spread = np.sum((obs - obs.mean()) ** 2)
    if _negligible(spread, obs):
        return np.nan
    return float(np.sqrt(np.mean((obs - sim) ** 2)) / np.sqrt(spread / obs.size))


def mae(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Mean Absolute Error."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs
    return float(np.mean(np.abs(obs - sim)))


def mare(observed: ArrayLike, simulated: ArrayLike, epsilon: Optional[float] = None) -> float:
    """Mean Absolute Relative Error, stabilized by a small epsilon."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    if epsilon is None:
        scale = np.mean(np.abs(obs))
        epsilon = scale * 0.01 if scale > 0 else 1e-6
    return float(np.mean(np.abs(obs - sim) / (np.abs(obs) + epsilon)))


def bias(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Mean error (simulated minus observed)."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs
    return float(sim.mean() - obs.mean())


def pbias(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Percent bias: 100 * (sum(sim) - sum(obs)) / sum(obs)."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    total = obs.sum()
    if total == 0:
        return np.nan
    return float(100.0 * (sim.sum() - total) / total)


def correlation(observed: ArrayLike, simulated: ArrayLike, method: str = "pearson") -> float:
    """Pearson or Spearman correlation coefficient."""
    pairs = paired_values(observed, simulated, min_length=2)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    if method == "pearson":
        return _pearson(obs, sim)
    if method == "spearman":
        return float(stats.spearmanr(obs, sim)[0])
    raise ValueError(f"Unknown correlation method: {method}")


def r_squared(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Coefficient of determination (squared Pearson correlation)."""
    r = correlation(observed, simulated)
    return np.nan if np.isnan(r) else float(r ** 2)


def volumetric_efficiency(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Volumetric Efficiency (Criss & Winston, 2008)."""
    pairs = paired_values(observed, simulated)
    if pairs is None:
        return np.nan
    obs, sim = pairs

    total = obs.sum()
    if total == 0:
        return np.nan
    return float(1.0 - np.sum(np.abs(obs - sim)) / total)


def calculate_all_metrics(observed: ArrayLike, simulated: ArrayLike) -> Dict[str, float]:
    """Evaluate every registered metric once; used for candidate reports."""
    components = kge(observed, simulated, return_components=True)
    return {
        "NSE": nse(observed, simulated),
        "logNSE": log_nse(observed, simulated),
        "KGE": components["KGE"],
        "KGEp": kge_prime(observed, simulated),
        "KGEnp": kge_np(observed, simulated),
        "VE": volumetric_efficiency(observed, simulated),
        "RMSE": rmse(observed, simulated),
        "NRMSE": nrmse(observed, simulated),
        "MAE": mae(observed, simulated),
        "MARE": mare(observed, simulated),
        "PBIAS": pbias(observed, simulated),
        "bias": bias(observed, simulated),
        "correlation": correlation(observed, simulated),
        "R2": r_squared(observed, simulated),
    }
