# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Physical constants, unit conversion factors and harness defaults.

Centralizes hardcoded constants so that the simulator adapters, the
objective function and the optimizers agree on a single source of truth.
"""

from typing import Dict, Optional, Union


class UnitConversion:
    """
    Unit conversion factors for hydrological calculations.

    Used by the objective function to bring simulator output into the unit
    of the observations before scoring.
    """

    # Time constants
    SECONDS_PER_HOUR = 3600
    """Seconds in one hour."""

    SECONDS_PER_DAY = 86400
    """Seconds in one day (24 hours × 3600 seconds)."""

    # Streamflow conversions
    MM_DAY_TO_CMS = SECONDS_PER_DAY / 1000.0
    """
    Convert mm/day to m³/s (cms) per km² of catchment area.

    Formula: Q(cms) = Q(mm/day) * Area(km²) / MM_DAY_TO_CMS

    Derivation:
        1 mm/day over 1 km² =
        (0.001 m) × (1,000,000 m²) / (86,400 s) =
        0.01157 m³/s

    Therefore: 86.4 = 86,400 / 1000
    """

    CFS_TO_CMS = 0.028316846592
    """
    Convert cubic feet per second to cubic meters per second.

    1 cubic foot = 0.028316846592 cubic meters (exact)
    """

    CMS_TO_CFS = 1.0 / CFS_TO_CMS
    """Convert cubic meters per second to cubic feet per second."""

    CMS_TO_LPS = 1000.0
    """Convert m³/s to litres per second."""


class ModelDefaults:
    """Default values used across the calibration harness."""

    PENALTY_SCORE = 1.0e6
    """
    Objective value assigned to a failed evaluation under the 'penalize'
    policy. Scores are on the minimization scale, so the penalty is large
    and positive.
    """

    DEFAULT_SIMULATION_TIMEOUT = 3600.0
    """Default wall-clock limit for a single simulator invocation, in seconds."""

    DEFAULT_METRIC = 'NSE'
    """Goodness-of-fit metric used when none is configured."""


# Named conversion factors accepted in place of a numeric factor
UNIT_CONVERSIONS: Dict[str, float] = {
    'none': 1.0,
    'mm_day_to_cms_per_km2': 1.0 / UnitConversion.MM_DAY_TO_CMS,
    'cfs_to_cms': UnitConversion.CFS_TO_CMS,
    'cms_to_cfs': UnitConversion.CMS_TO_CFS,
    'cms_to_lps': UnitConversion.CMS_TO_LPS,
}
"""
Convenience dictionary of unit conversion factors by name.

Each factor multiplies the simulated series to express it in the unit of
the observations.
"""


def resolve_unit_conversion(value: Optional[Union[str, float, int]]) -> float:
    """
    Resolve a configured unit conversion into a multiplicative factor.

    Args:
        value: Numeric factor, a key of UNIT_CONVERSIONS, or None (no conversion)

    Returns:
        Multiplicative factor applied to simulated values

    Raises:
        ValueError: If the name is unknown or the factor is zero
    """
    if value is None:
        return 1.0
    if isinstance(value, str):
        key = value.strip().lower()
        if key in UNIT_CONVERSIONS:
            return UNIT_CONVERSIONS[key]
        try:
            factor = float(key)
        except ValueError:
            raise ValueError(
                f"Unknown unit conversion '{value}'. "
                f"Available: {sorted(UNIT_CONVERSIONS)}"
            ) from None
    else:
        factor = float(value)
    if factor == 0.0:
        raise ValueError("Unit conversion factor must be non-zero")
    return factor
