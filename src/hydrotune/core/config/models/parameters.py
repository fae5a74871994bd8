# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Calibration parameter configuration.

Each entry declares one tunable parameter with its bounds. Consistency of
the bounds (lower <= initial <= upper) is checked when the ParameterSpace is
built from these entries, so that bound errors surface as InvalidBoundsError.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from .base import FROZEN_CONFIG


class ParameterConfig(BaseModel):
    """A single calibration parameter: name, bounds, optional initial value"""
    model_config = FROZEN_CONFIG

    name: str = Field(min_length=1)
    lower: float
    upper: float
    initial: Optional[float] = None

    @model_validator(mode='before')
    @classmethod
    def accept_bounds_list(cls, data: Any) -> Any:
        """Accept ``{'name': n, 'bounds': [lower, upper]}`` as a shorthand."""
        if isinstance(data, dict) and 'bounds' in data:
            data = dict(data)
            bounds = data.pop('bounds')
            if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
                raise ValueError(f"bounds must be [lower, upper], got {bounds!r}")
            data.setdefault('lower', bounds[0])
            data.setdefault('upper', bounds[1])
        return data


def normalize_parameter_entries(value: Any) -> List[Dict[str, Any]]:
    """
    Normalize the PARAMETERS block into a list of parameter dicts.

    Accepted forms::

        PARAMETERS:                      PARAMETERS:
          - name: k_sat                    k_sat: [0.1, 10.0]
            lower: 0.1                     fc: [50, 500, 200]
            upper: 10.0                    theta: {lower: 0, upper: 1}

    Args:
        value: Raw PARAMETERS value from the configuration source

    Returns:
        List of dicts with name/lower/upper[/initial]
    """
    if value is None:
        return []
    if isinstance(value, dict):
        entries = []
        for name, spec in value.items():
            if isinstance(spec, dict):
                entries.append({'name': name, **spec})
            elif isinstance(spec, (list, tuple)) and len(spec) in (2, 3):
                entry = {'name': name, 'lower': spec[0], 'upper': spec[1]}
                if len(spec) == 3:
                    entry['initial'] = spec[2]
                entries.append(entry)
            else:
                raise ValueError(
                    f"Parameter '{name}' must be [lower, upper], "
                    f"[lower, upper, initial] or a mapping, got {spec!r}"
                )
        return entries
    if isinstance(value, (list, tuple)):
        return list(value)
    raise ValueError(f"PARAMETERS must be a list or mapping, got {type(value).__name__}")
