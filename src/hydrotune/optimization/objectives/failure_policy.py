# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""What the engine does when a single evaluation fails."""

from enum import Enum
from typing import Union

from hydrotune.core.exceptions import ConfigurationError


class FailurePolicy(str, Enum):
    """
    ABORT stops the run at the first failed evaluation and raises
    EvaluationAborted with the trace so far. PENALIZE records the failure,
    assigns the penalty score and lets the optimizer continue.
    """

    ABORT = 'abort'
    PENALIZE = 'penalize'

    @classmethod
    def parse(cls, value: Union[str, 'FailurePolicy']) -> 'FailurePolicy':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown failure policy '{value}'. Use 'abort' or 'penalize'"
            ) from None
