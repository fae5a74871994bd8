# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Custom exception hierarchy for hydrotune.

This module defines a hierarchy of exceptions that provide clear, specific
error types for the different failure modes of a calibration run: bad
configuration, simulator failures, objective evaluation failures, and
optimizer termination conditions.

Every exception that concerns a single model run carries the parameter
vector that produced it, so the failing run can be reproduced manually
outside the harness.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Mapping, Optional, Tuple, TypeVar


def _format_vector(vector: Optional[Mapping[str, float]]) -> str:
    if vector is None:
        return ''
    items = ', '.join(f"{name}={value:.6g}" for name, value in vector.items())
    return f" [vector: {items}]"


class HydrotuneError(Exception):
    """
    Base exception for all hydrotune-specific errors.

    All custom exceptions in hydrotune should inherit from this class.
    This allows catching all hydrotune errors with a single except clause.
    """
    pass


class ConfigurationError(HydrotuneError):
    """
    Configuration-related errors.

    Raised when:
    - Required configuration keys are missing
    - Configuration values are invalid
    - Configuration file cannot be loaded or parsed
    """
    pass


class InvalidBoundsError(ConfigurationError):
    """
    Parameter bounds are inconsistent.

    Raised at ParameterSpace construction when lower > upper, when the
    initial value lies outside [lower, upper], or when a bound is not finite.
    Fatal: the space is never built.
    """

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class ValidationError(HydrotuneError):
    """
    Data or parameter validation failures.

    Raised when:
    - Input data fails validation checks
    - Parameter values are out of acceptable range
    """
    pass


class BoundsViolation(ValidationError):
    """
    A candidate parameter vector lies outside the parameter space.

    Attributes:
        violations: Mapping of parameter name to (value, lower, upper)
    """

    def __init__(self, violations: Dict[str, Tuple[float, float, float]]):
        self.violations = dict(violations)
        details = '; '.join(
            f"{name}={value:.6g} not in [{lower:.6g}, {upper:.6g}]"
            for name, (value, lower, upper) in self.violations.items()
        )
        super().__init__(f"Parameter vector out of bounds: {details}")


class SimulationError(HydrotuneError):
    """
    A single simulator invocation failed.

    Recoverable at the batch level (siblings keep running), fatal at the
    single-evaluation level unless a penalty policy is configured.

    Attributes:
        reason: Short machine-readable failure label
        vector: Parameter vector that was being simulated
        partial_output: Captured output of the failed run, if any
        workdir: Scratch directory of the run, if it was kept
    """

    reason = 'error'

    def __init__(
        self,
        message: str,
        vector: Optional[Mapping[str, float]] = None,
        partial_output: Optional[str] = None,
        workdir: Optional[Any] = None
    ):
        super().__init__(message)
        self.message = message
        self.vector = vector
        self.partial_output = partial_output
        self.workdir = workdir

    def __str__(self) -> str:
        return f"{self.message}{_format_vector(self.vector)}"


class SimulationTimeout(SimulationError):
    """The simulator did not finish within its time limit."""

    reason = 'timeout'

    def __init__(self, message: str, timeout: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class SimulationNonZeroExit(SimulationError):
    """The external simulator process exited with a non-zero return code."""

    reason = 'non_zero_exit'

    def __init__(self, message: str, returncode: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.returncode = returncode


class MalformedOutput(SimulationError):
    """The simulator finished but its output could not be read as a time series."""

    reason = 'malformed_output'


class ObjectiveError(HydrotuneError):
    """
    Objective function evaluation failures.

    Attributes:
        vector: Parameter vector being evaluated
        stage: Stage that failed ('simulation', 'alignment', 'scoring')
    """

    stage = 'objective'

    def __init__(self, message: str, vector: Optional[Mapping[str, float]] = None):
        super().__init__(message)
        self.message = message
        self.vector = vector

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}{_format_vector(self.vector)}"


class SimulationFailed(ObjectiveError):
    """The simulator failed; the SimulationError is chained as __cause__."""

    stage = 'simulation'


class NoOverlap(ObjectiveError):
    """Simulated and observed series share no timestamps."""

    stage = 'alignment'


class ScoringFailed(ObjectiveError):
    """The goodness-of-fit function returned no usable value."""

    stage = 'scoring'


class OptimizationError(HydrotuneError):
    """
    Calibration/optimization failures.

    Attributes:
        trace: OptimizationTrace accumulated up to the failure, if any
    """

    def __init__(self, message: str, trace: Optional[Any] = None):
        super().__init__(message)
        self.trace = trace


class MaxEvaluationsExceeded(OptimizationError):
    """The evaluation budget ran out before the stopping rule fired."""
    pass


class DidNotConverge(OptimizationError):
    """The iteration limit was reached without meeting the tolerance."""
    pass


class EvaluationAborted(OptimizationError):
    """An evaluation failed under the 'abort' failure policy."""
    pass


# =============================================================================
# Validation Helpers
# =============================================================================

T = TypeVar('T')


def require(condition: bool, message: str, error_type: type = None) -> None:
    """
    Validate a condition, raising an exception if it fails.

    This replaces assert statements with proper validation that cannot be
    disabled with python -O.

    Args:
        condition: The condition that must be True
        message: Error message if condition is False
        error_type: Exception type to raise (default: ValidationError)

    Raises:
        ValidationError (or specified error_type) if condition is False

    Example:
        >>> require(len(params) > 0, "Parameters cannot be empty")
        >>> require(value >= 0, "Value must be non-negative", ValueError)
    """
    if error_type is None:
        error_type = ValidationError
    if not condition:
        raise error_type(message)


def require_not_none(value: Optional[T], name: str, error_type: type = None) -> T:
    """
    Validate that a value is not None, returning it if valid.

    Args:
        value: The value to check
        name: Name of the value (for error message)
        error_type: Exception type to raise (default: ValidationError)

    Returns:
        The value if it is not None

    Raises:
        ValidationError (or specified error_type) if value is None
    """
    if error_type is None:
        error_type = ValidationError
    if value is None:
        raise error_type(f"{name} must not be None")
    return value


@contextmanager
def hydrotune_error_handler(
    operation: str,
    logger: Optional[logging.Logger] = None,
    reraise: bool = True,
    error_type: type = HydrotuneError
):
    """
    Context manager for standardized error handling.

    Provides consistent error handling at component edges, with logging,
    error type conversion, and optional re-raising.

    Args:
        operation: Description of the operation being performed (for logging)
        logger: Logger instance for error messages. If None, errors are not logged.
        reraise: Whether to re-raise the exception after handling (default: True)
        error_type: hydrotune exception type to convert generic exceptions to

    Raises:
        The original exception if it's already a HydrotuneError, or the
        specified error_type if reraise=True

    Example:
        >>> with hydrotune_error_handler("loading observations", logger, error_type=ConfigurationError):
        ...     observed = load_observations(path)
    """
    try:
        yield
    except HydrotuneError:
        if logger:
            logger.error(f"Error during {operation}", exc_info=True)
        if reraise:
            raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)
        if reraise:
            raise error_type(f"Failed during {operation}: {e}") from e


# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Base
    'HydrotuneError',
    # Configuration
    'ConfigurationError',
    'InvalidBoundsError',
    # Validation
    'ValidationError',
    'BoundsViolation',
    # Simulation
    'SimulationError',
    'SimulationTimeout',
    'SimulationNonZeroExit',
    'MalformedOutput',
    # Objective
    'ObjectiveError',
    'SimulationFailed',
    'NoOverlap',
    'ScoringFailed',
    # Optimization
    'OptimizationError',
    'MaxEvaluationsExceeded',
    'DidNotConverge',
    'EvaluationAborted',
    # Helpers
    'require',
    'require_not_none',
    'hydrotune_error_handler',
]
