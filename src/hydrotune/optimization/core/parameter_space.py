# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Parameter space: the named, bounded, ordered set of calibration parameters.

A ParameterSpace is built once from configuration and is immutable for the
lifetime of a calibration run. It validates and clamps candidate vectors and
maps them to and from the unit hypercube that the optimizers search in.

Each parameter also carries how its value is applied to the simulator's base
value (set, add, or percent change), parsed from the parameter name::

    k_sat            -> attribute 'k_sat',  absolute set
    k_sat__abschg    -> attribute 'k_sat',  absolute change
    pctchg__cn2      -> attribute 'cn2',    percent change
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.stats import qmc

from hydrotune.core.exceptions import (
    BoundsViolation,
    ConfigurationError,
    InvalidBoundsError,
    ValidationError,
)


class ChangeMode(Enum):
    """How a calibrated value modifies the simulator's base parameter value."""

    ABSOLUTE_SET = 'absval'
    ABSOLUTE_CHANGE = 'abschg'
    PERCENT_CHANGE = 'pctchg'

    def apply(self, base: float, value: float) -> float:
        """Return the effective parameter value for a base value."""
        if self is ChangeMode.ABSOLUTE_SET:
            return value
        if self is ChangeMode.ABSOLUTE_CHANGE:
            return base + value
        return base * (1.0 + value / 100.0)

    @classmethod
    def from_token(cls, token: str) -> Optional['ChangeMode']:
        return _MODE_TOKENS.get(token.lower())

    @classmethod
    def parse_name(cls, name: str) -> Tuple[str, 'ChangeMode']:
        """
        Split a parameter name into (attribute, change mode).

        Recognizes ``<mode>__<attribute>`` and ``<attribute>__<mode>``; a
        name without a mode token is an absolute set of the whole name.
        """
        if '__' in name:
            head, tail = name.split('__', 1)
            mode = cls.from_token(head)
            if mode is not None and tail:
                return tail, mode
            head, tail = name.rsplit('__', 1)
            mode = cls.from_token(tail)
            if mode is not None and head:
                return head, mode
        return name, cls.ABSOLUTE_SET


_MODE_TOKENS = {
    'absval': ChangeMode.ABSOLUTE_SET,
    'v': ChangeMode.ABSOLUTE_SET,
    'set': ChangeMode.ABSOLUTE_SET,
    'abschg': ChangeMode.ABSOLUTE_CHANGE,
    'a': ChangeMode.ABSOLUTE_CHANGE,
    'add': ChangeMode.ABSOLUTE_CHANGE,
    'pctchg': ChangeMode.PERCENT_CHANGE,
    'pct': ChangeMode.PERCENT_CHANGE,
}


@dataclass(frozen=True)
class Parameter:
    """
    A single calibration parameter.

    Attributes:
        name: Unique name within the space
        lower: Inclusive lower bound
        upper: Inclusive upper bound
        initial: Starting value; defaults to the midpoint of the bounds
        attribute: Simulator attribute the value is applied to
        change_mode: How the value modifies the attribute's base value
    """

    name: str
    lower: float
    upper: float
    initial: Optional[float] = None
    attribute: str = field(default='', compare=False)
    change_mode: ChangeMode = field(default=ChangeMode.ABSOLUTE_SET, compare=False)

    def __post_init__(self):
        if not self.name:
            raise InvalidBoundsError("Parameter name must not be empty")
        lower, upper = float(self.lower), float(self.upper)
        if not (math.isfinite(lower) and math.isfinite(upper)):
            raise InvalidBoundsError(
                f"Parameter '{self.name}' has non-finite bounds [{lower}, {upper}]",
                parameter=self.name,
            )
        if lower > upper:
            raise InvalidBoundsError(
                f"Parameter '{self.name}': lower bound {lower} exceeds upper bound {upper}",
                parameter=self.name,
            )
        initial = (lower + upper) / 2.0 if self.initial is None else float(self.initial)
        if not lower <= initial <= upper:
            raise InvalidBoundsError(
                f"Parameter '{self.name}': initial value {initial} outside [{lower}, {upper}]",
                parameter=self.name,
            )
        attribute, mode = ChangeMode.parse_name(self.name)
        object.__setattr__(self, 'lower', lower)
        object.__setattr__(self, 'upper', upper)
        object.__setattr__(self, 'initial', initial)
        object.__setattr__(self, 'attribute', attribute)
        object.__setattr__(self, 'change_mode', mode)

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


class ParameterVector(Mapping):
    """
    Immutable assignment of a value to every parameter of a space.

    Behaves as a read-only ``Mapping[str, float]`` in space order. Instances
    are only created through ParameterSpace, which guarantees that every
    value lies within its bounds.
    """

    __slots__ = ('_space', '_values')

    def __init__(self, space: 'ParameterSpace', values: Sequence[float]):
        self._space = space
        self._values = tuple(float(v) for v in values)

    @property
    def space(self) -> 'ParameterSpace':
        return self._space

    def __getitem__(self, name: str) -> float:
        return self._values[self._space.index(name)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._space.names())

    def __len__(self) -> int:
        return len(self._values)

    def __hash__(self) -> int:
        return hash((self._space.names(), self._values))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ParameterVector):
            return self._space.names() == other._space.names() and self._values == other._values
        return Mapping.__eq__(self, other)

    def __repr__(self) -> str:
        items = ', '.join(f"{name}={value:.6g}" for name, value in self.items())
        return f"ParameterVector({items})"

    def as_array(self) -> np.ndarray:
        """Values as a float array in space order."""
        return np.array(self._values, dtype=float)

    def to_dict(self) -> Dict[str, float]:
        return dict(zip(self._space.names(), self._values))

    def effective_value(self, name: str, base: float) -> float:
        """Apply this vector's value for ``name`` to a simulator base value."""
        return self._space[name].change_mode.apply(base, self[name])


VectorLike = Union[ParameterVector, Mapping, Sequence[float], np.ndarray]


class ParameterSpace:
    """
    Ordered collection of calibration parameters with unique names.

    Raises:
        ConfigurationError: If the space is empty or names repeat
        InvalidBoundsError: If any parameter's bounds are inconsistent
    """

    def __init__(self, parameters: Iterable[Parameter]):
        self._parameters: Tuple[Parameter, ...] = tuple(parameters)
        if not self._parameters:
            raise ConfigurationError("ParameterSpace requires at least one parameter")

        self._index: Dict[str, int] = {}
        for i, param in enumerate(self._parameters):
            if param.name in self._index:
                raise ConfigurationError(f"Duplicate parameter name: '{param.name}'")
            self._index[param.name] = i

        self._lower = np.array([p.lower for p in self._parameters], dtype=float)
        self._upper = np.array([p.upper for p in self._parameters], dtype=float)
        self._lower.setflags(write=False)
        self._upper.setflags(write=False)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, entries: Iterable[Any]) -> 'ParameterSpace':
        """
        Build a space from configuration entries.

        Args:
            entries: ParameterConfig models or dicts with name/lower/upper[/initial]
        """
        parameters = []
        for entry in entries:
            if isinstance(entry, Mapping):
                data = entry
            else:
                data = {
                    'name': entry.name,
                    'lower': entry.lower,
                    'upper': entry.upper,
                    'initial': entry.initial,
                }
            try:
                parameters.append(Parameter(
                    name=data['name'],
                    lower=data['lower'],
                    upper=data['upper'],
                    initial=data.get('initial'),
                ))
            except KeyError as e:
                raise ConfigurationError(f"Parameter entry missing field {e}: {dict(data)}") from e
        return cls(parameters)

    @classmethod
    def from_bounds(cls, bounds: Mapping[str, Sequence[float]]) -> 'ParameterSpace':
        """Build a space from ``{name: (lower, upper[, initial])}``."""
        parameters = []
        for name, spec in bounds.items():
            if len(spec) not in (2, 3):
                raise ConfigurationError(
                    f"Bounds for '{name}' must be (lower, upper) or (lower, upper, initial)"
                )
            parameters.append(Parameter(name, *spec))
        return cls(parameters)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self._parameters)

    def index(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"Unknown parameter: '{name}'") from None

    @property
    def parameters(self) -> Tuple[Parameter, ...]:
        return self._parameters

    @property
    def lower(self) -> np.ndarray:
        return self._lower

    @property
    def upper(self) -> np.ndarray:
        return self._upper

    def __getitem__(self, name: str) -> Parameter:
        return self._parameters[self.index(name)]

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        body = ', '.join(f"{p.name}[{p.lower:g}, {p.upper:g}]" for p in self._parameters)
        return f"ParameterSpace({body})"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _as_values(self, vector: VectorLike) -> np.ndarray:
        """Coerce a mapping or sequence to a value array in space order."""
        if isinstance(vector, ParameterVector):
            if vector.space is self or vector.space.names() == self.names():
                return vector.as_array()
        if isinstance(vector, Mapping):
            missing = [n for n in self.names() if n not in vector]
            extra = [n for n in vector if n not in self._index]
            if missing or extra:
                raise ValidationError(
                    f"Vector does not match parameter space: missing={missing}, unknown={extra}"
                )
            return np.array([float(vector[n]) for n in self.names()], dtype=float)

        values = np.asarray(vector, dtype=float).reshape(-1)
        if values.size != len(self):
            raise ValidationError(
                f"Expected {len(self)} values, got {values.size}"
            )
        return values

    def validate(self, vector: VectorLike) -> None:
        """
        Check every value against its bounds, inclusively.

        Raises:
            BoundsViolation: Listing each offending parameter
            ValidationError: If names or length do not match the space
        """
        values = self._as_values(vector)
        # NaN fails both comparisons and is reported as a violation
        inside = (values >= self._lower) & (values <= self._upper)
        if not inside.all():
            raise BoundsViolation({
                self._parameters[i].name: (values[i], self._lower[i], self._upper[i])
                for i in np.flatnonzero(~inside)
            })

    def is_valid(self, vector: VectorLike) -> bool:
        try:
            self.validate(vector)
        except ValidationError:
            return False
        return True

    def clamp(self, vector: VectorLike) -> ParameterVector:
        """Project each value onto its bounds. Idempotent."""
        values = self._as_values(vector)
        if np.isnan(values).any():
            raise ValidationError("Cannot clamp a vector containing NaN")
        return ParameterVector(self, np.clip(values, self._lower, self._upper))

    def vector(self, values: VectorLike) -> ParameterVector:
        """Validate values and wrap them as a ParameterVector."""
        self.validate(values)
        return ParameterVector(self, self._as_values(values))

    def initial_vector(self) -> ParameterVector:
        return ParameterVector(self, [p.initial for p in self._parameters])

    # ------------------------------------------------------------------
    # Unit hypercube mapping
    # ------------------------------------------------------------------

    def normalize(self, vector: VectorLike) -> np.ndarray:
        """Map values to [0, 1]; a zero-width parameter maps to 0.5."""
        values = self._as_values(vector)
        width = self._upper - self._lower
        normalized = np.full(len(self), 0.5)
        free = width > 0
        normalized[free] = (values[free] - self._lower[free]) / width[free]
        return np.clip(normalized, 0.0, 1.0)

    def denormalize(self, normalized: Sequence[float]) -> ParameterVector:
        """Map a point of the unit hypercube back to a ParameterVector."""
        u = np.clip(np.asarray(normalized, dtype=float).reshape(-1), 0.0, 1.0)
        if u.size != len(self):
            raise ValidationError(f"Expected {len(self)} values, got {u.size}")
        values = self._lower + u * (self._upper - self._lower)
        # Floating round-off can step just past an upper bound
        return ParameterVector(self, np.clip(values, self._lower, self._upper))

    def sample(
        self,
        n: int,
        rng: np.random.Generator,
        method: str = 'lhs',
    ) -> np.ndarray:
        """
        Draw ``n`` points of the unit hypercube.

        Args:
            n: Number of points
            rng: Seeded generator; the same seed yields the same points
            method: 'lhs' (Latin hypercube) or 'random' (uniform)

        Returns:
            Array of shape (n, len(space)) in normalized coordinates
        """
        dims = len(self)
        if n <= 0:
            return np.empty((0, dims))
        if method == 'random':
            return rng.random((n, dims))
        if method != 'lhs':
            raise ValueError(f"Unknown sampling method: {method}")

        return qmc.LatinHypercube(d=dims, seed=rng).random(n=n)

    def to_records(self) -> List[Dict[str, Any]]:
        """Parameter definitions as plain dicts, e.g. for reports."""
        return [
            {
                'name': p.name,
                'lower': p.lower,
                'upper': p.upper,
                'initial': p.initial,
                'attribute': p.attribute,
                'change_mode': p.change_mode.value,
            }
            for p in self._parameters
        ]
