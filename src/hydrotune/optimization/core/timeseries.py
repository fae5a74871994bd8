# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Time-indexed scalar series used for observations and simulator output.

A TimeSeries wraps a pandas Series with a strictly increasing, duplicate-free
DatetimeIndex. Instances are never mutated after construction: scaling,
slicing and alignment return new objects, so the observed series can be
shared read-only between concurrent evaluations.
"""

from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import numpy as np
import pandas as pd

from hydrotune.core.exceptions import NoOverlap, ValidationError

TimeLike = Union[str, pd.Timestamp, np.datetime64]


class TimeSeries:
    """
    Strictly increasing, duplicate-free time series of float values.

    Args:
        data: pandas Series with a datetime-like index
        name: Optional label, defaults to the Series name

    Raises:
        ValidationError: If the index is not datetime-like, has duplicates,
            or is not increasing
    """

    __slots__ = ('_series',)

    def __init__(self, data: pd.Series, name: Optional[str] = None):
        if not isinstance(data, pd.Series):
            raise ValidationError(f"TimeSeries requires a pandas Series, got {type(data).__name__}")
        try:
            index = pd.DatetimeIndex(data.index)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"TimeSeries index is not datetime-like: {e}") from e
        if index.tz is not None:
            index = index.tz_convert('UTC').tz_localize(None)
        if index.hasnans:
            raise ValidationError("TimeSeries index contains missing timestamps")
        if index.has_duplicates:
            dupes = index[index.duplicated()].unique()[:5]
            raise ValidationError(f"TimeSeries has duplicate timestamps: {list(map(str, dupes))}")
        if not index.is_monotonic_increasing:
            raise ValidationError("TimeSeries timestamps must be strictly increasing")

        try:
            values = pd.to_numeric(data, errors='raise').astype(float).to_numpy(copy=True)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"TimeSeries values must be numeric: {e}") from e
        values.setflags(write=False)
        self._series = pd.Series(values, index=index, name=name if name is not None else data.name)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[TimeLike, float]], name: Optional[str] = None) -> 'TimeSeries':
        """Build from ``(timestamp, value)`` pairs."""
        pairs = list(pairs)
        if not pairs:
            return cls(pd.Series([], index=pd.DatetimeIndex([]), dtype=float), name=name)
        timestamps, values = zip(*pairs)
        return cls(pd.Series(values, index=pd.to_datetime(list(timestamps))), name=name)

    @classmethod
    def from_arrays(cls, timestamps: Iterable[TimeLike], values: Iterable[float],
                    name: Optional[str] = None) -> 'TimeSeries':
        return cls(pd.Series(list(values), index=pd.to_datetime(list(timestamps))), name=name)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        value_column: Optional[str] = None,
        time_column: Optional[str] = None,
    ) -> 'TimeSeries':
        """
        Build from one column of a DataFrame.

        Args:
            frame: Source table
            value_column: Column holding values; the first non-time column if None
            time_column: Column holding timestamps; the index is used if None
                or if the column is absent and the index is datetime-like
        """
        if time_column is not None and time_column in frame.columns:
            frame = frame.set_index(pd.to_datetime(frame[time_column])).drop(columns=[time_column])
        elif not isinstance(frame.index, pd.DatetimeIndex):
            raise ValidationError(
                f"Time column '{time_column}' not found in columns {list(frame.columns)}"
            )

        if value_column is None:
            if frame.shape[1] == 0:
                raise ValidationError("Frame has no value columns")
            value_column = frame.columns[0]
        if value_column not in frame.columns:
            raise ValidationError(
                f"Value column '{value_column}' not found in columns {list(frame.columns)}"
            )
        return cls(frame[value_column], name=str(value_column))

    @classmethod
    def read_csv(
        cls,
        path: Union[str, Path],
        value_column: Optional[str] = None,
        time_column: Optional[str] = 'date',
    ) -> 'TimeSeries':
        """Read a series from a CSV file with a timestamp column."""
        frame = pd.read_csv(path)
        if time_column is None or time_column not in frame.columns:
            # Fall back to the first column as timestamps
            time_column = frame.columns[0]
        return cls.from_frame(frame, value_column=value_column, time_column=time_column)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def series(self) -> pd.Series:
        """A copy of the underlying pandas Series."""
        return self._series.copy()

    @property
    def index(self) -> pd.DatetimeIndex:
        return self._series.index

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the values."""
        return self._series.to_numpy()

    @property
    def name(self) -> Optional[str]:
        return self._series.name

    @property
    def start(self) -> Optional[pd.Timestamp]:
        return self.index[0] if len(self) else None

    @property
    def end(self) -> Optional[pd.Timestamp]:
        return self.index[-1] if len(self) else None

    def __len__(self) -> int:
        return len(self._series)

    def __iter__(self):
        return iter(zip(self.index, self.values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return self._series.index.equals(other._series.index) and np.array_equal(
            self.values, other.values, equal_nan=True
        )

    def __repr__(self) -> str:
        if not len(self):
            return "TimeSeries(empty)"
        return f"TimeSeries({len(self)} values, {self.start} .. {self.end})"

    # ------------------------------------------------------------------
    # Transformations (all return new instances)
    # ------------------------------------------------------------------

    def scale(self, factor: float) -> 'TimeSeries':
        """Multiply every value by ``factor``."""
        if factor == 1.0:
            return self
        return TimeSeries(self._series * float(factor), name=self.name)

    def between(self, start: Optional[TimeLike] = None, end: Optional[TimeLike] = None) -> 'TimeSeries':
        """Sub-series with ``start <= t <= end``; either bound may be None."""
        mask = np.ones(len(self), dtype=bool)
        if start is not None:
            mask &= self.index >= pd.Timestamp(start)
        if end is not None:
            mask &= self.index <= pd.Timestamp(end)
        return TimeSeries(self._series[mask], name=self.name)

    def align(self, other: 'TimeSeries') -> Tuple[pd.DatetimeIndex, np.ndarray, np.ndarray]:
        """
        Inner-join on timestamps.

        Returns:
            (common index, values of self, values of other), in time order

        Raises:
            NoOverlap: If the series share no timestamps
        """
        common = self.index.intersection(other.index, sort=False).sort_values()
        if len(common) == 0:
            raise NoOverlap(
                f"Series share no timestamps ({self!r} vs {other!r})"
            )
        return (
            common,
            self._series.reindex(common).to_numpy(),
            other._series.reindex(common).to_numpy(),
        )

    def to_frame(self, value_column: str = 'value', time_column: str = 'date') -> pd.DataFrame:
        frame = self._series.rename(value_column).to_frame()
        frame.index.name = time_column
        return frame.reset_index()
