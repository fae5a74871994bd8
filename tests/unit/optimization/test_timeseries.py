"""
Unit tests for TimeSeries construction, slicing and alignment.
"""

import numpy as np
import pandas as pd
import pytest

from hydrotune.core.exceptions import NoOverlap, ValidationError
from hydrotune.optimization.core.timeseries import TimeSeries

pytestmark = [pytest.mark.unit, pytest.mark.optimization]


class TestConstruction:
    """Test validation of timestamps and values."""

    def test_from_pairs(self):
        series = TimeSeries.from_pairs([('2020-01-01', 1.0), ('2020-01-02', 2.5)], name='q')
        assert len(series) == 2
        assert series.name == 'q'
        assert series.start == pd.Timestamp('2020-01-01')
        np.testing.assert_allclose(series.values, [1.0, 2.5])

    def test_empty_series(self):
        assert len(TimeSeries.from_pairs([])) == 0

    def test_duplicate_timestamps_rejected(self):
        with pytest.raises(ValidationError, match='duplicate'):
            TimeSeries.from_arrays(['2020-01-01', '2020-01-01'], [1.0, 2.0])

    def test_unordered_timestamps_rejected(self):
        with pytest.raises(ValidationError, match='increasing'):
            TimeSeries.from_arrays(['2020-01-02', '2020-01-01'], [1.0, 2.0])

    def test_non_numeric_values_rejected(self):
        with pytest.raises(ValidationError):
            TimeSeries.from_arrays(['2020-01-01'], ['high'])

    def test_from_frame_missing_column(self):
        frame = pd.DataFrame({'date': ['2020-01-01'], 'q': [1.0]})
        with pytest.raises(ValidationError, match='Value column'):
            TimeSeries.from_frame(frame, value_column='flow', time_column='date')

    def test_read_csv(self, observations_csv, observed):
        loaded = TimeSeries.read_csv(observations_csv, value_column='discharge')
        assert list(loaded.index) == list(observed.index)
        np.testing.assert_allclose(loaded.values, observed.values)


class TestTransformations:
    """Test scaling, slicing and alignment."""

    def test_scale(self, observed):
        scaled = observed.scale(2.0)
        np.testing.assert_allclose(scaled.values, observed.values * 2.0)
        assert observed.scale(1.0) is observed

    def test_between_is_inclusive(self, observed):
        part = observed.between('2020-01-03', '2020-01-05')
        assert len(part) == 3
        assert part.start == pd.Timestamp('2020-01-03')
        assert part.end == pd.Timestamp('2020-01-05')

    def test_align_inner_join(self, observed):
        other = TimeSeries.from_arrays(
            pd.date_range('2020-01-08', periods=5, freq='D'), [0.0, 1.0, 2.0, 3.0, 4.0]
        )
        index, mine, theirs = observed.align(other)
        assert list(index) == list(pd.date_range('2020-01-08', periods=3, freq='D'))
        np.testing.assert_allclose(mine, [7.0, 9.0, 10.0])
        np.testing.assert_allclose(theirs, [0.0, 1.0, 2.0])

    def test_align_without_overlap(self, observed):
        other = TimeSeries.from_arrays(['2021-01-01'], [1.0])
        with pytest.raises(NoOverlap):
            observed.align(other)

    def test_to_frame_columns(self, observed):
        frame = observed.to_frame('discharge')
        assert list(frame.columns) == ['date', 'discharge']
        assert len(frame) == len(observed)
