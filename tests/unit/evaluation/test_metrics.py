"""
Unit tests for goodness-of-fit metrics and the metric registry.
"""

import numpy as np
import pytest

from hydrotune.evaluation import (
    calculate_all_metrics,
    get_metric_info,
    interpret_metric,
    kge,
    list_available_metrics,
    nse,
    pbias,
    resolve_metric_name,
    rmse,
)

pytestmark = [pytest.mark.unit]

OBS = np.array([1.0, 3.0, 2.0, 5.0, 4.0, 6.0, 8.0, 7.0, 9.0, 10.0])


class TestNSE:
    """Test Nash-Sutcliffe Efficiency."""

    def test_perfect_fit(self):
        assert nse(OBS, OBS) == pytest.approx(1.0)

    def test_mean_prediction_is_zero(self):
        assert nse(OBS, np.full_like(OBS, OBS.mean())) == pytest.approx(0.0)

    def test_invariant_to_common_scaling(self):
        sim = OBS + np.linspace(-1.0, 1.0, OBS.size)
        for factor in (0.01, 2.5, 1000.0):
            assert nse(OBS * factor, sim * factor) == pytest.approx(nse(OBS, sim))

    def test_constant_observations_undefined(self):
        assert np.isnan(nse(np.ones(5), np.arange(5.0)))

    def test_nan_pairs_dropped(self):
        obs = np.array([1.0, 2.0, np.nan, 4.0])
        sim = np.array([1.0, 2.0, 3.0, 4.0])
        assert nse(obs, sim) == pytest.approx(1.0)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            nse(OBS, OBS[:-1])


class TestOtherMetrics:
    """Test KGE, RMSE and PBIAS."""

    def test_kge_perfect(self):
        assert kge(OBS, OBS) == pytest.approx(1.0)

    def test_kge_components(self):
        components = kge(OBS, OBS * 2.0, return_components=True)
        assert components['r'] == pytest.approx(1.0)
        assert components['alpha'] == pytest.approx(2.0)
        assert components['beta'] == pytest.approx(2.0)

    def test_rmse_of_constant_shift(self):
        assert rmse(OBS, OBS + 2.0) == pytest.approx(2.0)

    def test_pbias_sign(self):
        assert pbias(OBS, OBS * 1.1) == pytest.approx(10.0)
        assert pbias(OBS, OBS * 0.9) == pytest.approx(-10.0)

    def test_calculate_all_metrics_keys(self):
        metrics = calculate_all_metrics(OBS, OBS + 0.5)
        for key in ('NSE', 'KGE', 'RMSE', 'PBIAS', 'R2', 'correlation'):
            assert key in metrics
        assert metrics['RMSE'] == pytest.approx(0.5)


class TestRegistry:
    """Test metric lookup by name and alias."""

    def test_aliases_resolve(self):
        assert resolve_metric_name('kge') == 'KGE'
        assert resolve_metric_name('r_squared') == 'R2'
        assert resolve_metric_name('unknown') is None

    def test_directions(self):
        assert get_metric_info('NSE').direction == 'maximize'
        assert get_metric_info('RMSE').direction == 'minimize'
        assert get_metric_info('PBIAS').signed

    def test_list_contains_canonical_names(self):
        names = list_available_metrics()
        assert 'NSE' in names
        assert 'kge_prime' not in names

    def test_interpret(self):
        assert isinstance(interpret_metric('NSE', 0.8), str)

    def test_is_better_follows_direction(self):
        assert get_metric_info('NSE').is_better(0.9, 0.5)
        assert get_metric_info('RMSE').is_better(0.5, 0.9)
        assert get_metric_info('PBIAS').is_better(-5.0, 10.0)
        assert not get_metric_info('PBIAS').is_better(-10.0, 5.0)

    def test_metric_info_rejects_bad_direction(self):
        info = get_metric_info('RMSE')
        with pytest.raises(ValueError):
            type(info)('X', 'X', rmse, (0.0, 1.0), 0.0, 'sideways', '')
