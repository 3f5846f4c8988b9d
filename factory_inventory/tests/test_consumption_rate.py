"""
Tests for the consumption rate estimator.
"""
from datetime import datetime, timedelta

import pytest

from factory_inventory.smart_inventory.consumption_rate import (
    RateConfig,
    TimeRange,
    TrendDirection,
    analyze_consumption_trend,
    confidence_level,
    consumption_trend,
    consumption_variability,
    estimate_consumption_rate,
)


class TestDailyRate:
    """Recency-weighted daily rate."""

    def test_no_consumption(self, make_movement, now):
        movements = [make_movement(+50, 2), make_movement(+10, 5)]
        estimate = estimate_consumption_rate(movements, TimeRange.MONTH, now)

        assert estimate.daily_rate == 0.0
        assert estimate.data_points == 0
        assert estimate.trend == TrendDirection.FLAT

    def test_single_recent_movement(self, make_movement, now):
        estimate = estimate_consumption_rate([make_movement(-30, 10)], 30, now)

        # weighted average = 30, spread over 10 covered days
        assert estimate.days_covered == 10
        assert estimate.daily_rate == pytest.approx(3.0)
        assert estimate.data_points == 1

    def test_movement_at_window_edge_has_zero_weight(self, make_movement, now):
        estimate = estimate_consumption_rate([make_movement(-40, 30)], TimeRange.MONTH, now)
        assert estimate.daily_rate == 0.0

    def test_old_movements_excluded_and_coverage_capped(self, make_movement, now):
        movements = [make_movement(-500, 100), make_movement(-60, 10)]
        estimate = estimate_consumption_rate(movements, TimeRange.MONTH, now)

        assert estimate.days_covered == 30
        assert estimate.daily_rate == pytest.approx(60 / 30)

    def test_recent_movements_weigh_more(self, make_movement, now):
        movements = [make_movement(-10, 25), make_movement(-50, 1)]
        estimate = estimate_consumption_rate(movements, TimeRange.MONTH, now)

        w_old, w_new = (30 - 25) / 30, (30 - 1) / 30
        weighted = (10 * w_old + 50 * w_new) / (w_old + w_new)
        assert estimate.daily_rate == pytest.approx(weighted / 25)
        assert weighted > 30  # plain mean

    def test_same_day_movement_covers_one_day(self, make_movement, now):
        estimate = estimate_consumption_rate([make_movement(-8, 0)], TimeRange.WEEK, now)
        assert estimate.days_covered == 1
        assert estimate.daily_rate == pytest.approx(8.0)

    def test_invalid_range(self, make_movement, now):
        with pytest.raises(ValueError):
            estimate_consumption_rate([make_movement(-1, 1)], 0, now)

    def test_time_range_values(self):
        assert [int(r) for r in TimeRange] == [7, 30, 90, 365]

    def test_to_dict(self, make_movement, now):
        data = estimate_consumption_rate([make_movement(-30, 10)], 30, now).to_dict()
        assert data["trend"] == "flat"
        assert data["daily_rate"] == 3.0


class TestVariability:
    """Coefficient of variation of daily totals."""

    def test_single_movement(self, make_movement):
        assert consumption_variability([make_movement(-5, 1)]) == 0.0

    def test_equal_days(self, make_movement):
        assert consumption_variability([make_movement(-5, 1), make_movement(-5, 2)]) == 0.0

    def test_unequal_days(self, make_movement):
        movements = [make_movement(-10, 1), make_movement(-30, 2)]
        # mean 20, population std 10
        assert consumption_variability(movements) == pytest.approx(0.5)

    def test_same_day_movements_are_summed(self, make_movement):
        movements = [
            make_movement(-10, 1),
            make_movement(-10, 1),
            make_movement(-20, 3),
        ]
        assert consumption_variability(movements) == pytest.approx(0.0)


class TestConfidence:
    """Confidence from data volume and variability."""

    def test_sparse_data(self):
        assert confidence_level(2, 0.0) == pytest.approx(0.3)

    def test_data_factor_capped(self):
        assert confidence_level(10, 0.0) == pytest.approx(0.7)
        assert confidence_level(1000, 0.0) == pytest.approx(0.9)

    def test_monotone_in_data_points(self):
        values = [confidence_level(n, 0.2) for n in range(0, 40)]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_monotone_in_variability(self):
        values = [confidence_level(10, cv / 10) for cv in range(0, 20)]
        assert all(b <= a for a, b in zip(values, values[1:]))

    def test_bounds(self):
        assert confidence_level(0, 5.0) == pytest.approx(0.03)
        for n in (0, 3, 20, 200):
            for cv in (0.0, 0.5, 3.0):
                assert 0.03 - 1e-12 <= confidence_level(n, cv) <= 0.9


class TestTrend:
    """Older half vs newer half."""

    def test_too_few_events(self, make_movement):
        movements = [make_movement(-q, d) for q, d in [(1, 4), (50, 3), (90, 2), (100, 1)]]
        assert consumption_trend(movements) == TrendDirection.FLAT

    def test_increasing(self, make_movement):
        movements = [make_movement(-q, 10 - i) for i, q in enumerate([10, 10, 10, 20, 20, 20])]
        assert consumption_trend(movements) == TrendDirection.INCREASING

    def test_decreasing(self, make_movement):
        movements = [make_movement(-q, 10 - i) for i, q in enumerate([20, 20, 20, 10, 10, 10])]
        assert consumption_trend(movements) == TrendDirection.DECREASING

    def test_small_change_is_flat(self, make_movement):
        movements = [make_movement(-q, 10 - i) for i, q in enumerate([100, 100, 100, 105, 105])]
        assert consumption_trend(movements) == TrendDirection.FLAT

    def test_threshold_configurable(self, make_movement):
        movements = [make_movement(-q, 10 - i) for i, q in enumerate([100, 100, 100, 105, 105])]
        config = RateConfig(trend_threshold=0.01)
        assert consumption_trend(movements, config) == TrendDirection.INCREASING


class TestAnalyzeConsumptionTrend:
    """Trend of a dated series."""

    def test_needs_two_points(self):
        result = analyze_consumption_trend([(datetime(2024, 1, 1), 10)])
        assert result.change_rate == 0.0
        assert result.trend == TrendDirection.FLAT

    def test_change_rate(self):
        start = datetime(2024, 1, 1)
        points = [(start + timedelta(days=1), 20), (start, 10)]
        result = analyze_consumption_trend(points)

        assert result.change_rate == pytest.approx(1.0)
        assert result.trend == TrendDirection.INCREASING

    def test_zero_baseline(self):
        start = datetime(2024, 1, 1)
        result = analyze_consumption_trend([(start, 0), (start + timedelta(days=1), 5)])
        assert result.change_rate == 0.0
        assert result.trend == TrendDirection.FLAT
