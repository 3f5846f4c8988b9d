"""
Tests for the forecast dispatcher and multi-material forecasting.
"""
import pytest

from factory_inventory.smart_inventory.consumption_history import ConsumptionRecord
from factory_inventory.smart_inventory.forecasting_algorithms import ForecastAlgorithm
from factory_inventory.smart_inventory.forecasting_engine import (
    ALGORITHM_TABLE,
    detect_consumption_spikes,
    forecast_series,
    forecasts_to_frame,
    smart_forecast,
)


class TestForecastSeries:
    """Single-series dispatch."""

    def test_table_covers_every_tag(self):
        assert set(ALGORITHM_TABLE.keys()) == set(ForecastAlgorithm)

    @pytest.mark.parametrize("algorithm", list(ForecastAlgorithm))
    def test_horizon_length_and_non_negative(self, algorithm, make_history, seasonal_values):
        history = make_history(seasonal_values)
        for horizon in (1, 3, 12):
            result = forecast_series(history, horizon, algorithm)
            assert len(result) == horizon
            assert all(v >= 0 for v in result)

    @pytest.mark.parametrize("algorithm", list(ForecastAlgorithm))
    def test_deterministic(self, algorithm, make_history):
        history = make_history([5, 9, 4, 12, 15, 7, 11, 13, 8, 16, 14, 10, 18, 6])
        assert forecast_series(history, 4, algorithm) == forecast_series(history, 4, algorithm)

    def test_moving_average_scenario(self, make_history):
        assert forecast_series(make_history([10, 20, 30]), 1, "moving_average") == [20.0]

    def test_linear_regression_scenario(self, make_history):
        assert forecast_series(make_history([10, 20, 30]), 1, "linear_regression") == [40.0]

    def test_unknown_algorithm_rejected(self, make_history):
        with pytest.raises(ValueError, match="Unknown forecast algorithm"):
            forecast_series(make_history([1, 2, 3]), 1, "prophet")

    def test_negative_horizon_rejected(self, make_history):
        with pytest.raises(ValueError):
            forecast_series(make_history([1, 2, 3]), -1, ForecastAlgorithm.MOVING_AVERAGE)

    def test_history_sorted_before_forecast(self, make_history):
        history = make_history([10, 20, 30])
        shuffled = [history[2], history[0], history[1]]
        assert forecast_series(shuffled, 2, "linear_regression") == [40.0, 50.0]


class TestSmartForecast:
    """Multi-material forecasting."""

    def test_groups_by_material(self, make_history):
        a = make_history([10, 20, 30], material_id="A")
        b = make_history([5, 5, 5, 5], material_id="B")
        interleaved = [b[0], a[1], b[1], a[0], a[2], b[2], b[3]]
        labels = ["2023-05", "2023-06"]

        results = smart_forecast(interleaved, 2, labels)

        assert [r.material_id for r in results] == ["B", "A"]
        assert results[0].history_points == 4
        assert results[1].material_name == "Material A"
        for result in results:
            assert set(result.forecasts.keys()) == set(ForecastAlgorithm)
            for points in result.forecasts.values():
                assert [p.month for p in points] == labels

        assert results[1].values(ForecastAlgorithm.MOVING_AVERAGE)[0] == pytest.approx(20.0)
        assert results[0].values("exponential_smoothing") == [5.0, 5.0]

    def test_selected_algorithms_only(self, make_history):
        results = smart_forecast(
            make_history([1, 2, 3]), 1, algorithms=["linear_regression"]
        )
        assert list(results[0].forecasts.keys()) == [ForecastAlgorithm.LINEAR_REGRESSION]
        assert results[0].total("linear_regression") == 4.0

    def test_labels_generated_when_missing(self, make_history):
        results = smart_forecast(make_history([1, 2, 3], start="2023-11"), 2)
        points = results[0].forecasts[ForecastAlgorithm.MOVING_AVERAGE]
        assert [p.month for p in points] == ["2024-02", "2024-03"]

    def test_to_dict(self, make_history):
        result = smart_forecast(make_history([1, 2, 3]), 1, algorithms=["moving_average"])[0]
        data = result.to_dict()
        assert data["forecasts"]["moving_average"][0]["predicted"] == 2.0

    def test_frame_has_one_row_per_point(self, make_history):
        history = make_history([1, 2, 3], material_id="A") + make_history([4, 5, 6], material_id="B")
        results = smart_forecast(history, 3, algorithms=["moving_average", "arima_like"])
        frame = forecasts_to_frame(results)

        assert len(frame) == 2 * 2 * 3
        assert set(frame["algorithm"]) == {"moving_average", "arima_like"}

    def test_empty_history(self):
        assert smart_forecast([], 3) == []


class TestConsumptionSpikes:
    """Next-month consumption alerts."""

    def test_spike_detected(self, make_history):
        history = make_history([10, 100, 5], material_id="A") + make_history([10, 10, 10], material_id="B")
        spikes = detect_consumption_spikes(history)

        assert [s.material_id for s in spikes] == ["A"]
        assert spikes[0].forecast_qty == pytest.approx(115 / 3)
        assert spikes[0].increase_pct == pytest.approx((115 / 3 - 5) / 5 * 100)

    def test_short_history_skipped(self, make_history):
        assert detect_consumption_spikes(make_history([100, 1])) == []

    def test_zero_last_month(self, make_history):
        spikes = detect_consumption_spikes(make_history([10, 10, 0]))
        assert len(spikes) == 1
        assert spikes[0].increase_pct is None


def test_records_accept_dicts():
    """Rows from the data layer validate into records."""
    rec = ConsumptionRecord.model_validate(
        {"material_id": 3, "month": "2024-02", "consumption_qty": "12.5"}
    )
    assert rec.consumption_qty == 12.5
