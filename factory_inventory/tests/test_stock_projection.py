"""
Tests for stock-out projection, ranking and material planning status.
"""
import math

import pytest

from factory_inventory.smart_inventory.consumption_history import InventoryItemSnapshot
from factory_inventory.smart_inventory.consumption_rate import TimeRange
from factory_inventory.smart_inventory.stock_projection import (
    MaterialStatus,
    StockTier,
    build_stock_forecast,
    items_needing_restock,
    project_stockout,
    rank_projections,
    recommend_material_status,
)


class TestProjectStockout:
    """Days remaining and tiers."""

    def test_zero_rate_never_runs_out(self):
        projection = project_stockout(100, 0.0)
        assert math.isinf(projection.days_remaining)
        assert projection.tier == StockTier.OK
        assert not projection.needs_restock

    def test_out_of_stock(self):
        projection = project_stockout(0, 5.0)
        assert projection.tier == StockTier.OUT_OF_STOCK
        assert projection.out_of_stock
        assert not projection.critical_level
        assert not projection.needs_restock

    def test_critical_boundary(self):
        projection = project_stockout(70, 10.0)
        assert projection.days_remaining == pytest.approx(7.0)
        assert projection.tier == StockTier.CRITICAL
        assert projection.critical_level and projection.needs_restock

    def test_needs_restock(self):
        projection = project_stockout(100, 10.0)
        assert projection.tier == StockTier.NEEDS_RESTOCK
        assert projection.needs_restock and not projection.critical_level

    def test_restock_boundary_is_exclusive(self):
        assert project_stockout(140, 10.0).tier == StockTier.OK

    def test_alert_levels(self):
        assert StockTier.OUT_OF_STOCK.alert_level == "error"
        assert StockTier.CRITICAL.alert_level == "warning"
        assert StockTier.NEEDS_RESTOCK.alert_level == "info"
        assert StockTier.OK.alert_level == "success"

    def test_to_dict_infinite_days(self):
        assert project_stockout(10, 0).to_dict()["days_remaining"] is None


class TestRanking:
    """Restock dashboard order."""

    def test_order(self):
        ok_far = project_stockout(1000, 1.0)
        out = project_stockout(0, 1.0)
        critical_late = project_stockout(6, 1.0)
        restock = project_stockout(10, 1.0)
        critical_soon = project_stockout(2, 1.0)
        idle = project_stockout(50, 0.0)

        ranked = rank_projections([ok_far, out, critical_late, restock, critical_soon, idle])

        assert ranked == [critical_soon, critical_late, restock, ok_far, idle, out]

    def test_stable_for_ties(self):
        first = project_stockout(20, 1.0)
        second = project_stockout(20, 1.0)
        ranked = rank_projections([first, second])
        assert ranked[0] is first and ranked[1] is second


class TestBuildStockForecast:
    """Per-item estimator + projector rows."""

    def test_rows_ranked_and_filtered(self, make_movement, now):
        items = [
            InventoryItemSnapshot(id="I1", code="A", quantity=1000, type="raw"),
            InventoryItemSnapshot(id="I2", code="B", quantity=20, type="raw"),
            InventoryItemSnapshot(id="I3", code="C", quantity=0, type="raw"),
        ]
        movements = [
            make_movement(-30, 10, item_id="I1"),
            make_movement(-30, 10, item_id="I2"),
            make_movement(+500, 3, item_id="I2"),
            make_movement(-10, 2, item_id="I3"),
            make_movement(-30, 10, item_id="I2", item_type="packaging"),
        ]

        rows = build_stock_forecast(items, movements, TimeRange.MONTH, now)

        assert [row.item.item_id for row in rows] == ["I2", "I1", "I3"]
        i2 = rows[0]
        assert i2.rate.daily_rate == pytest.approx(3.0)
        assert i2.projection.tier == StockTier.CRITICAL
        assert rows[2].projection.out_of_stock

        restock = items_needing_restock(rows)
        assert [row.item.item_id for row in restock] == ["I2", "I3"]

    def test_row_to_dict(self, sample_item, make_movement, now):
        rows = build_stock_forecast([sample_item], [make_movement(-30, 10)], 30, now)
        data = rows[0].to_dict()
        assert data["code"] == "RM-001"
        assert data["alert_level"] == "success"


class TestMaterialStatus:
    """Purchasing status of raw materials."""

    def test_buy_now_when_stock_below_forecast(self, make_history):
        result = recommend_material_status(80, make_history([100, 100, 100]), forecast_qty=100)
        assert result.status == MaterialStatus.BUY_NOW

    def test_reorder_soon(self, make_history):
        result = recommend_material_status(110, make_history([100, 100, 100]), forecast_qty=100)
        assert result.status == MaterialStatus.REORDER_SOON
        assert result.days_left == 33

    def test_monitor(self, make_history):
        result = recommend_material_status(140, make_history([100, 100, 100]), forecast_qty=100)
        assert result.status == MaterialStatus.MONITOR

    def test_safe_from_history_average(self, make_history):
        result = recommend_material_status(300, make_history([50, 100, 150]))
        assert result.status == MaterialStatus.SAFE
        assert result.days_left == 90

    def test_low_days_without_forecast(self, make_history):
        result = recommend_material_status(10, make_history([60, 60, 60]))
        assert result.days_left == 5
        assert result.status == MaterialStatus.REORDER_SOON

    def test_no_usage_is_safe(self):
        result = recommend_material_status(10, [])
        assert math.isinf(result.days_left)
        assert result.status == MaterialStatus.SAFE

    def test_empty_stock_buy_now(self, make_history):
        result = recommend_material_status(0, make_history([10, 10, 10]))
        assert result.status == MaterialStatus.BUY_NOW

    def test_volatility_flag(self, make_history):
        volatile = recommend_material_status(1000, make_history([10, 200, 5, 180, 15, 220]))
        steady = recommend_material_status(1000, make_history([100, 110, 95, 105, 100, 98]))
        assert volatile.high_volatility
        assert not steady.high_volatility
