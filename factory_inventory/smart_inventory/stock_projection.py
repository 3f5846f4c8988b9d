"""
SmartInventory - Stock Projector
================================

Days until stock-out and urgency tiers.

    days_remaining = quantity / daily_rate      (∞ when daily_rate ≤ 0)

Tiers (evaluated in order):
    OUT_OF_STOCK   quantity ≤ 0
    CRITICAL       days_remaining ≤ 7
    NEEDS_RESTOCK  days_remaining < 14
    OK             otherwise

Ranking for restock dashboards: critical first, then the remaining in-stock
items, out-of-stock items last; ties ascending by days remaining.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from .consumption_history import ConsumptionRecord, InventoryItemSnapshot, MovementEvent
from .consumption_rate import (
    ConsumptionRateEstimate,
    RateConfig,
    TimeRange,
    estimate_consumption_rate,
)

logger = logging.getLogger(__name__)

CRITICAL_DAYS = 7
RESTOCK_DAYS = 14


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

class StockTier(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    CRITICAL = "critical"
    NEEDS_RESTOCK = "needs_restock"
    OK = "ok"

    @property
    def alert_level(self) -> str:
        """Severity used by alerting surfaces."""
        return {
            StockTier.OUT_OF_STOCK: "error",
            StockTier.CRITICAL: "warning",
            StockTier.NEEDS_RESTOCK: "info",
            StockTier.OK: "success",
        }[self]


@dataclass
class StockProjection:
    """
    Projection of one item.

    The boolean flags follow the dashboard rules: a critical item also
    needs restock, and none of them apply to an out-of-stock item.
    """
    days_remaining: float
    tier: StockTier
    out_of_stock: bool = False
    critical_level: bool = False
    needs_restock: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days_remaining": None if math.isinf(self.days_remaining) else round(self.days_remaining, 1),
            "tier": self.tier.value,
            "alert_level": self.tier.alert_level,
            "out_of_stock": self.out_of_stock,
            "critical_level": self.critical_level,
            "needs_restock": self.needs_restock,
        }


@dataclass
class StockForecastRow:
    """Rate estimate and projection of one inventory item."""
    item: InventoryItemSnapshot
    rate: ConsumptionRateEstimate
    projection: StockProjection

    @property
    def days_remaining(self) -> float:
        return self.projection.days_remaining

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.item.item_id,
            "code": self.item.code,
            "name": self.item.name,
            "type": self.item.type,
            "current_stock": self.item.quantity,
            "min_stock": self.item.min_stock,
            "unit": self.item.unit,
            "consumption_rate": round(self.rate.daily_rate, 4),
            "confidence": round(self.rate.confidence, 3),
            "trend": self.rate.trend.value,
            **self.projection.to_dict(),
        }


class MaterialStatus(str, Enum):
    BUY_NOW = "buy_now"
    REORDER_SOON = "reorder_soon"
    MONITOR = "monitor"
    SAFE = "safe"


@dataclass
class MaterialStatusRecommendation:
    status: MaterialStatus
    days_left: float
    high_volatility: bool = False
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "days_left": None if math.isinf(self.days_left) else self.days_left,
            "high_volatility": self.high_volatility,
            "notes": list(self.notes),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# PROJECTION
# ═══════════════════════════════════════════════════════════════════════════════

def days_until_stockout(quantity: float, daily_rate: float) -> float:
    if daily_rate <= 0:
        return math.inf
    return quantity / daily_rate


def project_stockout(quantity: float, daily_rate: float) -> StockProjection:
    """Days remaining and tier of one item."""
    days = days_until_stockout(quantity, daily_rate)
    if quantity <= 0:
        return StockProjection(days_remaining=days, tier=StockTier.OUT_OF_STOCK, out_of_stock=True)

    critical = days <= CRITICAL_DAYS
    needs_restock = days < RESTOCK_DAYS
    if critical:
        tier = StockTier.CRITICAL
    elif needs_restock:
        tier = StockTier.NEEDS_RESTOCK
    else:
        tier = StockTier.OK
    return StockProjection(
        days_remaining=days,
        tier=tier,
        critical_level=critical,
        needs_restock=needs_restock,
    )


def _projection_of(row: Union[StockProjection, StockForecastRow]) -> StockProjection:
    return row.projection if isinstance(row, StockForecastRow) else row


def rank_projections(
    rows: Iterable[Union[StockProjection, StockForecastRow]],
) -> List[Union[StockProjection, StockForecastRow]]:
    """Critical first, out-of-stock last, ascending days remaining within a group."""
    def key(row):
        projection = _projection_of(row)
        if projection.out_of_stock:
            group = 2
        elif projection.critical_level:
            group = 0
        else:
            group = 1
        return (group, projection.days_remaining)

    return sorted(rows, key=key)


def build_stock_forecast(
    items: Sequence[InventoryItemSnapshot],
    movements: Sequence[MovementEvent],
    time_range_days: Union[TimeRange, int] = TimeRange.MONTH,
    now: Optional[datetime] = None,
    config: Optional[RateConfig] = None,
) -> List[StockForecastRow]:
    """
    Rate estimate and projection for every item, ranked by urgency.

    Movements are matched to items by item_id (and by item_type when the
    item declares one).
    """
    rows: List[StockForecastRow] = []
    for item in items:
        item_movements = [
            m for m in movements
            if m.item_id == item.item_id and (not item.type or not m.item_type or m.item_type == item.type)
        ]
        rate = estimate_consumption_rate(item_movements, time_range_days, now, config)
        rows.append(StockForecastRow(
            item=item,
            rate=rate,
            projection=project_stockout(item.quantity, rate.daily_rate),
        ))

    ranked = rank_projections(rows)
    logger.info(
        f"Stock forecast for {len(rows)} items: "
        f"{sum(1 for r in rows if r.projection.critical_level)} critical, "
        f"{sum(1 for r in rows if r.projection.out_of_stock)} out of stock"
    )
    return ranked


def items_needing_restock(rows: Iterable[StockForecastRow]) -> List[StockForecastRow]:
    """Rows that need restock or are already out of stock."""
    return [
        row for row in rows
        if row.projection.needs_restock or row.projection.out_of_stock
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# MATERIAL PLANNING STATUS
# ═══════════════════════════════════════════════════════════════════════════════

def recommend_material_status(
    quantity: float,
    history: Sequence[ConsumptionRecord],
    forecast_qty: Optional[float] = None,
    volatility_ratio: float = 0.5,
) -> MaterialStatusRecommendation:
    """
    Purchasing status of a raw material.

    Monthly usage is the next-month forecast when positive, otherwise the
    average of the last 3 months. Days left = ⌊quantity / (monthly / 30)⌋.

    Status rules (first match):
        buy now       days ≤ 0, or quantity < forecast
        reorder soon  days < 7, or quantity < 1.2 × forecast
        monitor       days < 14, or quantity < 1.5 × forecast
        safe          otherwise

    High volatility is flagged when the population std of the last 6 months
    exceeds `volatility_ratio` × their mean.
    """
    if forecast_qty is not None and forecast_qty > 0:
        monthly = forecast_qty
    elif history:
        last3 = history[-3:]
        monthly = sum(rec.consumption_qty for rec in last3) / len(last3)
    else:
        monthly = 0.0

    if monthly > 0:
        days_left: float = math.floor(quantity * 30 / monthly)
    else:
        days_left = math.inf

    has_forecast = forecast_qty is not None
    notes: List[str] = []
    if quantity <= 0 or days_left <= 0 or (has_forecast and quantity < forecast_qty):
        status = MaterialStatus.BUY_NOW
        notes.append("Stock does not cover next month's expected consumption")
    elif days_left < 7 or (has_forecast and quantity < forecast_qty * 1.2):
        status = MaterialStatus.REORDER_SOON
        notes.append("Order soon to keep production running")
    elif days_left < 14 or (has_forecast and quantity < forecast_qty * 1.5):
        status = MaterialStatus.MONITOR
        notes.append("Stock covers a medium period, watch consumption")
    else:
        status = MaterialStatus.SAFE

    high_volatility = False
    if len(history) >= 6:
        last6 = [rec.consumption_qty for rec in history[-6:]]
        mean = float(np.mean(last6))
        high_volatility = bool(np.std(last6) > mean * volatility_ratio)
        if high_volatility:
            notes.append("Consumption fluctuates strongly")

    return MaterialStatusRecommendation(
        status=status,
        days_left=days_left,
        high_volatility=high_volatility,
        notes=notes,
    )
