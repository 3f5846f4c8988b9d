"""
SmartInventory - Consumption History
====================================

Input data model for the forecasting engine.

Two independent aggregation granularities feed two subsystems:
- ConsumptionRecord: monthly bucketed consumption per material (forecasters)
- MovementEvent: raw stock movements, negative = consumption (rate estimator)

InventoryItemSnapshot is the read-only view of an item used by the
projector and the optimizer. The engine never mutates any of these.
"""

from __future__ import annotations

import logging
import re
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEMAS
# ═══════════════════════════════════════════════════════════════════════════════

class ConsumptionRecord(BaseModel):
    """
    Monthly consumption of one material.

    Invariant: at most one record per (material_id, month). Records of a
    material form a time series that is not necessarily gap-free.
    """

    material_id: str = Field(..., description="Material identifier")
    material_code: str = Field("", description="Material code")
    material_name: str = Field("", description="Material name")
    category: str = Field("", description="raw-material, packaging, ...")
    month: str = Field(..., description="Bucket month (YYYY-MM)")
    consumption_qty: float = Field(..., ge=0, description="Consumed quantity")

    @field_validator("material_id", mode="before")
    @classmethod
    def coerce_material_id(cls, v):
        """Numeric ids from the data layer are accepted as strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str) -> str:
        if not MONTH_PATTERN.match(v):
            raise ValueError(f"month must be YYYY-MM, got {v!r}")
        return v


class MovementEvent(BaseModel):
    """Stock movement of one item (negative quantity = consumption)."""

    item_id: str = Field(..., description="Item identifier")
    item_type: str = Field("", description="raw, packaging, semi, finished")
    quantity: float = Field(..., description="Signed quantity")
    timestamp: datetime = Field(..., description="Movement date/time")

    @field_validator("item_id", mode="before")
    @classmethod
    def coerce_item_id(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_consumption(self) -> bool:
        return self.quantity < 0


class InventoryItemSnapshot(BaseModel):
    """Current state of an inventory item."""

    id: Optional[str] = Field(None, description="Item identifier (defaults to code)")
    code: str = Field(..., description="Item code")
    name: str = Field("", description="Item name")
    quantity: float = Field(0.0, description="Quantity on hand")
    min_stock: float = Field(0.0, ge=0, description="Minimum stock policy")
    unit: str = Field("", description="Unit of measure")
    unit_cost: float = Field(0.0, ge=0, description="Cost per unit")
    type: str = Field("", description="raw, packaging, semi, finished")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def item_id(self) -> str:
        return self.id if self.id is not None else self.code

    @property
    def stock_value(self) -> float:
        """Value used by ABC classification."""
        return self.quantity * self.unit_cost


# ═══════════════════════════════════════════════════════════════════════════════
# MONTH HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def month_of_year(month: str) -> int:
    """'2024-05' -> 5"""
    return int(month.split("-")[1])


def next_months(last_month: Optional[str], count: int) -> List[str]:
    """
    Generate `count` consecutive month labels following `last_month`.

    With no last month the labels start at the current month.
    """
    if count <= 0:
        return []
    if last_month is None:
        now = datetime.now()
        year, month = now.year, now.month - 1
    else:
        year, month = (int(part) for part in last_month.split("-"))

    labels = []
    for _ in range(count):
        month += 1
        if month > 12:
            month = 1
            year += 1
        labels.append(f"{year:04d}-{month:02d}")
    return labels


# ═══════════════════════════════════════════════════════════════════════════════
# AGGREGATION
# ═══════════════════════════════════════════════════════════════════════════════

def sort_history(history: Iterable[ConsumptionRecord]) -> List[ConsumptionRecord]:
    """Ascending by month (stable)."""
    return sorted(history, key=lambda rec: rec.month)


def group_by_material(
    records: Iterable[ConsumptionRecord],
) -> "OrderedDict[str, List[ConsumptionRecord]]":
    """
    Group records by material, preserving first-seen material order.

    Each group is sorted ascending by month.
    """
    grouped: "OrderedDict[str, List[ConsumptionRecord]]" = OrderedDict()
    for rec in records:
        grouped.setdefault(rec.material_id, []).append(rec)
    for material_id in grouped:
        grouped[material_id] = sort_history(grouped[material_id])
    return grouped


def aggregate_monthly_consumption(
    records: Iterable[ConsumptionRecord],
    months: Optional[Sequence[str]] = None,
) -> List[ConsumptionRecord]:
    """
    Merge rows sharing (material_id, month) by summing their quantities.

    Production and packaging orders both emit one row per ingredient, so the
    same material/month pair can appear several times before aggregation.
    Descriptive fields are taken from the first row of each pair.

    Args:
        records: Raw consumption rows
        months: Optional whitelist of months to keep

    Returns:
        Deduplicated records sorted by material, then month
    """
    merged: Dict[tuple, ConsumptionRecord] = {}
    for rec in records:
        key = (rec.material_id, rec.month)
        if key in merged:
            current = merged[key]
            merged[key] = current.model_copy(
                update={"consumption_qty": current.consumption_qty + rec.consumption_qty}
            )
        else:
            merged[key] = rec

    result = list(merged.values())
    if months is not None:
        allowed = set(months)
        result = [rec for rec in result if rec.month in allowed]

    logger.debug(f"Aggregated consumption into {len(result)} material/month buckets")
    return sorted(result, key=lambda rec: (rec.material_id, rec.month))


def records_to_frame(records: Iterable[ConsumptionRecord]) -> pd.DataFrame:
    """Tabular view of a consumption history."""
    columns = list(ConsumptionRecord.model_fields.keys())
    rows = [rec.model_dump() for rec in records]
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)
