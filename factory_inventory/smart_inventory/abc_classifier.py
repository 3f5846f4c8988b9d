"""
SmartInventory - ABC Classification
===================================

Pareto classification of items by value.

Items are sorted by value (descending, ties keep input order) and tagged by
the cumulative share of the total value they close:

    cumulative_pct ≤ a_threshold (0.80)  →  A
    cumulative_pct ≤ b_threshold (0.95)  →  B
    otherwise                            →  C

Items with a non-positive value are left out of the classification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd
from pydantic import BaseModel, Field, field_validator

from .consumption_history import InventoryItemSnapshot

logger = logging.getLogger(__name__)


# ============================================================
# ENUMS AND CONFIG
# ============================================================

class ABCClass(str, Enum):
    """ABC classification (by value)."""
    A = "A"  # Items closing the first 80% of value
    B = "B"  # Next 15% of value
    C = "C"  # Remaining 5%


@dataclass
class ABCConfig:
    """Cumulative value thresholds."""
    a_threshold: float = 0.80
    b_threshold: float = 0.95

    def __post_init__(self):
        if not 0 < self.a_threshold <= self.b_threshold <= 1:
            raise ValueError("thresholds must satisfy 0 < a_threshold <= b_threshold <= 1")


class ABCItem(BaseModel):
    """Item identifier and the value it is ranked by."""

    id: str = Field(..., description="Item identifier")
    value: float = Field(..., description="Ranking value (e.g. stock value)")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


@dataclass
class ABCClassSummary:
    """Aggregate of one class."""
    abc_class: ABCClass
    item_count: int = 0
    total_value: float = 0.0
    value_pct: float = 0.0
    item_pct: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class": self.abc_class.value,
            "item_count": self.item_count,
            "total_value": round(self.total_value, 2),
            "value_pct": round(self.value_pct, 1),
            "item_pct": round(self.item_pct, 1),
        }


ABCInput = Union[ABCItem, InventoryItemSnapshot]


def _as_abc_item(item: ABCInput) -> ABCItem:
    if isinstance(item, InventoryItemSnapshot):
        return ABCItem(id=item.item_id, value=item.stock_value)
    return item


# ============================================================
# CLASSIFICATION
# ============================================================

def classify_abc(
    items: Iterable[ABCInput],
    config: Optional[ABCConfig] = None,
) -> Dict[str, ABCClass]:
    """
    Classify items into A/B/C by cumulative value share.

    Args:
        items: ABCItem rows or inventory snapshots (value = quantity × unit_cost)
        config: Thresholds

    Returns:
        Mapping item id → class, in descending value order
    """
    config = config or ABCConfig()
    rows = [_as_abc_item(item) for item in items]
    df = pd.DataFrame(
        [{"id": row.id, "value": row.value} for row in rows if row.value > 0],
        columns=["id", "value"],
    )
    skipped = len(rows) - len(df)
    if skipped:
        logger.debug(f"ABC: skipped {skipped} items with non-positive value")
    if df.empty:
        return {}

    df = df.sort_values("value", ascending=False, kind="stable")
    df["cumulative_pct"] = df["value"].cumsum() / df["value"].sum()

    def assign_abc(pct):
        if pct <= config.a_threshold:
            return ABCClass.A
        elif pct <= config.b_threshold:
            return ABCClass.B
        else:
            return ABCClass.C

    df["abc_class"] = df["cumulative_pct"].apply(assign_abc)
    return dict(zip(df["id"], df["abc_class"]))


def summarize_abc(
    items: Sequence[ABCInput],
    classification: Dict[str, ABCClass],
) -> List[ABCClassSummary]:
    """
    Item count, value and shares per class.

    Percentages are relative to the classified items only.
    """
    values = {row.id: row.value for row in map(_as_abc_item, items)}
    summaries = {cls: ABCClassSummary(abc_class=cls) for cls in ABCClass}
    for item_id, abc_class in classification.items():
        summary = summaries[abc_class]
        summary.item_count += 1
        summary.total_value += values.get(item_id, 0.0)

    total_value = sum(s.total_value for s in summaries.values())
    total_items = sum(s.item_count for s in summaries.values())
    for summary in summaries.values():
        if total_value > 0:
            summary.value_pct = summary.total_value / total_value * 100
        if total_items > 0:
            summary.item_pct = summary.item_count / total_items * 100
    return list(summaries.values())
