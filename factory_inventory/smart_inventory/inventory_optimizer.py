"""
SmartInventory - Inventory Optimizer
====================================

Classic inventory-control policy numbers per item.

Mathematical Formulation:
─────────────────────────
    H   = unit_cost × holding_cost_rate             (annual holding cost / unit)
    EOQ = √(2·D·S / H)                              (0 if D, S or H ≤ 0)

    SS  = daily_rate × safety_stock_days
    ROP = daily_rate × lead_time_days + SS
    optimal_level = ROP + EOQ / 2
    orders/year   = ⌈D / EOQ⌉                       (0 if D = 0)

    Current cost (min_stock used as a proxy for the current order size):
        order   = D / min_stock × S                 (0 if min_stock = 0)
        holding = (quantity + min_stock) / 2 × H

    Optimal cost:
        orders/year × S + optimal_level / 2 × H

    savings = current − optimal
    savings% = savings / current × 100              (0 if current ≤ 0)

Where:
    D = annual consumption, S = cost per order
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .consumption_history import InventoryItemSnapshot, MovementEvent

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class OptimizerConfig:
    """
    Cost and policy parameters.

    Attributes:
        order_cost: Cost of issuing one purchase order (S)
        holding_cost_rate: Annual holding cost as a fraction of unit cost
        lead_time_days: Supplier lead time
        safety_stock_days: Days of consumption kept as safety stock
        min_data_points: Consumption events required to recommend a policy
        analysis_window_days: Movement window used to derive consumption
    """
    order_cost: float = 100.0
    holding_cost_rate: float = 0.2
    lead_time_days: float = 7.0
    safety_stock_days: float = 3.0
    min_data_points: int = 3
    analysis_window_days: int = 90

    def __post_init__(self):
        if self.holding_cost_rate < 0 or self.order_cost < 0:
            raise ValueError("costs must be >= 0")
        if self.lead_time_days < 0 or self.safety_stock_days < 0:
            raise ValueError("lead_time_days and safety_stock_days must be >= 0")
        if self.analysis_window_days < 1:
            raise ValueError("analysis_window_days must be >= 1")


# ═══════════════════════════════════════════════════════════════════════════════
# RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class EOQResult:
    """Policy numbers and cost comparison of one item."""
    economic_order_quantity: float = 0.0
    reorder_point: float = 0.0
    safety_stock: float = 0.0
    optimal_level: float = 0.0
    optimal_order_frequency: int = 0
    current_cost: float = 0.0
    optimal_cost: float = 0.0
    potential_savings: float = 0.0
    savings_percentage: float = 0.0

    # Cost breakdown
    current_order_cost: float = 0.0
    current_holding_cost: float = 0.0
    optimal_order_cost: float = 0.0
    optimal_holding_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eoq": round(self.economic_order_quantity, 2),
            "reorder_point": round(self.reorder_point, 2),
            "safety_stock": round(self.safety_stock, 2),
            "optimal_level": round(self.optimal_level, 2),
            "optimal_order_frequency": self.optimal_order_frequency,
            "current_cost": round(self.current_cost, 2),
            "optimal_cost": round(self.optimal_cost, 2),
            "potential_savings": round(self.potential_savings, 2),
            "savings_percentage": round(self.savings_percentage, 1),
        }


@dataclass
class InventoryRecommendation:
    """Optimized policy of one item with the consumption it was derived from."""
    item: InventoryItemSnapshot
    daily_consumption: float
    annual_consumption: float
    data_points: int
    policy: EOQResult

    @property
    def current_stock(self) -> float:
        return self.item.quantity

    @property
    def optimal_level(self) -> float:
        return self.policy.optimal_level

    @property
    def potential_savings(self) -> float:
        return self.policy.potential_savings

    @property
    def savings_percentage(self) -> float:
        return self.policy.savings_percentage

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.item.item_id,
            "code": self.item.code,
            "name": self.item.name,
            "current_stock": self.item.quantity,
            "min_stock": self.item.min_stock,
            "daily_consumption": round(self.daily_consumption, 4),
            "annual_consumption": round(self.annual_consumption, 2),
            "data_points": self.data_points,
            **self.policy.to_dict(),
        }


@dataclass
class OptimizationOpportunities:
    increase_items: List[InventoryRecommendation] = field(default_factory=list)
    decrease_items: List[InventoryRecommendation] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# FORMULAS
# ═══════════════════════════════════════════════════════════════════════════════

def economic_order_quantity(annual_demand: float, order_cost: float, holding_cost: float) -> float:
    """Wilson EOQ; 0 when any input is non-positive."""
    if annual_demand <= 0 or order_cost <= 0 or holding_cost <= 0:
        return 0.0
    return float(np.sqrt(2 * annual_demand * order_cost / holding_cost))


def reorder_point(daily_demand: float, lead_time_days: float, safety_stock: float) -> float:
    return daily_demand * lead_time_days + safety_stock


def optimize_inventory(
    item: InventoryItemSnapshot,
    annual_consumption: float,
    daily_rate: float,
    config: Optional[OptimizerConfig] = None,
) -> EOQResult:
    """
    EOQ, reorder point, optimal level and cost comparison of one item.

    Args:
        item: Current item state (quantity, min_stock, unit_cost)
        annual_consumption: D, units per year
        daily_rate: Units per day
        config: Cost parameters

    Returns:
        EOQResult
    """
    config = config or OptimizerConfig()
    holding_cost = item.unit_cost * config.holding_cost_rate

    eoq = economic_order_quantity(annual_consumption, config.order_cost, holding_cost)
    safety_stock = daily_rate * config.safety_stock_days
    rop = reorder_point(daily_rate, config.lead_time_days, safety_stock)
    optimal_level = rop + eoq / 2

    if annual_consumption > 0 and eoq > 0:
        frequency = int(math.ceil(annual_consumption / eoq))
    else:
        frequency = 0

    if item.min_stock > 0:
        current_order_cost = annual_consumption / item.min_stock * config.order_cost
    else:
        current_order_cost = 0.0
    current_holding_cost = (item.quantity + item.min_stock) / 2 * holding_cost
    optimal_order_cost = frequency * config.order_cost
    optimal_holding_cost = optimal_level / 2 * holding_cost

    current_cost = current_order_cost + current_holding_cost
    optimal_cost = optimal_order_cost + optimal_holding_cost
    savings = current_cost - optimal_cost
    savings_pct = savings / current_cost * 100 if current_cost > 0 else 0.0

    return EOQResult(
        economic_order_quantity=eoq,
        reorder_point=rop,
        safety_stock=safety_stock,
        optimal_level=optimal_level,
        optimal_order_frequency=frequency,
        current_cost=current_cost,
        optimal_cost=optimal_cost,
        potential_savings=savings,
        savings_percentage=savings_pct,
        current_order_cost=current_order_cost,
        current_holding_cost=current_holding_cost,
        optimal_order_cost=optimal_order_cost,
        optimal_holding_cost=optimal_holding_cost,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# PORTFOLIO ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════════

def recommend_inventory_policies(
    items: Sequence[InventoryItemSnapshot],
    movements: Sequence[MovementEvent],
    config: Optional[OptimizerConfig] = None,
    now: Optional[datetime] = None,
) -> List[InventoryRecommendation]:
    """
    Optimize every item with enough consumption data.

    Daily consumption is the total consumed within the analysis window
    divided by the window length. Items with fewer than `min_data_points`
    consumption events or no consumption are skipped.

    Returns:
        Recommendations sorted by potential savings (descending)
    """
    config = config or OptimizerConfig()
    if now is None:
        tz = movements[0].timestamp.tzinfo if movements else None
        now = datetime.now(tz=tz)
    window_start = now - timedelta(days=config.analysis_window_days)

    recommendations: List[InventoryRecommendation] = []
    skipped = 0
    for item in items:
        consumed = [
            abs(m.quantity) for m in movements
            if m.item_id == item.item_id
            and (not item.type or not m.item_type or m.item_type == item.type)
            and m.is_consumption
            and m.timestamp >= window_start
        ]
        daily = sum(consumed) / config.analysis_window_days
        if len(consumed) < config.min_data_points or daily <= 0:
            skipped += 1
            continue

        annual = daily * 365
        recommendations.append(InventoryRecommendation(
            item=item,
            daily_consumption=daily,
            annual_consumption=annual,
            data_points=len(consumed),
            policy=optimize_inventory(item, annual, daily, config),
        ))

    if skipped:
        logger.debug(f"Skipped {skipped} items with insufficient consumption data")
    return sorted(recommendations, key=lambda rec: rec.potential_savings, reverse=True)


def find_optimization_opportunities(
    recommendations: Sequence[InventoryRecommendation],
    min_savings_pct: float = 5.0,
    limit: int = 5,
) -> OptimizationOpportunities:
    """Items whose stock should move up or down toward the optimal level."""
    worthwhile = [rec for rec in recommendations if rec.savings_percentage > min_savings_pct]
    return OptimizationOpportunities(
        increase_items=[r for r in worthwhile if r.optimal_level > r.current_stock][:limit],
        decrease_items=[r for r in worthwhile if r.optimal_level < r.current_stock][:limit],
    )


def total_potential_savings(recommendations: Sequence[InventoryRecommendation]) -> float:
    return sum(rec.potential_savings for rec in recommendations)
