"""
SmartInventory - Consumption Rate Estimator
===========================================

Daily consumption rate of an item from its raw stock movements.

Only outbound movements (negative quantity) count as consumption. Recent
movements weigh more than old ones:

    days_ago_i = ⌈(now − t_i) / 1 day⌉
    w_i = max(0, (max_days − days_ago_i) / max_days)     (days_ago_i ≤ max_days)

    daily_rate = (Σ q_i·w_i / Σ w_i) / days_covered
    days_covered = min(⌈(now − t_oldest) / 1 day⌉, max_days)

Note: the weighted figure is an average movement size spread over the
covered days, not a per-day total. A movement exactly `max_days` old has
weight 0.

Variability is the coefficient of variation (σ/μ, population σ) of the
per-calendar-day totals. Confidence combines the number of data points and
the variability; trend compares the older and newer halves of the events.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .consumption_history import MovementEvent

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

class TimeRange(int, Enum):
    """Analysis window length in days."""
    WEEK = 7
    MONTH = 30
    QUARTER = 90
    YEAR = 365


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    FLAT = "flat"


@dataclass
class RateConfig:
    """
    Estimator parameters.

    Attributes:
        min_events_for_trend: Events required before a trend is reported
        trend_threshold: Relative change between halves that counts as a trend
        min_points_for_confidence: Below this count confidence uses low_data_factor
        low_data_factor: Data factor for sparse histories
        base_data_factor: Data factor intercept (0.5 + n / points_per_unit)
        max_data_factor: Data factor cap
        points_per_unit: Points needed to add 1.0 to the data factor
        min_variability_factor: Floor of (1 − variability)
    """
    min_events_for_trend: int = 5
    trend_threshold: float = 0.1
    min_points_for_confidence: int = 3
    low_data_factor: float = 0.3
    base_data_factor: float = 0.5
    max_data_factor: float = 0.9
    points_per_unit: float = 50.0
    min_variability_factor: float = 0.1


@dataclass
class ConsumptionRateEstimate:
    """Consumption rate of one item."""
    daily_rate: float = 0.0
    variability: float = 0.0
    confidence: float = 0.0
    trend: TrendDirection = TrendDirection.FLAT
    days_covered: int = 0
    data_points: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily_rate": round(self.daily_rate, 4),
            "variability": round(self.variability, 4),
            "confidence": round(self.confidence, 3),
            "trend": self.trend.value,
            "days_covered": self.days_covered,
            "data_points": self.data_points,
        }


@dataclass
class ConsumptionTrend:
    change_rate: float = 0.0
    trend: TrendDirection = TrendDirection.FLAT


# ═══════════════════════════════════════════════════════════════════════════════
# COMPONENTS
# ═══════════════════════════════════════════════════════════════════════════════

def _days_between(now: datetime, then: datetime) -> int:
    return int(math.ceil((now - then) / _ONE_DAY))


def consumption_variability(events: Sequence[MovementEvent]) -> float:
    """Coefficient of variation of per-day consumption totals."""
    if len(events) < 2:
        return 0.0
    frame = pd.DataFrame({
        "day": [event.timestamp.date() for event in events],
        "qty": [abs(event.quantity) for event in events],
    })
    daily = frame.groupby("day")["qty"].sum()
    mean = daily.mean()
    if mean <= 0:
        return 0.0
    return float(daily.std(ddof=0) / mean)


def confidence_level(
    data_points: int,
    variability: float,
    config: Optional[RateConfig] = None,
) -> float:
    """
    Confidence in a rate estimate, in [0.03, 0.9].

    More data points raise it; higher variability lowers it.
    """
    config = config or RateConfig()
    if data_points < config.min_points_for_confidence:
        data_factor = config.low_data_factor
    else:
        data_factor = min(
            config.max_data_factor,
            config.base_data_factor + data_points / config.points_per_unit,
        )
    variability_factor = max(config.min_variability_factor, 1 - variability)
    return data_factor * variability_factor


def _half_change(quantities: Sequence[float]) -> float:
    midpoint = len(quantities) // 2
    older = quantities[:midpoint]
    newer = quantities[midpoint:]
    older_avg = sum(older) / len(older)
    newer_avg = sum(newer) / len(newer)
    if older_avg == 0:
        return 0.0
    return (newer_avg - older_avg) / older_avg


def _direction(change_rate: float, threshold: float) -> TrendDirection:
    if change_rate > threshold:
        return TrendDirection.INCREASING
    if change_rate < -threshold:
        return TrendDirection.DECREASING
    return TrendDirection.FLAT


def consumption_trend(
    events: Sequence[MovementEvent],
    config: Optional[RateConfig] = None,
) -> TrendDirection:
    """Compare average event size of the older and newer halves."""
    config = config or RateConfig()
    if len(events) < config.min_events_for_trend:
        return TrendDirection.FLAT
    ordered = sorted(events, key=lambda event: event.timestamp)
    change = _half_change([abs(event.quantity) for event in ordered])
    return _direction(change, config.trend_threshold)


def analyze_consumption_trend(
    points: Sequence[Tuple[datetime, float]],
    threshold: float = 0.05,
) -> ConsumptionTrend:
    """
    Trend of any dated quantity series.

    Needs at least 2 points; the change rate is 0 when the older half
    averages to zero.
    """
    if len(points) < 2:
        return ConsumptionTrend()
    ordered = sorted(points, key=lambda point: point[0])
    change = _half_change([float(qty) for _, qty in ordered])
    return ConsumptionTrend(change_rate=change, trend=_direction(change, threshold))


# ═══════════════════════════════════════════════════════════════════════════════
# ESTIMATOR
# ═══════════════════════════════════════════════════════════════════════════════

def estimate_consumption_rate(
    movements: Sequence[MovementEvent],
    time_range_days: Union[TimeRange, int] = TimeRange.MONTH,
    now: Optional[datetime] = None,
    config: Optional[RateConfig] = None,
) -> ConsumptionRateEstimate:
    """
    Estimate the daily consumption rate of one item.

    Args:
        movements: Movements of the item (any sign)
        time_range_days: Analysis window (7, 30, 90 or 365)
        now: Reference instant (defaults to the current time, in the
            timezone of the movements)
        config: Estimator parameters

    Returns:
        ConsumptionRateEstimate (all zeros when there is no consumption)
    """
    config = config or RateConfig()
    max_days = int(time_range_days)
    if max_days <= 0:
        raise ValueError(f"time_range_days must be > 0, got {time_range_days}")

    events: List[MovementEvent] = [m for m in movements if m.is_consumption]
    if not events:
        return ConsumptionRateEstimate(
            confidence=confidence_level(0, 0.0, config),
        )

    if now is None:
        now = datetime.now(tz=events[0].timestamp.tzinfo)

    oldest = min(event.timestamp for event in events)
    days_covered = max(1, min(_days_between(now, oldest), max_days))

    weighted_total = 0.0
    total_weight = 0.0
    for event in events:
        days_ago = max(0, _days_between(now, event.timestamp))
        if days_ago > max_days:
            continue
        weight = max(0.0, (max_days - days_ago) / max_days)
        weighted_total += abs(event.quantity) * weight
        total_weight += weight

    weighted_avg = weighted_total / total_weight if total_weight > 0 else 0.0
    daily_rate = weighted_avg / days_covered

    variability = consumption_variability(events)
    estimate = ConsumptionRateEstimate(
        daily_rate=daily_rate,
        variability=variability,
        confidence=confidence_level(len(events), variability, config),
        trend=consumption_trend(events, config),
        days_covered=days_covered,
        data_points=len(events),
    )
    logger.debug(
        f"Consumption rate {estimate.daily_rate:.4f}/day over {days_covered} days "
        f"({len(events)} events, cv={variability:.3f})"
    )
    return estimate
