"""
SmartInventory - Forecast Algorithms
====================================

Independent predictors over a monthly consumption series.

Every algorithm is a pure function of an ascending history and a horizon and
returns exactly `horizon` values. Series are not required to be contiguous:
gaps between months are tolerated, and index-based models treat the records
as consecutive observations.

Algorithms:
- Moving average (recursive, window 3)
- Linear regression over the observation index
- Naive seasonal trend (same calendar month average)
- Advanced seasonal decomposition (trend + seasonal offset, outlier filtering)
- Simple exponential smoothing (flat forecast)
- AR/MA-like recursive model (p lags, q error terms)

Mathematical Formulation:
─────────────────────────
    Linear regression:
        slope = (n·Σxy − Σx·Σy) / (n·Σx² − (Σx)²)
        intercept = (Σy − slope·Σx) / n

    Exponential smoothing:
        S_t = α·y_t + (1 − α)·S_{t−1},   S_0 = y_0

    AR/MA-like:
        ŷ_t = mean(y_{t−p..t−1}) + mean(e_{t−q..t−1})
        e_t = y_{t−1} − ŷ_t
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .consumption_history import ConsumptionRecord, month_of_year, next_months

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

class ForecastAlgorithm(str, Enum):
    """Algorithm tags accepted by the forecast dispatcher."""
    MOVING_AVERAGE = "moving_average"
    LINEAR_REGRESSION = "linear_regression"
    SEASONAL_TREND = "seasonal_trend"
    ADVANCED_SEASONAL = "advanced_seasonal"
    EXPONENTIAL_SMOOTHING = "exponential_smoothing"
    ARIMA_LIKE = "arima_like"
    ENSEMBLE = "ensemble"
    WEIGHTED_ENSEMBLE = "weighted_ensemble"


@dataclass
class ForecastConfig:
    """
    Parameters of the individual algorithms.

    Attributes:
        moving_average_window: Number of trailing values averaged
        smoothing_alpha: Exponential smoothing factor (0 < α ≤ 1)
        ar_lags: AR order p (trailing values averaged)
        ma_errors: MA order q (trailing errors averaged)
        seasonal_period: Season length in months
        outlier_sigma: Residual threshold (in standard deviations) for outliers
    """
    moving_average_window: int = 3
    smoothing_alpha: float = 0.6
    ar_lags: int = 2
    ma_errors: int = 2
    seasonal_period: int = 12
    outlier_sigma: float = 2.5

    def __post_init__(self):
        if self.moving_average_window < 1:
            raise ValueError("moving_average_window must be >= 1")
        if not 0 < self.smoothing_alpha <= 1:
            raise ValueError("smoothing_alpha must be in (0, 1]")
        if self.ar_lags < 1 or self.ma_errors < 1:
            raise ValueError("ar_lags and ma_errors must be >= 1")
        if self.seasonal_period < 2:
            raise ValueError("seasonal_period must be >= 2")


@dataclass
class SeasonalDecomposition:
    """
    Result of the seasonal decomposition.

    Attributes:
        trend: Centered moving-average trend, one value per observation
        seasonal: Seasonal offset per phase (length = period)
        residuals: actual − (trend + seasonal)
        cleaned_history: History without the outlier observations
        outlier_indices: Positions removed from the history
        residual_std: Standard deviation of the residuals
    """
    trend: List[float] = field(default_factory=list)
    seasonal: List[float] = field(default_factory=list)
    residuals: List[float] = field(default_factory=list)
    cleaned_history: List[ConsumptionRecord] = field(default_factory=list)
    outlier_indices: List[int] = field(default_factory=list)
    residual_std: float = 0.0

    @property
    def is_available(self) -> bool:
        return len(self.trend) > 0


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def history_values(history: Sequence[ConsumptionRecord]) -> List[float]:
    return [float(rec.consumption_qty) for rec in history]


def resolve_target_months(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Month labels for each forecast step.

    Missing labels are generated after the last known label (or the last
    history month).
    """
    months = list(target_months or [])[:horizon]
    if len(months) < horizon:
        anchor = months[-1] if months else (history[-1].month if history else None)
        months.extend(next_months(anchor, horizon - len(months)))
    return months


def _fit_line(x: np.ndarray, y: np.ndarray) -> tuple:
    """OLS slope/intercept; a zero denominator is replaced by 1."""
    n = len(x)
    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))
    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        denominator = 1.0
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


# ═══════════════════════════════════════════════════════════════════════════════
# ALGORITHMS
# ═══════════════════════════════════════════════════════════════════════════════

def moving_average(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    window: int = 3,
) -> List[float]:
    """
    Mean of the last `window` values, recursively.

    Each prediction is appended to a local working buffer, so from the second
    step on the window mixes observations and earlier predictions.
    """
    buffer = history_values(history)
    result: List[float] = []
    for _ in range(horizon):
        tail = buffer[-window:]
        avg = sum(tail) / len(tail) if tail else 0.0
        result.append(avg)
        buffer.append(avg)
    return result


def linear_regression(
    history: Sequence[ConsumptionRecord],
    horizon: int,
) -> List[float]:
    """Least-squares line over x = 1..n, extrapolated and clamped at 0."""
    if not history:
        return [0.0] * horizon

    y = np.array(history_values(history), dtype=float)
    n = len(y)
    x = np.arange(1, n + 1, dtype=float)
    slope, intercept = _fit_line(x, y)

    return [
        float(max(0, round_half_up(slope * (n + i) + intercept)))
        for i in range(1, horizon + 1)
    ]


def seasonal_trend(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Optional[Sequence[str]] = None,
) -> List[float]:
    """Average of every historical value recorded in the target calendar month."""
    months = resolve_target_months(history, horizon, target_months)
    by_month: Dict[int, List[float]] = {}
    for rec in history:
        by_month.setdefault(month_of_year(rec.month), []).append(float(rec.consumption_qty))

    result: List[float] = []
    for target in months:
        same_month = by_month.get(month_of_year(target), [])
        result.append(sum(same_month) / len(same_month) if same_month else 0.0)
    return result


def _phase_offsets(detrended: np.ndarray, mask: np.ndarray, period: int) -> np.ndarray:
    offsets = np.zeros(period)
    phases = np.arange(len(detrended)) % period
    for phase in range(period):
        selected = detrended[(phases == phase) & mask]
        if len(selected) > 0:
            offsets[phase] = selected.mean()
    return offsets - offsets.mean()


def seasonal_decomposition(
    history: Sequence[ConsumptionRecord],
    period: int = 12,
    outlier_sigma: float = 2.5,
) -> SeasonalDecomposition:
    """
    Decompose a series into trend, seasonal offsets and residuals.

    Requires at least 2 × period observations; otherwise an empty
    decomposition is returned (is_available == False) with the history
    unchanged.

    Steps:
        1. Trend: centered moving average with window = period
        2. Seasonal: per-phase mean of the detrended series, centered on zero
        3. Residuals: actual − (trend + seasonal)
        4. Outliers: |residual| > outlier_sigma × std(residuals)
    """
    if len(history) < period * 2:
        return SeasonalDecomposition(cleaned_history=list(history))

    values = np.array(history_values(history), dtype=float)
    n = len(values)
    half_before = period // 2
    half_after = int(math.ceil(period / 2))

    trend = np.array([
        values[max(0, i - half_before):min(n, i + half_after)].mean()
        for i in range(n)
    ])
    detrended = values - trend
    seasonal = _phase_offsets(detrended, np.ones(n, dtype=bool), period)
    residuals = detrended - seasonal[np.arange(n) % period]

    residual_std = float(np.sqrt(np.mean(residuals ** 2)))
    keep = np.abs(residuals) <= outlier_sigma * residual_std
    outliers = [int(i) for i in np.flatnonzero(~keep)]
    if outliers:
        logger.debug(f"Seasonal decomposition removed {len(outliers)} outliers at {outliers}")

    return SeasonalDecomposition(
        trend=trend.tolist(),
        seasonal=seasonal.tolist(),
        residuals=residuals.tolist(),
        cleaned_history=[rec for i, rec in enumerate(history) if keep[i]],
        outlier_indices=outliers,
        residual_std=residual_std,
    )


def advanced_seasonal(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Optional[Sequence[str]] = None,
    period: int = 12,
    outlier_sigma: float = 2.5,
) -> List[float]:
    """
    Trend extrapolation plus seasonal offset, fitted on the cleaned series.

    Falls back to the naive seasonal trend when the history holds fewer than
    two full periods. Seasonal offsets and the trend line are re-estimated
    without the outlier observations; phases keep their position in the
    original series.
    """
    decomposition = seasonal_decomposition(history, period, outlier_sigma)
    if not decomposition.is_available:
        logger.debug(
            f"History too short for decomposition ({len(history)} < {period * 2}), "
            "using seasonal trend"
        )
        return seasonal_trend(history, horizon, target_months)

    values = np.array(history_values(history), dtype=float)
    trend = np.array(decomposition.trend)
    n = len(values)
    keep = np.ones(n, dtype=bool)
    keep[decomposition.outlier_indices] = False

    seasonal = _phase_offsets(values - trend, keep, period)
    x = np.arange(1, n + 1, dtype=float)
    slope, intercept = _fit_line(x[keep], trend[keep])

    result: List[float] = []
    for i in range(horizon):
        trend_pred = intercept + slope * (n + i + 1)
        season = seasonal[(n + i) % period]
        result.append(float(max(0, round_half_up(trend_pred + season))))
    return result


def exponential_smoothing(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    alpha: float = 0.6,
) -> List[float]:
    """Flat forecast at the final smoothed level (no trend component)."""
    values = history_values(history)
    if not values:
        return [0.0] * horizon

    level = values[0]
    for value in values[1:]:
        level = level + alpha * (value - level)
    return [level] * horizon


def arima_like(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    p: int = 2,
    q: int = 2,
) -> List[float]:
    """
    AR/MA-like recursive model without differencing or seasonality.

    The working series and the error list both grow with each prediction.
    """
    values = history_values(history)
    if not values:
        return [0.0] * horizon

    errors: List[float] = []
    result: List[float] = []
    for _ in range(horizon):
        ar = sum(values[-p:]) / max(1, min(p, len(values)))
        ma = sum(errors[-q:]) / max(1, min(q, len(errors))) if errors else 0.0
        pred = float(max(0, round_half_up(ar + ma)))
        errors.append(values[-1] - pred)
        values.append(pred)
        result.append(pred)
    return result


# ═══════════════════════════════════════════════════════════════════════════════
# DISPATCH TABLE
# ═══════════════════════════════════════════════════════════════════════════════

AlgorithmFn = Callable[
    [Sequence[ConsumptionRecord], int, Sequence[str], ForecastConfig], List[float]
]

BASE_ALGORITHMS: Dict[ForecastAlgorithm, AlgorithmFn] = {
    ForecastAlgorithm.MOVING_AVERAGE: lambda h, n, months, cfg: moving_average(
        h, n, cfg.moving_average_window
    ),
    ForecastAlgorithm.LINEAR_REGRESSION: lambda h, n, months, cfg: linear_regression(h, n),
    ForecastAlgorithm.SEASONAL_TREND: lambda h, n, months, cfg: seasonal_trend(h, n, months),
    ForecastAlgorithm.ADVANCED_SEASONAL: lambda h, n, months, cfg: advanced_seasonal(
        h, n, months, cfg.seasonal_period, cfg.outlier_sigma
    ),
    ForecastAlgorithm.EXPONENTIAL_SMOOTHING: lambda h, n, months, cfg: exponential_smoothing(
        h, n, cfg.smoothing_alpha
    ),
    ForecastAlgorithm.ARIMA_LIKE: lambda h, n, months, cfg: arima_like(
        h, n, cfg.ar_lags, cfg.ma_errors
    ),
}


def run_base_algorithm(
    algorithm: ForecastAlgorithm,
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Optional[Sequence[str]] = None,
    config: Optional[ForecastConfig] = None,
) -> List[float]:
    """Run one of the non-ensemble algorithms."""
    config = config or ForecastConfig()
    months = resolve_target_months(history, horizon, target_months)
    return BASE_ALGORITHMS[algorithm](history, horizon, months, config)
