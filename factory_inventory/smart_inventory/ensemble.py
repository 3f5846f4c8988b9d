"""
SmartInventory - Ensemble Forecaster
====================================

Combines the individual algorithms into a single forecast.

Simple ensemble:
    ŷ_t = mean_k(ŷ_t^k)

Weighted ensemble (holdout backtest):
    1. Split the history: train = all but the last `test_window` months,
       test = the last `test_window` months
    2. Forecast the test window with every member trained on `train`
    3. MAE_k per member (NaN → penalty error)
    4. w_k = (1 / max(MAE_k, ε)) / Σ_j (1 / max(MAE_j, ε))
    5. Refit every member on the FULL history and combine: ŷ_t = Σ_k w_k·ŷ_t^k

Short histories (len ≤ test_window + horizon) fall back to the simple ensemble.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..evaluation.model_metrics import (
    ForecastMetrics,
    compute_forecast_metrics,
    mean_absolute_error,
)
from .consumption_history import ConsumptionRecord, sort_history
from .forecasting_algorithms import (
    ForecastAlgorithm,
    ForecastConfig,
    history_values,
    resolve_target_months,
    run_base_algorithm,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

SIMPLE_MEMBERS = [
    ForecastAlgorithm.MOVING_AVERAGE,
    ForecastAlgorithm.LINEAR_REGRESSION,
    ForecastAlgorithm.SEASONAL_TREND,
    ForecastAlgorithm.EXPONENTIAL_SMOOTHING,
    ForecastAlgorithm.ARIMA_LIKE,
]

WEIGHTED_MEMBERS = SIMPLE_MEMBERS[:3] + [ForecastAlgorithm.ADVANCED_SEASONAL] + SIMPLE_MEMBERS[3:]


@dataclass
class EnsembleConfig:
    """
    Ensemble parameters.

    Attributes:
        members: Algorithms averaged by the simple ensemble
        weighted_members: Algorithms combined by the weighted ensemble
        test_window: Months held out for the backtest
        min_error: Floor applied to MAE before inversion (perfect backtests)
        nan_penalty: Error assigned to a member whose MAE is undefined
        forecast: Parameters of the member algorithms
    """
    members: List[ForecastAlgorithm] = field(default_factory=lambda: list(SIMPLE_MEMBERS))
    weighted_members: List[ForecastAlgorithm] = field(
        default_factory=lambda: list(WEIGHTED_MEMBERS)
    )
    test_window: int = 6
    min_error: float = 1e-6
    nan_penalty: float = 99999.0
    forecast: ForecastConfig = field(default_factory=ForecastConfig)

    def __post_init__(self):
        if self.test_window < 1:
            raise ValueError("test_window must be >= 1")
        if self.min_error <= 0:
            raise ValueError("min_error must be > 0")
        ensembles = {ForecastAlgorithm.ENSEMBLE, ForecastAlgorithm.WEIGHTED_ENSEMBLE}
        if not self.members or not self.weighted_members:
            raise ValueError("ensemble members cannot be empty")
        if ensembles & (set(self.members) | set(self.weighted_members)):
            raise ValueError("ensemble members must be individual algorithms")


# ═══════════════════════════════════════════════════════════════════════════════
# ENSEMBLES
# ═══════════════════════════════════════════════════════════════════════════════

def _member_forecasts(
    members: Sequence[ForecastAlgorithm],
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Sequence[str],
    config: ForecastConfig,
) -> Dict[ForecastAlgorithm, List[float]]:
    return {
        algo: run_base_algorithm(algo, history, horizon, target_months, config)
        for algo in members
    }


def simple_ensemble_forecast(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Optional[Sequence[str]] = None,
    config: Optional[EnsembleConfig] = None,
) -> List[float]:
    """Element-wise mean of the member forecasts."""
    config = config or EnsembleConfig()
    months = resolve_target_months(history, horizon, target_months)
    forecasts = _member_forecasts(config.members, history, horizon, months, config.forecast)
    if horizon <= 0:
        return []
    matrix = np.array(list(forecasts.values()), dtype=float)
    return matrix.mean(axis=0).tolist()


def compute_algorithm_weights(
    history: Sequence[ConsumptionRecord],
    config: Optional[EnsembleConfig] = None,
) -> Dict[ForecastAlgorithm, float]:
    """
    Backtest weights of the weighted ensemble members.

    Returns an empty mapping when the history cannot be split into a
    non-empty train window and the test window.
    """
    config = config or EnsembleConfig()
    ordered = sort_history(history)
    if len(ordered) <= config.test_window:
        return {}

    train = ordered[:-config.test_window]
    test = ordered[-config.test_window:]
    actual = history_values(test)
    test_months = [rec.month for rec in test]

    errors: Dict[ForecastAlgorithm, float] = {}
    for algo in config.weighted_members:
        predicted = run_base_algorithm(
            algo, train, config.test_window, test_months, config.forecast
        )
        mae = mean_absolute_error(actual, predicted)
        if math.isnan(mae):
            logger.warning(f"Backtest of {algo.value} undefined, applying penalty error")
            mae = config.nan_penalty
        errors[algo] = max(mae, config.min_error)

    inverse = {algo: 1.0 / err for algo, err in errors.items()}
    total = sum(inverse.values())
    weights = {algo: inv / total for algo, inv in inverse.items()}
    logger.debug(
        "Ensemble weights: "
        + ", ".join(f"{algo.value}={w:.3f}" for algo, w in weights.items())
    )
    return weights


def weighted_ensemble_forecast(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    target_months: Optional[Sequence[str]] = None,
    config: Optional[EnsembleConfig] = None,
) -> List[float]:
    """
    Inverse-MAE weighted combination of the member forecasts.

    Identical to the simple ensemble when len(history) ≤ test_window + horizon.
    """
    config = config or EnsembleConfig()
    ordered = sort_history(history)
    if len(ordered) <= config.test_window + horizon:
        logger.debug(
            f"History too short for backtest ({len(ordered)} <= "
            f"{config.test_window} + {horizon}), using simple ensemble"
        )
        return simple_ensemble_forecast(ordered, horizon, target_months, config)

    weights = compute_algorithm_weights(ordered, config)
    months = resolve_target_months(ordered, horizon, target_months)
    forecasts = _member_forecasts(
        list(weights.keys()), ordered, horizon, months, config.forecast
    )

    combined = np.zeros(horizon)
    for algo, weight in weights.items():
        combined += weight * np.array(forecasts[algo], dtype=float)
    return combined.tolist()


# ═══════════════════════════════════════════════════════════════════════════════
# BACKTEST REPORT
# ═══════════════════════════════════════════════════════════════════════════════

def backtest_algorithms(
    history: Sequence[ConsumptionRecord],
    config: Optional[EnsembleConfig] = None,
) -> Dict[ForecastAlgorithm, ForecastMetrics]:
    """
    Accuracy of every algorithm on the held-out test window.

    Each algorithm (both ensembles included) is trained on all but the last
    `test_window` months and scored against them. Empty when the history is
    not longer than the test window.
    """
    config = config or EnsembleConfig()
    ordered = sort_history(history)
    if len(ordered) <= config.test_window:
        return {}

    train = ordered[:-config.test_window]
    test = ordered[-config.test_window:]
    actual = history_values(test)
    test_months = [rec.month for rec in test]
    window = config.test_window

    report: Dict[ForecastAlgorithm, ForecastMetrics] = {}
    for algo in ForecastAlgorithm:
        if algo == ForecastAlgorithm.ENSEMBLE:
            predicted = simple_ensemble_forecast(train, window, test_months, config)
        elif algo == ForecastAlgorithm.WEIGHTED_ENSEMBLE:
            predicted = weighted_ensemble_forecast(train, window, test_months, config)
        else:
            predicted = run_base_algorithm(algo, train, window, test_months, config.forecast)
        report[algo] = compute_forecast_metrics(actual, predicted)
    return report
