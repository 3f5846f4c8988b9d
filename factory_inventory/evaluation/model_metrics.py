"""
SmartInventory - Forecast Accuracy Metrics

Error measures comparing a forecast with the values actually observed.

Standard Metrics:
----------------
MAE (Mean Absolute Error):
    MAE = (1/n) × Σ|yᵢ - ŷᵢ|

RMSE (Root Mean Square Error):
    RMSE = √((1/n) × Σ(yᵢ - ŷᵢ)²)

MAPE (Mean Absolute Percentage Error):
    MAPE = (100/n) × Σ|yᵢ - ŷᵢ|/|yᵢ|   (only where yᵢ ≠ 0)

Empty or mismatched inputs are not an error: the metric is NaN and the
caller decides how to penalise it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


# ============================================================
# POINT METRICS
# ============================================================

def _aligned(actual: Sequence[float], predicted: Sequence[float]) -> Optional[np.ndarray]:
    """Residuals y - ŷ, or None when the inputs cannot be compared."""
    actual = np.asarray(actual, dtype=float).flatten()
    predicted = np.asarray(predicted, dtype=float).flatten()
    if len(actual) == 0 or len(actual) != len(predicted):
        return None
    return actual - predicted


def mean_absolute_error(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """MAE; NaN for empty or mismatched inputs."""
    residuals = _aligned(actual, predicted)
    if residuals is None:
        return float("nan")
    return float(np.mean(np.abs(residuals)))


def root_mean_squared_error(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """RMSE; NaN for empty or mismatched inputs."""
    residuals = _aligned(actual, predicted)
    if residuals is None:
        return float("nan")
    return float(np.sqrt(np.mean(residuals ** 2)))


# ============================================================
# FORECAST METRICS
# ============================================================

@dataclass
class ForecastMetrics:
    """Accuracy summary of one forecast against a held-out window."""
    mae: float = float("nan")
    rmse: float = float("nan")
    mape: Optional[float] = None        # None when every actual is zero
    mean_bias: float = 0.0              # Mean(actual - predicted)
    n_samples: int = 0

    @property
    def is_valid(self) -> bool:
        return not math.isnan(self.mae)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mae": round(self.mae, 4) if self.is_valid else None,
            "rmse": round(self.rmse, 4) if self.is_valid else None,
            "mape": round(self.mape, 2) if self.mape is not None else None,
            "mean_bias": round(self.mean_bias, 4),
            "n_samples": self.n_samples,
        }


def compute_forecast_metrics(
    actual: Sequence[float],
    predicted: Sequence[float],
) -> ForecastMetrics:
    """
    Compute MAE, RMSE, MAPE and bias for a forecast.

    Args:
        actual: Observed values (y)
        predicted: Forecast values (ŷ)

    Returns:
        ForecastMetrics (NaN errors when the inputs cannot be compared)
    """
    metrics = ForecastMetrics()
    residuals = _aligned(actual, predicted)
    if residuals is None:
        logger.debug("Cannot compare forecast with actuals (empty or length mismatch)")
        return metrics

    actual = np.asarray(actual, dtype=float).flatten()
    metrics.n_samples = len(residuals)
    metrics.mae = float(np.mean(np.abs(residuals)))
    metrics.rmse = float(np.sqrt(np.mean(residuals ** 2)))
    metrics.mean_bias = float(np.mean(residuals))

    nonzero_mask = actual != 0
    if nonzero_mask.sum() > 0:
        metrics.mape = float(
            100 * np.mean(np.abs(residuals[nonzero_mask]) / np.abs(actual[nonzero_mask]))
        )
    return metrics
