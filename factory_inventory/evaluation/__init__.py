"""
SmartInventory - Evaluation
===========================

Accuracy metrics used to backtest and weight the forecasting algorithms.
"""

from .model_metrics import (
    ForecastMetrics,
    compute_forecast_metrics,
    mean_absolute_error,
    root_mean_squared_error,
)

__all__ = [
    "ForecastMetrics",
    "compute_forecast_metrics",
    "mean_absolute_error",
    "root_mean_squared_error",
]
