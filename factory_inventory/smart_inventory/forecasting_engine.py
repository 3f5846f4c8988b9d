"""
SmartInventory - Forecasting Engine
===================================

Entry points of the forecasting subsystem.

- forecast_series: one series, one algorithm (enum-keyed dispatch table)
- smart_forecast: multi-material history, every requested algorithm
- detect_consumption_spikes: materials whose next month looks unusually high

Each call is independent: recursive buffers live inside the algorithms and
nothing is cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from .consumption_history import ConsumptionRecord, group_by_material, sort_history
from .ensemble import EnsembleConfig, simple_ensemble_forecast, weighted_ensemble_forecast
from .forecasting_algorithms import (
    BASE_ALGORITHMS,
    ForecastAlgorithm,
    moving_average,
    resolve_target_months,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ForecastPoint:
    """Predicted consumption for one month."""
    month: str
    predicted: float
    algorithm: ForecastAlgorithm

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "predicted": round(self.predicted, 2),
            "algorithm": self.algorithm.value,
        }


@dataclass
class MaterialForecast:
    """
    Forecasts of one material for every requested algorithm.

    Attributes:
        material_id: Material identifier
        material_code: Material code (from the first history record)
        material_name: Material name
        category: Material category
        history_points: Number of monthly records used
        forecasts: Points per algorithm, one per horizon step
    """
    material_id: str
    material_code: str = ""
    material_name: str = ""
    category: str = ""
    history_points: int = 0
    forecasts: Dict[ForecastAlgorithm, List[ForecastPoint]] = field(default_factory=dict)

    def values(self, algorithm: Union[ForecastAlgorithm, str]) -> List[float]:
        """Predicted values of one algorithm."""
        algorithm = ForecastAlgorithm(algorithm)
        return [point.predicted for point in self.forecasts.get(algorithm, [])]

    def total(self, algorithm: Union[ForecastAlgorithm, str]) -> float:
        return sum(self.values(algorithm))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "material_id": self.material_id,
            "material_code": self.material_code,
            "material_name": self.material_name,
            "category": self.category,
            "history_points": self.history_points,
            "forecasts": {
                algo.value: [point.to_dict() for point in points]
                for algo, points in self.forecasts.items()
            },
        }


@dataclass
class ConsumptionSpike:
    """Material whose next-month forecast exceeds the last observed month."""
    material_id: str
    material_name: str
    last_qty: float
    forecast_qty: float

    @property
    def increase_pct(self) -> Optional[float]:
        if self.last_qty <= 0:
            return None
        return (self.forecast_qty - self.last_qty) / self.last_qty * 100

    def to_dict(self) -> Dict[str, Any]:
        increase = self.increase_pct
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "last_qty": round(self.last_qty, 2),
            "forecast_qty": round(self.forecast_qty, 2),
            "increase_pct": round(increase, 1) if increase is not None else None,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# DISPATCH
# ═══════════════════════════════════════════════════════════════════════════════

ForecastFn = Callable[
    [Sequence[ConsumptionRecord], int, Sequence[str], EnsembleConfig], List[float]
]


def _base(algorithm: ForecastAlgorithm) -> ForecastFn:
    fn = BASE_ALGORITHMS[algorithm]
    return lambda history, horizon, months, cfg: fn(history, horizon, months, cfg.forecast)


ALGORITHM_TABLE: Dict[ForecastAlgorithm, ForecastFn] = {
    algo: _base(algo) for algo in BASE_ALGORITHMS
}
ALGORITHM_TABLE[ForecastAlgorithm.ENSEMBLE] = simple_ensemble_forecast
ALGORITHM_TABLE[ForecastAlgorithm.WEIGHTED_ENSEMBLE] = weighted_ensemble_forecast


def _as_algorithm(algorithm: Union[ForecastAlgorithm, str]) -> ForecastAlgorithm:
    try:
        return ForecastAlgorithm(algorithm)
    except ValueError:
        raise ValueError(
            f"Unknown forecast algorithm: {algorithm!r} "
            f"(expected one of {[a.value for a in ForecastAlgorithm]})"
        ) from None


def forecast_series(
    history: Sequence[ConsumptionRecord],
    horizon: int,
    algorithm: Union[ForecastAlgorithm, str] = ForecastAlgorithm.WEIGHTED_ENSEMBLE,
    target_months: Optional[Sequence[str]] = None,
    config: Optional[EnsembleConfig] = None,
) -> List[float]:
    """
    Forecast one monthly series.

    Args:
        history: Monthly records of a single material
        horizon: Number of months to predict
        algorithm: Algorithm tag
        target_months: Month labels of the forecast steps; generated after
            the last history month when omitted
        config: Algorithm and ensemble parameters

    Returns:
        Exactly `horizon` non-negative values

    Raises:
        ValueError: Unknown algorithm tag or negative horizon
    """
    if horizon < 0:
        raise ValueError(f"horizon must be >= 0, got {horizon}")
    algo = _as_algorithm(algorithm)
    config = config or EnsembleConfig()
    ordered = sort_history(history)
    months = resolve_target_months(ordered, horizon, target_months)
    return ALGORITHM_TABLE[algo](ordered, horizon, months, config)


def smart_forecast(
    all_history: Iterable[ConsumptionRecord],
    horizon: int,
    month_labels: Optional[Sequence[str]] = None,
    algorithms: Optional[Sequence[Union[ForecastAlgorithm, str]]] = None,
    config: Optional[EnsembleConfig] = None,
) -> List[MaterialForecast]:
    """
    Forecast every material of a multi-material history.

    Records are grouped by material (first-seen order) and sorted by month.
    Every requested algorithm (all tags by default) yields `horizon` points
    labelled with `month_labels`.
    """
    selected = [_as_algorithm(a) for a in (algorithms or list(ForecastAlgorithm))]
    config = config or EnsembleConfig()

    results: List[MaterialForecast] = []
    for material_id, history in group_by_material(all_history).items():
        months = resolve_target_months(history, horizon, month_labels)
        first = history[0]
        result = MaterialForecast(
            material_id=material_id,
            material_code=first.material_code,
            material_name=first.material_name,
            category=first.category,
            history_points=len(history),
        )
        for algo in selected:
            values = ALGORITHM_TABLE[algo](history, horizon, months, config)
            result.forecasts[algo] = [
                ForecastPoint(month=month, predicted=value, algorithm=algo)
                for month, value in zip(months, values)
            ]
        results.append(result)

    logger.info(
        f"Forecasted {len(results)} materials x {len(selected)} algorithms, horizon={horizon}"
    )
    return results


def detect_consumption_spikes(
    all_history: Iterable[ConsumptionRecord],
    threshold: float = 1.2,
    min_points: int = 3,
) -> List[ConsumptionSpike]:
    """
    Materials whose next-month moving average exceeds last month × threshold.

    Materials with fewer than `min_points` records are skipped.
    """
    spikes: List[ConsumptionSpike] = []
    for material_id, history in group_by_material(all_history).items():
        if len(history) < min_points:
            continue
        forecast_qty = moving_average(history, 1)[0]
        last_qty = history[-1].consumption_qty
        if forecast_qty > last_qty * threshold:
            spikes.append(ConsumptionSpike(
                material_id=material_id,
                material_name=history[0].material_name,
                last_qty=last_qty,
                forecast_qty=forecast_qty,
            ))
    return spikes


def forecasts_to_frame(results: Iterable[MaterialForecast]) -> pd.DataFrame:
    """Long-format table: one row per material, algorithm and month."""
    columns = ["material_id", "material_code", "material_name", "algorithm", "month", "predicted"]
    rows = [
        {
            "material_id": result.material_id,
            "material_code": result.material_code,
            "material_name": result.material_name,
            "algorithm": algo.value,
            "month": point.month,
            "predicted": point.predicted,
        }
        for result in results
        for algo, points in result.forecasts.items()
        for point in points
    ]
    return pd.DataFrame(rows, columns=columns)
