"""
═══════════════════════════════════════════════════════════════════════════════
                    SMART INVENTORY: FORECASTING & OPTIMIZATION
═══════════════════════════════════════════════════════════════════════════════

Turns raw consumption history into forward-looking stock decisions.

    ┌─────────────────────────────────────────────────────────────┐
    │  Consumption history (monthly)        Movements (raw)       │
    │          │                                  │               │
    │  Forecast algorithms ─► Ensemble    Consumption rate        │
    │          │                            │           │         │
    │     forecast_series /            Stock projector  Optimizer │
    │     smart_forecast               (days left)      (EOQ/ROP) │
    │                                                             │
    │  ABC classifier (flat value list)                           │
    └─────────────────────────────────────────────────────────────┘

Every operation is a pure, synchronous function of its inputs.
"""

from .abc_classifier import (
    ABCClass,
    ABCClassSummary,
    ABCConfig,
    ABCItem,
    classify_abc,
    summarize_abc,
)
from .consumption_history import (
    ConsumptionRecord,
    InventoryItemSnapshot,
    MovementEvent,
    aggregate_monthly_consumption,
    group_by_material,
    next_months,
    records_to_frame,
)
from .consumption_rate import (
    ConsumptionRateEstimate,
    ConsumptionTrend,
    RateConfig,
    TimeRange,
    TrendDirection,
    analyze_consumption_trend,
    estimate_consumption_rate,
)
from .ensemble import (
    EnsembleConfig,
    backtest_algorithms,
    compute_algorithm_weights,
    simple_ensemble_forecast,
    weighted_ensemble_forecast,
)
from .forecasting_algorithms import (
    ForecastAlgorithm,
    ForecastConfig,
    SeasonalDecomposition,
    advanced_seasonal,
    arima_like,
    exponential_smoothing,
    linear_regression,
    moving_average,
    seasonal_decomposition,
    seasonal_trend,
)
from .forecasting_engine import (
    ConsumptionSpike,
    ForecastPoint,
    MaterialForecast,
    detect_consumption_spikes,
    forecast_series,
    forecasts_to_frame,
    smart_forecast,
)
from .inventory_optimizer import (
    EOQResult,
    InventoryRecommendation,
    OptimizationOpportunities,
    OptimizerConfig,
    economic_order_quantity,
    find_optimization_opportunities,
    optimize_inventory,
    recommend_inventory_policies,
    total_potential_savings,
)
from .stock_projection import (
    MaterialStatus,
    MaterialStatusRecommendation,
    StockForecastRow,
    StockProjection,
    StockTier,
    build_stock_forecast,
    items_needing_restock,
    project_stockout,
    rank_projections,
    recommend_material_status,
)

__all__ = [
    # History
    "ConsumptionRecord",
    "MovementEvent",
    "InventoryItemSnapshot",
    "aggregate_monthly_consumption",
    "group_by_material",
    "next_months",
    "records_to_frame",
    # Forecasting
    "ForecastAlgorithm",
    "ForecastConfig",
    "SeasonalDecomposition",
    "moving_average",
    "linear_regression",
    "seasonal_trend",
    "seasonal_decomposition",
    "advanced_seasonal",
    "exponential_smoothing",
    "arima_like",
    "EnsembleConfig",
    "simple_ensemble_forecast",
    "weighted_ensemble_forecast",
    "compute_algorithm_weights",
    "backtest_algorithms",
    "ForecastPoint",
    "MaterialForecast",
    "ConsumptionSpike",
    "forecast_series",
    "smart_forecast",
    "detect_consumption_spikes",
    "forecasts_to_frame",
    # Consumption rate
    "TimeRange",
    "TrendDirection",
    "RateConfig",
    "ConsumptionRateEstimate",
    "ConsumptionTrend",
    "estimate_consumption_rate",
    "analyze_consumption_trend",
    # Projection
    "StockTier",
    "StockProjection",
    "StockForecastRow",
    "MaterialStatus",
    "MaterialStatusRecommendation",
    "project_stockout",
    "rank_projections",
    "build_stock_forecast",
    "items_needing_restock",
    "recommend_material_status",
    # Optimization
    "OptimizerConfig",
    "EOQResult",
    "InventoryRecommendation",
    "OptimizationOpportunities",
    "economic_order_quantity",
    "optimize_inventory",
    "recommend_inventory_policies",
    "find_optimization_opportunities",
    "total_potential_savings",
    # ABC
    "ABCClass",
    "ABCConfig",
    "ABCItem",
    "ABCClassSummary",
    "classify_abc",
    "summarize_abc",
]
