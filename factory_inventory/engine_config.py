"""
SmartInventory - Engine Configuration
=====================================

Process-wide defaults for the forecasting and optimization engine.

Every entry point also accepts an explicit config object, so this module only
matters for callers that want environment-driven defaults.

Usage:
    from factory_inventory.engine_config import EngineConfig

    algorithm = EngineConfig.get_config().default_algorithm
    result = forecast_series(history, 3, algorithm, config=EngineConfig.ensemble_config())

Environment variables:
    SMARTINV_DEFAULT_ALGORITHM=weighted_ensemble
    SMARTINV_MOVING_AVERAGE_WINDOW=3
    SMARTINV_SMOOTHING_ALPHA=0.6
    SMARTINV_TEST_WINDOW=6
    SMARTINV_SEASONAL_PERIOD=12
    SMARTINV_ORDER_COST=100
    SMARTINV_HOLDING_COST_RATE=0.2
    SMARTINV_LEAD_TIME_DAYS=7
    SMARTINV_SAFETY_STOCK_DAYS=3
    SMARTINV_ABC_A_THRESHOLD=0.80
    SMARTINV_ABC_B_THRESHOLD=0.95
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .smart_inventory.abc_classifier import ABCConfig
from .smart_inventory.ensemble import EnsembleConfig
from .smart_inventory.forecasting_algorithms import ForecastAlgorithm, ForecastConfig
from .smart_inventory.inventory_optimizer import OptimizerConfig

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class EngineSettings:
    """Defaults read from the environment."""
    default_algorithm: ForecastAlgorithm = ForecastAlgorithm.WEIGHTED_ENSEMBLE

    # Forecasting
    moving_average_window: int = 3
    smoothing_alpha: float = 0.6
    test_window: int = 6
    seasonal_period: int = 12

    # Optimization
    order_cost: float = 100.0
    holding_cost_rate: float = 0.2
    lead_time_days: float = 7.0
    safety_stock_days: float = 3.0

    # ABC
    abc_a_threshold: float = 0.80
    abc_b_threshold: float = 0.95


_Validator = Callable[[Any], bool]

_NUMERIC_ENV: Dict[str, Tuple[str, type, _Validator]] = {
    "SMARTINV_MOVING_AVERAGE_WINDOW": ("moving_average_window", int, lambda v: v >= 1),
    "SMARTINV_SMOOTHING_ALPHA": ("smoothing_alpha", float, lambda v: 0 < v <= 1),
    "SMARTINV_TEST_WINDOW": ("test_window", int, lambda v: v >= 1),
    "SMARTINV_SEASONAL_PERIOD": ("seasonal_period", int, lambda v: v >= 2),
    "SMARTINV_ORDER_COST": ("order_cost", float, lambda v: v >= 0),
    "SMARTINV_HOLDING_COST_RATE": ("holding_cost_rate", float, lambda v: v >= 0),
    "SMARTINV_LEAD_TIME_DAYS": ("lead_time_days", float, lambda v: v >= 0),
    "SMARTINV_SAFETY_STOCK_DAYS": ("safety_stock_days", float, lambda v: v >= 0),
    "SMARTINV_ABC_A_THRESHOLD": ("abc_a_threshold", float, lambda v: 0 < v <= 1),
    "SMARTINV_ABC_B_THRESHOLD": ("abc_b_threshold", float, lambda v: 0 < v <= 1),
}


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE CONFIG
# ═══════════════════════════════════════════════════════════════════════════════

class EngineConfig:
    """
    Singleton holding the engine defaults.

    Loaded lazily from the environment on first access. Invalid values are
    logged and replaced by the defaults.

    Usage:
        settings = EngineConfig.get_config()
        optimizer_cfg = EngineConfig.optimizer_config()
        EngineConfig.reset()  # reload on next access
    """

    _instance: Optional[EngineSettings] = None

    @classmethod
    def _load_from_env(cls) -> EngineSettings:
        """Load settings from environment variables."""
        settings = EngineSettings()

        value = os.environ.get("SMARTINV_DEFAULT_ALGORITHM")
        if value:
            try:
                settings.default_algorithm = ForecastAlgorithm(value.lower())
                logger.info(f"Engine setting default_algorithm = {value}")
            except ValueError:
                logger.warning(f"Invalid value for SMARTINV_DEFAULT_ALGORITHM: {value}")

        for env_var, (attr_name, caster, is_valid) in _NUMERIC_ENV.items():
            value = os.environ.get(env_var)
            if not value:
                continue
            try:
                parsed = caster(value)
            except ValueError:
                logger.warning(f"Invalid value for {env_var}: {value}")
                continue
            if not is_valid(parsed):
                logger.warning(f"Out of range value for {env_var}: {value}")
                continue
            setattr(settings, attr_name, parsed)
            logger.info(f"Engine setting {attr_name} = {parsed}")

        if settings.abc_a_threshold > settings.abc_b_threshold:
            logger.warning(
                f"ABC A threshold {settings.abc_a_threshold} above B threshold "
                f"{settings.abc_b_threshold}, using defaults"
            )
            settings.abc_a_threshold = EngineSettings.abc_a_threshold
            settings.abc_b_threshold = EngineSettings.abc_b_threshold

        return settings

    @classmethod
    def get_config(cls) -> EngineSettings:
        """Current settings."""
        if cls._instance is None:
            cls._instance = cls._load_from_env()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop cached settings so the next access reloads them."""
        cls._instance = None

    @classmethod
    def get_default_algorithm(cls) -> ForecastAlgorithm:
        return cls.get_config().default_algorithm

    @classmethod
    def forecast_config(cls) -> ForecastConfig:
        settings = cls.get_config()
        return ForecastConfig(
            moving_average_window=settings.moving_average_window,
            smoothing_alpha=settings.smoothing_alpha,
            seasonal_period=settings.seasonal_period,
        )

    @classmethod
    def ensemble_config(cls) -> EnsembleConfig:
        return EnsembleConfig(
            test_window=cls.get_config().test_window,
            forecast=cls.forecast_config(),
        )

    @classmethod
    def optimizer_config(cls) -> OptimizerConfig:
        settings = cls.get_config()
        return OptimizerConfig(
            order_cost=settings.order_cost,
            holding_cost_rate=settings.holding_cost_rate,
            lead_time_days=settings.lead_time_days,
            safety_stock_days=settings.safety_stock_days,
        )

    @classmethod
    def abc_config(cls) -> ABCConfig:
        settings = cls.get_config()
        return ABCConfig(
            a_threshold=settings.abc_a_threshold,
            b_threshold=settings.abc_b_threshold,
        )

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Export settings as a dict."""
        data = asdict(cls.get_config())
        data["default_algorithm"] = cls.get_config().default_algorithm.value
        return data
