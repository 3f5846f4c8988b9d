"""
Factory Inventory - forecasting and optimization engine.

Time-series predictors plus classic inventory-control formulas (EOQ,
reorder point, ABC classification) over factory consumption data.
"""

from .engine_config import EngineConfig, EngineSettings
from .smart_inventory import *  # noqa: F401,F403
from .smart_inventory import __all__ as _smart_inventory_all

__version__ = "1.0.0"

__all__ = ["EngineConfig", "EngineSettings", "__version__"] + list(_smart_inventory_all)
