"""
Shared fixtures for the factory_inventory tests.
"""
from datetime import datetime, timedelta
from typing import List, Sequence

import pytest

from factory_inventory.engine_config import EngineConfig
from factory_inventory.smart_inventory.consumption_history import (
    ConsumptionRecord,
    InventoryItemSnapshot,
    MovementEvent,
    next_months,
)


def build_history(
    values: Sequence[float],
    material_id: str = "M1",
    start: str = "2023-01",
) -> List[ConsumptionRecord]:
    """Consecutive monthly records starting at `start`."""
    year, month = (int(part) for part in start.split("-"))
    previous = f"{year:04d}-{month - 1:02d}" if month > 1 else f"{year - 1:04d}-12"
    months = next_months(previous, len(values))
    return [
        ConsumptionRecord(
            material_id=material_id,
            material_code=f"C-{material_id}",
            material_name=f"Material {material_id}",
            category="raw-material",
            month=label,
            consumption_qty=qty,
        )
        for label, qty in zip(months, values)
    ]


@pytest.fixture
def make_history():
    """Factory for monthly consumption histories."""
    return build_history


@pytest.fixture
def now():
    """Fixed reference instant for rate estimation."""
    return datetime(2024, 6, 30, 12, 0, 0)


@pytest.fixture
def make_movement(now):
    """Factory for movements `days_ago` days before `now`."""
    def _make(quantity: float, days_ago: float, item_id: str = "I1", item_type: str = "raw"):
        return MovementEvent(
            item_id=item_id,
            item_type=item_type,
            quantity=quantity,
            timestamp=now - timedelta(days=days_ago),
        )
    return _make


@pytest.fixture
def sample_item():
    """Raw material snapshot."""
    return InventoryItemSnapshot(
        id="I1",
        code="RM-001",
        name="Sugar",
        quantity=500,
        min_stock=100,
        unit="kg",
        unit_cost=10.0,
        type="raw",
    )


@pytest.fixture
def seasonal_values():
    """Three years of a stable seasonal pattern."""
    pattern = [80, 85, 95, 110, 120, 130, 125, 115, 100, 90, 85, 80]
    return pattern * 3


@pytest.fixture(autouse=True)
def reset_engine_config():
    """Isolate the configuration singleton between tests."""
    EngineConfig.reset()
    yield
    EngineConfig.reset()
