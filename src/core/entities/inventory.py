"""Inventory domain entities: items and per-warehouse stock."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.decimals import ZERO, to_decimal


class CostingStrategy(str, Enum):
    """How an item's global unit price is derived."""

    LAST_COST = "last_cost"
    WEIGHTED_AVERAGE = "weighted_average"


class Item(BaseModel):
    """A stock-keeping item and the settings the costing engine needs."""

    id: int | None = None
    name: str
    costing_strategy: CostingStrategy = CostingStrategy.WEIGHTED_AVERAGE
    starting_quantity: Decimal = ZERO
    starting_price: Decimal = ZERO  # USD
    starting_warehouse_id: int | None = None
    starting_date: date = Field(default_factory=date.today)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("starting_quantity", "starting_price", mode="before")
    @classmethod
    def coerce_decimal(cls, v: Any) -> Decimal:
        """Convert None/empty/float to Decimal."""
        return to_decimal(v)

    @property
    def display_name(self) -> str:
        """Name used in user-facing messages."""
        return self.name or f"Item #{self.id}"

    @property
    def has_starting_stock(self) -> bool:
        return self.starting_quantity != 0 and self.starting_warehouse_id is not None


class StockEntry(BaseModel):
    """Running quantity balance for one (item, warehouse) pair."""

    id: int | None = None
    item_id: int
    warehouse_id: int
    quantity: Decimal = ZERO  # signed, maintained incrementally
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> Decimal:
        return to_decimal(v)
