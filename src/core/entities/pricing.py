"""Pricing domain entities: current item price, price history, supplier prices."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.decimals import to_decimal


class PriceSourceType(str, Enum):
    """Provenance of a price change."""

    INITIAL = "initial"
    PURCHASE = "purchase"
    PURCHASE_RETURN = "purchase_return"
    STARTING_PRICE_CHANGE = "starting_price_change"


class ItemPrice(BaseModel):
    """The single, warehouse-agnostic current unit price of an item."""

    id: int | None = None
    item_id: int
    price_usd: Decimal
    effective_date: date = Field(default_factory=date.today)
    last_purchase_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("price_usd", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Decimal:
        return to_decimal(v)


class PriceHistoryEntry(BaseModel):
    """Append-only audit record of one price change."""

    id: int | None = None
    item_id: int
    old_price: Decimal | None = None  # None when the item had no price yet
    new_price: Decimal
    source_type: PriceSourceType
    source_id: int | None = None
    note: str | None = None
    effective_date: date = Field(default_factory=date.today)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("old_price", mode="before")
    @classmethod
    def coerce_old_price(cls, v: Any) -> Decimal | None:
        return None if v is None else to_decimal(v)

    @field_validator("new_price", mode="before")
    @classmethod
    def coerce_new_price(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @property
    def change(self) -> Decimal:
        """Signed price movement (old price treated as 0 when absent)."""
        return self.new_price - (self.old_price or Decimal("0"))


class SupplierItemPrice(BaseModel):
    """Latest price paid to one supplier for one item.

    A new record is only written when the price moves by more than the
    configured tolerance; the previous record is flagged as not current.
    """

    id: int | None = None
    supplier_id: int
    item_id: int
    price_usd: Decimal
    last_purchase_id: int | None = None
    last_purchase_date: date | None = None
    is_current: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("price_usd", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Decimal:
        return to_decimal(v)
