"""Response DTOs for the inventory engine.

Pydantic v2 models returned by the engine's read queries and used to
summarize the outcome of a coordinated operation.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class WarehouseStockResponse(BaseModel):
    """Quantity of one item in one warehouse."""

    warehouse_id: int = Field(..., description="Warehouse ID")
    quantity: Decimal = Field(..., description="Signed quantity on hand")


class StockBreakdownResponse(BaseModel):
    """Per-warehouse quantities of one item."""

    item_id: int = Field(..., description="Item ID")
    total_quantity: Decimal = Field(..., description="Sum across all warehouses")
    warehouses: list[WarehouseStockResponse] = Field(default_factory=list)


class PriceHistoryResponse(BaseModel):
    """One entry of an item's price history."""

    id: int
    old_price: Decimal | None = Field(default=None, description="None for the first price")
    new_price: Decimal
    change: Decimal | None = None
    source_type: str = Field(..., description="What caused the change")
    source_id: int | None = None
    note: str | None = None
    effective_date: date
    created_at: datetime


class PriceChangeResponse(BaseModel):
    """A price movement caused by an operation."""

    item_id: int
    old_price: Decimal | None = None
    new_price: Decimal


class LedgerChangeResponse(BaseModel):
    """Net change applied to one (item, warehouse) pair."""

    item_id: int
    warehouse_id: int
    delta: Decimal


class TransactionResponse(BaseModel):
    """Outcome of a create/update/delete/restore or status transition."""

    id: int = Field(..., description="Transaction ID")
    kind: str = Field(..., description="Transaction kind")
    state: str = Field(..., description="active or deleted")
    status: str | None = Field(default=None, description="Workflow status, where the kind has one")
    transaction_date: date
    line_count: int = 0
    cost_total: Decimal = Field(default=Decimal("0"), description="Sum of line cost bases, rounded for display")
    ledger_changes: list[LedgerChangeResponse] = Field(default_factory=list)
    price_changes: list[PriceChangeResponse] = Field(default_factory=list)
