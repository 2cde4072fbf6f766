"""Request DTOs for the inventory engine.

Pydantic v2 models for caller input validation.
These are the ONLY contracts between callers and use cases.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.entities.inventory import CostingStrategy
from src.core.entities.transaction import AdjustmentType, PurchaseStatus, ReturnStatus

# --- Items ---


class CreateItemRequest(BaseModel):
    """Register an item, optionally with opening stock."""

    item_id: int | None = Field(default=None, description="Explicit item ID (auto-assigned if omitted)")
    name: str = Field(..., min_length=1, description="Item name used in messages")
    costing_strategy: CostingStrategy | None = Field(
        default=None,
        description="Costing strategy (defaults to the configured strategy)",
    )
    starting_quantity: Decimal = Field(default=Decimal("0"), ge=0, description="Opening stock")
    starting_price: Decimal = Field(default=Decimal("0"), ge=0, description="Opening unit cost (USD)")
    warehouse_id: int | None = Field(default=None, description="Warehouse receiving the opening stock")
    starting_date: date | None = Field(default=None, description="Opening date (defaults to today)")


# --- Line items ---


class PurchaseLineRequest(BaseModel):
    """Line of a purchase or purchase return.

    ``id`` identifies an existing line on update; omit it for a new line.
    """

    id: int | None = Field(default=None, description="Existing line ID (updates only)")
    item_id: int = Field(..., description="Item ID")
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    unit_cost: Decimal = Field(..., ge=0, description="Cost per unit (USD)")
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    note: str | None = None


class SaleLineRequest(BaseModel):
    """Line of a sale or customer return."""

    id: int | None = Field(default=None, description="Existing line ID (updates only)")
    item_id: int = Field(..., description="Item ID")
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    unit_price: Decimal = Field(default=Decimal("0"), ge=0, description="Selling price per unit (USD)")
    note: str | None = None


class StockLineRequest(BaseModel):
    """Line of a stock adjustment or transfer."""

    id: int | None = Field(default=None, description="Existing line ID (updates only)")
    item_id: int = Field(..., description="Item ID")
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    note: str | None = None


# --- Supplier side ---


class PurchaseRequest(BaseModel):
    """Create or update a purchase."""

    warehouse_id: int = Field(..., description="Receiving warehouse")
    transaction_date: date | None = Field(default=None, description="Purchase date (defaults to today)")
    supplier_id: int | None = Field(default=None, description="Supplier ID")
    status: PurchaseStatus | None = Field(
        default=None,
        description="Delivery status (new purchases default to delivered)",
    )
    reference: str | None = None
    note: str | None = None

    shipping_fee_usd: Decimal = Field(default=Decimal("0"), ge=0)
    customs_fee_usd: Decimal = Field(default=Decimal("0"), ge=0)
    other_fee_usd: Decimal = Field(default=Decimal("0"), ge=0)
    shipping_fee_percent: Decimal = Field(default=Decimal("0"), ge=0)
    customs_fee_percent: Decimal = Field(default=Decimal("0"), ge=0)
    other_fee_percent: Decimal = Field(default=Decimal("0"), ge=0)

    lines: list[PurchaseLineRequest] = Field(..., min_length=1)


class PurchaseReturnRequest(BaseModel):
    """Create or update a purchase return."""

    warehouse_id: int = Field(..., description="Warehouse the goods leave from")
    transaction_date: date | None = None
    supplier_id: int | None = None
    reference: str | None = None
    note: str | None = None
    lines: list[PurchaseLineRequest] = Field(..., min_length=1)


# --- Customer side ---


class SaleRequest(BaseModel):
    """Create or update a sale."""

    warehouse_id: int = Field(..., description="Warehouse the goods leave from")
    transaction_date: date | None = None
    customer_id: int | None = None
    reference: str | None = None
    note: str | None = None
    lines: list[SaleLineRequest] = Field(..., min_length=1)


class CustomerReturnRequest(BaseModel):
    """Create or update a customer return."""

    warehouse_id: int = Field(..., description="Warehouse receiving the returned goods")
    transaction_date: date | None = None
    customer_id: int | None = None
    status: ReturnStatus | None = Field(
        default=None,
        description="Approval status (new returns default to pending)",
    )
    reference: str | None = None
    note: str | None = None
    lines: list[SaleLineRequest] = Field(..., min_length=1)


# --- Stock movements ---


class StockAdjustmentRequest(BaseModel):
    """Create or update a stock adjustment."""

    warehouse_id: int = Field(..., description="Adjusted warehouse")
    adjustment_type: AdjustmentType = Field(..., description="add or subtract")
    transaction_date: date | None = None
    reference: str | None = None
    note: str | None = None
    lines: list[StockLineRequest] = Field(..., min_length=1)


class StockTransferRequest(BaseModel):
    """Create or update a transfer between two warehouses."""

    from_warehouse_id: int = Field(..., description="Source warehouse")
    to_warehouse_id: int = Field(..., description="Destination warehouse")
    transaction_date: date | None = None
    reference: str | None = None
    note: str | None = None
    lines: list[StockLineRequest] = Field(..., min_length=1)
