"""Inventory transaction entities.

One header model covers every transaction kind (purchase, purchase return,
sale, customer return, stock adjustment, stock transfer); the ``kind``
discriminator decides which optional header fields are meaningful.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.decimals import ZERO, to_decimal


class TransactionKind(str, Enum):
    """Kinds of inventory-affecting documents."""

    PURCHASE = "purchase"
    PURCHASE_RETURN = "purchase_return"
    SALE = "sale"
    CUSTOMER_RETURN = "customer_return"
    STOCK_ADJUSTMENT = "stock_adjustment"
    STOCK_TRANSFER = "stock_transfer"


class TransactionState(str, Enum):
    """Soft-delete lifecycle."""

    ACTIVE = "active"
    DELETED = "deleted"


class PurchaseStatus(str, Enum):
    """Purchases only move stock and prices once delivered."""

    WAITING = "waiting"
    DELIVERED = "delivered"


class ReturnStatus(str, Enum):
    """Approval workflow of a customer return."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdjustmentType(str, Enum):
    """Direction of a stock adjustment."""

    ADD = "add"
    SUBTRACT = "subtract"


class TransactionLine(BaseModel):
    """A single line item of an inventory transaction."""

    id: int | None = None
    transaction_id: int | None = None
    item_id: int
    quantity: Decimal  # always positive, sign comes from the transaction kind
    unit_price: Decimal = ZERO  # document price as entered (USD)
    discount_percent: Decimal = ZERO
    unit_cost: Decimal | None = None  # cost basis per unit (USD)
    note: str | None = None

    @field_validator("quantity", "unit_price", "discount_percent", mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> Decimal:
        """Convert None/empty/float to Decimal."""
        return to_decimal(v)

    @field_validator("unit_cost", mode="before")
    @classmethod
    def coerce_cost(cls, v: Any) -> Decimal | None:
        return None if v is None else to_decimal(v)

    @property
    def line_total(self) -> Decimal:
        """Quantity x unit price, less the line discount."""
        gross = self.quantity * self.unit_price
        return gross - gross * self.discount_percent / Decimal("100")

    @property
    def cost_total(self) -> Decimal:
        return self.quantity * (self.unit_cost or ZERO)

    @property
    def profit(self) -> Decimal:
        """Line total less its cost basis."""
        return self.line_total - self.cost_total


class InventoryTransaction(BaseModel):
    """Header of an inventory transaction plus its lines."""

    id: int | None = None
    kind: TransactionKind
    state: TransactionState = TransactionState.ACTIVE
    status: str | None = None  # PurchaseStatus / ReturnStatus value
    transaction_date: date = Field(default_factory=date.today)

    warehouse_id: int | None = None  # source warehouse for transfers
    to_warehouse_id: int | None = None  # transfers only
    adjustment_type: AdjustmentType | None = None  # adjustments only

    supplier_id: int | None = None
    customer_id: int | None = None
    reference: str | None = None
    note: str | None = None

    # Purchase landed-cost fees; a percentage takes precedence over a fixed amount
    shipping_fee_usd: Decimal = ZERO
    customs_fee_usd: Decimal = ZERO
    other_fee_usd: Decimal = ZERO
    shipping_fee_percent: Decimal = ZERO
    customs_fee_percent: Decimal = ZERO
    other_fee_percent: Decimal = ZERO

    # Customer return receipt stamp
    received_at: datetime | None = None
    received_by: int | None = None
    received_note: str | None = None

    lines: list[TransactionLine] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    deleted_at: datetime | None = None

    @field_validator(
        "shipping_fee_usd",
        "customs_fee_usd",
        "other_fee_usd",
        "shipping_fee_percent",
        "customs_fee_percent",
        "other_fee_percent",
        mode="before",
    )
    @classmethod
    def coerce_fee(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @property
    def is_deleted(self) -> bool:
        return self.state == TransactionState.DELETED

    @property
    def is_received(self) -> bool:
        """Customer return has been physically received back into stock."""
        return self.received_at is not None

    @property
    def is_delivered(self) -> bool:
        return self.status == PurchaseStatus.DELIVERED.value

    @property
    def sub_total(self) -> Decimal:
        """Sum of line totals (USD)."""
        return sum((line.line_total for line in self.lines), ZERO)

    @property
    def cost_total(self) -> Decimal:
        """Sum of line cost bases (USD); cost of goods for sales."""
        return sum((line.cost_total for line in self.lines), ZERO)

    @property
    def gross_profit(self) -> Decimal:
        return self.sub_total - self.cost_total

    @property
    def effective_date(self) -> date:
        """Date at which the transaction's stock effect happened."""
        if self.kind == TransactionKind.CUSTOMER_RETURN and self.received_at:
            return self.received_at.date()
        return self.transaction_date

    def get_line(self, line_id: int) -> TransactionLine | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def item_ids(self) -> set[int]:
        return {line.item_id for line in self.lines}
