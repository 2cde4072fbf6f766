"""Core domain entities."""

from src.core.entities.inventory import (
    CostingStrategy,
    Item,
    StockEntry,
)
from src.core.entities.pricing import (
    ItemPrice,
    PriceHistoryEntry,
    PriceSourceType,
    SupplierItemPrice,
)
from src.core.entities.transaction import (
    AdjustmentType,
    InventoryTransaction,
    PurchaseStatus,
    ReturnStatus,
    TransactionKind,
    TransactionLine,
    TransactionState,
)

__all__ = [
    # Inventory entities
    "CostingStrategy",
    "Item",
    "StockEntry",
    # Pricing entities
    "ItemPrice",
    "PriceHistoryEntry",
    "PriceSourceType",
    "SupplierItemPrice",
    # Transaction entities
    "AdjustmentType",
    "InventoryTransaction",
    "PurchaseStatus",
    "ReturnStatus",
    "TransactionKind",
    "TransactionLine",
    "TransactionState",
]
