"""Application use cases: one coordinator per transaction kind."""

from src.application.use_cases.base import (
    CoordinatorBase,
    PriceChange,
    TransactionCoordinator,
    TransactionResult,
)
from src.application.use_cases.customer_returns import CustomerReturnCoordinator
from src.application.use_cases.items import (
    CreateItemResult,
    ItemCoordinator,
    StartingPriceImpact,
)
from src.application.use_cases.purchase_returns import PurchaseReturnCoordinator
from src.application.use_cases.purchases import PurchaseCoordinator
from src.application.use_cases.sales import SaleCoordinator
from src.application.use_cases.stock_adjustments import StockAdjustmentCoordinator
from src.application.use_cases.stock_transfers import StockTransferCoordinator

__all__ = [
    "CoordinatorBase",
    "TransactionCoordinator",
    "TransactionResult",
    "PriceChange",
    "ItemCoordinator",
    "CreateItemResult",
    "StartingPriceImpact",
    "PurchaseCoordinator",
    "PurchaseReturnCoordinator",
    "SaleCoordinator",
    "CustomerReturnCoordinator",
    "StockAdjustmentCoordinator",
    "StockTransferCoordinator",
]
