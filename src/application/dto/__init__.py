"""Data Transfer Objects for the inventory engine.

Request DTOs: Validate and parse incoming business events.
Response DTOs: Structure and serialize query results and outcomes.
"""

from src.application.dto.requests import (
    CreateItemRequest,
    CustomerReturnRequest,
    PurchaseLineRequest,
    PurchaseRequest,
    PurchaseReturnRequest,
    SaleLineRequest,
    SaleRequest,
    StockAdjustmentRequest,
    StockLineRequest,
    StockTransferRequest,
)
from src.application.dto.responses import (
    LedgerChangeResponse,
    PriceChangeResponse,
    PriceHistoryResponse,
    StockBreakdownResponse,
    TransactionResponse,
    WarehouseStockResponse,
)

__all__ = [
    # Requests
    "CreateItemRequest",
    "PurchaseLineRequest",
    "SaleLineRequest",
    "StockLineRequest",
    "PurchaseRequest",
    "PurchaseReturnRequest",
    "SaleRequest",
    "CustomerReturnRequest",
    "StockAdjustmentRequest",
    "StockTransferRequest",
    # Responses
    "WarehouseStockResponse",
    "StockBreakdownResponse",
    "PriceHistoryResponse",
    "PriceChangeResponse",
    "LedgerChangeResponse",
    "TransactionResponse",
]
