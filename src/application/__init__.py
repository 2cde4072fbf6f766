"""
Application layer - Coordinators, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for business events
2. Implementing one coordinator per transaction kind
3. Exposing the InventoryEngine facade and its factory

The engine is the only entry point for callers.
"""

from src.application.dto import (
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
    StockBreakdownResponse,
    TransactionResponse,
)
from src.application.engine import InventoryEngine, to_response
from src.application.services import get_inventory_engine, reset_services

__all__ = [
    # Request DTOs
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
    # Response DTOs
    "StockBreakdownResponse",
    "TransactionResponse",
    # Engine
    "InventoryEngine",
    "to_response",
    "get_inventory_engine",
    "reset_services",
]
