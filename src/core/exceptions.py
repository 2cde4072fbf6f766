"""
Domain exceptions for the inventory costing engine.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class InventoryError(Exception):
    """Base exception for all inventory engine errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for callers that report errors."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(InventoryError):
    """Base exception for storage operations."""

    pass


class ItemNotFoundError(StorageError):
    """Item not registered."""

    def __init__(self, item_id: int):
        super().__init__(
            f"Item not found: {item_id}",
            code="ITEM_NOT_FOUND",
            details={"item_id": item_id},
        )


class DuplicateItemError(StorageError):
    """Item with same id already registered."""

    def __init__(self, item_id: int):
        super().__init__(
            f"Item already exists: {item_id}",
            code="DUPLICATE_ITEM",
            details={"item_id": item_id},
        )


class TransactionNotFoundError(StorageError):
    """Inventory transaction not found."""

    def __init__(self, kind: str, transaction_id: int):
        super().__init__(
            f"{kind.replace('_', ' ').capitalize()} not found: {transaction_id}",
            code="TRANSACTION_NOT_FOUND",
            details={"kind": kind, "transaction_id": transaction_id},
        )


class TransactionLineNotFoundError(StorageError):
    """Line id does not belong to the transaction."""

    def __init__(self, transaction_id: int, line_id: int):
        super().__init__(
            f"Line {line_id} does not belong to transaction {transaction_id}",
            code="LINE_NOT_FOUND",
            details={"transaction_id": transaction_id, "line_id": line_id},
        )


# Business rule exceptions
class ReconciliationError(InventoryError):
    """Purchase quantity cannot be reduced below what was already consumed."""

    def __init__(
        self,
        item_name: str,
        original_quantity: Any,
        current_quantity: Any,
        consumed_quantity: Any,
        new_quantity: Any = None,
    ):
        if new_quantity is None:
            message = (
                f"Cannot remove {item_name}: purchased {original_quantity} units "
                f"but only {current_quantity} units remain "
                f"({consumed_quantity} already sold/used)."
            )
        else:
            message = (
                f"Cannot reduce {item_name} from {original_quantity} to "
                f"{new_quantity} units: only {current_quantity} units remain "
                f"({consumed_quantity} already sold/used)."
            )
        super().__init__(
            message,
            code="RECONCILIATION_VIOLATION",
            details={
                "item": item_name,
                "original_quantity": str(original_quantity),
                "new_quantity": None if new_quantity is None else str(new_quantity),
                "current_quantity": str(current_quantity),
                "consumed_quantity": str(consumed_quantity),
            },
        )


class InvalidStateTransitionError(InventoryError):
    """Operation not allowed in the transaction's current state."""

    def __init__(self, subject: str, reason: str):
        super().__init__(
            f"Cannot {subject}: {reason}",
            code="INVALID_STATE_TRANSITION",
            details={"subject": subject, "reason": reason},
        )


class TransactionFailedError(InventoryError):
    """Unexpected failure inside a unit of work; everything was rolled back."""

    def __init__(self, operation: str, kind: str, transaction_id: int | None = None):
        target = kind.replace("_", " ")
        if transaction_id is not None:
            target = f"{target} #{transaction_id}"
        super().__init__(
            f"Failed to {operation} {target}. All changes have been rolled back.",
            code="TRANSACTION_FAILED",
            details={
                "operation": operation,
                "kind": kind,
                "transaction_id": transaction_id,
            },
        )


# Validation Exceptions
class ValidationError(InventoryError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )
