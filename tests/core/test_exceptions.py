"""Unit tests for domain exceptions."""

import pytest

from src.core.exceptions import (
    DuplicateItemError,
    InvalidStateTransitionError,
    InventoryError,
    ItemNotFoundError,
    ReconciliationError,
    StorageError,
    TransactionFailedError,
    TransactionLineNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)


class TestInventoryError:
    """Tests for base InventoryError exception."""

    def test_basic_initialization(self):
        error = InventoryError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "InventoryError"
        assert error.details == {}

    def test_with_custom_code(self):
        error = InventoryError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = InventoryError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }


class TestStorageErrors:
    """Tests for storage exceptions."""

    @pytest.mark.parametrize(
        "error",
        [
            ItemNotFoundError(7),
            DuplicateItemError(7),
            TransactionNotFoundError("purchase", 3),
            TransactionLineNotFoundError(3, 9),
        ],
    )
    def test_inherit_storage_error(self, error):
        assert isinstance(error, StorageError)
        assert isinstance(error, InventoryError)

    def test_item_not_found(self):
        error = ItemNotFoundError(7)
        assert error.message == "Item not found: 7"
        assert error.code == "ITEM_NOT_FOUND"
        assert error.details["item_id"] == 7

    def test_transaction_not_found_humanizes_kind(self):
        error = TransactionNotFoundError("purchase_return", 3)
        assert error.message == "Purchase return not found: 3"
        assert error.details == {"kind": "purchase_return", "transaction_id": 3}

    def test_line_not_found(self):
        error = TransactionLineNotFoundError(3, 9)
        assert "Line 9" in error.message
        assert error.code == "LINE_NOT_FOUND"


class TestReconciliationError:
    """Tests for ReconciliationError messages."""

    def test_removal_message(self):
        error = ReconciliationError("Widget", "100", "40", "60")
        assert error.message == (
            "Cannot remove Widget: purchased 100 units but only 40 units remain "
            "(60 already sold/used)."
        )
        assert error.details["new_quantity"] is None

    def test_reduction_message(self):
        error = ReconciliationError("Widget", "100", "40", "60", new_quantity="50")
        assert error.message == (
            "Cannot reduce Widget from 100 to 50 units: only 40 units remain "
            "(60 already sold/used)."
        )
        assert error.details["new_quantity"] == "50"
        assert error.code == "RECONCILIATION_VIOLATION"


class TestTransitionErrors:
    """Tests for state transition and failure exceptions."""

    def test_invalid_state_transition(self):
        error = InvalidStateTransitionError("update customer return #4", "it has already been received")
        assert error.message == "Cannot update customer return #4: it has already been received"
        assert error.code == "INVALID_STATE_TRANSITION"

    def test_transaction_failed_with_id(self):
        error = TransactionFailedError("update", "purchase", 12)
        assert error.message == "Failed to update purchase #12. All changes have been rolled back."

    def test_transaction_failed_without_id(self):
        error = TransactionFailedError("create", "stock_transfer")
        assert error.message == "Failed to create stock transfer. All changes have been rolled back."
        assert error.details["transaction_id"] is None


class TestValidationError:
    """Tests for ValidationError."""

    def test_basic(self):
        error = ValidationError("warehouse_id", "required")
        assert error.message == "Validation error for 'warehouse_id': required"
        assert error.details["value"] is None

    def test_value_is_truncated(self):
        error = ValidationError("note", "too long", "x" * 500)
        assert len(error.details["value"]) == 100
