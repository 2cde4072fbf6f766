"""Abstract interface for inventory transaction storage."""

from abc import ABC, abstractmethod

from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionKind,
    TransactionLine,
)


class ITransactionStore(ABC):
    """Interface for transaction headers and their line items."""

    @abstractmethod
    async def create(self, txn: InventoryTransaction) -> InventoryTransaction:
        """Persist header and lines. Returns the transaction with IDs assigned."""
        pass

    @abstractmethod
    async def get(
        self, transaction_id: int, kind: TransactionKind | None = None
    ) -> InventoryTransaction | None:
        """Get a transaction with its lines (deleted ones included)."""
        pass

    @abstractmethod
    async def update_header(self, txn: InventoryTransaction) -> InventoryTransaction:
        """Update header fields (status, dates, warehouses, state, receipt stamp)."""
        pass

    @abstractmethod
    async def add_line(self, transaction_id: int, line: TransactionLine) -> TransactionLine:
        """Insert a line item."""
        pass

    @abstractmethod
    async def update_line(self, line: TransactionLine) -> TransactionLine:
        """Update an existing line item in place."""
        pass

    @abstractmethod
    async def delete_line(self, line_id: int) -> bool:
        """Remove a line item. Returns True if it existed."""
        pass

    @abstractmethod
    async def list_item_lines(
        self,
        item_id: int,
        kinds: list[TransactionKind] | None = None,
        include_deleted: bool = False,
    ) -> list[tuple[InventoryTransaction, TransactionLine]]:
        """(header, line) pairs referencing an item.

        Headers are returned without their ``lines`` populated.
        """
        pass

    @abstractmethod
    async def count_item_lines(
        self, item_id: int, kind: TransactionKind, include_deleted: bool = True
    ) -> int:
        """Count lines of one kind referencing an item."""
        pass
