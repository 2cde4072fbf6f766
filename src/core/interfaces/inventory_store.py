"""Abstract interfaces for item registry and stock ledger storage."""

from abc import ABC, abstractmethod
from decimal import Decimal

from src.core.entities.inventory import Item, StockEntry


class IItemStore(ABC):
    """Interface for item persistence."""

    @abstractmethod
    async def create(self, item: Item) -> Item:
        """Register a new item."""
        pass

    @abstractmethod
    async def get(self, item_id: int) -> Item | None:
        """Get item by ID."""
        pass

    @abstractmethod
    async def update(self, item: Item) -> Item:
        """Update item settings (strategy, starting values)."""
        pass

    @abstractmethod
    async def get_names(self, item_ids: list[int]) -> dict[int, str]:
        """Map item IDs to display names for messages."""
        pass


class IStockLedger(ABC):
    """Interface for the per (item, warehouse) quantity ledger."""

    @abstractmethod
    async def get_quantity(self, item_id: int, warehouse_id: int) -> Decimal:
        """Current quantity; 0 when the pair has never been touched."""
        pass

    @abstractmethod
    async def adjust(self, item_id: int, warehouse_id: int, delta: Decimal) -> Decimal:
        """Create-or-update the entry by ``delta``. Returns the new quantity.

        No floor is enforced here.
        """
        pass

    @abstractmethod
    async def sum_quantity_across_warehouses(self, item_id: int) -> Decimal:
        """Global quantity of an item over every warehouse."""
        pass

    @abstractmethod
    async def get_entry(self, item_id: int, warehouse_id: int) -> StockEntry | None:
        """Get the raw ledger row, if any."""
        pass

    @abstractmethod
    async def list_entries(self, item_id: int) -> list[StockEntry]:
        """Per-warehouse breakdown for an item."""
        pass
