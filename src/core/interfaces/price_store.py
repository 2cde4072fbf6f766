"""
Abstract interfaces for price storage.

Defines the contract for the current item price, its append-only history,
and per-supplier purchase prices.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from src.core.entities.pricing import (
    ItemPrice,
    PriceHistoryEntry,
    PriceSourceType,
    SupplierItemPrice,
)


class IPriceStore(ABC):
    """
    Abstract interface for item prices.

    One current row per item (warehouse-agnostic) plus an immutable
    history log.
    """

    @abstractmethod
    async def get_current_price(self, item_id: int) -> ItemPrice | None:
        """Get the item's current price row."""
        pass

    @abstractmethod
    async def set_price(
        self,
        item_id: int,
        new_price: Decimal,
        effective_date: date,
        last_purchase_id: int | None = None,
    ) -> ItemPrice:
        """Upsert the single global price row."""
        pass

    @abstractmethod
    async def append_history(
        self,
        item_id: int,
        old_price: Decimal | None,
        new_price: Decimal,
        source_type: PriceSourceType,
        source_id: int | None = None,
        note: str | None = None,
        effective_date: date | None = None,
    ) -> PriceHistoryEntry | None:
        """Append a history entry. Returns None (no insert) when the price did not change."""
        pass

    @abstractmethod
    async def list_history(self, item_id: int) -> list[PriceHistoryEntry]:
        """History entries for an item, oldest first."""
        pass

    @abstractmethod
    async def count_history(
        self,
        item_id: int,
        exclude_source_types: list[PriceSourceType] | None = None,
    ) -> int:
        """Count history entries, optionally ignoring some sources."""
        pass


class ISupplierPriceStore(ABC):
    """Abstract interface for the latest price paid per (supplier, item)."""

    @abstractmethod
    async def get_current(self, supplier_id: int, item_id: int) -> SupplierItemPrice | None:
        """Current supplier price, if any."""
        pass

    @abstractmethod
    async def record(self, price: SupplierItemPrice) -> SupplierItemPrice:
        """Insert a new current record, retiring the previous one."""
        pass

    @abstractmethod
    async def touch(
        self, price_id: int, purchase_id: int | None, purchase_date: date | None
    ) -> None:
        """Refresh the last-purchase reference of an unchanged price."""
        pass

    @abstractmethod
    async def list_for_item(self, item_id: int, current_only: bool = True) -> list[SupplierItemPrice]:
        """Supplier prices recorded for an item."""
        pass
