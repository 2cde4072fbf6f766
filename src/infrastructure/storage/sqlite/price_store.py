"""
SQLite implementation of price storage.

Holds the current global price per item, its append-only history, and the
latest price paid to each supplier.
"""

from datetime import date, datetime
from decimal import Decimal

import aiosqlite

from src.config import get_logger
from src.core.decimals import prices_equal, quantize, to_decimal
from src.core.entities.pricing import (
    ItemPrice,
    PriceHistoryEntry,
    PriceSourceType,
    SupplierItemPrice,
)
from src.core.interfaces.price_store import IPriceStore, ISupplierPriceStore

logger = get_logger(__name__)


class SQLitePriceStore(IPriceStore):
    """SQLite implementation of item price and price history storage."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get_current_price(self, item_id: int) -> ItemPrice | None:
        cursor = await self._conn.execute(
            "SELECT * FROM item_prices WHERE item_id = ?", (item_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_price(row)

    async def set_price(
        self,
        item_id: int,
        new_price: Decimal,
        effective_date: date,
        last_purchase_id: int | None = None,
    ) -> ItemPrice:
        """Upsert the item's single price row."""
        now = datetime.utcnow().isoformat()
        price = quantize(new_price)
        await self._conn.execute(
            """
            INSERT INTO item_prices (
                item_id, price_usd, effective_date, last_purchase_id, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                price_usd = excluded.price_usd,
                effective_date = excluded.effective_date,
                last_purchase_id = COALESCE(excluded.last_purchase_id, item_prices.last_purchase_id),
                updated_at = excluded.updated_at
            """,
            (item_id, str(price), effective_date.isoformat(), last_purchase_id, now, now),
        )
        logger.info("item_price_set", item_id=item_id, price_usd=str(price))
        return await self.get_current_price(item_id)

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
        """Append a history entry unless the price did not actually change."""
        if prices_equal(old_price, new_price):
            logger.debug("price_history_skipped", item_id=item_id, price_usd=str(new_price))
            return None

        entry = PriceHistoryEntry(
            item_id=item_id,
            old_price=None if old_price is None else quantize(old_price),
            new_price=quantize(new_price),
            source_type=source_type,
            source_id=source_id,
            note=note,
            effective_date=effective_date or date.today(),
        )
        cursor = await self._conn.execute(
            """
            INSERT INTO item_price_history (
                item_id, old_price, new_price, source_type, source_id,
                note, effective_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.item_id,
                None if entry.old_price is None else str(entry.old_price),
                str(entry.new_price),
                entry.source_type.value,
                entry.source_id,
                entry.note,
                entry.effective_date.isoformat(),
                entry.created_at.isoformat(),
            ),
        )
        entry.id = cursor.lastrowid
        logger.info(
            "price_history_appended",
            item_id=item_id,
            old_price=None if old_price is None else str(entry.old_price),
            new_price=str(entry.new_price),
            source_type=source_type.value,
            source_id=source_id,
        )
        return entry

    async def list_history(self, item_id: int) -> list[PriceHistoryEntry]:
        cursor = await self._conn.execute(
            "SELECT * FROM item_price_history WHERE item_id = ? ORDER BY id",
            (item_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_history(row) for row in rows]

    async def count_history(
        self,
        item_id: int,
        exclude_source_types: list[PriceSourceType] | None = None,
    ) -> int:
        query = "SELECT COUNT(*) FROM item_price_history WHERE item_id = ?"
        params: list = [item_id]
        if exclude_source_types:
            placeholders = ",".join("?" for _ in exclude_source_types)
            query += f" AND source_type NOT IN ({placeholders})"
            params.extend(s.value for s in exclude_source_types)
        cursor = await self._conn.execute(query, tuple(params))
        row = await cursor.fetchone()
        return row[0]

    @staticmethod
    def _row_to_price(row: aiosqlite.Row) -> ItemPrice:
        return ItemPrice(
            id=row["id"],
            item_id=row["item_id"],
            price_usd=to_decimal(row["price_usd"]),
            effective_date=date.fromisoformat(row["effective_date"]),
            last_purchase_id=row["last_purchase_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_history(row: aiosqlite.Row) -> PriceHistoryEntry:
        return PriceHistoryEntry(
            id=row["id"],
            item_id=row["item_id"],
            old_price=row["old_price"],
            new_price=row["new_price"],
            source_type=PriceSourceType(row["source_type"]),
            source_id=row["source_id"],
            note=row["note"],
            effective_date=date.fromisoformat(row["effective_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteSupplierPriceStore(ISupplierPriceStore):
    """SQLite implementation of per-supplier item prices."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get_current(self, supplier_id: int, item_id: int) -> SupplierItemPrice | None:
        cursor = await self._conn.execute(
            """
            SELECT * FROM supplier_item_prices
            WHERE supplier_id = ? AND item_id = ? AND is_current = 1
            ORDER BY id DESC LIMIT 1
            """,
            (supplier_id, item_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_supplier_price(row)

    async def record(self, price: SupplierItemPrice) -> SupplierItemPrice:
        """Insert a new current price and retire the previous one."""
        now = datetime.utcnow()
        await self._conn.execute(
            """
            UPDATE supplier_item_prices SET is_current = 0, updated_at = ?
            WHERE supplier_id = ? AND item_id = ? AND is_current = 1
            """,
            (now.isoformat(), price.supplier_id, price.item_id),
        )
        price.created_at = now
        price.updated_at = now
        price.is_current = True
        cursor = await self._conn.execute(
            """
            INSERT INTO supplier_item_prices (
                supplier_id, item_id, price_usd, last_purchase_id,
                last_purchase_date, is_current, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                price.supplier_id,
                price.item_id,
                str(quantize(price.price_usd)),
                price.last_purchase_id,
                price.last_purchase_date.isoformat() if price.last_purchase_date else None,
                price.created_at.isoformat(),
                price.updated_at.isoformat(),
            ),
        )
        price.id = cursor.lastrowid
        logger.info(
            "supplier_price_recorded",
            supplier_id=price.supplier_id,
            item_id=price.item_id,
            price_usd=str(price.price_usd),
        )
        return price

    async def touch(
        self, price_id: int, purchase_id: int | None, purchase_date: date | None
    ) -> None:
        await self._conn.execute(
            """
            UPDATE supplier_item_prices SET
                last_purchase_id = ?, last_purchase_date = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                purchase_id,
                purchase_date.isoformat() if purchase_date else None,
                datetime.utcnow().isoformat(),
                price_id,
            ),
        )

    async def list_for_item(
        self, item_id: int, current_only: bool = True
    ) -> list[SupplierItemPrice]:
        query = "SELECT * FROM supplier_item_prices WHERE item_id = ?"
        if current_only:
            query += " AND is_current = 1"
        query += " ORDER BY supplier_id, id"
        cursor = await self._conn.execute(query, (item_id,))
        rows = await cursor.fetchall()
        return [self._row_to_supplier_price(row) for row in rows]

    @staticmethod
    def _row_to_supplier_price(row: aiosqlite.Row) -> SupplierItemPrice:
        return SupplierItemPrice(
            id=row["id"],
            supplier_id=row["supplier_id"],
            item_id=row["item_id"],
            price_usd=to_decimal(row["price_usd"]),
            last_purchase_id=row["last_purchase_id"],
            last_purchase_date=(
                date.fromisoformat(row["last_purchase_date"])
                if row["last_purchase_date"]
                else None
            ),
            is_current=bool(row["is_current"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
