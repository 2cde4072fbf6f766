"""SQLite implementation of item registry and stock ledger storage.

Stores operate on the connection of the unit of work that created them and
never commit on their own.
"""

from datetime import date, datetime
from decimal import Decimal

import aiosqlite

from src.config import get_logger
from src.core.decimals import ZERO, quantize, to_decimal
from src.core.entities.inventory import CostingStrategy, Item, StockEntry
from src.core.exceptions import DuplicateItemError
from src.core.interfaces.inventory_store import IItemStore, IStockLedger

logger = get_logger(__name__)


class SQLiteItemStore(IItemStore):
    """SQLite implementation of item storage."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def create(self, item: Item) -> Item:
        """Register a new item."""
        now = datetime.utcnow()
        item.created_at = now
        item.updated_at = now
        try:
            cursor = await self._conn.execute(
                """
                INSERT INTO items (
                    id, name, costing_strategy, starting_quantity, starting_price,
                    starting_warehouse_id, starting_date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    item.name,
                    item.costing_strategy.value,
                    str(quantize(item.starting_quantity)),
                    str(quantize(item.starting_price)),
                    item.starting_warehouse_id,
                    item.starting_date.isoformat(),
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise DuplicateItemError(item.id) from e
        item.id = cursor.lastrowid
        logger.info(
            "item_created",
            item_id=item.id,
            strategy=item.costing_strategy.value,
        )
        return item

    async def get(self, item_id: int) -> Item | None:
        """Get item by ID."""
        cursor = await self._conn.execute("SELECT * FROM items WHERE id = ?", (item_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_item(row)

    async def update(self, item: Item) -> Item:
        """Update item settings."""
        item.updated_at = datetime.utcnow()
        await self._conn.execute(
            """
            UPDATE items SET
                name = ?,
                costing_strategy = ?,
                starting_quantity = ?,
                starting_price = ?,
                starting_warehouse_id = ?,
                starting_date = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                item.name,
                item.costing_strategy.value,
                str(quantize(item.starting_quantity)),
                str(quantize(item.starting_price)),
                item.starting_warehouse_id,
                item.starting_date.isoformat(),
                item.updated_at.isoformat(),
                item.id,
            ),
        )
        logger.info("item_updated", item_id=item.id)
        return item

    async def get_names(self, item_ids: list[int]) -> dict[int, str]:
        """Map item IDs to names."""
        if not item_ids:
            return {}
        placeholders = ",".join("?" for _ in item_ids)
        cursor = await self._conn.execute(
            f"SELECT id, name FROM items WHERE id IN ({placeholders})",
            tuple(item_ids),
        )
        rows = await cursor.fetchall()
        return {row["id"]: row["name"] for row in rows}

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> Item:
        """Convert database row to Item."""
        return Item(
            id=row["id"],
            name=row["name"],
            costing_strategy=CostingStrategy(row["costing_strategy"]),
            starting_quantity=row["starting_quantity"],
            starting_price=row["starting_price"],
            starting_warehouse_id=row["starting_warehouse_id"],
            starting_date=date.fromisoformat(row["starting_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteStockLedger(IStockLedger):
    """SQLite implementation of the per (item, warehouse) quantity ledger."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get_quantity(self, item_id: int, warehouse_id: int) -> Decimal:
        """Current quantity, 0 when absent."""
        entry = await self.get_entry(item_id, warehouse_id)
        return entry.quantity if entry else ZERO

    async def adjust(self, item_id: int, warehouse_id: int, delta: Decimal) -> Decimal:
        """Create-or-update the entry by ``delta``."""
        now = datetime.utcnow().isoformat()
        entry = await self.get_entry(item_id, warehouse_id)

        if entry is None:
            new_quantity = quantize(delta)
            await self._conn.execute(
                """
                INSERT INTO stock_entries (item_id, warehouse_id, quantity, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (item_id, warehouse_id, str(new_quantity), now, now),
            )
        else:
            new_quantity = quantize(entry.quantity + delta)
            await self._conn.execute(
                "UPDATE stock_entries SET quantity = ?, updated_at = ? WHERE id = ?",
                (str(new_quantity), now, entry.id),
            )

        logger.debug(
            "stock_adjusted",
            item_id=item_id,
            warehouse_id=warehouse_id,
            delta=str(delta),
            quantity=str(new_quantity),
        )
        return new_quantity

    async def sum_quantity_across_warehouses(self, item_id: int) -> Decimal:
        """Global quantity of an item."""
        entries = await self.list_entries(item_id)
        return sum((e.quantity for e in entries), ZERO)

    async def get_entry(self, item_id: int, warehouse_id: int) -> StockEntry | None:
        cursor = await self._conn.execute(
            "SELECT * FROM stock_entries WHERE item_id = ? AND warehouse_id = ?",
            (item_id, warehouse_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    async def list_entries(self, item_id: int) -> list[StockEntry]:
        """Per-warehouse breakdown, ordered by warehouse."""
        cursor = await self._conn.execute(
            "SELECT * FROM stock_entries WHERE item_id = ? ORDER BY warehouse_id",
            (item_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> StockEntry:
        return StockEntry(
            id=row["id"],
            item_id=row["item_id"],
            warehouse_id=row["warehouse_id"],
            quantity=to_decimal(row["quantity"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
