"""SQLite implementation of inventory transaction storage."""

from datetime import date, datetime

import aiosqlite

from src.config import get_logger
from src.core.decimals import quantize, to_decimal
from src.core.entities.transaction import (
    AdjustmentType,
    InventoryTransaction,
    TransactionKind,
    TransactionLine,
    TransactionState,
)
from src.core.interfaces.transaction_store import ITransactionStore

logger = get_logger(__name__)

_HEADER_COLUMNS = (
    "kind",
    "state",
    "status",
    "transaction_date",
    "warehouse_id",
    "to_warehouse_id",
    "adjustment_type",
    "supplier_id",
    "customer_id",
    "reference",
    "note",
    "shipping_fee_usd",
    "customs_fee_usd",
    "other_fee_usd",
    "shipping_fee_percent",
    "customs_fee_percent",
    "other_fee_percent",
    "received_at",
    "received_by",
    "received_note",
    "created_at",
    "updated_at",
    "deleted_at",
)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


class SQLiteTransactionStore(ITransactionStore):
    """SQLite implementation of transaction header and line storage."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def create(self, txn: InventoryTransaction) -> InventoryTransaction:
        """Persist header and lines."""
        now = datetime.utcnow()
        txn.created_at = now
        txn.updated_at = now
        columns = ", ".join(_HEADER_COLUMNS)
        placeholders = ", ".join("?" for _ in _HEADER_COLUMNS)
        cursor = await self._conn.execute(
            f"INSERT INTO inventory_transactions ({columns}) VALUES ({placeholders})",
            self._header_values(txn),
        )
        txn.id = cursor.lastrowid

        for line in txn.lines:
            await self.add_line(txn.id, line)

        logger.info(
            "transaction_created",
            transaction_id=txn.id,
            kind=txn.kind.value,
            lines=len(txn.lines),
        )
        return txn

    async def get(
        self, transaction_id: int, kind: TransactionKind | None = None
    ) -> InventoryTransaction | None:
        """Get a transaction with its lines."""
        query = "SELECT * FROM inventory_transactions WHERE id = ?"
        params: tuple = (transaction_id,)
        if kind is not None:
            query += " AND kind = ?"
            params = (transaction_id, kind.value)
        cursor = await self._conn.execute(query, params)
        row = await cursor.fetchone()
        if row is None:
            return None

        txn = self._row_to_transaction(row)
        cursor = await self._conn.execute(
            "SELECT * FROM transaction_lines WHERE transaction_id = ? ORDER BY id",
            (transaction_id,),
        )
        txn.lines = [self._row_to_line(r) for r in await cursor.fetchall()]
        return txn

    async def update_header(self, txn: InventoryTransaction) -> InventoryTransaction:
        """Update every header column."""
        txn.updated_at = datetime.utcnow()
        assignments = ", ".join(f"{c} = ?" for c in _HEADER_COLUMNS)
        await self._conn.execute(
            f"UPDATE inventory_transactions SET {assignments} WHERE id = ?",
            (*self._header_values(txn), txn.id),
        )
        logger.debug(
            "transaction_header_updated",
            transaction_id=txn.id,
            state=txn.state.value,
            status=txn.status,
        )
        return txn

    async def add_line(self, transaction_id: int, line: TransactionLine) -> TransactionLine:
        line.transaction_id = transaction_id
        cursor = await self._conn.execute(
            """
            INSERT INTO transaction_lines (
                transaction_id, item_id, quantity, unit_price,
                discount_percent, unit_cost, note
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (transaction_id, *self._line_values(line)),
        )
        line.id = cursor.lastrowid
        return line

    async def update_line(self, line: TransactionLine) -> TransactionLine:
        await self._conn.execute(
            """
            UPDATE transaction_lines SET
                item_id = ?, quantity = ?, unit_price = ?,
                discount_percent = ?, unit_cost = ?, note = ?
            WHERE id = ?
            """,
            (*self._line_values(line), line.id),
        )
        return line

    async def delete_line(self, line_id: int) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM transaction_lines WHERE id = ?", (line_id,)
        )
        return cursor.rowcount > 0

    async def list_item_lines(
        self,
        item_id: int,
        kinds: list[TransactionKind] | None = None,
        include_deleted: bool = False,
    ) -> list[tuple[InventoryTransaction, TransactionLine]]:
        """(header, line) pairs referencing an item, ordered by date then id."""
        query = """
            SELECT t.*, l.id AS line_id, l.transaction_id, l.item_id, l.quantity,
                   l.unit_price, l.discount_percent, l.unit_cost, l.note AS line_note
            FROM transaction_lines l
            JOIN inventory_transactions t ON t.id = l.transaction_id
            WHERE l.item_id = ?
        """
        params: list = [item_id]
        if not include_deleted:
            query += " AND t.state = ?"
            params.append(TransactionState.ACTIVE.value)
        if kinds:
            placeholders = ",".join("?" for _ in kinds)
            query += f" AND t.kind IN ({placeholders})"
            params.extend(k.value for k in kinds)
        query += " ORDER BY t.transaction_date, t.id, l.id"

        cursor = await self._conn.execute(query, tuple(params))
        rows = await cursor.fetchall()
        pairs = []
        for row in rows:
            line = TransactionLine(
                id=row["line_id"],
                transaction_id=row["transaction_id"],
                item_id=row["item_id"],
                quantity=row["quantity"],
                unit_price=row["unit_price"],
                discount_percent=row["discount_percent"],
                unit_cost=row["unit_cost"],
                note=row["line_note"],
            )
            pairs.append((self._row_to_transaction(row), line))
        return pairs

    async def count_item_lines(
        self, item_id: int, kind: TransactionKind, include_deleted: bool = True
    ) -> int:
        query = """
            SELECT COUNT(*) FROM transaction_lines l
            JOIN inventory_transactions t ON t.id = l.transaction_id
            WHERE l.item_id = ? AND t.kind = ?
        """
        params: list = [item_id, kind.value]
        if not include_deleted:
            query += " AND t.state = ?"
            params.append(TransactionState.ACTIVE.value)
        cursor = await self._conn.execute(query, tuple(params))
        row = await cursor.fetchone()
        return row[0]

    @staticmethod
    def _header_values(txn: InventoryTransaction) -> tuple:
        return (
            txn.kind.value,
            txn.state.value,
            txn.status,
            txn.transaction_date.isoformat(),
            txn.warehouse_id,
            txn.to_warehouse_id,
            txn.adjustment_type.value if txn.adjustment_type else None,
            txn.supplier_id,
            txn.customer_id,
            txn.reference,
            txn.note,
            str(txn.shipping_fee_usd),
            str(txn.customs_fee_usd),
            str(txn.other_fee_usd),
            str(txn.shipping_fee_percent),
            str(txn.customs_fee_percent),
            str(txn.other_fee_percent),
            _iso(txn.received_at),
            txn.received_by,
            txn.received_note,
            _iso(txn.created_at),
            _iso(txn.updated_at),
            _iso(txn.deleted_at),
        )

    @staticmethod
    def _line_values(line: TransactionLine) -> tuple:
        return (
            line.item_id,
            str(quantize(line.quantity)),
            str(quantize(line.unit_price)),
            str(line.discount_percent),
            None if line.unit_cost is None else str(quantize(line.unit_cost)),
            line.note,
        )

    @staticmethod
    def _row_to_transaction(row: aiosqlite.Row) -> InventoryTransaction:
        """Convert database row to InventoryTransaction (without lines)."""
        return InventoryTransaction(
            id=row["id"],
            kind=TransactionKind(row["kind"]),
            state=TransactionState(row["state"]),
            status=row["status"],
            transaction_date=date.fromisoformat(row["transaction_date"]),
            warehouse_id=row["warehouse_id"],
            to_warehouse_id=row["to_warehouse_id"],
            adjustment_type=(
                AdjustmentType(row["adjustment_type"]) if row["adjustment_type"] else None
            ),
            supplier_id=row["supplier_id"],
            customer_id=row["customer_id"],
            reference=row["reference"],
            note=row["note"],
            shipping_fee_usd=row["shipping_fee_usd"],
            customs_fee_usd=row["customs_fee_usd"],
            other_fee_usd=row["other_fee_usd"],
            shipping_fee_percent=row["shipping_fee_percent"],
            customs_fee_percent=row["customs_fee_percent"],
            other_fee_percent=row["other_fee_percent"],
            received_at=(
                datetime.fromisoformat(row["received_at"]) if row["received_at"] else None
            ),
            received_by=row["received_by"],
            received_note=row["received_note"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            deleted_at=(
                datetime.fromisoformat(row["deleted_at"]) if row["deleted_at"] else None
            ),
        )

    @staticmethod
    def _row_to_line(row: aiosqlite.Row) -> TransactionLine:
        return TransactionLine(
            id=row["id"],
            transaction_id=row["transaction_id"],
            item_id=row["item_id"],
            quantity=to_decimal(row["quantity"]),
            unit_price=to_decimal(row["unit_price"]),
            discount_percent=to_decimal(row["discount_percent"]),
            unit_cost=row["unit_cost"],
            note=row["note"],
        )
