"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import aiosqlite
import pytest

from src.core.entities import CostingStrategy, Item
from src.infrastructure.storage.sqlite import (
    SQLiteItemStore,
    SQLitePriceStore,
    SQLiteStockLedger,
    SQLiteSupplierPriceStore,
    SQLiteTransactionStore,
)


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def conn(migrated_db: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """Connection to a migrated database, configured like the pool's."""
    async with aiosqlite.connect(migrated_db) as conn:
        await conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = aiosqlite.Row
        yield conn


@pytest.fixture
def item_store(conn: aiosqlite.Connection) -> SQLiteItemStore:
    return SQLiteItemStore(conn)


@pytest.fixture
def ledger(conn: aiosqlite.Connection) -> SQLiteStockLedger:
    return SQLiteStockLedger(conn)


@pytest.fixture
def price_store(conn: aiosqlite.Connection) -> SQLitePriceStore:
    return SQLitePriceStore(conn)


@pytest.fixture
def supplier_price_store(conn: aiosqlite.Connection) -> SQLiteSupplierPriceStore:
    return SQLiteSupplierPriceStore(conn)


@pytest.fixture
def transaction_store(conn: aiosqlite.Connection) -> SQLiteTransactionStore:
    return SQLiteTransactionStore(conn)


@pytest.fixture
async def widget(item_store: SQLiteItemStore) -> Item:
    """A registered item with opening stock."""
    return await item_store.create(
        Item(
            name="Widget",
            costing_strategy=CostingStrategy.WEIGHTED_AVERAGE,
            starting_quantity=Decimal("100"),
            starting_price=Decimal("10"),
            starting_warehouse_id=1,
            starting_date=date(2024, 3, 1),
        )
    )


@pytest.fixture
async def gadget(item_store: SQLiteItemStore) -> Item:
    """A registered item without opening stock."""
    return await item_store.create(
        Item(name="Gadget", costing_strategy=CostingStrategy.LAST_COST, starting_date=date(2024, 3, 1))
    )
