"""
SQLite unit of work.

Binds every store to one pooled connection inside a single
``BEGIN IMMEDIATE`` transaction: commit on normal exit, rollback on any
exception.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from src.config import get_logger
from src.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from src.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from src.infrastructure.storage.sqlite.inventory_store import (
    SQLiteItemStore,
    SQLiteStockLedger,
)
from src.infrastructure.storage.sqlite.price_store import (
    SQLitePriceStore,
    SQLiteSupplierPriceStore,
)
from src.infrastructure.storage.sqlite.transaction_store import SQLiteTransactionStore

logger = get_logger(__name__)


class SQLiteUnitOfWork(IUnitOfWork):
    """All stores sharing one connection and one transaction."""

    def __init__(self, conn: aiosqlite.Connection):
        self.connection = conn
        self.items = SQLiteItemStore(conn)
        self.ledger = SQLiteStockLedger(conn)
        self.prices = SQLitePriceStore(conn)
        self.supplier_prices = SQLiteSupplierPriceStore(conn)
        self.transactions = SQLiteTransactionStore(conn)


def make_unit_of_work_factory(pool: ConnectionPool | None = None) -> UnitOfWorkFactory:
    """
    Build a unit-of-work factory.

    Args:
        pool: Connection pool to use (default: the global pool)
    """

    @asynccontextmanager
    async def unit_of_work() -> AsyncIterator[SQLiteUnitOfWork]:
        active_pool = pool or await get_pool()
        async with active_pool.transaction(immediate=True) as conn:
            yield SQLiteUnitOfWork(conn)

    return unit_of_work


# Default factory bound to the global pool
unit_of_work = make_unit_of_work_factory()
