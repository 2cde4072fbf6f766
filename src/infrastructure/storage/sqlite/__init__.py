"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from src.infrastructure.storage.sqlite.inventory_store import (
    SQLiteItemStore,
    SQLiteStockLedger,
)
from src.infrastructure.storage.sqlite.price_store import (
    SQLitePriceStore,
    SQLiteSupplierPriceStore,
)
from src.infrastructure.storage.sqlite.transaction_store import SQLiteTransactionStore
from src.infrastructure.storage.sqlite.unit_of_work import (
    SQLiteUnitOfWork,
    make_unit_of_work_factory,
    unit_of_work,
)

__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteItemStore",
    "SQLiteStockLedger",
    "SQLitePriceStore",
    "SQLiteSupplierPriceStore",
    "SQLiteTransactionStore",
    # Unit of work
    "SQLiteUnitOfWork",
    "make_unit_of_work_factory",
    "unit_of_work",
]
