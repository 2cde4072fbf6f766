"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.inventory_store import IItemStore, IStockLedger
from src.core.interfaces.price_store import IPriceStore, ISupplierPriceStore
from src.core.interfaces.transaction_store import ITransactionStore
from src.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory

__all__ = [
    # Storage interfaces
    "IItemStore",
    "IStockLedger",
    "IPriceStore",
    "ISupplierPriceStore",
    "ITransactionStore",
    # Atomicity
    "IUnitOfWork",
    "UnitOfWorkFactory",
]
