"""Abstract interface for the atomic unit of work."""

from abc import ABC
from contextlib import AbstractAsyncContextManager
from typing import Callable

from src.core.interfaces.inventory_store import IItemStore, IStockLedger
from src.core.interfaces.price_store import IPriceStore, ISupplierPriceStore
from src.core.interfaces.transaction_store import ITransactionStore


class IUnitOfWork(ABC):
    """
    All stores bound to one all-or-nothing database transaction.

    Obtained from a ``UnitOfWorkFactory``: leaving the context normally
    commits, raising rolls every write back.
    """

    items: IItemStore
    ledger: IStockLedger
    prices: IPriceStore
    supplier_prices: ISupplierPriceStore
    transactions: ITransactionStore


UnitOfWorkFactory = Callable[[], AbstractAsyncContextManager[IUnitOfWork]]
