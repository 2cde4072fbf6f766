"""
Shared template for transaction coordinators.

Every operation runs inside one unit of work:
validate -> reconcile -> apply net ledger deltas -> recompute costing
-> append price history -> persist.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, TypeVar

from src.config import bind_operation_context, get_logger, get_settings
from src.core.decimals import prices_equal
from src.core.entities.inventory import Item
from src.core.entities.pricing import PriceSourceType
from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionKind,
    TransactionLine,
    TransactionState,
)
from src.core.exceptions import (
    InvalidStateTransitionError,
    InventoryError,
    ItemNotFoundError,
    TransactionFailedError,
    TransactionNotFoundError,
)
from src.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory
from src.core.services.costing import CostingEngine
from src.core.services.reconciler import LedgerKey, diff_lines, net_ledger_deltas

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class PriceChange:
    """A price movement caused by an operation."""

    item_id: int
    old_price: Decimal | None
    new_price: Decimal


@dataclass
class TransactionResult:
    """Result of a coordinator operation."""

    transaction: InventoryTransaction
    ledger_deltas: dict[LedgerKey, Decimal] = field(default_factory=dict)
    price_changes: list[PriceChange] = field(default_factory=list)


class CoordinatorBase:
    """Runs coordinator operations inside a unit of work."""

    # Price history source for coordinators that move prices
    price_source: PriceSourceType | None = None

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory | None = None,
        costing_engine: CostingEngine | None = None,
    ):
        self._uow_factory = uow_factory
        self._costing = costing_engine or CostingEngine(
            price_scale=get_settings().costing.price_scale
        )

    def _get_uow_factory(self) -> UnitOfWorkFactory:
        if self._uow_factory is None:
            from src.infrastructure.storage.sqlite import unit_of_work

            self._uow_factory = unit_of_work
        return self._uow_factory

    @property
    def label(self) -> str:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        transaction_id: int | None,
        work: Callable[[IUnitOfWork], Awaitable[T]],
    ) -> T:
        """Run ``work`` atomically; domain errors pass through, others are wrapped."""
        factory = self._get_uow_factory()
        try:
            with bind_operation_context(
                kind=self.label, operation=operation, transaction_id=transaction_id
            ):
                async with factory() as uow:
                    return await work(uow)
        except InventoryError as e:
            logger.warning(
                "transaction_rejected",
                kind=self.label,
                operation=operation,
                transaction_id=transaction_id,
                error=e.code,
                message=e.message,
            )
            raise
        except Exception as e:
            logger.error(
                "transaction_failed",
                kind=self.label,
                operation=operation,
                transaction_id=transaction_id,
                error=str(e),
                exc_info=True,
            )
            raise TransactionFailedError(operation, self.label, transaction_id) from e

    async def _recompute_prices(
        self,
        uow: IUnitOfWork,
        item_ids: set[int],
        source_id: int | None,
        effective_date: date,
        note: str | None = None,
        last_purchase_id: int | None = None,
    ) -> list[PriceChange]:
        """Recompute each item's price from its still-effective events.

        Writes the price row and a history entry only when the value moved.
        """
        changes = []
        for item_id in sorted(item_ids):
            item = await uow.items.get(item_id)
            if item is None:
                continue
            item_lines = await uow.transactions.list_item_lines(item_id)
            new_price = self._costing.compute_from_lines(item, item_lines)
            if new_price is None:
                continue

            current = await uow.prices.get_current_price(item_id)
            old_price = current.price_usd if current else None
            if current is not None and prices_equal(old_price, new_price):
                continue

            await uow.prices.set_price(item_id, new_price, effective_date, last_purchase_id)
            await uow.prices.append_history(
                item_id,
                old_price,
                new_price,
                self.price_source,
                source_id=source_id,
                note=note,
                effective_date=effective_date,
            )
            changes.append(PriceChange(item_id, old_price, new_price))
            logger.info(
                "item_price_recomputed",
                item_id=item_id,
                strategy=item.costing_strategy.value,
                old_price=None if old_price is None else str(old_price),
                new_price=str(new_price),
            )
        return changes


class TransactionCoordinator(CoordinatorBase):
    """
    Create/update/delete/restore template shared by all transaction kinds.

    Subclasses set ``kind`` and implement ``_build``; they override the
    ``_before_*`` hooks for extra validation and ``_after_change`` for
    costing side effects.
    """

    kind: TransactionKind

    @property
    def label(self) -> str:
        return self.kind.value

    # ------------------------------------------------------------------
    # Template operations
    # ------------------------------------------------------------------

    async def create(self, request: Any) -> TransactionResult:
        """Persist a new transaction and apply its effects."""
        logger.info("transaction_create_started", kind=self.label)

        async def work(uow: IUnitOfWork) -> TransactionResult:
            txn = self._build(request, existing=None)
            await self._require_items(uow, txn.item_ids())
            await self._before_create(uow, txn)
            txn = await uow.transactions.create(txn)
            deltas = await self._apply_ledger(uow, None, txn)
            changes = await self._after_change(uow, None, txn)
            return TransactionResult(txn, deltas, changes)

        result = await self._run("create", None, work)
        logger.info(
            "transaction_create_complete",
            kind=self.label,
            transaction_id=result.transaction.id,
            ledger_changes=len(result.ledger_deltas),
            price_changes=len(result.price_changes),
        )
        return result

    async def update(self, transaction_id: int, request: Any) -> TransactionResult:
        """Replace header and lines, applying only the net ledger change."""
        logger.info("transaction_update_started", kind=self.label, transaction_id=transaction_id)

        async def work(uow: IUnitOfWork) -> TransactionResult:
            before = await self._load(uow, transaction_id)
            if before.is_deleted:
                raise InvalidStateTransitionError(
                    f"update {self._describe(before)}", "it has been deleted"
                )
            after = self._build(request, existing=before)
            diff = diff_lines(transaction_id, before.lines, after.lines)
            await self._require_items(uow, after.item_ids())
            await self._before_update(uow, before, after)

            await uow.transactions.update_header(after)
            for line in diff.removed:
                await uow.transactions.delete_line(line.id)
            for _, line in diff.updated:
                await uow.transactions.update_line(line)
            for line in diff.added:
                await uow.transactions.add_line(transaction_id, line)

            deltas = await self._apply_ledger(uow, before, after)
            changes = await self._after_change(uow, before, after)
            return TransactionResult(after, deltas, changes)

        result = await self._run("update", transaction_id, work)
        logger.info(
            "transaction_update_complete",
            kind=self.label,
            transaction_id=transaction_id,
            ledger_changes=len(result.ledger_deltas),
            price_changes=len(result.price_changes),
        )
        return result

    async def delete(self, transaction_id: int) -> TransactionResult:
        """Soft-delete: reverse exactly the effect the transaction currently has."""
        logger.info("transaction_delete_started", kind=self.label, transaction_id=transaction_id)

        async def work(uow: IUnitOfWork) -> TransactionResult:
            before = await self._load(uow, transaction_id)
            if before.is_deleted:
                raise InvalidStateTransitionError(
                    f"delete {self._describe(before)}", "it is already deleted"
                )
            after = before.model_copy(deep=True)
            after.state = TransactionState.DELETED
            after.deleted_at = datetime.utcnow()
            await self._before_delete(uow, before, after)
            return await self._transition(uow, before, after)

        result = await self._run("delete", transaction_id, work)
        logger.info(
            "transaction_delete_complete",
            kind=self.label,
            transaction_id=transaction_id,
            ledger_changes=len(result.ledger_deltas),
        )
        return result

    async def restore(self, transaction_id: int) -> TransactionResult:
        """Undo a soft delete, re-applying the same effect delete reversed."""
        logger.info("transaction_restore_started", kind=self.label, transaction_id=transaction_id)

        async def work(uow: IUnitOfWork) -> TransactionResult:
            before = await self._load(uow, transaction_id)
            if not before.is_deleted:
                raise InvalidStateTransitionError(
                    f"restore {self._describe(before)}", "it is not deleted"
                )
            after = before.model_copy(deep=True)
            after.state = TransactionState.ACTIVE
            after.deleted_at = None
            return await self._transition(uow, before, after)

        result = await self._run("restore", transaction_id, work)
        logger.info(
            "transaction_restore_complete",
            kind=self.label,
            transaction_id=transaction_id,
            ledger_changes=len(result.ledger_deltas),
        )
        return result

    async def _transition(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> TransactionResult:
        """Persist a header-only state change and apply its effects."""
        await uow.transactions.update_header(after)
        deltas = await self._apply_ledger(uow, before, after)
        changes = await self._after_change(uow, before, after)
        return TransactionResult(after, deltas, changes)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _build(
        self, request: Any, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        """Turn a request into the target transaction state."""
        raise NotImplementedError

    async def _before_create(self, uow: IUnitOfWork, txn: InventoryTransaction) -> None:
        pass

    async def _before_update(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> None:
        pass

    async def _before_delete(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> None:
        pass

    async def _after_change(
        self,
        uow: IUnitOfWork,
        before: InventoryTransaction | None,
        after: InventoryTransaction,
    ) -> list[PriceChange]:
        """Costing side effects. Ledger-only kinds leave prices alone."""
        return []

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _describe(self, txn: InventoryTransaction) -> str:
        return f"{self.label.replace('_', ' ')} #{txn.id}"

    def _base_transaction(
        self, existing: InventoryTransaction | None, **fields: Any
    ) -> InventoryTransaction:
        """New header, or a copy of ``existing`` with ``fields`` replaced.

        Identity, lifecycle and receipt stamps of an existing transaction
        are always carried over.
        """
        if existing is None:
            if fields.get("transaction_date") is None:
                fields["transaction_date"] = date.today()
            return InventoryTransaction(kind=self.kind, **fields)

        if fields.get("transaction_date") is None:
            fields["transaction_date"] = existing.transaction_date
        return existing.model_copy(deep=True, update=fields)

    @staticmethod
    def _line(request_line: Any, **fields: Any) -> TransactionLine:
        return TransactionLine(
            id=request_line.id,
            item_id=request_line.item_id,
            quantity=request_line.quantity,
            note=request_line.note,
            **fields,
        )

    async def _load(self, uow: IUnitOfWork, transaction_id: int) -> InventoryTransaction:
        txn = await uow.transactions.get(transaction_id, kind=self.kind)
        if txn is None:
            raise TransactionNotFoundError(self.label, transaction_id)
        return txn

    async def _require_items(self, uow: IUnitOfWork, item_ids: set[int]) -> dict[int, Item]:
        items = {}
        for item_id in sorted(item_ids):
            item = await uow.items.get(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            items[item_id] = item
        return items

    async def _apply_ledger(
        self,
        uow: IUnitOfWork,
        before: InventoryTransaction | None,
        after: InventoryTransaction | None,
    ) -> dict[LedgerKey, Decimal]:
        """Adjust the ledger by the net difference between two states."""
        deltas = net_ledger_deltas(before, after)
        for (item_id, warehouse_id), delta in deltas.items():
            await uow.ledger.adjust(item_id, warehouse_id, delta)
        return deltas
