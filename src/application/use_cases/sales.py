"""Sale coordinator: ledger-only stock issues with a cost snapshot."""

from src.application.dto.requests import SaleRequest
from src.application.use_cases.base import TransactionCoordinator
from src.core.entities.transaction import InventoryTransaction, TransactionKind
from src.core.interfaces.unit_of_work import IUnitOfWork


class SaleCoordinator(TransactionCoordinator):
    """
    Sales take stock out of one warehouse and never touch prices.

    Each line snapshots the item's price at the time it was added as its
    unit cost, for cost-of-goods and profit reporting.
    """

    kind = TransactionKind.SALE

    def _build(
        self, request: SaleRequest, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        lines = []
        for line in request.lines:
            previous = existing.get_line(line.id) if existing and line.id else None
            keep_cost = previous is not None and previous.item_id == line.item_id
            lines.append(
                self._line(
                    line,
                    unit_price=line.unit_price,
                    unit_cost=previous.unit_cost if keep_cost else None,
                )
            )
        return self._base_transaction(
            existing,
            warehouse_id=request.warehouse_id,
            transaction_date=request.transaction_date,
            customer_id=request.customer_id,
            reference=request.reference,
            note=request.note,
            lines=lines,
        )

    async def _snapshot_costs(self, uow: IUnitOfWork, txn: InventoryTransaction) -> None:
        for line in txn.lines:
            if line.unit_cost is None:
                current = await uow.prices.get_current_price(line.item_id)
                line.unit_cost = current.price_usd if current else None

    async def _before_create(self, uow: IUnitOfWork, txn: InventoryTransaction) -> None:
        await self._snapshot_costs(uow, txn)

    async def _before_update(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> None:
        await self._snapshot_costs(uow, after)
