"""Purchase return coordinator: goods sent back to a supplier."""

from src.application.dto.requests import PurchaseReturnRequest
from src.application.use_cases.base import TransactionCoordinator, PriceChange
from src.core.entities.pricing import PriceSourceType
from src.core.entities.transaction import InventoryTransaction, TransactionKind
from src.core.interfaces.unit_of_work import IUnitOfWork


class PurchaseReturnCoordinator(TransactionCoordinator):
    """
    Mirror of a purchase with the sign inverted.

    Weighted-average prices move in either direction; last-cost prices
    are left where the latest purchase put them.
    """

    kind = TransactionKind.PURCHASE_RETURN
    price_source = PriceSourceType.PURCHASE_RETURN

    def _build(
        self, request: PurchaseReturnRequest, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        return self._base_transaction(
            existing,
            warehouse_id=request.warehouse_id,
            transaction_date=request.transaction_date,
            supplier_id=request.supplier_id,
            reference=request.reference,
            note=request.note,
            lines=[
                self._line(
                    line,
                    unit_price=line.unit_cost,
                    discount_percent=line.discount_percent,
                    unit_cost=line.unit_cost,
                )
                for line in request.lines
            ],
        )

    async def _after_change(
        self,
        uow: IUnitOfWork,
        before: InventoryTransaction | None,
        after: InventoryTransaction,
    ) -> list[PriceChange]:
        item_ids = after.item_ids() | (before.item_ids() if before else set())
        return await self._recompute_prices(
            uow,
            item_ids,
            source_id=after.id,
            effective_date=after.transaction_date,
            note=f"Purchase Return #{after.id}",
        )
