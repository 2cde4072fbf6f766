"""Purchase coordinator: supply events that drive stock and item prices."""

from decimal import Decimal

from src.application.dto.requests import PurchaseRequest
from src.application.use_cases.base import TransactionCoordinator, PriceChange, TransactionResult
from src.config import get_logger, get_settings
from src.core.decimals import quantize
from src.core.entities.pricing import PriceSourceType, SupplierItemPrice
from src.core.entities.transaction import (
    InventoryTransaction,
    PurchaseStatus,
    TransactionKind,
)
from src.core.exceptions import InvalidStateTransitionError
from src.core.interfaces.unit_of_work import IUnitOfWork
from src.core.services.landed_cost import apply_landed_costs
from src.core.services.reconciler import (
    QuantityReconciler,
    is_stock_effective,
    purchase_reductions,
)

logger = get_logger(__name__)


class PurchaseCoordinator(TransactionCoordinator):
    """
    Purchases add stock to one warehouse and recompute item prices.

    A purchase only affects stock and prices once delivered. Reducing or
    removing a delivered line is checked against what is still on hand.
    """

    kind = TransactionKind.PURCHASE
    price_source = PriceSourceType.PURCHASE

    def _build(
        self, request: PurchaseRequest, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        status = request.status
        if status is None:
            status = PurchaseStatus(existing.status) if existing else PurchaseStatus.DELIVERED

        txn = self._base_transaction(
            existing,
            warehouse_id=request.warehouse_id,
            transaction_date=request.transaction_date,
            supplier_id=request.supplier_id,
            status=status.value,
            reference=request.reference,
            note=request.note,
            shipping_fee_usd=request.shipping_fee_usd,
            customs_fee_usd=request.customs_fee_usd,
            other_fee_usd=request.other_fee_usd,
            shipping_fee_percent=request.shipping_fee_percent,
            customs_fee_percent=request.customs_fee_percent,
            other_fee_percent=request.other_fee_percent,
            lines=[
                self._line(
                    line,
                    unit_price=line.unit_cost,
                    discount_percent=line.discount_percent,
                )
                for line in request.lines
            ],
        )
        return apply_landed_costs(txn)

    async def _before_update(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> None:
        if before.is_delivered and not after.is_delivered:
            raise InvalidStateTransitionError(
                f"update {self._describe(before)}",
                "a delivered purchase cannot go back to waiting",
            )
        await self._check_floor(uow, before, after)

    async def _before_delete(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> None:
        await self._check_floor(uow, before, after)

    async def _check_floor(
        self,
        uow: IUnitOfWork,
        before: InventoryTransaction,
        after: InventoryTransaction | None,
    ) -> None:
        reductions = purchase_reductions(before, after)
        if not reductions:
            return
        names = await uow.items.get_names([r.item_id for r in reductions])
        await QuantityReconciler(uow.ledger).check_purchase_reductions(reductions, names)

    async def _after_change(
        self,
        uow: IUnitOfWork,
        before: InventoryTransaction | None,
        after: InventoryTransaction,
    ) -> list[PriceChange]:
        # Every item on the old or new lines is recomputed from scratch,
        # even when its line did not change.
        item_ids = after.item_ids() | (before.item_ids() if before else set())
        if not is_stock_effective(after) and not (before and is_stock_effective(before)):
            return []

        changes = await self._recompute_prices(
            uow,
            item_ids,
            source_id=after.id,
            effective_date=after.transaction_date,
            note=f"Purchase #{after.id}",
            last_purchase_id=after.id if is_stock_effective(after) else None,
        )
        if is_stock_effective(after):
            await self._update_supplier_prices(uow, after)
        return changes

    async def _update_supplier_prices(self, uow: IUnitOfWork, purchase: InventoryTransaction) -> None:
        """Record the price paid per (supplier, item) when it moved."""
        if purchase.supplier_id is None:
            return
        tolerance = get_settings().costing.supplier_price_tolerance

        for line in purchase.lines:
            paid = quantize(line.unit_cost or Decimal("0"))
            current = await uow.supplier_prices.get_current(purchase.supplier_id, line.item_id)
            if current is not None and abs(current.price_usd - paid) <= tolerance:
                await uow.supplier_prices.touch(
                    current.id, purchase.id, purchase.transaction_date
                )
                continue
            await uow.supplier_prices.record(
                SupplierItemPrice(
                    supplier_id=purchase.supplier_id,
                    item_id=line.item_id,
                    price_usd=paid,
                    last_purchase_id=purchase.id,
                    last_purchase_date=purchase.transaction_date,
                )
            )

    async def deliver(self, purchase_id: int) -> TransactionResult:
        """Mark a waiting purchase delivered, applying its stock and price effects."""
        logger.info("purchase_deliver_started", purchase_id=purchase_id)

        async def work(uow: IUnitOfWork) -> TransactionResult:
            before = await self._load(uow, purchase_id)
            if before.is_deleted:
                raise InvalidStateTransitionError(
                    f"deliver {self._describe(before)}", "it has been deleted"
                )
            if before.is_delivered:
                raise InvalidStateTransitionError(
                    f"deliver {self._describe(before)}", "it is already delivered"
                )
            after = before.model_copy(deep=True)
            after.status = PurchaseStatus.DELIVERED.value
            return await self._transition(uow, before, after)

        result = await self._run("deliver", purchase_id, work)
        logger.info(
            "purchase_deliver_complete",
            purchase_id=purchase_id,
            price_changes=len(result.price_changes),
        )
        return result
