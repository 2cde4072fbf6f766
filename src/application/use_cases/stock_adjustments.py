"""Stock adjustment coordinator: manual add/subtract on one warehouse."""

from src.application.dto.requests import StockAdjustmentRequest
from src.application.use_cases.base import TransactionCoordinator
from src.core.entities.transaction import InventoryTransaction, TransactionKind


class StockAdjustmentCoordinator(TransactionCoordinator):
    """Adjustments move one warehouse's ledger and never touch prices."""

    kind = TransactionKind.STOCK_ADJUSTMENT

    def _build(
        self, request: StockAdjustmentRequest, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        return self._base_transaction(
            existing,
            warehouse_id=request.warehouse_id,
            adjustment_type=request.adjustment_type,
            transaction_date=request.transaction_date,
            reference=request.reference,
            note=request.note,
            lines=[self._line(line) for line in request.lines],
        )
