"""Stock transfer coordinator: move quantity between two warehouses."""

from src.application.dto.requests import StockTransferRequest
from src.application.use_cases.base import TransactionCoordinator
from src.core.entities.transaction import InventoryTransaction, TransactionKind
from src.core.exceptions import ValidationError


class StockTransferCoordinator(TransactionCoordinator):
    """
    Two-sided movement: each line leaves the source warehouse and enters
    the destination in the same unit of work. Prices are global, so a
    transfer never touches them.
    """

    kind = TransactionKind.STOCK_TRANSFER

    def _build(
        self, request: StockTransferRequest, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        if request.from_warehouse_id == request.to_warehouse_id:
            raise ValidationError(
                "to_warehouse_id",
                "destination must differ from the source warehouse",
                request.to_warehouse_id,
            )
        return self._base_transaction(
            existing,
            warehouse_id=request.from_warehouse_id,
            to_warehouse_id=request.to_warehouse_id,
            transaction_date=request.transaction_date,
            reference=request.reference,
            note=request.note,
            lines=[self._line(line) for line in request.lines],
        )
