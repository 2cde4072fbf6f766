"""Customer return coordinator: stock comes back only once received."""

from datetime import datetime

from src.application.dto.requests import CustomerReturnRequest
from src.application.use_cases.base import TransactionCoordinator, TransactionResult
from src.config import get_logger
from src.core.entities.transaction import (
    InventoryTransaction,
    ReturnStatus,
    TransactionKind,
)
from src.core.exceptions import InvalidStateTransitionError
from src.core.interfaces.unit_of_work import IUnitOfWork

logger = get_logger(__name__)


class CustomerReturnCoordinator(TransactionCoordinator):
    """
    Customer returns are ledger-neutral until marked received.

    Workflow: pending -> approved -> received. Delete and restore reverse
    or re-add stock only for returns that were received.
    """

    kind = TransactionKind.CUSTOMER_RETURN

    def _build(
        self, request: CustomerReturnRequest, existing: InventoryTransaction | None
    ) -> InventoryTransaction:
        status = request.status
        if status is None:
            status = ReturnStatus(existing.status) if existing else ReturnStatus.PENDING

        return self._base_transaction(
            existing,
            warehouse_id=request.warehouse_id,
            transaction_date=request.transaction_date,
            customer_id=request.customer_id,
            status=status.value,
            reference=request.reference,
            note=request.note,
            lines=[self._line(line, unit_price=line.unit_price) for line in request.lines],
        )

    async def _before_create(self, uow: IUnitOfWork, txn: InventoryTransaction) -> None:
        if txn.status == ReturnStatus.RECEIVED.value:
            raise InvalidStateTransitionError(
                "create customer return", "returns are received through mark_received"
            )

    async def _before_update(
        self, uow: IUnitOfWork, before: InventoryTransaction, after: InventoryTransaction
    ) -> None:
        if before.is_received:
            raise InvalidStateTransitionError(
                f"update {self._describe(before)}", "it has already been received"
            )
        if after.status != before.status:
            # approve, reject and mark_received own the workflow
            raise InvalidStateTransitionError(
                f"update {self._describe(before)}",
                f"status cannot change from {before.status} to {after.status} on update",
            )

    async def approve(self, return_id: int) -> TransactionResult:
        """pending -> approved."""
        return await self._set_status(return_id, ReturnStatus.APPROVED)

    async def reject(self, return_id: int) -> TransactionResult:
        """pending -> rejected."""
        return await self._set_status(return_id, ReturnStatus.REJECTED)

    async def _set_status(self, return_id: int, status: ReturnStatus) -> TransactionResult:
        operation = "approve" if status == ReturnStatus.APPROVED else "reject"

        async def work(uow: IUnitOfWork) -> TransactionResult:
            before = await self._load(uow, return_id)
            if before.is_deleted or before.status != ReturnStatus.PENDING.value:
                raise InvalidStateTransitionError(
                    f"{operation} {self._describe(before)}",
                    f"status is {'deleted' if before.is_deleted else before.status}, expected pending",
                )
            after = before.model_copy(deep=True)
            after.status = status.value
            return await self._transition(uow, before, after)

        result = await self._run(operation, return_id, work)
        logger.info("customer_return_status_changed", return_id=return_id, status=status.value)
        return result

    async def mark_received(
        self, return_id: int, user_id: int | None = None, note: str | None = None
    ) -> TransactionResult:
        """Receive an approved return: add its quantities back to stock."""
        logger.info("customer_return_receive_started", return_id=return_id, user_id=user_id)

        async def work(uow: IUnitOfWork) -> TransactionResult:
            before = await self._load(uow, return_id)
            if before.is_deleted:
                raise InvalidStateTransitionError(
                    f"receive {self._describe(before)}", "it has been deleted"
                )
            if before.is_received:
                raise InvalidStateTransitionError(
                    f"receive {self._describe(before)}", "it has already been received"
                )
            if before.status != ReturnStatus.APPROVED.value:
                raise InvalidStateTransitionError(
                    f"receive {self._describe(before)}",
                    f"status is {before.status}, expected approved",
                )
            after = before.model_copy(deep=True)
            after.received_at = datetime.utcnow()
            after.received_by = user_id
            after.received_note = note
            return await self._transition(uow, before, after)

        result = await self._run("receive", return_id, work)
        logger.info(
            "customer_return_receive_complete",
            return_id=return_id,
            ledger_changes=len(result.ledger_deltas),
        )
        return result
