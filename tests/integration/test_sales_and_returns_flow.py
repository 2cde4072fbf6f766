"""Sales and customer returns through the inventory engine."""

import pytest

from src.core.entities import ReturnStatus
from src.core.exceptions import InvalidStateTransitionError
from tests.builders import (
    D,
    WAREHOUSE_1,
    WAREHOUSE_2,
    customer_return_request,
    item_request,
    purchase_line,
    purchase_request,
    sale_line,
    sale_request,
)


@pytest.fixture
async def widget_id(engine) -> int:
    result = await engine.on_item_created(item_request(quantity=100, price=10))
    return result.item.id


class TestSales:
    """Sales move the ledger and snapshot the cost basis."""

    async def test_sale_reduces_stock(self, engine, widget_id):
        result = await engine.on_sale_created(sale_request(sale_line(widget_id, 30, 25)))

        assert result.ledger_deltas == {(widget_id, WAREHOUSE_1): D(-30)}
        assert result.price_changes == []
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(70)

    async def test_sale_may_drive_stock_negative(self, engine, widget_id):
        await engine.on_sale_created(sale_request(sale_line(widget_id, 5, 25), warehouse_id=WAREHOUSE_2))

        assert await engine.get_quantity(widget_id, WAREHOUSE_2) == D(-5)
        assert await engine.get_total_quantity(widget_id) == D(95)

    async def test_cost_snapshot_and_profit(self, engine, widget_id):
        result = await engine.on_sale_created(sale_request(sale_line(widget_id, 10, 25)))

        stored = await engine.get_transaction(result.transaction.id)
        line = stored.lines[0]
        assert line.unit_cost == D(10)
        assert line.profit == D(150)
        assert stored.cost_total == D(100)
        assert stored.gross_profit == D(150)

    async def test_existing_line_keeps_its_snapshot(self, engine, widget_id):
        sale = await engine.on_sale_created(sale_request(sale_line(widget_id, 10, 25)))
        await engine.on_purchase_created(purchase_request(purchase_line(widget_id, 90, 20)))
        line_id = sale.transaction.lines[0].id

        updated = await engine.on_sale_updated(
            sale.transaction.id,
            sale_request(sale_line(widget_id, 12, 25, line_id=line_id), sale_line(widget_id, 1, 25)),
        )

        kept, added = updated.transaction.lines
        assert kept.unit_cost == D(10)
        # 90 on hand at 10 plus 90 bought at 20
        assert added.unit_cost == D(15)
        assert updated.ledger_deltas == {(widget_id, WAREHOUSE_1): D(-3)}

    async def test_delete_and_restore(self, engine, widget_id):
        sale = await engine.on_sale_created(sale_request(sale_line(widget_id, 30, 25)))

        await engine.on_sale_deleted(sale.transaction.id)
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(100)

        await engine.on_sale_restored(sale.transaction.id)
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(70)


class TestCustomerReturns:
    """Returned goods only come back into stock once received."""

    async def create_return(self, engine, item_id: int, quantity=5):
        result = await engine.on_customer_return_created(
            customer_return_request(sale_line(item_id, quantity, 25))
        )
        return result.transaction.id

    async def test_pending_return_has_no_effect(self, engine, widget_id):
        result = await engine.on_customer_return_created(
            customer_return_request(sale_line(widget_id, 5, 25))
        )

        assert result.transaction.status == ReturnStatus.PENDING.value
        assert result.ledger_deltas == {}
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(100)

    async def test_full_workflow(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)

        approved = await engine.on_customer_return_approved(return_id)
        assert approved.ledger_deltas == {}

        received = await engine.on_customer_return_received(return_id, user_id=3, note="boxed")

        assert received.ledger_deltas == {(widget_id, WAREHOUSE_1): D(5)}
        assert received.price_changes == []
        stored = await engine.get_transaction(return_id)
        assert stored.is_received
        assert stored.received_by == 3
        assert stored.received_note == "boxed"
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(105)

    async def test_receive_requires_approval(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)

        with pytest.raises(InvalidStateTransitionError, match="expected approved"):
            await engine.on_customer_return_received(return_id)

    async def test_rejected_return_cannot_be_received(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)
        await engine.on_customer_return_rejected(return_id)

        with pytest.raises(InvalidStateTransitionError):
            await engine.on_customer_return_received(return_id)
        with pytest.raises(InvalidStateTransitionError, match="expected pending"):
            await engine.on_customer_return_approved(return_id)

    async def test_receive_twice_rejected(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)
        await engine.on_customer_return_approved(return_id)
        await engine.on_customer_return_received(return_id)

        with pytest.raises(InvalidStateTransitionError, match="already been received"):
            await engine.on_customer_return_received(return_id)
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(105)

    async def test_update_before_receipt_has_no_effect(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)

        result = await engine.on_customer_return_updated(
            return_id, customer_return_request(sale_line(widget_id, 8, 25))
        )

        assert result.ledger_deltas == {}
        assert result.transaction.lines[0].quantity == D(8)

    async def test_update_after_receipt_rejected(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)
        await engine.on_customer_return_approved(return_id)
        await engine.on_customer_return_received(return_id)

        with pytest.raises(InvalidStateTransitionError):
            await engine.on_customer_return_updated(
                return_id, customer_return_request(sale_line(widget_id, 8, 25))
            )

    async def test_update_cannot_change_status(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)

        with pytest.raises(InvalidStateTransitionError, match="from pending to approved"):
            await engine.on_customer_return_updated(
                return_id,
                customer_return_request(sale_line(widget_id, 5, 25), status=ReturnStatus.APPROVED),
            )

        assert (await engine.get_transaction(return_id)).status == ReturnStatus.PENDING.value
        with pytest.raises(InvalidStateTransitionError, match="expected approved"):
            await engine.on_customer_return_received(return_id)

    async def test_update_keeping_status_allowed(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)
        await engine.on_customer_return_approved(return_id)

        result = await engine.on_customer_return_updated(
            return_id,
            customer_return_request(sale_line(widget_id, 6, 25), status=ReturnStatus.APPROVED),
        )

        assert result.transaction.status == ReturnStatus.APPROVED.value
        assert result.ledger_deltas == {}

    async def test_create_as_received_rejected(self, engine, widget_id):
        with pytest.raises(InvalidStateTransitionError, match="received through mark_received"):
            await engine.on_customer_return_created(
                customer_return_request(sale_line(widget_id, 5, 25), status=ReturnStatus.RECEIVED)
            )

        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(100)

    async def test_delete_and_restore_received_return(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)
        await engine.on_customer_return_approved(return_id)
        await engine.on_customer_return_received(return_id)

        deleted = await engine.on_customer_return_deleted(return_id)
        assert deleted.ledger_deltas == {(widget_id, WAREHOUSE_1): D(-5)}

        restored = await engine.on_customer_return_restored(return_id)
        assert restored.ledger_deltas == {(widget_id, WAREHOUSE_1): D(5)}
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(105)

    async def test_delete_unreceived_return_leaves_ledger(self, engine, widget_id):
        return_id = await self.create_return(engine, widget_id)

        deleted = await engine.on_customer_return_deleted(return_id)

        assert deleted.ledger_deltas == {}
        assert await engine.get_quantity(widget_id, WAREHOUSE_1) == D(100)
