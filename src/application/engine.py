"""
Inventory engine facade.

One entry point per business event. Each event runs as a single unit of
work through the coordinator for its transaction kind; read queries open
their own short unit of work.
"""

from decimal import Decimal

from src.application.dto.requests import (
    CreateItemRequest,
    CustomerReturnRequest,
    PurchaseRequest,
    PurchaseReturnRequest,
    SaleRequest,
    StockAdjustmentRequest,
    StockTransferRequest,
)
from src.application.dto.responses import (
    LedgerChangeResponse,
    PriceChangeResponse,
    PriceHistoryResponse,
    StockBreakdownResponse,
    TransactionResponse,
    WarehouseStockResponse,
)
from src.application.use_cases.base import TransactionResult
from src.application.use_cases.customer_returns import CustomerReturnCoordinator
from src.application.use_cases.items import (
    CreateItemResult,
    ItemCoordinator,
    StartingPriceImpact,
)
from src.application.use_cases.purchase_returns import PurchaseReturnCoordinator
from src.application.use_cases.purchases import PurchaseCoordinator
from src.application.use_cases.sales import SaleCoordinator
from src.application.use_cases.stock_adjustments import StockAdjustmentCoordinator
from src.application.use_cases.stock_transfers import StockTransferCoordinator
from src.config import get_logger, get_settings
from src.core.decimals import ZERO, display
from src.core.entities.pricing import ItemPrice, SupplierItemPrice
from src.core.entities.transaction import InventoryTransaction, TransactionKind
from src.core.exceptions import ItemNotFoundError, TransactionNotFoundError
from src.core.interfaces.unit_of_work import UnitOfWorkFactory
from src.core.services.costing import CostingEngine

logger = get_logger(__name__)


def to_response(result: TransactionResult) -> TransactionResponse:
    """Summarize a coordinator result."""
    txn = result.transaction
    return TransactionResponse(
        id=txn.id,
        kind=txn.kind.value,
        state=txn.state.value,
        status=txn.status,
        transaction_date=txn.transaction_date,
        line_count=len(txn.lines),
        cost_total=display(txn.cost_total),
        ledger_changes=[
            LedgerChangeResponse(item_id=item_id, warehouse_id=warehouse_id, delta=delta)
            for (item_id, warehouse_id), delta in sorted(result.ledger_deltas.items())
        ],
        price_changes=[
            PriceChangeResponse(
                item_id=change.item_id,
                old_price=change.old_price,
                new_price=change.new_price,
            )
            for change in result.price_changes
        ],
    )


class InventoryEngine:
    """
    Keeps the stock ledger and item prices consistent with transactions.

    Usage:
        engine = InventoryEngine()
        await engine.on_item_created(CreateItemRequest(name="Widget", ...))
        result = await engine.on_purchase_created(PurchaseRequest(...))
    """

    def __init__(self, uow_factory: UnitOfWorkFactory | None = None):
        """
        Initialize the engine.

        Args:
            uow_factory: Unit-of-work factory (default: SQLite on the global pool)
        """
        self._uow_factory = uow_factory
        costing = CostingEngine(price_scale=get_settings().costing.price_scale)

        self.items = ItemCoordinator(uow_factory, costing)
        self.purchases = PurchaseCoordinator(uow_factory, costing)
        self.purchase_returns = PurchaseReturnCoordinator(uow_factory, costing)
        self.sales = SaleCoordinator(uow_factory, costing)
        self.customer_returns = CustomerReturnCoordinator(uow_factory, costing)
        self.stock_adjustments = StockAdjustmentCoordinator(uow_factory, costing)
        self.stock_transfers = StockTransferCoordinator(uow_factory, costing)

    def _factory(self) -> UnitOfWorkFactory:
        return self.items._get_uow_factory()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def on_item_created(self, request: CreateItemRequest) -> CreateItemResult:
        return await self.items.create(request)

    async def starting_price_change_impact(
        self, item_id: int, new_price: Decimal
    ) -> StartingPriceImpact:
        return await self.items.starting_price_change_impact(item_id, new_price)

    async def on_starting_price_changed(
        self, item_id: int, new_price: Decimal
    ) -> StartingPriceImpact:
        return await self.items.change_starting_price(item_id, new_price)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    async def on_purchase_created(self, request: PurchaseRequest) -> TransactionResult:
        return await self.purchases.create(request)

    async def on_purchase_updated(
        self, purchase_id: int, request: PurchaseRequest
    ) -> TransactionResult:
        return await self.purchases.update(purchase_id, request)

    async def on_purchase_delivered(self, purchase_id: int) -> TransactionResult:
        return await self.purchases.deliver(purchase_id)

    async def on_purchase_deleted(self, purchase_id: int) -> TransactionResult:
        return await self.purchases.delete(purchase_id)

    async def on_purchase_restored(self, purchase_id: int) -> TransactionResult:
        return await self.purchases.restore(purchase_id)

    # ------------------------------------------------------------------
    # Purchase returns
    # ------------------------------------------------------------------

    async def on_purchase_return_created(
        self, request: PurchaseReturnRequest
    ) -> TransactionResult:
        return await self.purchase_returns.create(request)

    async def on_purchase_return_updated(
        self, return_id: int, request: PurchaseReturnRequest
    ) -> TransactionResult:
        return await self.purchase_returns.update(return_id, request)

    async def on_purchase_return_deleted(self, return_id: int) -> TransactionResult:
        return await self.purchase_returns.delete(return_id)

    async def on_purchase_return_restored(self, return_id: int) -> TransactionResult:
        return await self.purchase_returns.restore(return_id)

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    async def on_sale_created(self, request: SaleRequest) -> TransactionResult:
        return await self.sales.create(request)

    async def on_sale_updated(self, sale_id: int, request: SaleRequest) -> TransactionResult:
        return await self.sales.update(sale_id, request)

    async def on_sale_deleted(self, sale_id: int) -> TransactionResult:
        return await self.sales.delete(sale_id)

    async def on_sale_restored(self, sale_id: int) -> TransactionResult:
        return await self.sales.restore(sale_id)

    # ------------------------------------------------------------------
    # Customer returns
    # ------------------------------------------------------------------

    async def on_customer_return_created(
        self, request: CustomerReturnRequest
    ) -> TransactionResult:
        return await self.customer_returns.create(request)

    async def on_customer_return_updated(
        self, return_id: int, request: CustomerReturnRequest
    ) -> TransactionResult:
        return await self.customer_returns.update(return_id, request)

    async def on_customer_return_approved(self, return_id: int) -> TransactionResult:
        return await self.customer_returns.approve(return_id)

    async def on_customer_return_rejected(self, return_id: int) -> TransactionResult:
        return await self.customer_returns.reject(return_id)

    async def on_customer_return_received(
        self, return_id: int, user_id: int | None = None, note: str | None = None
    ) -> TransactionResult:
        return await self.customer_returns.mark_received(return_id, user_id, note)

    async def on_customer_return_deleted(self, return_id: int) -> TransactionResult:
        return await self.customer_returns.delete(return_id)

    async def on_customer_return_restored(self, return_id: int) -> TransactionResult:
        return await self.customer_returns.restore(return_id)

    # ------------------------------------------------------------------
    # Stock adjustments
    # ------------------------------------------------------------------

    async def on_stock_adjustment_created(
        self, request: StockAdjustmentRequest
    ) -> TransactionResult:
        return await self.stock_adjustments.create(request)

    async def on_stock_adjustment_updated(
        self, adjustment_id: int, request: StockAdjustmentRequest
    ) -> TransactionResult:
        return await self.stock_adjustments.update(adjustment_id, request)

    async def on_stock_adjustment_deleted(self, adjustment_id: int) -> TransactionResult:
        return await self.stock_adjustments.delete(adjustment_id)

    async def on_stock_adjustment_restored(self, adjustment_id: int) -> TransactionResult:
        return await self.stock_adjustments.restore(adjustment_id)

    # ------------------------------------------------------------------
    # Stock transfers
    # ------------------------------------------------------------------

    async def on_stock_transfer_created(self, request: StockTransferRequest) -> TransactionResult:
        return await self.stock_transfers.create(request)

    async def on_stock_transfer_updated(
        self, transfer_id: int, request: StockTransferRequest
    ) -> TransactionResult:
        return await self.stock_transfers.update(transfer_id, request)

    async def on_stock_transfer_deleted(self, transfer_id: int) -> TransactionResult:
        return await self.stock_transfers.delete(transfer_id)

    async def on_stock_transfer_restored(self, transfer_id: int) -> TransactionResult:
        return await self.stock_transfers.restore(transfer_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_quantity(self, item_id: int, warehouse_id: int) -> Decimal:
        """Signed quantity of an item in one warehouse (0 when never touched)."""
        async with self._factory()() as uow:
            return await uow.ledger.get_quantity(item_id, warehouse_id)

    async def get_total_quantity(self, item_id: int) -> Decimal:
        async with self._factory()() as uow:
            return await uow.ledger.sum_quantity_across_warehouses(item_id)

    async def get_stock_breakdown(self, item_id: int) -> StockBreakdownResponse:
        """Per-warehouse quantities of an item."""
        async with self._factory()() as uow:
            if await uow.items.get(item_id) is None:
                raise ItemNotFoundError(item_id)
            entries = await uow.ledger.list_entries(item_id)

        warehouses = [
            WarehouseStockResponse(warehouse_id=e.warehouse_id, quantity=e.quantity)
            for e in entries
        ]
        return StockBreakdownResponse(
            item_id=item_id,
            total_quantity=sum((w.quantity for w in warehouses), ZERO),
            warehouses=warehouses,
        )

    async def get_current_price(self, item_id: int) -> ItemPrice | None:
        async with self._factory()() as uow:
            return await uow.prices.get_current_price(item_id)

    async def get_price_history(self, item_id: int) -> list[PriceHistoryResponse]:
        """Price history of an item, oldest first."""
        async with self._factory()() as uow:
            entries = await uow.prices.list_history(item_id)
        return [
            PriceHistoryResponse(
                id=e.id,
                old_price=e.old_price,
                new_price=e.new_price,
                change=e.change,
                source_type=e.source_type.value,
                source_id=e.source_id,
                note=e.note,
                effective_date=e.effective_date,
                created_at=e.created_at,
            )
            for e in entries
        ]

    async def get_supplier_prices(
        self, item_id: int, current_only: bool = True
    ) -> list[SupplierItemPrice]:
        async with self._factory()() as uow:
            return await uow.supplier_prices.list_for_item(item_id, current_only=current_only)

    async def get_transaction(
        self, transaction_id: int, kind: TransactionKind | None = None
    ) -> InventoryTransaction:
        async with self._factory()() as uow:
            txn = await uow.transactions.get(transaction_id, kind=kind)
        if txn is None:
            raise TransactionNotFoundError(kind.value if kind else "transaction", transaction_id)
        return txn
