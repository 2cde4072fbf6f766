"""Item coordinator: registration with opening stock and starting price."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from src.application.dto.requests import CreateItemRequest
from src.application.use_cases.base import CoordinatorBase, PriceChange
from src.config import get_logger, get_settings
from src.core.decimals import ZERO, prices_equal, quantize
from src.core.entities.inventory import CostingStrategy, Item
from src.core.entities.pricing import PriceSourceType
from src.core.entities.transaction import TransactionKind
from src.core.exceptions import (
    InvalidStateTransitionError,
    ItemNotFoundError,
    ValidationError,
)
from src.core.interfaces.unit_of_work import IUnitOfWork

logger = get_logger(__name__)


@dataclass
class CreateItemResult:
    """Result of registering an item."""

    item: Item
    opening_quantity: Decimal = ZERO
    price_change: PriceChange | None = None


@dataclass
class StartingPriceImpact:
    """What changing an item's starting price would do."""

    item_id: int
    current_starting_price: Decimal
    new_starting_price: Decimal
    starting_quantity: Decimal
    current_price: Decimal | None
    can_update: bool
    reason: str | None = None

    @property
    def value_change(self) -> Decimal:
        """Change in opening stock value."""
        return self.starting_quantity * (self.new_starting_price - self.current_starting_price)


class ItemCoordinator(CoordinatorBase):
    """Registers items and owns their opening stock and starting price."""

    price_source = PriceSourceType.INITIAL

    @property
    def label(self) -> str:
        return "item"

    async def create(self, request: CreateItemRequest) -> CreateItemResult:
        """Register an item, put its opening stock in the warehouse and set its price."""
        if request.starting_quantity > 0 and request.warehouse_id is None:
            raise ValidationError(
                "warehouse_id",
                "required when a starting quantity is given",
            )
        strategy = request.costing_strategy or CostingStrategy(
            get_settings().costing.default_strategy
        )
        logger.info(
            "item_create_started",
            item_id=request.item_id,
            strategy=strategy.value,
            starting_quantity=str(request.starting_quantity),
        )

        async def work(uow: IUnitOfWork) -> CreateItemResult:
            item = Item(
                id=request.item_id,
                name=request.name,
                costing_strategy=strategy,
                starting_quantity=request.starting_quantity,
                starting_price=request.starting_price,
                starting_warehouse_id=request.warehouse_id,
                starting_date=request.starting_date or date.today(),
            )
            item = await uow.items.create(item)

            opening = ZERO
            if item.has_starting_stock:
                opening = await uow.ledger.adjust(
                    item.id, item.starting_warehouse_id, item.starting_quantity
                )

            change = None
            if item.starting_price > 0:
                price = quantize(item.starting_price)
                await uow.prices.set_price(item.id, price, item.starting_date)
                await uow.prices.append_history(
                    item.id,
                    None,
                    price,
                    PriceSourceType.INITIAL,
                    source_id=item.id,
                    note="Initial price from item creation",
                    effective_date=item.starting_date,
                )
                change = PriceChange(item.id, None, price)

            return CreateItemResult(item=item, opening_quantity=opening, price_change=change)

        result = await self._run("create", request.item_id, work)
        logger.info(
            "item_create_complete",
            item_id=result.item.id,
            opening_quantity=str(result.opening_quantity),
            price_set=result.price_change is not None,
        )
        return result

    async def _impact(
        self, uow: IUnitOfWork, item_id: int, new_price: Decimal
    ) -> tuple[Item, StartingPriceImpact]:
        item = await uow.items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        purchases = await uow.transactions.count_item_lines(item_id, TransactionKind.PURCHASE)
        other_history = await uow.prices.count_history(
            item_id, exclude_source_types=[PriceSourceType.INITIAL]
        )
        current = await uow.prices.get_current_price(item_id)

        reason = None
        if purchases:
            reason = f"item has {purchases} purchase line(s)"
        elif other_history:
            reason = "item price has already changed since creation"

        return item, StartingPriceImpact(
            item_id=item_id,
            current_starting_price=item.starting_price,
            new_starting_price=quantize(new_price),
            starting_quantity=item.starting_quantity,
            current_price=current.price_usd if current else None,
            can_update=reason is None,
            reason=reason,
        )

    async def starting_price_change_impact(
        self, item_id: int, new_price: Decimal
    ) -> StartingPriceImpact:
        """Report whether the starting price may change and by how much."""

        async def work(uow: IUnitOfWork) -> StartingPriceImpact:
            _, impact = await self._impact(uow, item_id, new_price)
            return impact

        return await self._run("inspect", item_id, work)

    async def change_starting_price(self, item_id: int, new_price: Decimal) -> StartingPriceImpact:
        """Change the starting price of an item that has no purchases yet."""
        if new_price < 0:
            raise ValidationError("starting_price", "must not be negative", new_price)

        async def work(uow: IUnitOfWork) -> StartingPriceImpact:
            item, impact = await self._impact(uow, item_id, new_price)
            if not impact.can_update:
                raise InvalidStateTransitionError(
                    f"change starting price of {item.display_name}", impact.reason
                )

            item.starting_price = impact.new_starting_price
            await uow.items.update(item)

            new_current = impact.new_starting_price if impact.new_starting_price > 0 else None
            if new_current is not None and not prices_equal(impact.current_price, new_current):
                await uow.prices.set_price(item_id, new_current, date.today())
                await uow.prices.append_history(
                    item_id,
                    impact.current_price,
                    new_current,
                    PriceSourceType.STARTING_PRICE_CHANGE,
                    source_id=item_id,
                    note="Starting price changed",
                )
            return impact

        impact = await self._run("change_starting_price", item_id, work)
        logger.info(
            "starting_price_changed",
            item_id=item_id,
            old=str(impact.current_starting_price),
            new=str(impact.new_starting_price),
        )
        return impact
