"""
Costing engine.

Derives an item's global unit price from the still-effective inventory
events recorded against it. Prices are always recomputed by replaying those
events from an empty state, so a stored price that was altered or drifted
is discarded on the next recomputation.

Layer-pure service: depends only on core entities. Never raises for
degenerate arithmetic.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from src.core.decimals import STORAGE_SCALE, ZERO, quantize
from src.core.entities.inventory import CostingStrategy, Item
from src.core.entities.transaction import (
    InventoryTransaction,
    TransactionKind,
    TransactionLine,
)
from src.core.services.reconciler import is_stock_effective, line_effects


class CostingEventType(str, Enum):
    """How an event participates in the weighted average."""

    STARTING_STOCK = "starting_stock"
    PURCHASE = "purchase"
    PURCHASE_RETURN = "purchase_return"
    QUANTITY_ONLY = "quantity_only"  # sales, return receipts, adjustments


@dataclass(frozen=True)
class CostingEvent:
    """One still-effective contribution to an item's global stock."""

    event_type: CostingEventType
    quantity: Decimal  # signed, global across warehouses
    unit_cost: Decimal | None
    event_date: date
    transaction_id: int = 0
    line_id: int = 0

    @property
    def sort_key(self) -> tuple:
        starting_first = 0 if self.event_type == CostingEventType.STARTING_STOCK else 1
        return (starting_first, self.event_date, self.transaction_id, self.line_id)


_EVENT_TYPES = {
    TransactionKind.PURCHASE: CostingEventType.PURCHASE,
    TransactionKind.PURCHASE_RETURN: CostingEventType.PURCHASE_RETURN,
    TransactionKind.SALE: CostingEventType.QUANTITY_ONLY,
    TransactionKind.CUSTOMER_RETURN: CostingEventType.QUANTITY_ONLY,
    TransactionKind.STOCK_ADJUSTMENT: CostingEventType.QUANTITY_ONLY,
}


def build_costing_events(
    item: Item,
    item_lines: list[tuple[InventoryTransaction, TransactionLine]],
) -> list[CostingEvent]:
    """Chronological costing events for an item.

    Deleted transactions, undelivered purchases and unreceived returns are
    skipped. Transfers are skipped because they are net zero globally.
    """
    events = []
    if item.has_starting_stock:
        events.append(
            CostingEvent(
                event_type=CostingEventType.STARTING_STOCK,
                quantity=item.starting_quantity,
                unit_cost=item.starting_price if item.starting_price > 0 else None,
                event_date=item.starting_date,
            )
        )

    for txn, line in item_lines:
        event_type = _EVENT_TYPES.get(txn.kind)
        if event_type is None or line.item_id != item.id or not is_stock_effective(txn):
            continue
        quantity = sum((qty for _, qty in line_effects(txn, line)), ZERO)
        unit_cost = (
            line.unit_cost
            if event_type in (CostingEventType.PURCHASE, CostingEventType.PURCHASE_RETURN)
            else None
        )
        events.append(
            CostingEvent(
                event_type=event_type,
                quantity=quantity,
                unit_cost=unit_cost,
                event_date=txn.effective_date,
                transaction_id=txn.id or 0,
                line_id=line.id or 0,
            )
        )

    events.sort(key=lambda e: e.sort_key)
    return events


def weighted_average(events: list[CostingEvent]) -> Decimal | None:
    """Replay events and return the resulting weighted-average price.

    Returns None when no event carried a cost.
    """
    quantity = ZERO
    price: Decimal | None = None

    for event in sorted(events, key=lambda e: e.sort_key):
        q = event.quantity

        if event.event_type in (CostingEventType.STARTING_STOCK, CostingEventType.PURCHASE):
            if event.unit_cost is not None:
                if price is None or quantity <= 0:
                    price = event.unit_cost
                else:
                    price = (quantity * price + q * event.unit_cost) / (quantity + q)
            quantity += q

        elif event.event_type == CostingEventType.PURCHASE_RETURN:
            returned = -q
            remaining = quantity - returned
            if price is not None and event.unit_cost is not None:
                if remaining <= 0:
                    price = event.unit_cost if returned != 0 else ZERO
                else:
                    value = max(quantity * price - returned * event.unit_cost, ZERO)
                    price = value / remaining
            quantity = remaining

        else:
            quantity += q

    return price


def last_cost(events: list[CostingEvent], starting_price: Decimal = ZERO) -> Decimal | None:
    """Cost of the most recent still-effective purchase line.

    Falls back to a positive starting price, else None. Returns never
    move a last-cost price.
    """
    purchases = [
        e
        for e in events
        if e.event_type == CostingEventType.PURCHASE and e.unit_cost is not None
    ]
    if purchases:
        latest = max(purchases, key=lambda e: (e.event_date, e.transaction_id, e.line_id))
        return latest.unit_cost
    if starting_price > 0:
        return starting_price
    return None


class CostingEngine:
    """
    Per-item price computation.

    Selects Last-Cost or Weighted-Average from the item's strategy and
    rounds the result to the stored price precision.
    """

    def __init__(self, price_scale: int = STORAGE_SCALE):
        self._scale = price_scale

    def compute(self, item: Item, events: list[CostingEvent]) -> Decimal | None:
        """New price for the item, or None when there is no cost basis yet."""
        if item.costing_strategy == CostingStrategy.LAST_COST:
            price = last_cost(events, item.starting_price)
        else:
            price = weighted_average(events)
        return None if price is None else quantize(price, self._scale)

    def compute_from_lines(
        self,
        item: Item,
        item_lines: list[tuple[InventoryTransaction, TransactionLine]],
    ) -> Decimal | None:
        return self.compute(item, build_costing_events(item, item_lines))
