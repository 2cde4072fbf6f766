"""
Quantity reconciler.

Turns transaction states into signed ledger effects, diffs line items by
identity, and runs the purchase floor check before any ledger write.

Layer-pure service: depends only on core entities, interfaces, exceptions.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from src.core.decimals import ZERO, format_quantity
from src.core.entities.transaction import (
    AdjustmentType,
    InventoryTransaction,
    TransactionKind,
    TransactionLine,
)
from src.core.exceptions import (
    ReconciliationError,
    TransactionLineNotFoundError,
    ValidationError,
)
from src.core.interfaces import IStockLedger

LedgerKey = tuple[int, int]  # (item_id, warehouse_id)


def is_stock_effective(txn: InventoryTransaction) -> bool:
    """Whether the transaction currently contributes to the ledger."""
    if txn.is_deleted:
        return False
    if txn.kind == TransactionKind.PURCHASE:
        return txn.is_delivered
    if txn.kind == TransactionKind.CUSTOMER_RETURN:
        return txn.is_received
    return True


def line_effects(
    txn: InventoryTransaction, line: TransactionLine
) -> list[tuple[LedgerKey, Decimal]]:
    """Signed ledger effects of one line, ignoring the transaction's state."""
    key = (line.item_id, txn.warehouse_id)
    qty = line.quantity

    if txn.kind in (TransactionKind.PURCHASE, TransactionKind.CUSTOMER_RETURN):
        return [(key, qty)]
    if txn.kind in (TransactionKind.PURCHASE_RETURN, TransactionKind.SALE):
        return [(key, -qty)]
    if txn.kind == TransactionKind.STOCK_ADJUSTMENT:
        return [(key, qty if txn.adjustment_type == AdjustmentType.ADD else -qty)]
    if txn.kind == TransactionKind.STOCK_TRANSFER:
        return [(key, -qty), ((line.item_id, txn.to_warehouse_id), qty)]
    return []


def ledger_effects(txn: InventoryTransaction | None) -> dict[LedgerKey, Decimal]:
    """Aggregated signed effects of a transaction in its current state."""
    effects: dict[LedgerKey, Decimal] = defaultdict(lambda: ZERO)
    if txn is None or not is_stock_effective(txn):
        return dict(effects)
    for line in txn.lines:
        for key, qty in line_effects(txn, line):
            effects[key] += qty
    return dict(effects)


def net_ledger_deltas(
    before: InventoryTransaction | None, after: InventoryTransaction | None
) -> dict[LedgerKey, Decimal]:
    """Per (item, warehouse) change needed to move the ledger from ``before`` to ``after``.

    Zero entries are dropped, so a no-op edit produces no writes.
    """
    old = ledger_effects(before)
    new = ledger_effects(after)
    deltas = {}
    for key in sorted(set(old) | set(new)):
        delta = new.get(key, ZERO) - old.get(key, ZERO)
        if delta != 0:
            deltas[key] = delta
    return deltas


@dataclass
class LineDiff:
    """Incoming lines matched against the previous ones by line id."""

    added: list[TransactionLine] = field(default_factory=list)
    updated: list[tuple[TransactionLine, TransactionLine]] = field(default_factory=list)
    removed: list[TransactionLine] = field(default_factory=list)


def diff_lines(
    transaction_id: int,
    previous: list[TransactionLine],
    incoming: list[TransactionLine],
) -> LineDiff:
    """Classify incoming lines as additions, updates and removals."""
    by_id = {line.id: line for line in previous if line.id is not None}
    diff = LineDiff()
    seen: set[int] = set()

    for line in incoming:
        if line.id is None:
            diff.added.append(line)
            continue
        if line.id in seen:
            raise ValidationError("lines", "line id listed more than once", line.id)
        if line.id not in by_id:
            raise TransactionLineNotFoundError(transaction_id, line.id)
        seen.add(line.id)
        diff.updated.append((by_id[line.id], line))

    diff.removed = [line for line in previous if line.id not in seen]
    return diff


@dataclass
class PurchaseReduction:
    """Net shrink of what one purchase contributes to an (item, warehouse) pair."""

    item_id: int
    warehouse_id: int
    original_quantity: Decimal
    new_quantity: Decimal | None = None  # None when the pair is dropped entirely

    @property
    def amount(self) -> Decimal:
        return self.original_quantity - (self.new_quantity or ZERO)


def purchase_reductions(
    before: InventoryTransaction, after: InventoryTransaction | None
) -> list[PurchaseReduction]:
    """Pairs whose purchased quantity an edit/delete lowers.

    Lines are summed per (item, warehouse) on both sides, so replacing a line
    with a new one of the same item and quantity is not a reduction. ``after``
    is None (or not stock-effective) for a delete.
    """
    old = ledger_effects(before)
    new = ledger_effects(after)

    reductions = []
    for key in sorted(old):
        if new.get(key, ZERO) >= old[key]:
            continue
        item_id, warehouse_id = key
        reductions.append(
            PurchaseReduction(item_id, warehouse_id, old[key], new.get(key))
        )
    return reductions


def _merge_by_pair(reductions: list[PurchaseReduction]) -> list[PurchaseReduction]:
    merged: dict[LedgerKey, PurchaseReduction] = {}
    for reduction in reductions:
        key = (reduction.item_id, reduction.warehouse_id)
        seen = merged.get(key)
        if seen is None:
            merged[key] = PurchaseReduction(*key, reduction.original_quantity, reduction.new_quantity)
            continue
        seen.original_quantity += reduction.original_quantity
        if seen.new_quantity is not None or reduction.new_quantity is not None:
            seen.new_quantity = (seen.new_quantity or ZERO) + (reduction.new_quantity or ZERO)
    return list(merged.values())


class QuantityReconciler:
    """
    Floor check for purchase-decreasing edits.

    Stock bought by a purchase may already have been sold, transferred or
    adjusted away; a purchase may only shrink by what is still on hand.
    Reductions on the same (item, warehouse) pair are checked together.
    """

    def __init__(self, ledger: IStockLedger):
        self._ledger = ledger

    async def check_purchase_reductions(
        self,
        reductions: list[PurchaseReduction],
        item_names: dict[int, str] | None = None,
    ) -> None:
        """Raise ReconciliationError if any pair would be driven negative."""
        item_names = item_names or {}

        for reduction in _merge_by_pair(reductions):
            on_hand = await self._ledger.get_quantity(reduction.item_id, reduction.warehouse_id)
            if on_hand - reduction.amount >= 0:
                continue

            name = item_names.get(reduction.item_id) or f"Item #{reduction.item_id}"
            raise ReconciliationError(
                item_name=name,
                original_quantity=format_quantity(reduction.original_quantity),
                current_quantity=format_quantity(on_hand),
                consumed_quantity=format_quantity(reduction.original_quantity - on_hand),
                new_quantity=(
                    None
                    if reduction.new_quantity is None
                    else format_quantity(reduction.new_quantity)
                ),
            )
