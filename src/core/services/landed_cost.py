"""
Landed cost allocation for purchase lines.

Each header fee (shipping, customs, other) is either a percentage of the
line value or a fixed USD amount shared across lines in proportion to
their value. A percentage takes precedence when both are set.
"""

from decimal import Decimal

from src.core.decimals import ZERO
from src.core.entities.transaction import InventoryTransaction, TransactionLine

HUNDRED = Decimal("100")

FEES = (
    ("shipping_fee_usd", "shipping_fee_percent"),
    ("customs_fee_usd", "customs_fee_percent"),
    ("other_fee_usd", "other_fee_percent"),
)


def proportional_fee(
    line_total: Decimal, sub_total: Decimal, fixed: Decimal, percent: Decimal
) -> Decimal:
    """Share of one fee carried by a line worth ``line_total``."""
    if percent > 0:
        return line_total * percent / HUNDRED
    if fixed > 0:
        # Guard against an all-zero purchase
        base = sub_total if sub_total > 0 else Decimal("1")
        return fixed * line_total / base
    return ZERO


def landed_unit_cost(purchase: InventoryTransaction, line: TransactionLine) -> Decimal:
    """Cost per unit including the line's share of header fees."""
    if line.quantity <= 0:
        return ZERO

    line_total = line.line_total
    sub_total = purchase.sub_total
    fees = sum(
        (
            proportional_fee(
                line_total,
                sub_total,
                getattr(purchase, fixed_field),
                getattr(purchase, percent_field),
            )
            for fixed_field, percent_field in FEES
        ),
        ZERO,
    )
    return (line_total + fees) / line.quantity


def apply_landed_costs(purchase: InventoryTransaction) -> InventoryTransaction:
    """Set ``unit_cost`` on every line of the purchase. Mutates and returns it."""
    for line in purchase.lines:
        line.unit_cost = landed_unit_cost(purchase, line)
    return purchase
