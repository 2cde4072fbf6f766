"""Decimal helpers shared by entities, services and stores."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Fractional digits kept for stored prices and quantities
STORAGE_SCALE = 4
DISPLAY_SCALE = 2


def to_decimal(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal into a Decimal (None and "" become 0)."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() avoids binary float artefacts such as 0.1 -> 0.1000000000000000055
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not a decimal value: {value!r}") from e


def quantize(value: Any, scale: int = STORAGE_SCALE) -> Decimal:
    """Round half-up to ``scale`` fractional digits."""
    exponent = Decimal(1).scaleb(-scale)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def display(value: Any, scale: int = DISPLAY_SCALE) -> Decimal:
    """Round for reporting."""
    return quantize(value, scale)


def prices_equal(a: Any, b: Any, scale: int = STORAGE_SCALE) -> bool:
    """Compare two prices at the stored precision. None only equals None."""
    if a is None or b is None:
        return a is None and b is None
    return quantize(a, scale) == quantize(b, scale)


def format_quantity(value: Any) -> str:
    """Render a quantity without trailing zeros (``100.0000`` -> ``100``)."""
    return format(quantize(value).normalize(), "f")
