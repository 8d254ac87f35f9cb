"""Currency arithmetic helpers."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from cashrecon.domain.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Book and statement balances closer than this are considered equal.
RECONCILIATION_TOLERANCE = Decimal("0.01")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Convert a number-like value to a Decimal without rounding it.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    return amount


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Convert a number-like value to a Decimal rounded to whole cents.

    Raises:
        ValidationError: If the value is not a finite number
    """
    return to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(amounts: Iterable[Decimal]) -> Decimal:
    """Sum amounts, returning 0.00 for an empty iterable."""
    return sum(amounts, ZERO)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part`` as a percentage of ``whole`` (0 when whole is zero)."""
    if whole == 0:
        return ZERO
    return (part / whole * 100).quantize(CENT, rounding=ROUND_HALF_UP)
