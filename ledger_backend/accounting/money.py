# accounting/money.py

"""
MONEY HELPERS (FRAMEWORK-AGNOSTIC)

All ledger arithmetic runs on Decimal, never float.

Rules:
- Amounts are normalized to 2dp with ROUND_HALF_UP
- Empty values ("" / None) are treated as zero
- Anything else that cannot be parsed is a hard error
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class MoneyError(ValueError):
    """Raised when a value cannot be interpreted as a money amount."""


def to_decimal(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    if isinstance(value, float):
        # str() keeps the shortest repr, avoiding binary float noise
        value = repr(value)

    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise MoneyError(f"Invalid money value: {value!r}") from exc


def q2(value) -> Decimal:
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def round_to(value, unit) -> Decimal:
    """
    Round half-up to an arbitrary unit (0.01 for paise, 1 for whole rupees).
    """
    unit = to_decimal(unit)
    if unit <= 0:
        raise MoneyError(f"Rounding unit must be positive, got {unit}")

    amount = to_decimal(value)
    steps = (amount / unit).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return q2(steps * unit)


def to_minor_int(value) -> int:
    return int((q2(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))
