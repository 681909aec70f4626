"""Decimal money helpers.

Amounts are persisted and exchanged as strings with two decimal places and
computed with ``decimal.Decimal`` using half-up rounding, so cent-level drift
never accumulates across many transactions.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value, field: str = "amount") -> Decimal:
    """Parse a money value (str, int, Decimal) into a ``Decimal``."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError({field: [f"'{value}' is not a valid amount"]}) from None
    if not result.is_finite():
        raise ValidationError({field: [f"'{value}' is not a valid amount"]})
    return result


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> str:
    """Render an amount as a two-decimal string, e.g. ``"97.20"``."""
    return str(quantize(value))


def total(values) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)
