"""Fixed-point helpers for monetary and rating arithmetic.

Values are stored as floats on aggregates, but every sum, product and mean
is computed with ``Decimal`` and rounded half-up to two places only at the
boundary where it is persisted or returned.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() avoids importing binary float noise into the decimal
    return Decimal(str(value))


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_money(value) -> float:
    """Round to two decimals and hand back a float for storage or serialization."""
    return float(quantize(value))


def line_total(unit_price, quantity) -> Decimal:
    return to_decimal(unit_price) * int(quantity or 0)


def total_of(values: Iterable) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)


def mean_of(values: Iterable) -> float:
    """Arithmetic mean rounded to two decimals; 0.0 for an empty input."""
    materialized = [to_decimal(v) for v in values]
    if not materialized:
        return 0.0
    return round_money(sum(materialized, ZERO) / len(materialized))
