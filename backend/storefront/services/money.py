"""
Price normalization.

Catalog prices arrive as dollars (18, "18.99") or as cents (2500) depending
on where they came from. `normalize` reduces either to integer cents with a
magnitude heuristic: anything >= 100 is taken to be cents already, anything
smaller is dollars. An amount that is really 85 cents is therefore read as
$85.00. That boundary is deliberate and covered by tests; changing it is a
decision for whoever owns the catalog data.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from storefront.exceptions import InvalidAmount

CENTS_THRESHOLD = Decimal(100)

Number = Union[int, float, str, Decimal]


def _to_decimal(raw: Number) -> Decimal:
    if isinstance(raw, bool):
        raise InvalidAmount(f"Not a price: {raw!r}")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        # repr keeps 18.99 as 18.99 rather than its binary expansion
        return Decimal(repr(raw))
    if isinstance(raw, str):
        try:
            return Decimal(raw.strip())
        except InvalidOperation:
            raise InvalidAmount(f"Not a price: {raw!r}")
    raise InvalidAmount(f"Not a price: {raw!r}")


def normalize(raw: Number) -> int:
    """
    Return `raw` as a positive integer number of cents.
    Raises InvalidAmount for zero, negative, non-finite or non-numeric input.
    """
    value = _to_decimal(raw)
    if not value.is_finite():
        raise InvalidAmount(f"Price is not finite: {raw!r}")
    if abs(value) < CENTS_THRESHOLD:
        value = value * 100
    try:
        cents = int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (InvalidOperation, OverflowError):
        raise InvalidAmount(f"Price is out of range: {raw!r}")
    if cents <= 0:
        raise InvalidAmount(f"Price must be positive, got {raw!r}")
    return cents


def format_cents(cents: int) -> str:
    return f"${cents / 100:.2f}"
