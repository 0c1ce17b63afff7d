"""
Money -- Decimal helpers for monetary amounts.

Responsibility:
    Converts loosely typed source amounts to ``Decimal`` and applies the
    single rounding rule used at every report boundary: two decimal places,
    ROUND_HALF_UP.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Monetary values are ``Decimal``, never ``float``.
    - Conversion goes through ``str`` so ``0.1`` stays ``Decimal("0.1")``.
    - Rounding happens only in ``round_money``; conversion never rounds.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

ZERO = Decimal("0")

MONEY_PLACES = 2


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Convert an arbitrary source value to Decimal without altering it.

    ``None``, empty strings, booleans and non-numeric text resolve to
    ``default``.  Non-finite values (NaN, Infinity) also resolve to
    ``default`` so they can never poison a sum.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return default
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            return default
    if not result.is_finite():
        return default
    return result


def round_money(value: Decimal, places: int = MONEY_PLACES) -> Decimal:
    """Round to ``places`` decimal places, half-up."""
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimals starting from an exact zero."""
    return sum(values, ZERO)


def safe_divide(numerator: Decimal, denominator: Decimal | int) -> Decimal:
    """Divide, returning zero when the denominator is zero."""
    if not denominator:
        return ZERO
    return numerator / Decimal(denominator)
