"""
Values -- permissive numeric coercion and guarded ratios.

Responsibility:
    Convert raw numeric inputs (form strings, JSON numbers, None) into exact
    ``Decimal`` values and compute percentages without ever dividing by zero.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Degrade, never throw: ``to_decimal`` maps None, empty or unparseable
      strings, NaN and infinities to ``Decimal("0")``.
    - Floats are converted through ``str`` so 0.1 stays 0.1.
    - Non-zero magnitudes outside 1e-99 .. 1e99 are unusable and become 0,
      so products and guarded ratios of coerced values stay far inside the
      Decimal context and never trap Overflow.
    - ``safe_percentage`` returns 0 whenever the denominator is <= 0.

Failure modes:
    None.  Every function here is total.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Bounds on Decimal.adjusted(), the exponent of the leading digit.
MIN_ADJUSTED_EXPONENT = -99
MAX_ADJUSTED_EXPONENT = 99


def to_decimal(value: Any) -> Decimal:
    """Coerce a raw numeric input to Decimal, treating anything unusable as 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not result.is_finite() or not result:
        return ZERO
    if not MIN_ADJUSTED_EXPONENT <= result.adjusted() <= MAX_ADJUSTED_EXPONENT:
        return ZERO
    return result


def sum_decimals(values: Iterable[Any]) -> Decimal:
    """Sum raw values after coercion; an empty iterable sums to 0."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def safe_percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator * 100, or 0 when the denominator is <= 0."""
    if denominator <= ZERO:
        return ZERO
    return numerator / denominator * HUNDRED
