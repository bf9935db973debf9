"""Fixed-point decimal helpers shared by intent and allocation math.

Every weight in the ledger is an 18-place fixed-point decimal. Products and
quotients are computed at a wide working precision and then truncated toward
zero, never rounded, so repeated runs produce identical dust.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_DOWN, Context, Decimal

from liquid_staking.core.constants import DECIMAL_PRECISION, DECIMAL_WORKING_DIGITS

ZERO = Decimal("0")
ONE = Decimal("1")

_CONTEXT = Context(prec=DECIMAL_WORKING_DIGITS, rounding=ROUND_DOWN)
_QUANTUM = Decimal(1).scaleb(-DECIMAL_PRECISION)


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """Convert a numeric value to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def truncate(value: Decimal) -> Decimal:
    """Drop everything past the fixed-point scale (toward zero)."""
    return value.quantize(_QUANTUM, rounding=ROUND_DOWN, context=_CONTEXT)


def truncate_int(value: Decimal) -> int:
    """Integer part of value, truncated toward zero."""
    return int(value.to_integral_value(rounding=ROUND_DOWN, context=_CONTEXT))


def add(left: Decimal, right: Decimal) -> Decimal:
    return _CONTEXT.add(left, right)


def sub(left: Decimal, right: Decimal) -> Decimal:
    return _CONTEXT.subtract(left, right)


def mul(left: Decimal, right: Decimal) -> Decimal:
    """Fixed-point product, truncated."""
    return truncate(_CONTEXT.multiply(left, right))


def quo_truncate(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Fixed-point quotient, truncated.

    Raises:
        ZeroDivisionError: If denominator is zero; callers guard against this.
    """
    if denominator.is_zero():
        raise ZeroDivisionError("fixed-point division by zero")
    return truncate(_CONTEXT.divide(numerator, denominator))


def dec_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum at working precision (the default context would round past 28 digits)."""
    total = ZERO
    for value in values:
        total = _CONTEXT.add(total, value)
    return total
