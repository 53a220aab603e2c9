"""
Overflow-checked integer arithmetic for amounts, fees and sizes.

Python integers never wrap, so "overflow" here means leaving the valid
domain: a negative result, or one above the bound (MAX_MONEY for amounts,
MAX_WEIGHT for sizes). Either case is a fatal internal error.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_CEILING, Decimal, localcontext

from coinselect.constants import MAX_MONEY


class AmountOverflowError(ArithmeticError):
    """Raised when amount, fee or size arithmetic leaves its valid range."""

    pass


def _check(value: int, bound: int, op: str) -> int:
    if value < 0 or value > bound:
        raise AmountOverflowError(f"{op} out of range: {value} (bound {bound})")
    return value


def checked_add(a: int, b: int, bound: int = MAX_MONEY) -> int:
    return _check(a + b, bound, "addition")


def checked_sub(a: int, b: int, bound: int = MAX_MONEY) -> int:
    return _check(a - b, bound, "subtraction")


def checked_mul(a: int, b: int, bound: int = MAX_MONEY) -> int:
    return _check(a * b, bound, "multiplication")


def checked_sum(values: Iterable[int], bound: int = MAX_MONEY) -> int:
    """Sum values, failing as soon as a partial sum leaves the range."""
    total = 0
    for value in values:
        total = checked_add(total, value, bound)
    return total


def ceil_mul(size: int, rate: Decimal, bound: int = MAX_MONEY) -> int:
    """
    Multiply an integer size by a Decimal rate, rounding up.

    Rounding up means the wallet never under-pays a fee.
    """
    if not rate.is_finite():
        raise AmountOverflowError(f"rate is not finite: {rate}")
    with localcontext() as ctx:
        ctx.prec = 80
        product = (Decimal(size) * rate).to_integral_value(rounding=ROUND_CEILING)
    return _check(int(product), bound, "fee multiplication")
