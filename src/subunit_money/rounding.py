"""
rounding.py — Exact integer rounding primitives

================================================================================
ROUND HALF TO EVEN
================================================================================

rounded_divide() is the single place where a non-exact division is turned
into an integer. Money.multiply() and MoneyConverter.convert() both go
through it, so every operation that can produce a fractional subunit uses
the same rule:

    remainder  < half   ->  toward zero
    remainder  > half   ->  away from zero
    remainder == half   ->  the even neighbour

Round half up always pushes ties upward; over many transactions that is a
systematic bias. Half to even sends half of the ties down and half up:

    1.00 * 0.545 -> 0.54        1.00 * 0.555 -> 0.56
    1.00 * 0.565 -> 0.56        1.00 * 0.575 -> 0.58
    1.00 * 0.585 -> 0.58        1.00 * 0.595 -> 0.60
                                              sum 3.42  (half up: 3.45)

================================================================================
EXACT DECIMALS
================================================================================

decimal_parts() splits a number into an integer numerator and a power of ten
scale. A float is read through its shortest round-trip repr, so 0.545 is
545 / 10**3 and not the binary value 0.54500000000000003996...

================================================================================
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Union

Number = Union[int, float, Decimal]


def rounded_divide(numerator: int, denominator: int) -> int:
    """
    Divide two integers, rounding half to even.

    Args:
        numerator: any int
        denominator: a positive int

    Returns:
        The integer nearest to numerator / denominator; ties go to the even
        neighbour.

    The tie is detected exactly (2 * remainder == denominator), not against
    the integer halfpoint denominator // 2. Both agree for even
    denominators, the only kind the package passes (powers of ten). For an
    odd denominator there is no tie, so rounded_divide(4, 3) is 1, where a
    denominator // 2 halfpoint would treat the remainder 1 as a tie and
    give 2.

    Raises:
        ValueError: if denominator <= 0
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be > 0, got: {denominator}")
    if denominator == 1:
        return numerator

    # Truncating division: work on the magnitude, restore the sign at the end.
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder:
        twice = 2 * remainder
        if twice > denominator or (twice == denominator and quotient % 2 == 1):
            quotient += 1

    return -quotient if numerator < 0 else quotient


def to_decimal(value: Number | str) -> Decimal:
    """
    Exact Decimal for an int, float, Decimal or decimal string.

    Raises:
        TypeError: for bool and non-numeric types
        ValueError: for NaN, infinities and unparseable strings
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a number here")

    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Value must be finite, got: {value!r}")
        return Decimal(repr(value))
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Not a decimal number: {value!r}") from None
    else:
        raise TypeError(f"Expected a number, got {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Value must be finite, got: {value!r}")
    return result


def decimal_parts(value: Number | str) -> tuple[int, int]:
    """
    Split value into (numerator, scale) with value == numerator / 10**scale.

    scale is never negative: large exponents are folded into the numerator.

    Example:
        decimal_parts(0.545)   -> (545, 3)
        decimal_parts("1E+3")  -> (1000, 0)
    """
    sign, digits, exponent = to_decimal(value).as_tuple()
    numerator = int("".join(str(d) for d in digits) or "0")
    if sign:
        numerator = -numerator

    if exponent >= 0:
        return numerator * 10 ** exponent, 0
    return numerator, -exponent
