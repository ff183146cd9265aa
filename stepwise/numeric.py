"""
Exact numeric helpers for stepwise.

Every constant in an expression tree carries an ExactNumber, which is a
``fractions.Fraction``. The helpers below are the only arithmetic the rewrite
core performs on constants. They never round: an operation that has no exact
result (division by zero, a non-integer power) returns None and callers treat
that as "cannot simplify".
"""

import math
import re
from decimal import Decimal
from fractions import Fraction
from typing import Optional, Union

ExactNumber = Fraction
NumberLike = Union[int, str, Fraction, Decimal]

numeric_re = r'-?(?:\d+(?:\.\d*)?|\.\d+)'


def as_exact(value: NumberLike) -> Fraction:
    """
    Convert a value into an ExactNumber.

    Examples:
        as_exact(3) -> Fraction(3, 1)
        as_exact("3.14") -> Fraction(157, 50)
        as_exact(Decimal("0.5")) -> Fraction(1, 2)
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise TypeError("as_exact: booleans are not numbers")
    if isinstance(value, (int, Decimal)):
        return Fraction(value)
    if isinstance(value, str):
        if not re.fullmatch(numeric_re, value.strip()):
            raise ValueError(f"as_exact: not a number: {value!r}")
        return Fraction(value.strip())
    raise TypeError(f"as_exact: unsupported numeric type {type(value).__name__}")


# ============================================================
# Predicates
# ============================================================

def is_integer(value: Fraction) -> bool:
    return value.denominator == 1


def is_zero(value: Fraction) -> bool:
    return value == 0


def is_negative(value: Fraction) -> bool:
    return value < 0


def is_positive(value: Fraction) -> bool:
    return value > 0


def is_terminating(value: Fraction) -> bool:
    """True if the value has a finite decimal expansion (denominator 2^a 5^b)."""
    denom = value.denominator
    for p in (2, 5):
        while denom % p == 0:
            denom //= p
    return denom == 1


def sign(value: Fraction) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def absolute(value: Fraction) -> Fraction:
    return abs(value)


# ============================================================
# Arithmetic
# ============================================================

def gcd(a: Fraction, b: Fraction) -> Fraction:
    """Greatest common divisor of two integer values."""
    if not (is_integer(a) and is_integer(b)):
        raise ValueError("gcd: arguments must be integers")
    return Fraction(math.gcd(a.numerator, b.numerator))


def lcm(a: Fraction, b: Fraction) -> Fraction:
    """Least common multiple of two non-zero integer values."""
    g = gcd(a, b)
    return abs(a * b) / g


def exact_add(a: Fraction, b: Fraction) -> Fraction:
    return a + b


def exact_sub(a: Fraction, b: Fraction) -> Fraction:
    return a - b


def exact_mul(a: Fraction, b: Fraction) -> Fraction:
    return a * b


def exact_div(a: Fraction, b: Fraction) -> Optional[Fraction]:
    if b == 0:
        return None
    return a / b


def exact_mod(a: Fraction, b: Fraction) -> Optional[Fraction]:
    if b == 0 or not (is_integer(a) and is_integer(b)):
        return None
    return Fraction(a.numerator % b.numerator)


# Largest power computed exactly, in bits of the numerator or denominator.
# Beyond it a power is left as written.
MAX_POWER_BITS = 4096


def exact_pow(base: Fraction, exponent: Fraction) -> Optional[Fraction]:
    """
    Raise base to an integer exponent.

    Returns None for non-integer exponents, for zero raised to a negative
    power, and for results larger than MAX_POWER_BITS (``9^9^9``).
    """
    if not is_integer(exponent):
        return None
    if base == 0 and exponent < 0:
        return None
    power = abs(exponent.numerator)
    for part in (base.numerator, base.denominator):
        if power * (abs(part).bit_length() - 1) > MAX_POWER_BITS:
            return None
    return base ** exponent.numerator


# ============================================================
# Formatting
# ============================================================

def show_exact(value: Fraction) -> str:
    """
    Format an ExactNumber for display.

    Integers print plainly, values with a finite decimal expansion print as
    decimals and everything else prints as numerator/denominator.

    Examples:
        show_exact(Fraction(12)) -> "12"
        show_exact(Fraction(157, 50)) -> "3.14"
        show_exact(Fraction(-1, 3)) -> "-1/3"
    """
    if is_integer(value):
        return str(value.numerator)
    if is_terminating(value):
        # Scale to an integer count of 10^-places so no digits are rounded.
        places = 0
        while (10 ** places) % value.denominator != 0:
            places += 1
        scaled = abs(value.numerator) * (10 ** places // value.denominator)
        digits = str(scaled).rjust(places + 1, '0')
        text = digits[:-places] + '.' + digits[-places:].rstrip('0')
        return ('-' if value < 0 else '') + text
    return f"{value.numerator}/{value.denominator}"
