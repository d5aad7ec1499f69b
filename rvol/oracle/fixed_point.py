"""
Fixed-point integer helpers.

Python's ``//`` floors and ``int()`` of a float loses precision, so every
rounding rule the oracle depends on is spelled out here:

  - ``trunc_div``  rounds toward zero (signed integer division)
  - ``wdiv``       WAD division rounding half up
  - ``ln_wad``     natural log of a WAD value, truncated toward zero
"""

from __future__ import annotations

from decimal import Decimal, ROUND_DOWN, localcontext
from math import isqrt

from ..constants import WAD, WAD_TO_LOG_RETURN

# 80 significant digits covers ln() of any 256-bit WAD value exactly
# to the last unit before truncation.
_LN_PRECISION = 80


def trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    if b == 0:
        raise ZeroDivisionError("division by zero")
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def wdiv(x: int, y: int) -> int:
    """x / y in WAD precision, rounding half up."""
    if y == 0:
        raise ZeroDivisionError("division by zero")
    return (x * WAD + y // 2) // y


def ln_wad(x: int) -> int:
    """
    Natural logarithm of a positive WAD fixed-point number.

    Args:
        x: value scaled by 1e18 (1e18 == 1.0)

    Returns:
        ln(x / 1e18) scaled by 1e18, truncated toward zero
    """
    if x <= 0:
        raise ValueError("ln of non-positive value")
    with localcontext() as ctx:
        ctx.prec = _LN_PRECISION
        result = (Decimal(x) / Decimal(WAD)).ln() * Decimal(WAD)
        return int(result.to_integral_value(rounding=ROUND_DOWN))


def log_return(price: int, last_price: int) -> int:
    """
    Log-return between two raw prices in 1e8 scale.

    Zero when there is no prior price or the ratio rounds to zero.
    """
    period_return = wdiv(price, last_price) if last_price > 0 else 0
    if period_return <= 0:
        return 0
    return trunc_div(ln_wad(period_return), WAD_TO_LOG_RETURN)


def sqrt_floor(x: int) -> int:
    """Integer square root rounded down."""
    if x < 0:
        raise ValueError("sqrt of negative value")
    return isqrt(x)
