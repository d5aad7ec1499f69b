"""
Concentrated-liquidity tick math (Uniswap V3 model).

Exact integer ports of ``TickMath.getSqrtRatioAtTick`` and
``OracleLibrary.getQuoteAtTick`` so that a TWAP computed here matches the
one a pool contract would report to the last unit.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Union

from eth_utils import to_canonical_address

from ..exceptions import NumericRangeError

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

UINT128_MAX = 2**128 - 1
UINT256_MAX = 2**256 - 1

# sqrt(1.0001^-(2^i)) in Q128.128, applied for every set bit i of |tick|
_RATIO_FACTORS = (
    (0x2, 0xfff97272373d413259a46990580e213a),
    (0x4, 0xfff2e50f5f656932ef12357cf3c7fdcc),
    (0x8, 0xffe5caca7e10e4e61c3624eaa0941cd0),
    (0x10, 0xffcb9843d60f6159c9db58835c926644),
    (0x20, 0xff973b41fa98c081472e6896dfb254c0),
    (0x40, 0xff2ea16466c96a3843ec78b326b52861),
    (0x80, 0xfe5dee046a99a2a811c461f1969c3053),
    (0x100, 0xfcbe86c7900a88aedcffc83b479aa3a4),
    (0x200, 0xf987a7253ac413176f2b074cf7815e54),
    (0x400, 0xf3392b0822b70005940c7a398e4b70f3),
    (0x800, 0xe7159475a2c29b7443b29c7fa6e889d9),
    (0x1000, 0xd097f3bdfd2022b8845ad8f792aa5825),
    (0x2000, 0xa9f746462d870fdf8a65dc1f90e061e5),
    (0x4000, 0x70d869a156d2a1b890bb3df62baf32f7),
    (0x8000, 0x31be135f97d08fd981231505542fcfa6),
    (0x10000, 0x9aa508b5b7a84e1c677de54f3e99bc9),
    (0x20000, 0x5d6af8dedb81196699c329225ee604),
    (0x40000, 0x2216e584f5fa1ea926041bedfe98),
    (0x80000, 0x48a170391f7dc42444e8fa2),
)


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a 256-bit result check."""
    if denominator <= 0:
        raise NumericRangeError("mul_div denominator must be positive")
    result = (a * b) // denominator
    if result > UINT256_MAX:
        raise NumericRangeError("mul_div overflow")
    return result


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """
    sqrt(1.0001^tick) as a Q64.96 number.

    Raises:
        NumericRangeError: tick outside [MIN_TICK, MAX_TICK]
    """
    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise NumericRangeError("T")

    ratio = 0xfffcb933bd6fad37aa2d162d1a594001 if abs_tick & 0x1 else 1 << 128
    for bit, factor in _RATIO_FACTORS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = UINT256_MAX // ratio

    # Q128.128 -> Q64.96, rounding up
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def token_order_key(token: str) -> int:
    """Address as the 160-bit integer a pool sorts tokens by."""
    return int.from_bytes(to_canonical_address(token), "big")


def get_quote_at_tick(tick: int, base_amount: int, base_token: str, quote_token: str) -> int:
    """
    Amount of ``quote_token`` received for ``base_amount`` of ``base_token``
    at ``tick``.
    """
    sqrt_ratio = get_sqrt_ratio_at_tick(tick)
    base_is_token0 = token_order_key(base_token) < token_order_key(quote_token)

    if sqrt_ratio <= UINT128_MAX:
        ratio_x192 = sqrt_ratio * sqrt_ratio
        if base_is_token0:
            return mul_div(ratio_x192, base_amount, 1 << 192)
        return mul_div(1 << 192, base_amount, ratio_x192)

    ratio_x128 = mul_div(sqrt_ratio, sqrt_ratio, 1 << 64)
    if base_is_token0:
        return mul_div(ratio_x128, base_amount, 1 << 128)
    return mul_div(1 << 128, base_amount, ratio_x128)


def price_to_tick(price: Union[Decimal, float, str]) -> int:
    """
    Nearest-below tick for a raw token1/token0 price.

    Float based; used to drive simulated pools, never on the oracle path.
    """
    ratio = float(Decimal(str(price)))
    if ratio <= 0:
        raise ValueError("Price must be positive")
    tick = int(math.floor(math.log(ratio, 1.0001)))
    return max(MIN_TICK, min(MAX_TICK, tick))
