"""
rvol TWAP Calculator

Time-weighted average price read from a pool's observation buffer:
  - Arithmetic-mean tick:  (tickCumulative_newest - tickCumulative_oldest) / Δt
  - Average tick rounded toward negative infinity
  - Window spans the oldest and newest observations still in the buffer
  - Tick converted to a quote amount with exact Q64.96 integer math
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from ..exceptions import PriceSourceError
from ..pool.interface import Observation, PriceSource
from .fixed_point import trunc_div
from .tick_math import get_quote_at_tick

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickCumulatives:
    """Extremes of the observation buffer."""
    oldest: int
    newest: int
    duration: int


def average_tick(oldest_cumulative: int, newest_cumulative: int, duration: int) -> int:
    """
    Time-weighted average tick, always rounded toward negative infinity.

    The quotient is truncated toward zero first and corrected downward for
    negative inexact results, so (-7, 2) gives -4 rather than -3.
    """
    if duration <= 0:
        raise PriceSourceError("!duration")
    delta = newest_cumulative - oldest_cumulative
    tick = trunc_div(delta, duration)
    if delta < 0 and delta % duration != 0:
        tick -= 1
    return tick


class TwapCalculator:
    """
    Reads tick cumulatives from a PriceSource and turns them into a price.
    """

    def __init__(self, source: PriceSource):
        self.source = source

    # -- Observation lookup -------------------------------------------------

    def oldest_and_newest(self, pool: str) -> Tuple[Observation, Observation]:
        """
        Least and most recent observations in the pool's ring buffer.

        The slot after the write cursor holds the oldest observation once the
        buffer has wrapped; until then slot 0 does.
        """
        slot0 = self.source.slot0(pool)
        cardinality = slot0.observation_cardinality
        if cardinality <= 0:
            raise PriceSourceError("Pool has no observations")

        newest = self.source.observation(pool, slot0.observation_index)
        oldest = self.source.observation(pool, (slot0.observation_index + 1) % cardinality)
        if not oldest.initialized:
            oldest = self.source.observation(pool, 0)
        return oldest, newest

    def tick_cumulatives(self, pool: str) -> TickCumulatives:
        oldest, newest = self.oldest_and_newest(pool)
        return TickCumulatives(
            oldest=oldest.tick_cumulative,
            newest=newest.tick_cumulative,
            duration=newest.block_timestamp - oldest.block_timestamp,
        )

    # -- TWAP computation ---------------------------------------------------

    def twap_tick(self, pool: str) -> int:
        cumulatives = self.tick_cumulatives(pool)
        return average_tick(cumulatives.oldest, cumulatives.newest, cumulatives.duration)

    def twap(self, pool: str, base_currency: str, quote_currency: str) -> int:
        """
        Price of one whole unit of ``base_currency`` in raw ``quote_currency``
        units, averaged over the pool's observation window.
        """
        tick = self.twap_tick(pool)
        unit_amount = 10 ** self.source.decimals(base_currency)
        price = get_quote_at_tick(tick, unit_amount, base_currency, quote_currency)
        logger.debug("TWAP %s tick=%d price=%d", pool, tick, price)
        return price
