"""
rvol Volatility Oracle

Realized volatility of a pool's TWAP, updated once per period:
  - commit() samples the TWAP inside the commit phase of each period
  - log-return against the previous sample feeds a Welford accumulator
  - vol() / annualized_vol() read the running standard deviation

Only constant-size state is kept per pair: one AccumulatorRecord and the
last sampled price. A commit either applies completely (record, price,
event) or raises and changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from math import isqrt
from typing import Dict, List, Optional

from eth_utils import is_address, to_checksum_address

from ..constants import (
    COMMIT_PHASE_DURATION,
    DEFAULT_PERIOD,
    DEFAULT_WINDOW_SIZE,
    MAX_SAMPLE_COUNT,
    SECONDS_PER_YEAR,
    ZERO_ADDRESS,
)
from ..exceptions import (
    ConfigurationError,
    PriceSourceError,
    RvolException,
    UnknownPairError,
)
from ..pool.interface import PriceSource
from . import welford
from .clock import Clock, SystemClock
from .events import CommitEvent, EventBus
from .fixed_point import log_return
from .scheduler import PeriodScheduler
from .twap import TwapCalculator
from .welford import AccumulatorRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OracleConfig:
    """Immutable oracle parameters."""
    period: int = DEFAULT_PERIOD
    commit_phase_duration: int = COMMIT_PHASE_DURATION
    window_size: int = DEFAULT_WINDOW_SIZE
    annualization_constant: int = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.period, int) or self.period <= 0:
            raise ConfigurationError("!period")
        if self.commit_phase_duration <= 0:
            raise ConfigurationError("!commit_phase_duration")
        if 2 * self.commit_phase_duration > self.period:
            raise ConfigurationError("commit_phase_duration must be at most half the period")
        if not 1 <= self.window_size <= MAX_SAMPLE_COUNT:
            raise ConfigurationError(f"window_size must be in [1, {MAX_SAMPLE_COUNT}]")
        # sqrt(periods per year), both steps floored
        object.__setattr__(self, "annualization_constant", isqrt(SECONDS_PER_YEAR // self.period))


@dataclass(frozen=True)
class TrackedPair:
    """A pool and the direction its price is quoted in."""
    pool: str
    base_currency: str
    quote_currency: str


def _require_address(value: Optional[str], name: str) -> str:
    if value is None or not is_address(value):
        raise ConfigurationError(f"!{name}")
    value = to_checksum_address(value)
    if value == to_checksum_address(ZERO_ADDRESS):
        raise ConfigurationError(f"!{name}")
    return value


def pool_key(pool: Optional[str]) -> str:
    """Checksummed storage key for a pool; the zero address names no pair."""
    if pool is None or not is_address(pool):
        raise UnknownPairError(f"Invalid pool address: {pool}")
    key = to_checksum_address(pool)
    if key == to_checksum_address(ZERO_ADDRESS):
        raise UnknownPairError(f"Invalid pool address: {pool}")
    return key


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------

class VolOracle:
    """
    Realized-volatility oracle over one or more pools.

    The first pool is given at construction; more can be added with
    ``track``. All mutation goes through ``commit``.
    """

    def __init__(
        self,
        source: PriceSource,
        pool: str,
        base_currency: str,
        quote_currency: str,
        config: Optional[OracleConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.source = source
        self.config = config or OracleConfig()
        self.clock = clock or SystemClock()
        self.scheduler = PeriodScheduler(self.config.period, self.config.commit_phase_duration)
        self.twap_calculator = TwapCalculator(source)
        self.events = EventBus()

        self._pairs: Dict[str, TrackedPair] = {}
        self._accumulators: Dict[str, AccumulatorRecord] = {}
        self._last_prices: Dict[str, int] = {}

        self.track(pool, base_currency, quote_currency)

    # -- Configuration ------------------------------------------------------

    @property
    def period(self) -> int:
        return self.config.period

    @property
    def annualization_constant(self) -> int:
        return self.config.annualization_constant

    @property
    def pairs(self) -> List[TrackedPair]:
        return list(self._pairs.values())

    def track(self, pool: str, base_currency: str, quote_currency: str) -> TrackedPair:
        """
        Start tracking a pool.

        Raises:
            ConfigurationError: null identifiers, unknown pool, or currencies
                that are not the pool's two tokens
        """
        pool = _require_address(pool, "pool")
        base_currency = _require_address(base_currency, "baseCurrency")
        quote_currency = _require_address(quote_currency, "quoteCurrency")

        try:
            token0, token1 = (to_checksum_address(t) for t in self.source.tokens(pool))
        except PriceSourceError as e:
            raise ConfigurationError(f"Pool {pool} unknown to price source: {e}") from e

        if base_currency not in (token0, token1):
            raise ConfigurationError("baseCurrency not in pool")
        complementary = token1 if base_currency == token0 else token0
        if quote_currency != complementary:
            raise ConfigurationError("quoteCurrency not in pool")

        pair = TrackedPair(pool=pool, base_currency=base_currency, quote_currency=quote_currency)
        self._pairs[pool] = pair
        logger.info(
            "Tracking %s (%s/%s) period=%ds", pool, base_currency, quote_currency, self.config.period
        )
        return pair

    # -- Commit -------------------------------------------------------------

    def commit(self, pool: str, sender: Optional[str] = None) -> CommitEvent:
        """
        Sample the pool's TWAP for the current period.

        Args:
            pool: tracked pool address
            sender: identity of the caller, recorded on the event

        Returns:
            The CommitEvent describing the new state

        Raises:
            UnknownPairError: pool is not tracked
            NotCommitPhaseError: outside the commit phase
            AlreadyCommittedError: this period already has a sample
            NumericRangeError: the accumulator would overflow
            PriceSourceError: the TWAP cannot be computed
        """
        pair = self._tracked(pool)
        now = self.clock.now()
        try:
            event = self._commit(pair, now, sender)
        except RvolException as e:
            logger.warning("REJECTED commit %s at %d: %s", pair.pool, now, e)
            raise

        logger.info(
            "COMMIT %s ts=%d count=%d price=%d stdev=%d",
            pair.pool, event.timestamp, event.count, event.price, welford.stdev(event.count, event.m2),
        )
        self.events.emit(event)
        return event

    def _commit(self, pair: TrackedPair, now: int, sender: Optional[str]) -> CommitEvent:
        current = self._accumulators.get(pair.pool) or AccumulatorRecord()
        commit_timestamp = self.scheduler.check(now, current.last_timestamp)

        price = self.twap_calculator.twap(pair.pool, pair.base_currency, pair.quote_currency)
        sample = log_return(price, self._last_prices.get(pair.pool, 0))

        count, mean, m2 = welford.update(
            current.count, current.mean, current.m2, sample, self.config.window_size
        )
        # Validated on construction; nothing is stored if this raises
        record = AccumulatorRecord(count=count, last_timestamp=commit_timestamp, mean=mean, m2=m2)

        self._accumulators[pair.pool] = record
        self._last_prices[pair.pool] = price

        return CommitEvent(
            pool=pair.pool,
            count=count,
            timestamp=commit_timestamp,
            mean=mean,
            m2=m2,
            price=price,
            sender=sender,
        )

    # -- Reads --------------------------------------------------------------

    def vol(self, pool: str) -> int:
        """Per-period standard deviation of log-returns (1e8)."""
        record = self._record(pool)
        return welford.stdev(record.count, record.m2)

    def annualized_vol(self, pool: str) -> int:
        """Annualized standard deviation of log-returns (1e8)."""
        return self.vol(pool) * self.config.annualization_constant

    def twap(self, pool: str) -> int:
        """Live TWAP of one whole base unit in raw quote units."""
        pair = self._tracked(pool)
        return self.twap_calculator.twap(pair.pool, pair.base_currency, pair.quote_currency)

    def get_accumulator(self, pool: str) -> AccumulatorRecord:
        return replace(self._record(pool))

    def get_last_price(self, pool: str) -> int:
        return self._last_prices.get(self._key(pool), 0)

    def is_commit_phase(self) -> bool:
        return self.scheduler.is_commit_phase(self.clock.now())

    def next_commit_time(self, pool: str) -> int:
        """Earliest time the next commit for ``pool`` can pass the schedule."""
        last = self._record(pool).last_timestamp
        earliest = max(self.clock.now(), self.scheduler.next_commit_window(last))
        if self.scheduler.is_commit_phase(earliest):
            return earliest
        # Phase around the boundary ahead opens once the gap drops below the duration
        ahead = earliest - earliest % self.period + self.period
        return ahead - self.config.commit_phase_duration + 1

    # -- Internal -----------------------------------------------------------

    def _key(self, pool: str) -> str:
        return pool_key(pool)

    def _tracked(self, pool: str) -> TrackedPair:
        pair = self._pairs.get(self._key(pool))
        if pair is None:
            raise UnknownPairError(f"Pool {pool} is not tracked")
        return pair

    def _record(self, pool: str) -> AccumulatorRecord:
        return self._accumulators.get(self._key(pool)) or AccumulatorRecord()
