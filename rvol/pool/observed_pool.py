"""
Observed AMM pools  (reference PriceSource)

In-memory model of a concentrated-liquidity pool's price oracle:
  - Tick-based price, token0 < token1 (canonical ordering)
  - Fixed-capacity observation ring buffer
  - Cumulative tick accumulates ``tick * dt`` between writes
  - At most one observation per timestamp (same-second writes are dropped)

Security features:
  - Monotonic timestamps enforced on every write
  - Tick range validation
  - Deterministic pool addresses (keccak, no uuid4)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from eth_utils import is_address, keccak, to_canonical_address, to_checksum_address

from ..exceptions import PriceSourceError
from ..oracle.tick_math import MAX_TICK, MIN_TICK, price_to_tick, token_order_key
from .interface import Observation, Slot0

logger = logging.getLogger(__name__)

DEFAULT_CARDINALITY = 144  # a day of 10-minute observations
MAX_CARDINALITY = 65535


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class PoolState:
    """
    Oracle-relevant state of a pool.

    token0 < token1 (canonical ordering).
    """
    address: str
    token0: str
    token1: str
    tick: int = 0
    observation_index: int = 0
    observations: List[Observation] = field(default_factory=list)

    @property
    def cardinality(self) -> int:
        return len(self.observations)


# ---------------------------------------------------------------------------
# Observed pool
# ---------------------------------------------------------------------------

class ObservedPool:
    """
    Single pool whose price moves are recorded in an observation buffer.

    Implements:
      - initialize (first observation)
      - set_tick (write an observation, then move the price)
      - slot0 / observation reads
    """

    def __init__(self, state: PoolState):
        self.state = state

    @property
    def address(self) -> str:
        return self.state.address

    @property
    def is_initialized(self) -> bool:
        return bool(self.state.observations) and self.state.observations[0].initialized

    def initialize(self, tick: int, timestamp: int, cardinality: int = DEFAULT_CARDINALITY) -> None:
        """Set the starting price and write the first observation into slot 0."""
        if self.is_initialized:
            raise ValueError("Pool already initialized")
        if not 1 <= cardinality <= MAX_CARDINALITY:
            raise ValueError(f"Cardinality must be in [1, {MAX_CARDINALITY}]")
        _check_tick(tick)

        self.state.observations = [Observation() for _ in range(cardinality)]
        self.state.observations[0] = Observation(
            block_timestamp=timestamp, tick_cumulative=0, initialized=True,
        )
        self.state.observation_index = 0
        self.state.tick = tick

    def set_tick(self, tick: int, timestamp: int) -> Optional[Observation]:
        """
        Record the price held since the last observation, then move to ``tick``.

        Returns:
            The written Observation, or None when one already exists for
            ``timestamp``.
        """
        if not self.is_initialized:
            raise ValueError("Pool not initialized")
        _check_tick(tick)

        last = self.state.observations[self.state.observation_index]
        if timestamp < last.block_timestamp:
            raise ValueError("Timestamp must be monotonically increasing")

        written = None
        if timestamp > last.block_timestamp:
            dt = timestamp - last.block_timestamp
            written = Observation(
                block_timestamp=timestamp,
                tick_cumulative=last.tick_cumulative + self.state.tick * dt,
                initialized=True,
            )
            index = (self.state.observation_index + 1) % self.state.cardinality
            self.state.observations[index] = written
            self.state.observation_index = index

        self.state.tick = tick
        return written

    def slot0(self) -> Slot0:
        return Slot0(
            tick=self.state.tick,
            observation_index=self.state.observation_index,
            observation_cardinality=self.state.cardinality,
        )

    def observation(self, index: int) -> Observation:
        if not 0 <= index < self.state.cardinality:
            raise PriceSourceError(f"Observation index {index} out of range")
        obs = self.state.observations[index]
        return Observation(obs.block_timestamp, obs.tick_cumulative, obs.initialized)


def _check_tick(tick: int) -> None:
    if not MIN_TICK <= tick <= MAX_TICK:
        raise ValueError("Tick out of range")


# ---------------------------------------------------------------------------
# Pool registry  (PriceSource implementation)
# ---------------------------------------------------------------------------

class PoolRegistry:
    """
    Registry of observed pools and token decimals.

    Handles:
      - Token registration (decimals)
      - Pool creation with deterministic addresses
      - The PriceSource read interface
    """

    def __init__(self) -> None:
        self._pools: Dict[str, ObservedPool] = {}
        self._decimals: Dict[str, int] = {}

    @property
    def pool_count(self) -> int:
        return len(self._pools)

    def register_token(self, token: str, decimals: int) -> str:
        if not is_address(token):
            raise ValueError(f"Invalid token address: {token}")
        if not 0 <= decimals <= 77:
            raise ValueError("Decimals must be in [0, 77]")
        token = to_checksum_address(token)
        self._decimals[token] = decimals
        return token

    def create_pool(self, token_a: str, token_b: str, fee: int = 3000) -> ObservedPool:
        """Create an uninitialized pool for a registered token pair."""
        token_a = self._require_token(token_a)
        token_b = self._require_token(token_b)
        if token_a == token_b:
            raise ValueError("Pool tokens must differ")

        # Canonical ordering
        if token_order_key(token_a) > token_order_key(token_b):
            token_a, token_b = token_b, token_a

        address = self._deterministic_pool_address(token_a, token_b, fee)
        if address in self._pools:
            raise ValueError(f"Pool already exists for {token_a}/{token_b} fee={fee}")

        pool = ObservedPool(PoolState(address=address, token0=token_a, token1=token_b))
        self._pools[address] = pool
        logger.info("Pool %s created: %s/%s fee=%s", address, token_a, token_b, fee)
        return pool

    def get_pool(self, pool: str) -> ObservedPool:
        found = self._pools.get(_normalize(pool))
        if found is None:
            raise PriceSourceError(f"Unknown pool {pool}")
        return found

    # -- PriceSource --------------------------------------------------------

    def tokens(self, pool: str) -> Tuple[str, str]:
        state = self.get_pool(pool).state
        return state.token0, state.token1

    def slot0(self, pool: str) -> Slot0:
        return self.get_pool(pool).slot0()

    def observation(self, pool: str, index: int) -> Observation:
        return self.get_pool(pool).observation(index)

    def decimals(self, token: str) -> int:
        decimals = self._decimals.get(_normalize(token))
        if decimals is None:
            raise PriceSourceError(f"Unknown token {token}")
        return decimals

    # -- Simulation helpers -------------------------------------------------

    def tick_for_price(self, pool: str, base: str, price: Decimal) -> int:
        """
        Pool tick at which one whole ``base`` is worth ``price`` whole units
        of the other token.
        """
        token0, token1 = self.tokens(pool)
        base = _normalize(base)
        if base not in (token0, token1):
            raise ValueError(f"{base} is not a token of pool {pool}")
        price = Decimal(str(price))
        if price <= 0:
            raise ValueError("Price must be positive")

        # raw token1 per raw token0
        scale = Decimal(10) ** (self.decimals(token1) - self.decimals(token0))
        raw = price * scale if base == token0 else scale / price
        return price_to_tick(raw)

    # -- Internal -----------------------------------------------------------

    def _require_token(self, token: str) -> str:
        token = _normalize(token)
        if token not in self._decimals:
            raise ValueError(f"Token {token} not registered")
        return token

    @staticmethod
    def _deterministic_pool_address(token0: str, token1: str, fee: int) -> str:
        raw = to_canonical_address(token0) + to_canonical_address(token1) + fee.to_bytes(3, "big")
        return to_checksum_address(keccak(raw)[-20:])


def _normalize(address: str) -> str:
    if not is_address(address):
        raise PriceSourceError(f"Invalid address: {address}")
    return to_checksum_address(address)
