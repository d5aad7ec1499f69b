"""
Price-source interface consumed by the oracle.

The oracle only reads from a price source; it never writes to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple


@dataclass
class Observation:
    """One slot of a pool's observation ring buffer."""
    block_timestamp: int = 0
    tick_cumulative: int = 0
    initialized: bool = False


@dataclass(frozen=True)
class Slot0:
    """Current pool tick and ring-buffer cursor."""
    tick: int
    observation_index: int
    observation_cardinality: int


class PriceSource(Protocol):
    """Read interface of an AMM oracle."""

    def tokens(self, pool: str) -> Tuple[str, str]:
        """(token0, token1) in pool order."""
        ...

    def slot0(self, pool: str) -> Slot0: ...

    def observation(self, pool: str, index: int) -> Observation: ...

    def decimals(self, token: str) -> int: ...
