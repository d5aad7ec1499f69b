"""
rvol Price Sources

The read interface the oracle consumes, and an in-memory pool model that
implements it.
"""

from .interface import Observation, PriceSource, Slot0
from .observed_pool import ObservedPool, PoolRegistry, PoolState

__all__ = [
    "Observation", "PriceSource", "Slot0",
    "ObservedPool", "PoolRegistry", "PoolState",
]
