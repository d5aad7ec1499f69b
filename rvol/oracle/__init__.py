"""
rvol Oracle Engine

Realized volatility from an AMM's time-weighted price:

  - Period scheduler (commit phase around every period boundary)
  - TWAP calculator (negative-infinity rounded average tick)
  - Welford accumulator (fixed-width, window-capped)
  - Volatility oracle (commit state machine, per-pool state)
  - Manual oracle (administrator-set annualized volatility)
"""

from .clock import Clock, ManualClock, SystemClock
from .events import CommitEvent, EventBus
from .manual import ManualVolOracle
from .scheduler import PeriodScheduler, nearest_boundary
from .twap import TickCumulatives, TwapCalculator, average_tick
from .vol_oracle import OracleConfig, TrackedPair, VolOracle
from .welford import AccumulatorRecord

__all__ = [
    # Clock
    "Clock", "ManualClock", "SystemClock",
    # Events
    "CommitEvent", "EventBus",
    # Scheduling
    "PeriodScheduler", "nearest_boundary",
    # TWAP
    "TickCumulatives", "TwapCalculator", "average_tick",
    # Accumulator
    "AccumulatorRecord",
    # Oracles
    "OracleConfig", "TrackedPair", "VolOracle", "ManualVolOracle",
]
