"""Clock capabilities injected into the oracle."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current unix time in whole seconds."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Settable clock for simulations and tests."""

    def __init__(self, timestamp: int = 0):
        self._timestamp = int(timestamp)

    def now(self) -> int:
        return self._timestamp

    def set(self, timestamp: int) -> None:
        if timestamp < self._timestamp:
            raise ValueError("Clock cannot move backwards")
        self._timestamp = int(timestamp)

    def advance(self, seconds: int) -> int:
        self.set(self._timestamp + seconds)
        return self._timestamp
