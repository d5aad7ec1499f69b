"""
Commit events and their delivery.

Listeners run synchronously after a commit has been applied, in
registration order. A failing listener is logged and skipped; it cannot
revert the commit it is observing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitEvent:
    """Record of one accepted commit."""
    pool: str
    count: int
    timestamp: int
    mean: int
    m2: int
    price: int
    sender: Optional[str] = None


CommitListener = Callable[[CommitEvent], None]


class EventBus:
    """Registry of commit listeners."""

    def __init__(self) -> None:
        self._listeners: List[CommitListener] = []

    def subscribe(self, listener: CommitListener) -> None:
        self._listeners.append(listener)
        logger.debug("Listener registered: %s", getattr(listener, "__name__", type(listener).__name__))

    def unsubscribe(self, listener: CommitListener) -> None:
        self._listeners = [registered for registered in self._listeners if registered != listener]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: CommitEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Listener %s failed on %s: %s",
                    getattr(listener, "__name__", type(listener).__name__), event.pool, e,
                )
