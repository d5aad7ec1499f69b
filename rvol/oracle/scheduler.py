"""
Period scheduling for commits.

A sample may be committed only inside the commit phase around a period
boundary, and only once per boundary per pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..constants import COMMIT_PHASE_DURATION
from ..exceptions import AlreadyCommittedError, ConfigurationError, NotCommitPhaseError


def nearest_boundary(now: int, period: int) -> Tuple[int, int]:
    """
    Closest period boundary to ``now`` and the distance to it.

    A remainder of exactly half a period rounds up to the next boundary.

    Returns:
        (boundary, gap)
    """
    rem = now % period
    if rem < period // 2:
        return now - rem, rem
    return now + (period - rem), period - rem


@dataclass(frozen=True)
class PeriodScheduler:
    """Commit-phase gate for a fixed period length."""
    period: int
    commit_phase_duration: int = COMMIT_PHASE_DURATION

    def __post_init__(self) -> None:
        if self.period <= 0:
            raise ConfigurationError("!period")
        if self.commit_phase_duration <= 0:
            raise ConfigurationError("!commit_phase_duration")
        # Phases around adjacent boundaries must not overlap
        if 2 * self.commit_phase_duration > self.period:
            raise ConfigurationError("commit_phase_duration must be at most half the period")

    def nearest_boundary(self, now: int) -> Tuple[int, int]:
        return nearest_boundary(now, self.period)

    def is_commit_phase(self, now: int) -> bool:
        _, gap = self.nearest_boundary(now)
        return gap < self.commit_phase_duration

    def next_commit_window(self, last_timestamp: int) -> int:
        """Earliest time a pair committed at ``last_timestamp`` may commit again."""
        return last_timestamp + self.period - self.commit_phase_duration

    def check(self, now: int, last_timestamp: int) -> int:
        """
        Validate a commit attempt.

        Returns:
            the canonical timestamp to record for this period

        Raises:
            NotCommitPhaseError: too far from the nearest boundary
            AlreadyCommittedError: this period already has a sample
        """
        boundary, gap = self.nearest_boundary(now)
        if gap >= self.commit_phase_duration:
            raise NotCommitPhaseError("Not commit phase")
        if now < self.next_commit_window(last_timestamp):
            raise AlreadyCommittedError("Committed")
        return boundary
