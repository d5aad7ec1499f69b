"""
Welford online variance accumulator  (fixed-point, fixed-width)

Maintains count / mean / m2 for a stream of log-return samples without
keeping the samples:

    count' = count + 1
    delta  = x - mean
    mean'  = mean + delta / count'          (division truncates toward zero)
    m2'    = m2 + delta * (x - mean')

Once ``count`` reaches the window size N the count is held at N and the
update switches to the exponentially weighted form with alpha = 1/N:

    mean'  = mean + delta / N
    m2'    = m2 - m2 // N + delta * (x - mean')

Since ``m2 = N * variance`` this is ``var' = (1 - alpha) * (var + alpha * delta^2)``:
every update scales the weight of all earlier samples by (N - 1) / N.

All values live in the 1e8 log-return scale. Results are range-checked
against the storage widths before they can be persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..constants import M2_BOUND, MAX_SAMPLE_COUNT, MEAN_BOUND
from ..exceptions import NumericRangeError
from .fixed_point import sqrt_floor, trunc_div


# ---------------------------------------------------------------------------
# Persisted record
# ---------------------------------------------------------------------------

def _check_count(value: int) -> None:
    if not 0 <= value <= MAX_SAMPLE_COUNT:
        raise NumericRangeError(">U16")


def _check_mean(value: int) -> None:
    if not -MEAN_BOUND < value < MEAN_BOUND:
        raise NumericRangeError(">I96")


def _check_m2(value: int) -> None:
    if not 0 <= value < M2_BOUND:
        raise NumericRangeError(">U112")


def _check_timestamp(value: int) -> None:
    if value < 0:
        raise NumericRangeError("timestamp<0")


_VALIDATORS = {
    "count": _check_count,
    "last_timestamp": _check_timestamp,
    "mean": _check_mean,
    "m2": _check_m2,
}


@dataclass
class AccumulatorRecord:
    """
    Rolling statistics for one tracked pair.

    Every assignment is validated against the field's storage width;
    an out-of-range value raises NumericRangeError instead of wrapping.
    """
    count: int = 0
    last_timestamp: int = 0
    mean: int = 0
    m2: int = 0

    def __setattr__(self, name: str, value) -> None:
        validator = _VALIDATORS.get(name)
        if validator is not None:
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
            validator(value)
        super().__setattr__(name, value)

    @property
    def stdev(self) -> int:
        return stdev(self.count, self.m2)


# ---------------------------------------------------------------------------
# Update / query
# ---------------------------------------------------------------------------

def update(
    count: int,
    mean: int,
    m2: int,
    sample: int,
    window_size: int = MAX_SAMPLE_COUNT,
) -> Tuple[int, int, int]:
    """
    Fold one sample into (count, mean, m2).

    Args:
        count: samples accumulated so far
        mean: running mean (1e8)
        m2: sum of squared deviations (1e16, i.e. 1e8 squared)
        sample: new log-return (1e8)
        window_size: cap on the effective sample count

    Returns:
        (count, mean, m2) after the update

    Raises:
        NumericRangeError: if any result exceeds its storage width
    """
    if not 1 <= window_size <= MAX_SAMPLE_COUNT:
        raise NumericRangeError(f"window_size must be in [1, {MAX_SAMPLE_COUNT}]")

    delta = sample - mean
    if count < window_size:
        new_count = count + 1
        new_mean = mean + trunc_div(delta, new_count)
        new_m2 = m2 + delta * (sample - new_mean)
    else:
        new_count = window_size
        new_mean = mean + trunc_div(delta, window_size)
        new_m2 = m2 - m2 // window_size + delta * (sample - new_mean)

    if new_m2 < 0:
        raise NumericRangeError("m2<0")
    _check_count(new_count)
    _check_mean(new_mean)
    _check_m2(new_m2)
    return new_count, new_mean, new_m2


def variance(count: int, m2: int) -> int:
    """Population variance (1e16 scale); 0 without samples."""
    if count <= 0:
        return 0
    return m2 // count


def stdev(count: int, m2: int) -> int:
    """Population standard deviation (1e8 scale); 0 without samples."""
    return sqrt_floor(variance(count, m2))
