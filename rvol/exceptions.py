"""
rvol Exceptions

Custom exception classes for the volatility oracle.

Messages mirror the short revert reasons of the on-chain oracle so that
logs from a Python deployment line up with the contract's.
"""


class RvolException(Exception):
    """Base exception for rvol."""
    pass


class ConfigurationError(RvolException):
    """Invalid construction-time or file configuration."""
    pass


class SchedulingError(RvolException):
    """Commit attempted at a time the period schedule does not allow."""
    pass


class NotCommitPhaseError(SchedulingError):
    """Current time is too far from the nearest period boundary."""
    pass


class AlreadyCommittedError(SchedulingError):
    """The pair already has a sample for the current period."""
    pass


class NumericRangeError(RvolException):
    """A value would exceed its fixed-width bound."""
    pass


class PriceSourceError(RvolException):
    """The price source cannot answer the query."""
    pass


class UnknownPairError(RvolException):
    """Operation on a pair the oracle does not track."""
    pass


class AuthorizationError(RvolException):
    """Caller is not the designated administrator."""
    pass


class VolatilityBoundsError(RvolException):
    """Manual volatility outside the accepted range."""
    pass
