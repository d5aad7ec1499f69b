"""
Manually administered volatility oracle.

Stands in for the realized-volatility oracle where a pool has no usable
price history: a single administrator sets the annualized volatility
directly. Anyone may read it.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from eth_utils import is_address, to_checksum_address

from ..constants import MAX_MANUAL_VOL, MIN_MANUAL_VOL
from ..exceptions import AuthorizationError, ConfigurationError, VolatilityBoundsError
from .vol_oracle import pool_key

logger = logging.getLogger(__name__)


class ManualVolOracle:
    """Admin-set annualized volatility per pool (1e8 scale)."""

    def __init__(self, admin: str):
        if admin is None or not is_address(admin) or int(admin, 16) == 0:
            raise ConfigurationError("!admin")
        self.admin = to_checksum_address(admin)
        self._annualized_vols: Dict[str, int] = {}

    def set_annualized_vol(self, pool: str, annualized_vol: int, sender: Optional[str]) -> None:
        """
        Store the annualized volatility reported for ``pool``.

        Raises:
            AuthorizationError: sender is not the administrator
            VolatilityBoundsError: value not above 50% or above 400%
        """
        if sender is None or not is_address(sender) or to_checksum_address(sender) != self.admin:
            raise AuthorizationError("!admin")
        if annualized_vol <= MIN_MANUAL_VOL:
            raise VolatilityBoundsError("Cannot be less than 50%")
        if annualized_vol > MAX_MANUAL_VOL:
            raise VolatilityBoundsError("Cannot be more than 400%")

        key = pool_key(pool)
        self._annualized_vols[key] = annualized_vol
        logger.info("Manual vol for %s set to %d", key, annualized_vol)

    def vol(self, pool: str) -> int:
        """Per-period volatility is not tracked manually."""
        pool_key(pool)
        return 0

    def annualized_vol(self, pool: str) -> int:
        return self._annualized_vols.get(pool_key(pool), 0)
