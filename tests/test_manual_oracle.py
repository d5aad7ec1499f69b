"""
Tests for the admin-set volatility oracle.
"""

import pytest

from rvol.constants import MAX_MANUAL_VOL, MIN_MANUAL_VOL, ZERO_ADDRESS
from rvol.exceptions import (
    AuthorizationError,
    ConfigurationError,
    UnknownPairError,
    VolatilityBoundsError,
)
from rvol.oracle import ManualVolOracle

ADMIN = "0x" + "aa" * 20
OTHER = "0x" + "bb" * 20
POOL = "0x" + "cc" * 20


@pytest.fixture
def oracle():
    return ManualVolOracle(ADMIN)


class TestManualVolOracle:

    def test_unset_pool_reads_zero(self, oracle):
        assert oracle.annualized_vol(POOL) == 0

    def test_admin_sets_value(self, oracle):
        oracle.set_annualized_vol(POOL, 100_000_000, sender=ADMIN)
        assert oracle.annualized_vol(POOL) == 100_000_000

    def test_admin_address_case_insensitive(self, oracle):
        oracle.set_annualized_vol(POOL, 100_000_000, sender=ADMIN.upper().replace("0X", "0x"))
        assert oracle.annualized_vol(POOL.upper().replace("0X", "0x")) == 100_000_000

    def test_overwrite(self, oracle):
        oracle.set_annualized_vol(POOL, 100_000_000, sender=ADMIN)
        oracle.set_annualized_vol(POOL, 250_000_000, sender=ADMIN)
        assert oracle.annualized_vol(POOL) == 250_000_000

    def test_vol_is_always_zero(self, oracle):
        oracle.set_annualized_vol(POOL, 100_000_000, sender=ADMIN)
        assert oracle.vol(POOL) == 0

    def test_non_admin_rejected(self, oracle):
        with pytest.raises(AuthorizationError, match="!admin"):
            oracle.set_annualized_vol(POOL, 100_000_000, sender=OTHER)
        with pytest.raises(AuthorizationError):
            oracle.set_annualized_vol(POOL, 100_000_000, sender=None)
        assert oracle.annualized_vol(POOL) == 0

    @pytest.mark.parametrize("value", [0, 1, 49_999_999, MIN_MANUAL_VOL])
    def test_below_minimum(self, oracle, value):
        with pytest.raises(VolatilityBoundsError, match="less than 50%"):
            oracle.set_annualized_vol(POOL, value, sender=ADMIN)

    def test_above_maximum(self, oracle):
        with pytest.raises(VolatilityBoundsError, match="more than 400%"):
            oracle.set_annualized_vol(POOL, 400_000_001, sender=ADMIN)

    def test_bounds(self, oracle):
        oracle.set_annualized_vol(POOL, MIN_MANUAL_VOL + 1, sender=ADMIN)
        assert oracle.annualized_vol(POOL) == 50_000_001
        oracle.set_annualized_vol(POOL, MAX_MANUAL_VOL, sender=ADMIN)
        assert oracle.annualized_vol(POOL) == 400_000_000

    def test_rejected_value_keeps_previous(self, oracle):
        oracle.set_annualized_vol(POOL, 100_000_000, sender=ADMIN)
        with pytest.raises(VolatilityBoundsError):
            oracle.set_annualized_vol(POOL, 500_000_000, sender=ADMIN)
        assert oracle.annualized_vol(POOL) == 100_000_000

    def test_invalid_pool(self, oracle):
        with pytest.raises(UnknownPairError):
            oracle.annualized_vol(ZERO_ADDRESS)
        with pytest.raises(UnknownPairError):
            oracle.set_annualized_vol("pool", 100_000_000, sender=ADMIN)

    @pytest.mark.parametrize("admin", [None, ZERO_ADDRESS, "not-an-address"])
    def test_invalid_admin(self, admin):
        with pytest.raises(ConfigurationError, match="!admin"):
            ManualVolOracle(admin)
