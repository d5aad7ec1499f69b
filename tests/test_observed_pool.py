"""
Tests for the in-memory observed pool and its registry.
"""

from decimal import Decimal

import pytest
from eth_utils import to_checksum_address

from rvol.exceptions import PriceSourceError
from rvol.oracle.tick_math import MAX_TICK
from rvol.pool import ObservedPool, PoolRegistry
from rvol.pool.interface import Observation

TOKEN_LOW = "0x" + "0a" * 20
TOKEN_HIGH = "0x" + "f0" * 20


@pytest.fixture
def registry():
    r = PoolRegistry()
    r.register_token(TOKEN_LOW, 18)
    r.register_token(TOKEN_HIGH, 6)
    return r


class TestPoolRegistry:

    def test_canonical_token_order(self, registry):
        pool = registry.create_pool(TOKEN_HIGH, TOKEN_LOW)
        assert registry.tokens(pool.address) == (
            to_checksum_address(TOKEN_LOW),
            to_checksum_address(TOKEN_HIGH),
        )

    def test_deterministic_address(self, registry):
        first = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        other = PoolRegistry()
        other.register_token(TOKEN_LOW, 18)
        other.register_token(TOKEN_HIGH, 6)
        assert other.create_pool(TOKEN_HIGH, TOKEN_LOW).address == first.address

    def test_fee_tier_changes_address(self, registry):
        a = registry.create_pool(TOKEN_LOW, TOKEN_HIGH, fee=500)
        b = registry.create_pool(TOKEN_LOW, TOKEN_HIGH, fee=3000)
        assert a.address != b.address
        assert registry.pool_count == 2

    def test_duplicate_pool(self, registry):
        registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        with pytest.raises(ValueError, match="already exists"):
            registry.create_pool(TOKEN_HIGH, TOKEN_LOW)

    def test_same_token(self, registry):
        with pytest.raises(ValueError):
            registry.create_pool(TOKEN_LOW, TOKEN_LOW)

    def test_unregistered_token(self, registry):
        with pytest.raises(ValueError, match="not registered"):
            registry.create_pool(TOKEN_LOW, "0x" + "99" * 20)

    def test_decimals(self, registry):
        assert registry.decimals(TOKEN_LOW) == 18
        assert registry.decimals(to_checksum_address(TOKEN_HIGH)) == 6
        with pytest.raises(PriceSourceError):
            registry.decimals("0x" + "99" * 20)

    def test_unknown_pool(self, registry):
        with pytest.raises(PriceSourceError):
            registry.slot0("0x" + "99" * 20)
        with pytest.raises(PriceSourceError):
            registry.tokens("garbage")

    def test_tick_for_price(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        # token0 has 18 decimals, token1 has 6: 2000 whole units -> 2000e-12 raw
        tick = registry.tick_for_price(pool.address, TOKEN_LOW, Decimal(2000))
        assert 1.0001 ** tick <= 2000e-12 < 1.0001 ** (tick + 1)
        inverse = registry.tick_for_price(pool.address, TOKEN_HIGH, Decimal(2000))
        assert inverse < tick

    def test_tick_for_price_rejects_foreign_token(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        with pytest.raises(ValueError):
            registry.tick_for_price(pool.address, "0x" + "99" * 20, Decimal(1))


class TestObservedPool:

    def test_initialize_writes_slot_zero(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        assert not pool.is_initialized
        pool.initialize(-50, 1000, cardinality=3)
        slot0 = pool.slot0()
        assert (slot0.tick, slot0.observation_index, slot0.observation_cardinality) == (-50, 0, 3)
        assert pool.observation(0) == Observation(1000, 0, True)
        assert pool.observation(1) == Observation()

    def test_initialize_twice(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(0, 1000)
        with pytest.raises(ValueError, match="already initialized"):
            pool.initialize(0, 2000)

    def test_set_tick_accumulates_previous_tick(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(10, 1000, cardinality=4)
        written = pool.set_tick(-20, 1030)
        assert written.tick_cumulative == 300
        written = pool.set_tick(5, 1040)
        assert written.tick_cumulative == 300 - 200
        assert pool.slot0().tick == 5
        assert pool.slot0().observation_index == 2

    def test_same_timestamp_moves_price_only(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(0, 1000, cardinality=2)
        assert pool.set_tick(7, 1000) is None
        assert pool.slot0().tick == 7
        assert pool.slot0().observation_index == 0

    def test_timestamp_must_not_go_back(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(0, 1000)
        with pytest.raises(ValueError, match="monotonically"):
            pool.set_tick(1, 999)

    def test_ring_buffer_wraps(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(1, 0, cardinality=2)
        pool.set_tick(1, 10)
        pool.set_tick(1, 20)
        assert pool.slot0().observation_index == 0
        assert pool.observation(0).block_timestamp == 20
        assert pool.observation(0).tick_cumulative == 20

    def test_uninitialized_pool(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        with pytest.raises(ValueError):
            pool.set_tick(0, 1)

    def test_tick_range(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        with pytest.raises(ValueError, match="Tick out of range"):
            pool.initialize(MAX_TICK + 1, 0)

    def test_observation_index_range(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(0, 0, cardinality=2)
        with pytest.raises(PriceSourceError):
            pool.observation(2)

    def test_observation_is_a_copy(self, registry):
        pool = registry.create_pool(TOKEN_LOW, TOKEN_HIGH)
        pool.initialize(0, 0, cardinality=1)
        obs = pool.observation(0)
        obs.tick_cumulative = 99
        assert pool.observation(0).tick_cumulative == 0
        assert isinstance(pool, ObservedPool)
