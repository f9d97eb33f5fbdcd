"""Tests for daily binding quotas."""

from unittest.mock import AsyncMock

from gatehouse.kv.inmemory import InMemoryKeyValueStore
from gatehouse.kv.store import KeyValueStoreError
from gatehouse.proxy.quota import COUNTER_TTL_SECONDS, QuotaManager

DAY = "2023-11-14"
SECONDS_TO_MIDNIGHT = 6360


class TestQuotaManager:
    """Tests for QuotaManager."""

    def test_day_key_and_reset(self, clock) -> None:
        """Day keys are UTC dates; reset is seconds to the next UTC midnight."""
        quota = QuotaManager(InMemoryKeyValueStore(clock=clock), clock=clock)
        assert quota.day_key() == DAY
        assert quota.seconds_until_midnight_utc() == SECONDS_TO_MIDNIGHT

    async def test_under_limit(self, clock) -> None:
        """A fresh project has its whole quota."""
        quota = QuotaManager(InMemoryKeyValueStore(clock=clock), query_limit=5, clock=clock)
        result = await quota.check_query_quota("proj_1")
        assert result.allowed is True
        assert result.remaining == 5
        assert result.reset_in == SECONDS_TO_MIDNIGHT

    async def test_increment_until_exhausted(self, clock) -> None:
        """Reaching the limit rejects further calls."""
        store = InMemoryKeyValueStore(clock=clock)
        quota = QuotaManager(store, mutation_limit=2, clock=clock)

        await quota.increment_mutations("proj_1")
        assert (await quota.check_mutation_quota("proj_1")).remaining == 1
        await quota.increment_mutations("proj_1")

        result = await quota.check_mutation_quota("proj_1")
        assert result.allowed is False
        assert result.remaining == 0
        assert await store.get_json(f"vectorize_mutations:proj_1:{DAY}") == 2

    async def test_classes_are_independent(self, clock) -> None:
        """Query and mutation counters do not share state."""
        quota = QuotaManager(
            InMemoryKeyValueStore(clock=clock), query_limit=1, mutation_limit=1, clock=clock
        )
        await quota.increment_queries("proj_1")
        assert (await quota.check_query_quota("proj_1")).allowed is False
        assert (await quota.check_mutation_quota("proj_1")).allowed is True
        assert (await quota.check_query_quota("proj_2")).allowed is True

    async def test_new_day_resets(self, clock) -> None:
        """Counters are keyed by day."""
        quota = QuotaManager(InMemoryKeyValueStore(clock=clock), query_limit=1, clock=clock)
        await quota.increment_queries("proj_1")
        clock.advance(SECONDS_TO_MIDNIGHT)
        assert quota.day_key() == "2023-11-15"
        assert (await quota.check_query_quota("proj_1")).allowed is True

    async def test_counter_ttl(self, clock) -> None:
        """Counters are written with a two-day TTL."""
        store = AsyncMock()
        store.get_json.return_value = None
        quota = QuotaManager(store, clock=clock)

        await quota.increment_queries("proj_1")

        store.put_json.assert_awaited_once_with(
            f"vectorize_queries:proj_1:{DAY}", 1, ttl_seconds=COUNTER_TTL_SECONDS
        )

    async def test_store_failure_fails_open(self, clock) -> None:
        """Store errors allow the call and never raise."""
        store = AsyncMock()
        store.get_json.side_effect = KeyValueStoreError("down")
        quota = QuotaManager(store, query_limit=3, clock=clock)

        result = await quota.check_query_quota("proj_1")
        assert result.allowed is True
        assert result.remaining == 3

        await quota.increment_queries("proj_1")
        store.put_json.assert_not_awaited()
