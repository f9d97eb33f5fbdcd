"""Tests for InMemoryKeyValueStore."""

import pytest

from gatehouse.kv.inmemory import InMemoryKeyValueStore


@pytest.fixture
def store(clock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


class TestInMemoryKeyValueStore:
    """Tests for the in-memory store."""

    async def test_put_and_get(self, store: InMemoryKeyValueStore) -> None:
        """Values round-trip as JSON."""
        await store.put_json("config:shop", {"slug": "shop", "limits": None})
        assert await store.get_json("config:shop") == {"slug": "shop", "limits": None}

    async def test_get_missing(self, store: InMemoryKeyValueStore) -> None:
        """Missing keys return None."""
        assert await store.get_json("nope") is None

    async def test_returns_copies(self, store: InMemoryKeyValueStore) -> None:
        """Mutating a returned value does not change the stored one."""
        await store.put_json("k", {"count": 1})
        value = await store.get_json("k")
        value["count"] = 99
        assert await store.get_json("k") == {"count": 1}

    async def test_expired_entries_disappear(self, store: InMemoryKeyValueStore, clock) -> None:
        """Entries past their TTL read as absent."""
        await store.put_json("k", 1, ttl_seconds=120)
        clock.advance(119)
        assert await store.get_json("k") == 1
        clock.advance(1)
        assert await store.get_json("k") is None

    async def test_reap_removes_expired(self, store: InMemoryKeyValueStore, clock) -> None:
        """reap() sweeps expired entries without reads."""
        await store.put_json("short", 1, ttl_seconds=10)
        await store.put_json("long", 1, ttl_seconds=100)
        await store.put_json("forever", 1)
        clock.advance(50)
        assert store.reap() == 1
        assert sorted(store.keys()) == ["forever", "long"]

    async def test_delete(self, store: InMemoryKeyValueStore) -> None:
        """Deleted keys are gone; deleting twice is fine."""
        await store.put_json("k", 1)
        await store.delete("k")
        await store.delete("k")
        assert await store.get_json("k") is None

    async def test_undecodable_value_reads_as_absent(self, store: InMemoryKeyValueStore) -> None:
        """Garbage values are treated as missing."""
        store.put_raw("k", "{not json")
        assert await store.get_json("k") is None
