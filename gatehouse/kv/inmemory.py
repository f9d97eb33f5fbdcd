"""In-memory key-value store for development and testing."""

import json
import time
from collections.abc import Callable
from typing import Any

from gatehouse.kv.store import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with lazy TTL expiry.

    Values are stored JSON-encoded so callers get the same copy semantics
    as with Redis. Expired entries disappear on read; reap() sweeps the rest.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get_json(self, key: str) -> Any | None:
        entry = self._data.get(key)
        if entry is None:
            return None

        raw, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    async def put_json(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
    ) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        self._data[key] = (json.dumps(value), expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def put_raw(self, key: str, raw: str) -> None:
        """Store an undecoded value (test utility)."""
        self._data[key] = (raw, None)

    def reap(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._data[key]
        return len(expired)

    def keys(self) -> list[str]:
        """Live keys (test utility)."""
        now = self._clock()
        return [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is None or expires_at > now
        ]

    def clear(self) -> None:
        """Clear all entries (test utility)."""
        self._data.clear()
