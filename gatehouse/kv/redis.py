"""Redis-backed key-value store."""

import json
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from gatehouse.kv.store import KeyValueStore, KeyValueStoreError
from gatehouse.observability.logging import get_logger

logger = get_logger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """Redis store.

    Key format: {prefix}:{key}
    Value format: JSON text, expiry via SET EX.
    """

    def __init__(self, redis: Redis, key_prefix: str = "gatehouse") -> None:
        """Initialize Redis store.

        Args:
            redis: Redis client instance
            key_prefix: Prefix for Redis keys
        """
        self._redis = redis
        self._key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        if not self._key_prefix:
            return key
        return f"{self._key_prefix}:{key}"

    async def get_json(self, key: str) -> Any | None:
        try:
            value = await self._redis.get(self._make_key(key))
        except RedisError as e:
            raise KeyValueStoreError(f"Failed to read {key}: {e}") from e

        if value is None:
            return None

        value_str = value.decode() if isinstance(value, bytes) else value
        try:
            return json.loads(value_str)
        except json.JSONDecodeError:
            logger.warning("kv_corrupted_value", key=key)
            return None

    async def put_json(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
    ) -> None:
        try:
            await self._redis.set(self._make_key(key), json.dumps(value), ex=ttl_seconds)
        except RedisError as e:
            raise KeyValueStoreError(f"Failed to write {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._make_key(key))
        except RedisError as e:
            raise KeyValueStoreError(f"Failed to delete {key}: {e}") from e
