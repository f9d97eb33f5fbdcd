"""Key-value storage for tenant configs, rate limit windows and quotas.

The router and the binding proxy share one low-latency store. Every value
is JSON; expiry is passive (Redis EX, or lazy expiry in memory).
"""

from gatehouse.kv.inmemory import InMemoryKeyValueStore
from gatehouse.kv.redis import RedisKeyValueStore
from gatehouse.kv.store import KeyValueStore, KeyValueStoreError

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "KeyValueStoreError",
    "RedisKeyValueStore",
]
