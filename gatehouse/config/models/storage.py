"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

KVBackendType = Literal["inmemory", "redis"]
UsageSinkType = Literal["log", "redis", "inmemory"]


class KVStoreConfig(BaseModel):
    """Configuration for the shared low-latency key-value store.

    Note: credentials belong in REDIS_URL, not in config files.
    """

    backend: KVBackendType = Field(default="inmemory", description="Backend type")
    connection_url: str | None = Field(
        default=None,
        description="Redis URL; falls back to the REDIS_URL env var",
    )
    key_prefix: str = Field(
        default="gatehouse",
        description="Prefix prepended to every key",
    )


class UsageSinkConfig(BaseModel):
    """Where usage data points are written."""

    backend: UsageSinkType = Field(default="log", description="Sink type")
    stream: str = Field(
        default="gatehouse:usage",
        description="Redis stream receiving usage data points",
    )
    max_length: int = Field(
        default=1_000_000,
        gt=0,
        description="Approximate MAXLEN for the usage stream",
    )


class StorageConfig(BaseModel):
    """Storage configuration."""

    kv: KVStoreConfig = Field(
        default_factory=KVStoreConfig,
        description="Key-value store for tenant configs and counters",
    )
    usage: UsageSinkConfig = Field(
        default_factory=UsageSinkConfig,
        description="Usage data point sink",
    )
