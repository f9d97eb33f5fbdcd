"""Dependency injection for the dispatcher and binding proxy apps.

Shared collaborators (key-value store, rate limiters, usage sink, tenant
backend) are constructed once per process from settings and reused.
Tests replace them through app.dependency_overrides or reset_dependencies().
"""

import os
from typing import Annotated

import httpx
import redis.asyncio as redis
from fastapi import Depends

from gatehouse.config import Settings, get_settings
from gatehouse.dispatch.backend import HttpTenantBackend, TenantBackend
from gatehouse.dispatch.dispatcher import Dispatcher
from gatehouse.dispatch.rate_limiter import FixedWindowRateLimiter
from gatehouse.dispatch.sinks import (
    InMemoryUsageSink,
    LogUsageSink,
    RedisStreamUsageSink,
    UsageSink,
)
from gatehouse.kv.inmemory import InMemoryKeyValueStore
from gatehouse.kv.redis import RedisKeyValueStore
from gatehouse.kv.store import KeyValueStore
from gatehouse.observability.logging import get_logger
from gatehouse.proxy.handler import VectorizeHandler
from gatehouse.proxy.index import InMemoryVectorIndex, VectorIndexRegistry
from gatehouse.proxy.quota import QuotaManager
from gatehouse.tenants.store import TenantConfigStore

logger = get_logger(__name__)

_redis_client: redis.Redis | None = None
_kv_store: KeyValueStore | None = None
_usage_sink: UsageSink | None = None
_tenant_backend: TenantBackend | None = None
_dispatcher: Dispatcher | None = None
_vector_registry: VectorIndexRegistry | None = None
_vectorize_handler: VectorizeHandler | None = None


def get_redis_client() -> redis.Redis:
    """Get the shared Redis client.

    Uses storage.kv.connection_url, falling back to REDIS_URL.
    """
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        redis_url = settings.storage.kv.connection_url or os.environ.get(
            "REDIS_URL", "redis://localhost:6379"
        )
        _redis_client = redis.from_url(redis_url, decode_responses=True)
        logger.info("redis_client_connected", url=redis_url.split("@")[-1])
    return _redis_client


def get_kv_store() -> KeyValueStore:
    """Get the shared key-value store selected by storage.kv.backend."""
    global _kv_store
    if _kv_store is None:
        settings = get_settings()
        if settings.storage.kv.backend == "redis":
            _kv_store = RedisKeyValueStore(
                get_redis_client(), key_prefix=settings.storage.kv.key_prefix
            )
        else:
            _kv_store = InMemoryKeyValueStore()
        logger.info("kv_store_initialized", backend=settings.storage.kv.backend)
    return _kv_store


def get_usage_sink() -> UsageSink:
    """Get the usage sink selected by storage.usage.backend."""
    global _usage_sink
    if _usage_sink is None:
        usage = get_settings().storage.usage
        if usage.backend == "redis":
            _usage_sink = RedisStreamUsageSink(
                get_redis_client(), stream=usage.stream, max_length=usage.max_length
            )
        elif usage.backend == "inmemory":
            _usage_sink = InMemoryUsageSink()
        else:
            _usage_sink = LogUsageSink()
        logger.info("usage_sink_initialized", backend=usage.backend)
    return _usage_sink


def get_tenant_backend() -> TenantBackend:
    """Get the HTTP backend that forwards to tenant compute units."""
    global _tenant_backend
    if _tenant_backend is None:
        dispatch = get_settings().dispatch
        client = httpx.AsyncClient(
            timeout=dispatch.forward_timeout_seconds,
            follow_redirects=False,
        )
        _tenant_backend = HttpTenantBackend(
            client, upstream_url_template=dispatch.upstream_url_template
        )
    return _tenant_backend


def get_tenant_store(
    store: Annotated[KeyValueStore, Depends(get_kv_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TenantConfigStore:
    """Tenant config cache over the shared store."""
    return TenantConfigStore(
        store, not_found_ttl_seconds=settings.dispatch.not_found_ttl_seconds
    )


def get_dispatcher() -> Dispatcher:
    """Get the process-wide Dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        settings = get_settings()
        store = get_kv_store()
        _dispatcher = Dispatcher(
            tenants=get_tenant_store(store, settings),
            rate_limiter=FixedWindowRateLimiter(
                store,
                window_seconds=settings.dispatch.window_seconds,
                ttl_seconds=settings.dispatch.window_ttl_seconds,
            ),
            backend=get_tenant_backend(),
            usage_sink=get_usage_sink(),
            config=settings.dispatch,
        )
        logger.info("dispatcher_initialized", base_domain=settings.dispatch.base_domain)
    return _dispatcher


def get_vector_registry() -> VectorIndexRegistry:
    """Get the registry of indexes served by the binding proxy."""
    global _vector_registry
    if _vector_registry is None:
        dimensions = get_settings().proxy.vector_dimensions
        _vector_registry = VectorIndexRegistry(lambda: InMemoryVectorIndex(dimensions))
    return _vector_registry


def get_vectorize_handler() -> VectorizeHandler:
    """Get the binding proxy's vector index handler."""
    global _vectorize_handler
    if _vectorize_handler is None:
        proxy = get_settings().proxy
        store = get_kv_store()
        _vectorize_handler = VectorizeHandler(
            registry=get_vector_registry(),
            quota=QuotaManager(
                store,
                query_limit=proxy.query_quota_per_day,
                mutation_limit=proxy.mutation_quota_per_day,
            ),
            burst_limiter=FixedWindowRateLimiter(
                store,
                window_seconds=proxy.burst_window_seconds,
                ttl_seconds=proxy.burst_window_seconds * 2,
                key_prefix="burst",
            ),
            usage_sink=get_usage_sink(),
            burst_limit=proxy.burst_limit,
            burst_window_seconds=proxy.burst_window_seconds,
        )
    return _vectorize_handler


DispatcherDep = Annotated[Dispatcher, Depends(get_dispatcher)]
VectorizeHandlerDep = Annotated[VectorizeHandler, Depends(get_vectorize_handler)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing to ensure fresh instances.
    Closes connections before resetting.
    """
    global _redis_client, _kv_store, _usage_sink, _tenant_backend
    global _dispatcher, _vector_registry, _vectorize_handler

    if _tenant_backend is not None:
        await _tenant_backend.aclose()
        _tenant_backend = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None

    _kv_store = None
    _usage_sink = None
    _dispatcher = None
    _vector_registry = None
    _vectorize_handler = None
    get_settings.cache_clear()
