"""Edge dispatch: host routing, rate limiting, forwarding and usage metering."""

from gatehouse.dispatch.backend import HttpTenantBackend, TenantBackend
from gatehouse.dispatch.dispatcher import Dispatcher, parse_tenant_slug
from gatehouse.dispatch.models import RateLimitResult, RateLimitWindow
from gatehouse.dispatch.rate_limiter import FixedWindowRateLimiter
from gatehouse.dispatch.sinks import (
    InMemoryUsageSink,
    LogUsageSink,
    RedisStreamUsageSink,
    UsageSink,
    emit_usage,
)
from gatehouse.dispatch.usage import (
    GeoInfo,
    UsageDataPoint,
    create_usage_data_point,
    get_cache_status,
    get_pathname_bucket,
    get_status_bucket,
)

__all__ = [
    "Dispatcher",
    "FixedWindowRateLimiter",
    "GeoInfo",
    "HttpTenantBackend",
    "InMemoryUsageSink",
    "LogUsageSink",
    "RateLimitResult",
    "RateLimitWindow",
    "RedisStreamUsageSink",
    "TenantBackend",
    "UsageDataPoint",
    "UsageSink",
    "create_usage_data_point",
    "emit_usage",
    "get_cache_status",
    "get_pathname_bucket",
    "get_status_bucket",
    "parse_tenant_slug",
]
