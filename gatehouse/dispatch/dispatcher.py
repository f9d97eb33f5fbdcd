"""Host-based dispatch to tenant compute units.

Flow per request:
    resolve host -> look up tenant config -> check status -> rate limit
    -> forward once -> attach rate limit headers -> emit usage after the
    response has been sent
"""

import re
import time
from collections.abc import Callable

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from gatehouse.api.exceptions import (
    GatehouseAPIError,
    InvalidRequestError,
    RateLimitExceededError,
    TenantNotFoundError,
    TenantUnavailableError,
    UpstreamUnavailableError,
)
from gatehouse.config.models.dispatch import DispatchConfig
from gatehouse.dispatch.backend import TenantBackend, filter_hop_by_hop
from gatehouse.dispatch.models import RateLimitResult
from gatehouse.dispatch.rate_limiter import FixedWindowRateLimiter
from gatehouse.dispatch.sinks import UsageSink, emit_usage
from gatehouse.dispatch.usage import (
    GeoInfo,
    create_usage_data_point,
    get_status_bucket,
)
from gatehouse.observability.logging import get_logger
from gatehouse.observability.metrics import (
    DISPATCH_LATENCY,
    DISPATCH_REQUESTS,
    RATE_LIMITED_REQUESTS,
    UPSTREAM_FAILURES,
)
from gatehouse.tenants.models import TenantConfig
from gatehouse.tenants.store import TenantConfigStore

logger = get_logger(__name__)

_SLUG_PATTERN_CACHE: dict[str, re.Pattern[str]] = {}


def _slug_pattern(base_domain: str) -> re.Pattern[str]:
    pattern = _SLUG_PATTERN_CACHE.get(base_domain)
    if pattern is None:
        pattern = re.compile(rf"^([a-z0-9-]+)\.{re.escape(base_domain)}$")
        _SLUG_PATTERN_CACHE[base_domain] = pattern
    return pattern


def parse_tenant_slug(host: str | None, base_domain: str) -> str | None:
    """Extract the tenant slug from a Host header.

    Matching is case-insensitive and ignores a trailing port.

    Args:
        host: Raw Host header value
        base_domain: Domain tenants are served under

    Returns:
        The slug, or None if the host is missing or not {slug}.{base_domain}
    """
    if not host:
        return None
    hostname = host.strip().lower().split(":", 1)[0]
    match = _slug_pattern(base_domain.lower()).match(hostname)
    if match is None:
        return None
    return match.group(1)


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Headers describing the tenant's current window."""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }


class Dispatcher:
    """Routes inbound requests to the tenant that owns the hostname."""

    def __init__(
        self,
        tenants: TenantConfigStore,
        rate_limiter: FixedWindowRateLimiter,
        backend: TenantBackend,
        usage_sink: UsageSink,
        config: DispatchConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tenants = tenants
        self._rate_limiter = rate_limiter
        self._backend = backend
        self._usage_sink = usage_sink
        self._config = config or DispatchConfig()
        self._clock = clock

    async def dispatch(self, request: Request) -> Response:
        """Forward a request to its tenant.

        Raises:
            InvalidRequestError: Missing or malformed Host header
            TenantNotFoundError: No config for the slug
            TenantUnavailableError: Tenant is not active
            RateLimitExceededError: Window limit reached
            UpstreamUnavailableError: Forwarding failed
        """
        start_time = self._clock()
        try:
            return await self._dispatch(request, start_time)
        except GatehouseAPIError as e:
            outcome = e.error_code.value.lower()
            DISPATCH_REQUESTS.labels(
                outcome=outcome, status_bucket=get_status_bucket(e.status_code)
            ).inc()
            DISPATCH_LATENCY.labels(outcome=outcome).observe(self._clock() - start_time)
            raise

    async def _dispatch(self, request: Request, start_time: float) -> Response:
        host = request.headers.get("host")
        if not host:
            raise InvalidRequestError("Missing host header")

        slug = parse_tenant_slug(host, self._config.base_domain)
        if slug is None:
            raise InvalidRequestError("Invalid host format")

        config = await self._resolve_tenant(slug)

        if not config.is_active:
            logger.info(
                "dispatch_tenant_unavailable",
                project_id=config.project_id,
                status=config.status.value,
            )
            raise TenantUnavailableError("Project not available")

        limit = config.effective_requests_per_minute(
            self._config.default_requests_per_minute
        )
        result = await self._rate_limiter.check_and_increment(config.project_id, limit)
        if not result.allowed:
            RATE_LIMITED_REQUESTS.labels(tier=config.tier).inc()
            retry_after = max(0, result.reset - int(self._clock()))
            raise RateLimitExceededError(
                "Rate limit exceeded",
                limit=limit,
                reset=result.reset,
                retry_after=retry_after,
            )

        try:
            upstream = await self._backend.forward(config, request)
        except httpx.HTTPError as e:
            UPSTREAM_FAILURES.labels(error_type=type(e).__name__).inc()
            logger.error(
                "dispatch_forward_failed",
                project_id=config.project_id,
                worker_ref=config.worker_ref,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamUnavailableError("Service temporarily unavailable") from e

        response = StreamingResponse(
            upstream.stream,
            status_code=upstream.status_code,
            background=BackgroundTask(
                self._complete,
                upstream=upstream,
                config=config,
                method=request.method,
                pathname=request.url.path,
                request_headers=dict(request.headers),
                geo=self._extract_geo(request),
                start_time=start_time,
            ),
        )
        extra = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in rate_limit_headers(result).items()
        ]
        forwarded = [
            (name, value)
            for name, value in filter_hop_by_hop(upstream.headers.raw)
            if not name.lower().startswith(b"x-ratelimit-")
        ]
        response.raw_headers = forwarded + extra
        return response

    async def _resolve_tenant(self, slug: str) -> TenantConfig:
        if await self._tenants.is_known_missing(slug):
            raise TenantNotFoundError("Project not found")

        config = await self._tenants.resolve(slug)
        if config is None:
            await self._tenants.mark_missing(slug)
            logger.info("dispatch_tenant_not_found", slug=slug)
            raise TenantNotFoundError("Project not found")
        return config

    def _extract_geo(self, request: Request) -> GeoInfo:
        names = self._config.geo_headers
        return GeoInfo(
            country=request.headers.get(names.country),
            continent=request.headers.get(names.continent),
            city=request.headers.get(names.city),
            region=request.headers.get(names.region),
        )

    async def _complete(
        self,
        *,
        upstream: httpx.Response,
        config: TenantConfig,
        method: str,
        pathname: str,
        request_headers: dict[str, str],
        geo: GeoInfo,
        start_time: float,
    ) -> None:
        """Close the upstream response and record usage."""
        await upstream.aclose()
        now = self._clock()

        status_bucket = get_status_bucket(upstream.status_code)
        DISPATCH_REQUESTS.labels(outcome="forwarded", status_bucket=status_bucket).inc()
        DISPATCH_LATENCY.labels(outcome="forwarded").observe(now - start_time)

        data_point = create_usage_data_point(
            project_id=config.project_id,
            org_id=config.org_id,
            tier=config.tier,
            method=method,
            pathname=pathname,
            request_headers=request_headers,
            response_status=upstream.status_code,
            response_headers=upstream.headers,
            start_time=start_time,
            geo=geo,
            now=now,
            cache_status_header=self._config.cache_status_header,
        )
        await emit_usage(self._usage_sink, data_point)
