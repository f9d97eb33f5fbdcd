"""Usage data point construction.

Every forwarded request produces one data point with a fixed shape:

    indexes: [project_id]
    blobs:   org_id, tier, method, cache_status, country, continent,
             city, region, status_bucket, pathname_bucket
    doubles: count (always 1), latency_ms, request_bytes, response_bytes

Pathnames and statuses are bucketed so the analytics store sees a small,
bounded set of values regardless of what tenants serve.
"""

import re
import time
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN = "unknown"
DYNAMIC = "DYNAMIC"

CACHE_STATUSES: frozenset[str] = frozenset({
    "HIT",
    "MISS",
    "BYPASS",
    "EXPIRED",
    "STALE",
    "REVALIDATED",
})

EXACT_PATHS: frozenset[str] = frozenset({"/", "/favicon.ico", "/robots.txt"})

PREFIX_BUCKETS: tuple[str, ...] = (
    "/api/",
    "/_next/",
    "/static/",
    "/assets/",
    "/public/",
    "/.well-known/",
)

EXTENSION_BUCKETS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\.(js|mjs|cjs)$", re.IGNORECASE), "/*.js"),
    (re.compile(r"\.css$", re.IGNORECASE), "/*.css"),
    (re.compile(r"\.(png|jpg|jpeg|gif|svg|webp|ico|avif)$", re.IGNORECASE), "/*.img"),
    (re.compile(r"\.(woff|woff2|ttf|otf|eot)$", re.IGNORECASE), "/*.font"),
    (re.compile(r"\.json$", re.IGNORECASE), "/*.json"),
    (re.compile(r"\.(xml|rss|atom)$", re.IGNORECASE), "/*.xml"),
    (re.compile(r"\.(html|htm)$", re.IGNORECASE), "/*.html"),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

BLOB_COUNT = 10
DOUBLE_COUNT = 4


class GeoInfo(BaseModel):
    """Coarse client location reported by the edge."""

    country: str | None = None
    continent: str | None = None
    city: str | None = None
    region: str | None = None


class UsageDataPoint(BaseModel):
    """One immutable analytics record."""

    model_config = ConfigDict(frozen=True)

    indexes: tuple[str, ...] = Field(min_length=1, max_length=1)
    blobs: tuple[str, ...] = Field(min_length=BLOB_COUNT, max_length=BLOB_COUNT)
    doubles: tuple[float, ...] = Field(min_length=DOUBLE_COUNT, max_length=DOUBLE_COUNT)

    def to_dict(self) -> dict[str, list[str] | list[float]]:
        """Plain lists, the shape analytics sinks expect."""
        return {
            "indexes": list(self.indexes),
            "blobs": list(self.blobs),
            "doubles": list(self.doubles),
        }


def get_status_bucket(status: int) -> str:
    """Collapse an HTTP status into 2xx/3xx/4xx/5xx."""
    if status < 300:
        return "2xx"
    if status < 400:
        return "3xx"
    if status < 500:
        return "4xx"
    return "5xx"


def get_pathname_bucket(pathname: str) -> str:
    """Map a URL path onto a bounded set of buckets."""
    if pathname in EXACT_PATHS:
        return pathname

    for prefix in PREFIX_BUCKETS:
        if pathname.startswith(prefix):
            return f"{prefix}*"

    for pattern, bucket in EXTENSION_BUCKETS:
        if pattern.search(pathname):
            return bucket

    return "/other"


def get_cache_status(
    headers: Mapping[str, str],
    header_name: str = "cf-cache-status",
) -> str:
    """Read the cache status header; anything unrecognized is DYNAMIC."""
    value = headers.get(header_name)
    if value in CACHE_STATUSES:
        return value
    return DYNAMIC


def parse_content_length(value: str | None) -> int:
    """Parse a Content-Length header leniently; invalid or missing is 0."""
    if not value:
        return 0
    match = _LEADING_INT.match(value)
    if match is None:
        return 0
    return int(match.group(1))


def create_usage_data_point(
    *,
    project_id: str,
    org_id: str,
    tier: str,
    method: str,
    pathname: str,
    request_headers: Mapping[str, str],
    response_status: int,
    response_headers: Mapping[str, str],
    start_time: float,
    geo: GeoInfo | None = None,
    now: float | None = None,
    cache_status_header: str = "cf-cache-status",
) -> UsageDataPoint:
    """Build the usage data point for one forwarded request.

    Args:
        project_id: Tenant project id (the sampling index)
        org_id: Owning organization, for billing aggregation
        tier: Billing tier of the project
        method: HTTP method of the inbound request
        pathname: URL path of the inbound request
        request_headers: Inbound request headers
        response_status: Status returned to the client
        response_headers: Headers returned to the client
        start_time: Epoch seconds when dispatch started
        geo: Client location, missing fields recorded as "unknown"
        now: Epoch seconds at completion; defaults to the current time
        cache_status_header: Response header carrying the cache status

    Returns:
        Frozen UsageDataPoint
    """
    geo = geo or GeoInfo()
    end_time = time.time() if now is None else now
    latency_ms = max(0.0, (end_time - start_time) * 1000)

    blobs = (
        org_id,
        tier,
        method,
        get_cache_status(response_headers, cache_status_header),
        geo.country or UNKNOWN,
        geo.continent or UNKNOWN,
        geo.city or UNKNOWN,
        geo.region or UNKNOWN,
        get_status_bucket(response_status),
        get_pathname_bucket(pathname),
    )
    doubles = (
        1.0,
        latency_ms,
        float(parse_content_length(request_headers.get("content-length"))),
        float(parse_content_length(response_headers.get("content-length"))),
    )
    return UsageDataPoint(indexes=(project_id,), blobs=blobs, doubles=doubles)
