"""Dispatcher configuration models."""

from pydantic import BaseModel, Field, field_validator


class GeoHeadersConfig(BaseModel):
    """Request headers carrying geo data set by the load balancer or CDN."""

    country: str = Field(default="cf-ipcountry", description="ISO country code header")
    continent: str = Field(default="x-geo-continent", description="Continent code header")
    city: str = Field(default="x-geo-city", description="City name header")
    region: str = Field(default="x-geo-region", description="Region name header")


class DispatchConfig(BaseModel):
    """Configuration for host routing, rate limiting and forwarding."""

    base_domain: str = Field(
        default="gatehouse.run",
        description="Domain under which tenant slugs are served ({slug}.{base_domain})",
    )
    default_requests_per_minute: int = Field(
        default=1000,
        gt=0,
        description="Limit applied when a tenant config carries no limits",
    )
    window_seconds: int = Field(
        default=60,
        gt=0,
        description="Fixed rate limit window length",
    )
    window_ttl_seconds: int = Field(
        default=120,
        gt=0,
        description="TTL of window records; longer than the window to absorb clock skew",
    )
    upstream_url_template: str = Field(
        default="http://{worker_ref}.tenants.internal",
        description="Base URL of a tenant compute unit; {worker_ref} is substituted",
    )
    forward_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for the single forwarding attempt",
    )
    not_found_ttl_seconds: int = Field(
        default=60,
        gt=0,
        description="How long an unknown slug is remembered as missing",
    )
    cache_status_header: str = Field(
        default="cf-cache-status",
        description="Response header carrying the cache status",
    )
    geo_headers: GeoHeadersConfig = Field(
        default_factory=GeoHeadersConfig,
        description="Geo header names",
    )

    @field_validator("base_domain")
    @classmethod
    def normalize_base_domain(cls, v: str) -> str:
        """Strip whitespace and leading/trailing dots."""
        domain = v.strip().strip(".").lower()
        if not domain:
            raise ValueError("base_domain must not be empty")
        return domain
