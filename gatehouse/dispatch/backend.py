"""Forwarding to tenant compute units."""

from abc import ABC, abstractmethod

import httpx
from starlette.requests import Request

from gatehouse.tenants.models import TenantConfig

HOP_BY_HOP_HEADERS: frozenset[str] = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


def filter_hop_by_hop(
    headers: list[tuple[bytes, bytes]],
) -> list[tuple[bytes, bytes]]:
    """Drop connection-scoped headers, keeping repeated end-to-end headers."""
    return [
        (name, value)
        for name, value in headers
        if name.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
    ]


class TenantBackend(ABC):
    """Abstract interface for reaching a tenant's compute unit."""

    @abstractmethod
    async def forward(self, config: TenantConfig, request: Request) -> httpx.Response:
        """Forward the request once and return the streaming upstream response.

        The caller owns the returned response and must close it.

        Raises:
            httpx.HTTPError: When no response could be obtained
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources."""
        return None


class HttpTenantBackend(TenantBackend):
    """Forwards over HTTP to a URL derived from the tenant's worker_ref."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        upstream_url_template: str = "http://{worker_ref}.tenants.internal",
    ) -> None:
        """Initialize the backend.

        Args:
            client: Shared HTTP client (timeouts configured by the caller)
            upstream_url_template: Base URL with a {worker_ref} placeholder
        """
        self._client = client
        self._upstream_url_template = upstream_url_template

    def build_url(self, config: TenantConfig, request: Request) -> str:
        base = self._upstream_url_template.format(worker_ref=config.worker_ref).rstrip("/")
        url = f"{base}{request.url.path}"
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return url

    async def forward(self, config: TenantConfig, request: Request) -> httpx.Response:
        has_body = "content-length" in request.headers or "transfer-encoding" in request.headers
        upstream_request = self._client.build_request(
            request.method,
            self.build_url(config, request),
            headers=filter_hop_by_hop(request.headers.raw),
            content=request.stream() if has_body else None,
        )
        return await self._client.send(upstream_request, stream=True)

    async def aclose(self) -> None:
        await self._client.aclose()
