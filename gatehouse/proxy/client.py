"""Vector index client that routes every call through the binding proxy.

Tenant code receives this object in place of its native vector index
binding. It has the same surface, so no tenant code changes are needed;
the proxy meters each call and enforces quotas.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from gatehouse.observability.logging import get_logger
from gatehouse.proxy.errors import ProxyOperationError, ProxyQuotaError
from gatehouse.proxy.index import VectorIndex, VectorInput, coerce_vectors
from gatehouse.proxy.models import (
    IndexDetails,
    QueryParams,
    ReturnMetadata,
    VectorMutationResult,
    VectorQueryResult,
    VectorRecord,
)

logger = get_logger(__name__)

PROXY_ENDPOINT = "http://internal/vectorize"

ResultT = TypeVar("ResultT")

_RECORDS = TypeAdapter(list[VectorRecord])


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class VectorIndexProxyClient(VectorIndex):
    """VectorIndex implementation that POSTs to the binding proxy."""

    def __init__(
        self,
        transport: httpx.AsyncClient,
        index_name: str,
        endpoint: str = PROXY_ENDPOINT,
    ) -> None:
        """Initialize the client.

        Args:
            transport: HTTP client bound to the proxy; identity headers are
                attached by the platform when the binding is provisioned
            index_name: Index the tenant is bound to
            endpoint: Proxy URL
        """
        self._transport = transport
        self._index_name = index_name
        self._endpoint = endpoint

    @property
    def index_name(self) -> str:
        return self._index_name

    async def _request(self, operation: str, params: dict[str, Any]) -> Any:
        try:
            response = await self._transport.post(
                self._endpoint,
                json={
                    "operation": operation,
                    "index_name": self._index_name,
                    "params": params,
                },
            )
        except httpx.HTTPError as e:
            logger.warning(
                "vector_proxy_transport_failed",
                operation=operation,
                index_name=self._index_name,
                error=str(e),
            )
            raise ProxyOperationError(
                f"Vector index {operation} failed: {e}", operation=operation
            ) from e

        if response.status_code == 429:
            body = _json_body(response)
            raise ProxyQuotaError(
                body.get("message") or "Vector index quota exceeded",
                code=body.get("code") or "QUOTA_EXCEEDED",
                reset_in=body.get("resetIn"),
            )

        if not response.is_success:
            body = _json_body(response)
            raise ProxyOperationError(
                body.get("error") or f"Vector index {operation} failed",
                operation=operation,
            )

        try:
            return response.json()
        except ValueError as e:
            raise self._invalid_response(operation, e) from e

    def _invalid_response(self, operation: str, error: Exception) -> ProxyOperationError:
        logger.warning(
            "vector_proxy_invalid_response",
            operation=operation,
            index_name=self._index_name,
            error=str(error),
        )
        return ProxyOperationError(
            f"Vector index {operation} returned an invalid response",
            operation=operation,
        )

    async def _call(
        self,
        operation: str,
        params: dict[str, Any],
        parse: Callable[[Any], ResultT],
    ) -> ResultT:
        data = await self._request(operation, params)
        try:
            return parse(data)
        except ValidationError as e:
            raise self._invalid_response(operation, e) from e

    async def query(
        self,
        vector: Sequence[float],
        *,
        top_k: int | None = None,
        filter: dict[str, Any] | None = None,
        return_values: bool | None = None,
        return_metadata: ReturnMetadata | bool | None = None,
    ) -> VectorQueryResult:
        params = QueryParams(
            vector=list(vector),
            top_k=top_k,
            filter=filter,
            return_values=return_values,
            return_metadata=return_metadata,
        )
        return await self._call(
            "query", params.to_wire(), VectorQueryResult.model_validate
        )

    async def upsert(self, vectors: Sequence[VectorInput]) -> VectorMutationResult:
        payload = [v.to_wire() for v in coerce_vectors(vectors)]
        return await self._call(
            "upsert", {"vectors": payload}, VectorMutationResult.model_validate
        )

    async def delete_by_ids(self, ids: Sequence[str]) -> VectorMutationResult:
        return await self._call(
            "deleteByIds", {"ids": list(ids)}, VectorMutationResult.model_validate
        )

    async def get_by_ids(self, ids: Sequence[str]) -> list[VectorRecord]:
        return await self._call(
            "getByIds", {"ids": list(ids)}, _RECORDS.validate_python
        )

    async def describe(self) -> IndexDetails:
        return await self._call("describe", {}, IndexDetails.model_validate)


def create_vector_index_client(
    transport: httpx.AsyncClient,
    index_name: str,
) -> VectorIndexProxyClient:
    """Create a proxy-backed client for one index binding."""
    return VectorIndexProxyClient(transport, index_name)
