"""Binding proxy request handling for vector index operations.

Tenant code calls the proxy through VectorIndexProxyClient. Each call:
    1. identifies the project from X-Gatehouse-* headers
    2. passes the burst limiter (100 per 10 s by default)
    3. passes the daily quota for its operation class
    4. runs against the project's index
    5. schedules usage recording and the quota increment

Error bodies follow the binding wire contract: {error, code?, message?, resetIn?}.
"""

import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse

from gatehouse.dispatch.rate_limiter import FixedWindowRateLimiter
from gatehouse.dispatch.sinks import UsageSink, emit_usage
from gatehouse.dispatch.usage import UsageDataPoint
from gatehouse.kv.store import KeyValueStoreError
from gatehouse.observability.logging import get_logger
from gatehouse.observability.metrics import (
    PROXY_OPERATION_LATENCY,
    PROXY_OPERATIONS,
    QUOTA_REJECTIONS,
)
from gatehouse.proxy.index import VectorIndex, VectorIndexRegistry
from gatehouse.proxy.models import (
    MUTATION_OPERATIONS,
    QUERY_OPERATIONS,
    IdsParams,
    QueryParams,
    VectorizeProxyRequest,
    VectorsParams,
)
from gatehouse.proxy.quota import QuotaManager

logger = get_logger(__name__)

PROJECT_ID_HEADER = "X-Gatehouse-Project-ID"
ORG_ID_HEADER = "X-Gatehouse-Org-ID"
DURATION_HEADER = "X-Gatehouse-Vectorize-Duration"
VECTOR_COUNT_HEADER = "X-Gatehouse-Vector-Count"

BINDING_TYPE = "vectorize"
IDENTITY_SOURCE = "headers"
BINDING_TIER = "free"

DEFAULT_BURST_LIMIT = 100
DEFAULT_BURST_WINDOW_SECONDS = 10


def create_vectorize_data_point(
    *,
    project_id: str,
    org_id: str,
    index_name: str,
    operation: str,
    duration_ms: float,
    vector_count: int = 0,
    identity_source: str = IDENTITY_SOURCE,
) -> UsageDataPoint:
    """Usage data point for one binding call.

    Same dataset shape as HTTP requests; blob 3 carries the binding type so
    the two kinds of rows can be told apart.
    """
    return UsageDataPoint(
        indexes=(project_id,),
        blobs=(
            org_id,
            BINDING_TIER,
            BINDING_TYPE,
            index_name,
            operation,
            identity_source,
            "",
            "",
            "",
            "",
        ),
        doubles=(1.0, float(duration_ms), float(vector_count), 0.0),
    )


def _error(
    status_code: int,
    body: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers=headers)


class VectorizeHandler:
    """Serves POST /vectorize for every project."""

    def __init__(
        self,
        registry: VectorIndexRegistry,
        quota: QuotaManager,
        burst_limiter: FixedWindowRateLimiter,
        usage_sink: UsageSink,
        burst_limit: int = DEFAULT_BURST_LIMIT,
        burst_window_seconds: int = DEFAULT_BURST_WINDOW_SECONDS,
    ) -> None:
        self._registry = registry
        self._quota = quota
        self._burst_limiter = burst_limiter
        self._usage_sink = usage_sink
        self._burst_limit = burst_limit
        self._burst_window_seconds = burst_window_seconds

    async def handle(self, request: Request) -> JSONResponse:
        project_id = request.headers.get(PROJECT_ID_HEADER)
        org_id = request.headers.get(ORG_ID_HEADER)
        if not project_id or not org_id:
            logger.warning("vectorize_missing_identity", path=request.url.path)
            return _error(403, {"error": "Missing project context headers"})

        if not await self._within_burst(project_id):
            QUOTA_REJECTIONS.labels(kind="burst").inc()
            return _error(
                429,
                {
                    "error": "Rate limit exceeded",
                    "code": "RATE_LIMITED",
                    "message": "Too many requests. Please slow down.",
                },
                headers={"Retry-After": str(self._burst_window_seconds)},
            )

        try:
            body = await request.json()
        except ValueError:
            return _error(400, {"error": "Invalid JSON body"})

        try:
            call = VectorizeProxyRequest.model_validate(body)
        except ValidationError:
            return _error(400, {"error": "Missing operation or index_name"})

        if call.operation not in QUERY_OPERATIONS | MUTATION_OPERATIONS | {"describe"}:
            return _error(400, {"error": "Unknown operation"})

        rejection = await self._check_quota(call.operation, project_id)
        if rejection is not None:
            return rejection

        index = self._registry.get(project_id, call.index_name)
        try:
            run, vector_count = self._prepare(index, call)
        except ValidationError as e:
            return _error(
                400,
                {"error": f"Invalid params for {call.operation}: {e.error_count()} error(s)"},
            )

        start = time.perf_counter()
        try:
            result = await run()
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            PROXY_OPERATIONS.labels(operation=call.operation, outcome="error").inc()
            logger.error(
                "vectorize_operation_failed",
                project_id=project_id,
                index_name=call.index_name,
                operation=call.operation,
                error=str(e),
            )
            return _error(
                500,
                {"error": str(e) or f"{call.operation} failed"},
                headers={DURATION_HEADER: str(int(duration_ms))},
            )

        duration_ms = (time.perf_counter() - start) * 1000
        PROXY_OPERATIONS.labels(operation=call.operation, outcome="ok").inc()
        PROXY_OPERATION_LATENCY.labels(operation=call.operation).observe(duration_ms / 1000)

        headers = {DURATION_HEADER: str(int(duration_ms))}
        if call.operation not in ("query", "describe"):
            headers[VECTOR_COUNT_HEADER] = str(vector_count)

        return JSONResponse(
            result,
            headers=headers,
            background=BackgroundTask(
                self._record,
                project_id=project_id,
                org_id=org_id,
                index_name=call.index_name,
                operation=call.operation,
                duration_ms=duration_ms,
                vector_count=vector_count,
            ),
        )

    async def _within_burst(self, project_id: str) -> bool:
        try:
            result = await self._burst_limiter.check_and_increment(
                project_id, self._burst_limit
            )
        except KeyValueStoreError as e:
            logger.error("vectorize_burst_check_failed", project_id=project_id, error=str(e))
            return True
        return result.allowed

    async def _check_quota(self, operation: str, project_id: str) -> JSONResponse | None:
        if operation in QUERY_OPERATIONS:
            result = await self._quota.check_query_quota(project_id)
            code, label = "VECTORIZE_QUERY_QUOTA_EXCEEDED", "query"
        elif operation in MUTATION_OPERATIONS:
            result = await self._quota.check_mutation_quota(project_id)
            code, label = "VECTORIZE_MUTATION_QUOTA_EXCEEDED", "mutation"
        else:
            return None

        if result.allowed:
            return None

        QUOTA_REJECTIONS.labels(kind=label).inc()
        logger.info("vectorize_quota_exceeded", project_id=project_id, kind=label)
        return _error(
            429,
            {
                "error": f"Vectorize {label} quota exceeded",
                "code": code,
                "resetIn": result.reset_in,
                "message": (
                    f"Vectorize {label} quota exceeded. "
                    f"Resets at midnight UTC ({result.reset_in}s)."
                ),
            },
            headers={"Retry-After": str(result.reset_in)},
        )

    @staticmethod
    def _prepare(
        index: VectorIndex, call: VectorizeProxyRequest
    ) -> tuple[Callable[[], Awaitable[Any]], int]:
        """Validate params and bind the index call.

        Returns:
            (coroutine factory producing the JSON-ready result, vector count)
        """
        if call.operation == "query":
            params = QueryParams.model_validate(call.params)

            async def run_query() -> Any:
                result = await index.query(
                    params.vector,
                    top_k=params.top_k,
                    filter=params.filter,
                    return_values=params.return_values,
                    return_metadata=params.return_metadata,
                )
                return result.to_wire()

            return run_query, 0

        if call.operation == "upsert":
            vectors = VectorsParams.model_validate(call.params).vectors

            async def run_upsert() -> Any:
                return (await index.upsert(vectors)).to_wire()

            return run_upsert, len(vectors)

        if call.operation == "describe":

            async def run_describe() -> Any:
                return (await index.describe()).to_wire()

            return run_describe, 0

        ids = IdsParams.model_validate(call.params).ids

        if call.operation == "deleteByIds":

            async def run_delete() -> Any:
                return (await index.delete_by_ids(ids)).to_wire()

            return run_delete, len(ids)

        async def run_get() -> Any:
            return [record.to_wire() for record in await index.get_by_ids(ids)]

        return run_get, len(ids)

    async def _record(
        self,
        *,
        project_id: str,
        org_id: str,
        index_name: str,
        operation: str,
        duration_ms: float,
        vector_count: int,
    ) -> None:
        """Write usage and bump the daily counter after the response is sent."""
        await emit_usage(
            self._usage_sink,
            create_vectorize_data_point(
                project_id=project_id,
                org_id=org_id,
                index_name=index_name,
                operation=operation,
                duration_ms=duration_ms,
                vector_count=vector_count,
            ),
        )
        if operation in QUERY_OPERATIONS:
            await self._quota.increment_queries(project_id)
        elif operation in MUTATION_OPERATIONS:
            await self._quota.increment_mutations(project_id)
