"""Tests for usage sinks."""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from gatehouse.dispatch.sinks import (
    InMemoryUsageSink,
    LogUsageSink,
    RedisStreamUsageSink,
    UsageSink,
    emit_usage,
)
from gatehouse.dispatch.usage import UsageDataPoint


@pytest.fixture
def data_point() -> UsageDataPoint:
    return UsageDataPoint(
        indexes=("proj_1",),
        blobs=("org_1", "free", "GET", "DYNAMIC", "US", "NA", "x", "y", "2xx", "/"),
        doubles=(1.0, 12.5, 0.0, 42.0),
    )


class ExplodingSink(UsageSink):
    name = "exploding"

    async def write(self, data_point: UsageDataPoint) -> None:
        raise RuntimeError("analytics down")


class TestSinks:
    """Tests for sink implementations."""

    async def test_inmemory_collects(self, data_point: UsageDataPoint) -> None:
        """The in-memory sink keeps every point."""
        sink = InMemoryUsageSink()
        await sink.write(data_point)
        assert sink.data_points == [data_point]
        sink.clear()
        assert sink.data_points == []

    async def test_log_sink_does_not_raise(self, data_point: UsageDataPoint) -> None:
        """The log sink writes to the structured log."""
        await LogUsageSink().write(data_point)

    async def test_redis_stream_sink(self, data_point: UsageDataPoint) -> None:
        """Points are appended to a capped stream."""
        redis_client = AsyncMock()
        sink = RedisStreamUsageSink(redis_client, stream="usage", max_length=500)

        await sink.write(data_point)

        redis_client.xadd.assert_awaited_once_with(
            "usage",
            {
                "indexes": json.dumps(["proj_1"]),
                "blobs": json.dumps(list(data_point.blobs)),
                "doubles": json.dumps([1.0, 12.5, 0.0, 42.0]),
            },
            maxlen=500,
            approximate=True,
        )


class TestEmitUsage:
    """Tests for emit_usage."""

    async def test_failures_are_swallowed(self, data_point: UsageDataPoint) -> None:
        """A failing sink never raises to the caller."""
        await emit_usage(ExplodingSink(), data_point)

    async def test_redis_failure_swallowed(self, data_point: UsageDataPoint) -> None:
        """Redis errors during emit are swallowed."""
        redis_client = AsyncMock()
        redis_client.xadd.side_effect = RedisConnectionError("down")
        await emit_usage(RedisStreamUsageSink(redis_client), data_point)

    async def test_success_writes(self, data_point: UsageDataPoint) -> None:
        """Successful emits reach the sink."""
        sink = InMemoryUsageSink()
        await emit_usage(sink, data_point)
        assert len(sink.data_points) == 1
