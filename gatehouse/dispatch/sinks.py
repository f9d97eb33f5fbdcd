"""Usage sinks: where usage data points go after the response is sent."""

import json
from abc import ABC, abstractmethod

from redis.asyncio import Redis

from gatehouse.dispatch.usage import UsageDataPoint
from gatehouse.observability.logging import get_logger
from gatehouse.observability.metrics import USAGE_EMITTED

logger = get_logger(__name__)


class UsageSink(ABC):
    """Abstract interface for the analytics write path."""

    name: str = "abstract"

    @abstractmethod
    async def write(self, data_point: UsageDataPoint) -> None:
        """Write one data point. May raise; callers use emit_usage()."""
        pass


class LogUsageSink(UsageSink):
    """Writes data points to the structured log stream."""

    name = "log"

    async def write(self, data_point: UsageDataPoint) -> None:
        logger.info(
            "usage_data_point",
            indexes=list(data_point.indexes),
            blobs=list(data_point.blobs),
            doubles=list(data_point.doubles),
        )


class RedisStreamUsageSink(UsageSink):
    """Appends data points to a capped Redis stream.

    Entry fields: indexes, blobs, doubles (JSON arrays).
    """

    name = "redis"

    def __init__(
        self,
        redis: Redis,
        stream: str = "gatehouse:usage",
        max_length: int = 1_000_000,
    ) -> None:
        self._redis = redis
        self._stream = stream
        self._max_length = max_length

    async def write(self, data_point: UsageDataPoint) -> None:
        fields = {
            "indexes": json.dumps(list(data_point.indexes)),
            "blobs": json.dumps(list(data_point.blobs)),
            "doubles": json.dumps(list(data_point.doubles)),
        }
        await self._redis.xadd(
            self._stream,
            fields,
            maxlen=self._max_length,
            approximate=True,
        )


class InMemoryUsageSink(UsageSink):
    """Collects data points in a list (tests and local development)."""

    name = "inmemory"

    def __init__(self) -> None:
        self.data_points: list[UsageDataPoint] = []

    async def write(self, data_point: UsageDataPoint) -> None:
        self.data_points.append(data_point)

    def clear(self) -> None:
        """Drop collected data points (test utility)."""
        self.data_points.clear()


async def emit_usage(sink: UsageSink, data_point: UsageDataPoint) -> None:
    """Write a data point, logging and swallowing any failure.

    Usage recording never affects the request it describes.
    """
    try:
        await sink.write(data_point)
    except Exception as e:
        USAGE_EMITTED.labels(sink=sink.name, outcome="error").inc()
        logger.warning(
            "usage_emit_failed",
            sink=sink.name,
            project_id=data_point.indexes[0],
            error=str(e),
        )
        return
    USAGE_EMITTED.labels(sink=sink.name, outcome="ok").inc()
