"""Daily per-project quotas for binding operations.

Counters live in the shared key-value store under
vectorize_{queries|mutations}:{project_id}:{YYYY-MM-DD} and expire after
two days. Store failures fail open.
"""

import time
from collections.abc import Callable
from datetime import UTC, datetime

from gatehouse.kv.store import KeyValueStore, KeyValueStoreError
from gatehouse.observability.logging import get_logger
from gatehouse.proxy.models import QuotaCheckResult

logger = get_logger(__name__)

DEFAULT_QUERY_QUOTA = 33_000
DEFAULT_MUTATION_QUOTA = 10_000
COUNTER_TTL_SECONDS = 86400 * 2
SECONDS_PER_DAY = 86400


class QuotaManager:
    """Checks and increments daily counters."""

    def __init__(
        self,
        store: KeyValueStore,
        query_limit: int = DEFAULT_QUERY_QUOTA,
        mutation_limit: int = DEFAULT_MUTATION_QUOTA,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._query_limit = query_limit
        self._mutation_limit = mutation_limit
        self._clock = clock

    def day_key(self) -> str:
        """Current UTC day as YYYY-MM-DD."""
        return datetime.fromtimestamp(self._clock(), UTC).strftime("%Y-%m-%d")

    def seconds_until_midnight_utc(self) -> int:
        return int(SECONDS_PER_DAY - (self._clock() % SECONDS_PER_DAY))

    def _key(self, kind: str, project_id: str) -> str:
        return f"vectorize_{kind}:{project_id}:{self.day_key()}"

    async def _check(self, kind: str, project_id: str, limit: int) -> QuotaCheckResult:
        reset_in = self.seconds_until_midnight_utc()
        try:
            current = int(await self._store.get_json(self._key(kind, project_id)) or 0)
        except (KeyValueStoreError, TypeError, ValueError) as e:
            logger.error("quota_check_failed", kind=kind, project_id=project_id, error=str(e))
            return QuotaCheckResult(allowed=True, remaining=limit, reset_in=reset_in)

        return QuotaCheckResult(
            allowed=current < limit,
            remaining=max(0, limit - current),
            reset_in=reset_in,
        )

    async def _increment(self, kind: str, project_id: str) -> None:
        key = self._key(kind, project_id)
        try:
            current = int(await self._store.get_json(key) or 0)
            await self._store.put_json(key, current + 1, ttl_seconds=COUNTER_TTL_SECONDS)
        except (KeyValueStoreError, TypeError, ValueError) as e:
            logger.error(
                "quota_increment_failed", kind=kind, project_id=project_id, error=str(e)
            )

    async def check_query_quota(self, project_id: str) -> QuotaCheckResult:
        return await self._check("queries", project_id, self._query_limit)

    async def check_mutation_quota(self, project_id: str) -> QuotaCheckResult:
        return await self._check("mutations", project_id, self._mutation_limit)

    async def increment_queries(self, project_id: str) -> None:
        await self._increment("queries", project_id)

    async def increment_mutations(self, project_id: str) -> None:
        await self._increment("mutations", project_id)
