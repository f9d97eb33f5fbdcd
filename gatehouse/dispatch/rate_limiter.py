"""Fixed-window rate limiting.

Windows are aligned to the wall clock: every tenant's window starts at
floor(now / window) * window. The read-then-write is not atomic, so two
concurrent requests can both see the same count. Limiting is approximate.
"""

import time
from collections.abc import Callable

from pydantic import ValidationError

from gatehouse.dispatch.models import RateLimitResult, RateLimitWindow
from gatehouse.kv.store import KeyValueStore
from gatehouse.observability.logging import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60
WINDOW_TTL_SECONDS = 120


class FixedWindowRateLimiter:
    """Per-key counter in fixed windows backed by a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        window_seconds: int = WINDOW_SECONDS,
        ttl_seconds: int = WINDOW_TTL_SECONDS,
        key_prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared key-value store holding window records
            window_seconds: Window length
            ttl_seconds: Record TTL, longer than the window
            key_prefix: Key namespace ("ratelimit" for the router)
            clock: Returns epoch seconds; injectable for tests
        """
        self._store = store
        self._window_ms = window_seconds * 1000
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix
        self._clock = clock

    def _make_key(self, tenant_id: str) -> str:
        return f"{self._key_prefix}:{tenant_id}"

    def current_window_start(self) -> int:
        """Start of the window containing now, in epoch milliseconds."""
        now_ms = int(self._clock() * 1000)
        return (now_ms // self._window_ms) * self._window_ms

    async def _read_window(self, key: str) -> RateLimitWindow | None:
        data = await self._store.get_json(key)
        if data is None:
            return None
        try:
            return RateLimitWindow.model_validate(data)
        except ValidationError:
            logger.warning("rate_limit_window_corrupted", key=key)
            return None

    async def check_and_increment(self, tenant_id: str, limit: int) -> RateLimitResult:
        """Count one request against the tenant's current window.

        A rejected request is not counted.

        Args:
            tenant_id: Key to limit on
            limit: Requests allowed in one window

        Returns:
            RateLimitResult with post-increment remaining and window reset
        """
        key = self._make_key(tenant_id)
        window_start = self.current_window_start()
        reset = (window_start + self._window_ms) // 1000

        window = await self._read_window(key)

        if window is None or window.window_start != window_start:
            new_window = RateLimitWindow(count=1, window_start=window_start)
            await self._store.put_json(
                key, new_window.model_dump(), ttl_seconds=self._ttl_seconds
            )
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - 1),
                reset=reset,
            )

        if window.count >= limit:
            logger.info(
                "rate_limit_exceeded",
                tenant_id=tenant_id,
                limit=limit,
                count=window.count,
            )
            return RateLimitResult(allowed=False, limit=limit, remaining=0, reset=reset)

        new_count = window.count + 1
        await self._store.put_json(
            key,
            RateLimitWindow(count=new_count, window_start=window_start).model_dump(),
            ttl_seconds=self._ttl_seconds,
        )
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=max(0, limit - new_count),
            reset=reset,
        )
