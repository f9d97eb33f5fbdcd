"""Tenant config cache on top of the shared key-value store.

Key layout:
    config:{slug}     full TenantConfig, looked up by hostname label
    project:{id}      same record, looked up by project id
    notfound:{slug}   negative cache for unknown hostnames
"""

from typing import Any

from pydantic import ValidationError

from gatehouse.kv.store import KeyValueStore
from gatehouse.observability.logging import get_logger
from gatehouse.tenants.models import (
    MAX_REQUESTS_PER_MINUTE,
    TenantConfig,
    TenantLimits,
    utc_now,
)

logger = get_logger(__name__)

NOT_FOUND_TTL_SECONDS = 60


class TenantConfigStore:
    """Reads and writes tenant configs in the key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        not_found_ttl_seconds: int = NOT_FOUND_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._not_found_ttl_seconds = not_found_ttl_seconds

    @staticmethod
    def slug_key(slug: str) -> str:
        return f"config:{slug}"

    @staticmethod
    def project_key(project_id: str) -> str:
        return f"project:{project_id}"

    @staticmethod
    def not_found_key(slug: str) -> str:
        return f"notfound:{slug}"

    async def _load(self, key: str) -> TenantConfig | None:
        data = await self._store.get_json(key)
        if data is None:
            return None
        try:
            return TenantConfig.model_validate(data)
        except ValidationError as e:
            logger.warning("tenant_config_corrupted", key=key, errors=e.error_count())
            return None

    async def get_by_slug(self, slug: str) -> TenantConfig | None:
        """Get the config cached under the hostname label."""
        return await self._load(self.slug_key(slug))

    async def get_by_id(self, project_id: str) -> TenantConfig | None:
        """Get the config cached under the project id."""
        return await self._load(self.project_key(project_id))

    async def resolve(self, slug: str) -> TenantConfig | None:
        """Look up by slug first, then fall back to treating the slug as an id."""
        config = await self.get_by_slug(slug)
        if config is None:
            config = await self.get_by_id(slug)
        return config

    async def put(self, config: TenantConfig) -> None:
        """Write the config under both its id and slug keys."""
        data = config.model_dump(mode="json")
        await self._store.put_json(self.project_key(config.project_id), data)
        await self._store.put_json(self.slug_key(config.slug), data)
        await self._store.delete(self.not_found_key(config.slug))
        logger.info(
            "tenant_config_cached",
            project_id=config.project_id,
            slug=config.slug,
            status=config.status.value,
        )

    async def update(self, project_id: str, **changes: Any) -> TenantConfig | None:
        """Merge changes into an existing config and bump updated_at.

        Returns:
            The updated config, or None if the project is not cached
        """
        existing = await self.get_by_id(project_id)
        if existing is None:
            logger.warning("tenant_config_update_missing", project_id=project_id)
            return None

        merged = existing.model_dump()
        merged.update(changes)
        merged["updated_at"] = utc_now()
        updated = TenantConfig.model_validate(merged)

        if updated.slug != existing.slug:
            await self._store.delete(self.slug_key(existing.slug))
        await self.put(updated)
        return updated

    async def set_limits(
        self, project_id: str, requests_per_minute: int
    ) -> TenantConfig | None:
        """Set the per-minute request limit.

        Raises:
            ValueError: If the limit is outside 1..100000
        """
        if not 1 <= requests_per_minute <= MAX_REQUESTS_PER_MINUTE:
            raise ValueError(
                f"requests_per_minute must be between 1 and {MAX_REQUESTS_PER_MINUTE}"
            )
        return await self.update(
            project_id,
            limits=TenantLimits(requests_per_minute=requests_per_minute),
        )

    async def invalidate(self, project_id: str) -> None:
        """Remove a project's cached config."""
        existing = await self.get_by_id(project_id)
        await self._store.delete(self.project_key(project_id))
        if existing is not None:
            await self._store.delete(self.slug_key(existing.slug))
        logger.info("tenant_config_invalidated", project_id=project_id)

    async def is_known_missing(self, slug: str) -> bool:
        """True when the slug was recently looked up and not found."""
        return await self._store.get_json(self.not_found_key(slug)) is not None

    async def mark_missing(self, slug: str) -> None:
        """Remember a failed lookup for a short while."""
        await self._store.put_json(
            self.not_found_key(slug), 1, ttl_seconds=self._not_found_ttl_seconds
        )
