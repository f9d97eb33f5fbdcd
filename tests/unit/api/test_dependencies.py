"""Tests for process-wide dependency construction."""

from collections.abc import AsyncGenerator

import pytest

from gatehouse.api import dependencies
from gatehouse.dispatch.sinks import InMemoryUsageSink, LogUsageSink
from gatehouse.kv.inmemory import InMemoryKeyValueStore


@pytest.fixture(autouse=True)
async def fresh_dependencies() -> AsyncGenerator[None, None]:
    await dependencies.reset_dependencies()
    yield
    await dependencies.reset_dependencies()


class TestDependencies:
    """Singletons built from settings."""

    async def test_defaults(self) -> None:
        """Default settings use the in-memory store and the log sink."""
        assert isinstance(dependencies.get_kv_store(), InMemoryKeyValueStore)
        assert isinstance(dependencies.get_usage_sink(), LogUsageSink)

    async def test_singletons(self) -> None:
        """Collaborators are built once per process."""
        assert dependencies.get_kv_store() is dependencies.get_kv_store()
        assert dependencies.get_dispatcher() is dependencies.get_dispatcher()
        assert dependencies.get_vectorize_handler() is dependencies.get_vectorize_handler()

    async def test_usage_backend_from_env(self, env_override) -> None:
        """storage.usage.backend selects the sink."""
        with env_override({"GATEHOUSE_STORAGE__USAGE__BACKEND": "inmemory"}):
            assert isinstance(dependencies.get_usage_sink(), InMemoryUsageSink)

    async def test_reset(self) -> None:
        """reset_dependencies drops cached instances."""
        store = dependencies.get_kv_store()
        dependencies.get_tenant_backend()
        await dependencies.reset_dependencies()
        assert dependencies.get_kv_store() is not store

    async def test_tenant_store_not_found_ttl(self, env_override) -> None:
        """dispatch.not_found_ttl_seconds reaches the dispatcher's tenant store."""
        with env_override({"GATEHOUSE_DISPATCH__NOT_FOUND_TTL_SECONDS": "5"}):
            dispatcher = dependencies.get_dispatcher()
        assert dispatcher._tenants._not_found_ttl_seconds == 5
