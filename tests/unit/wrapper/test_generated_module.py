"""Executes generated entry modules against a real tenant module."""

import json
import textwrap
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from gatehouse.proxy.client import VectorIndexProxyClient
from gatehouse.wrapper import generate_metering_wrapper

TENANT_SOURCE = '''
class Counter:
    """Counts things."""

    def __init__(self, state, env):
        self.state = state
        self.env = env
        self.value = 0

    def increment(self, by=1):
        self.value += by
        return self.value

    async def fetch(self):
        return self.value

    def current(self):
        return self.value

    def add_twice(self):
        self.increment()
        self.increment()
        return self.current()

    async def refresh(self):
        self.increment()
        return await self.fetch()

    def explode(self):
        raise RuntimeError("boom")

    def _private(self):
        return "hidden"


class Handlers:
    version = "1.0"

    async def fetch(self, request, env, ctx=None):
        return env.VECTORS

    def lookup(self, request, env):
        return env["VECTORS"], env.get("OTHER"), "VECTORS" in env


default = Handlers()
'''


class FakeDataset:
    """Stands in for the analytics dataset binding."""

    def __init__(self, fail: bool = False) -> None:
        self.points: list[dict[str, Any]] = []
        self.fail = fail

    def write_data_point(self, point: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("dataset unavailable")
        self.points.append(point)


@pytest.fixture
def load_entry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest):
    """Write the tenant module and execute a generated entry module for it."""
    module_name = f"tenant_{request.node.name.replace('[', '_').replace(']', '_')}"
    (tmp_path / f"{module_name}.py").write_text(textwrap.dedent(TENANT_SOURCE))
    monkeypatch.syspath_prepend(str(tmp_path))

    def _load(**spec: Any) -> dict[str, Any]:
        source = generate_metering_wrapper(
            {"originalModule": module_name, "projectId": "proj_1", "orgId": "org_1", **spec}
        )
        namespace: dict[str, Any] = {"__name__": "entry"}
        exec(compile(source, "entry.py", "exec"), namespace)
        return namespace

    return _load


class TestMeteredActors:
    """Wrapped actor classes."""

    def test_public_calls_are_recorded(self, load_entry) -> None:
        """Each public method call writes one data point."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        counter = entry["Counter"]("state", {"GATEHOUSE_USAGE": dataset})

        assert counter.increment(2) == 2
        assert counter.increment() == 3

        assert len(dataset.points) == 2
        point = dataset.points[0]
        assert point["indexes"] == ["proj_1"]
        assert point["blobs"] == ["org_1", "Counter", "increment"]
        assert point["doubles"][0] == 1
        assert point["doubles"][1] >= 0

    def test_private_and_attributes_not_recorded(self, load_entry) -> None:
        """Private methods and plain attributes are left alone."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        counter = entry["Counter"]("state", SimpleNamespace(GATEHOUSE_USAGE=dataset))

        assert counter._private() == "hidden"
        assert counter.value == 0
        assert counter.state == "state"
        assert dataset.points == []

    async def test_async_methods(self, load_entry) -> None:
        """Coroutine methods are awaited and recorded."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        counter = entry["Counter"]("state", env={"GATEHOUSE_USAGE": dataset})

        assert await counter.fetch() == 0
        assert dataset.points[0]["blobs"][2] == "fetch"

    def test_calls_on_self_are_one_call(self, load_entry) -> None:
        """Methods an instance calls on itself are not recorded separately."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        counter = entry["Counter"]("state", {"GATEHOUSE_USAGE": dataset})

        assert counter.add_twice() == 2
        assert counter.current() == 2

        assert [p["blobs"][2] for p in dataset.points] == ["add_twice", "current"]

    async def test_async_calls_on_self_are_one_call(self, load_entry) -> None:
        """An async method calling sync and async methods on itself is one data point."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        counter = entry["Counter"]("state", {"GATEHOUSE_USAGE": dataset})

        assert await counter.refresh() == 1

        assert [p["blobs"][2] for p in dataset.points] == ["refresh"]

    def test_other_instances_recorded(self, load_entry) -> None:
        """A call into a different instance is that instance's own call."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        first = entry["Counter"]("state", {"GATEHOUSE_USAGE": dataset})
        second = entry["Counter"]("state", {"GATEHOUSE_USAGE": dataset})
        first.increment = second.increment

        first.add_twice()

        assert [p["blobs"][2] for p in dataset.points] == [
            "increment",
            "increment",
            "add_twice",
        ]

    def test_failures_still_recorded(self, load_entry) -> None:
        """A raising method is recorded and its exception propagates."""
        entry = load_entry(doClassNames=["Counter"])
        dataset = FakeDataset()
        counter = entry["Counter"]("state", {"GATEHOUSE_USAGE": dataset})

        with pytest.raises(RuntimeError, match="boom"):
            counter.explode()
        assert dataset.points[0]["blobs"][2] == "explode"

    def test_usage_failures_are_invisible(self, load_entry) -> None:
        """A broken or missing dataset never affects the call."""
        entry = load_entry(doClassNames=["Counter"])

        broken = entry["Counter"]("state", {"GATEHOUSE_USAGE": FakeDataset(fail=True)})
        assert broken.increment() == 1

        unmetered = entry["Counter"]("state", {})
        assert unmetered.increment() == 1

    def test_identity_preserved(self, load_entry) -> None:
        """Wrapped classes keep their name, docs and ancestry."""
        entry = load_entry(doClassNames=["Counter"])
        wrapped = entry["Counter"]
        original = wrapped.__mro__[1]

        assert wrapped.__name__ == "Counter"
        assert wrapped.__doc__ == "Counts things."
        assert isinstance(wrapped("s", {}), original)


class ProxyRecorder:
    def __init__(self) -> None:
        self.bodies: list[dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"dimensions": 3, "metric": "cosine", "vectorCount": 4})


class TestMeteredVectorBindings:
    """Default export interception."""

    BINDINGS = [{"bindingName": "VECTORS", "indexName": "docs-idx"}]

    async def test_binding_is_replaced(self, load_entry) -> None:
        """Handlers see a proxy-backed client in place of the native binding."""
        entry = load_entry(vectorizeBindings=self.BINDINGS)
        proxy = ProxyRecorder()
        env = SimpleNamespace(
            VECTORS=object(),
            GATEHOUSE_VECTOR_PROXY=httpx.AsyncClient(transport=httpx.MockTransport(proxy)),
        )

        binding = await entry["default"].fetch("request", env)

        assert isinstance(binding, VectorIndexProxyClient)
        assert binding.index_name == "docs-idx"
        details = await binding.describe()
        assert details.vector_count == 4
        assert proxy.bodies[0]["index_name"] == "docs-idx"

    def test_mapping_env(self, load_entry) -> None:
        """Key access, get and membership work on the wrapped env."""
        entry = load_entry(vectorizeBindings=self.BINDINGS)
        env = {
            "VECTORS": object(),
            "OTHER": "passthrough",
            "GATEHOUSE_VECTOR_PROXY": httpx.AsyncClient(),
        }

        binding, other, present = entry["default"].lookup("request", env=env)

        assert isinstance(binding, VectorIndexProxyClient)
        assert other == "passthrough"
        assert present is True

    async def test_without_proxy_binding(self, load_entry) -> None:
        """Without the proxy binding the env is passed through untouched."""
        entry = load_entry(vectorizeBindings=self.BINDINGS)
        native = object()

        assert await entry["default"].fetch("request", SimpleNamespace(VECTORS=native)) is native

    def test_non_callables_pass_through(self, load_entry) -> None:
        """Attributes of the default export are unchanged."""
        entry = load_entry(vectorizeBindings=self.BINDINGS)
        assert entry["default"].version == "1.0"

    def test_combined(self, load_entry) -> None:
        """Combined modules wrap both actors and the default export."""
        entry = load_entry(doClassNames=["Counter"], vectorizeBindings=self.BINDINGS)
        dataset = FakeDataset()

        entry["Counter"]("s", {"GATEHOUSE_USAGE": dataset}).increment()

        assert len(dataset.points) == 1
        assert entry["__all__"] == ["default", "Counter"]
        assert type(entry["default"]).__name__ == "_HandlerInterceptor"
