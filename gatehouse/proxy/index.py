"""Vector index interface and the in-memory implementation behind the proxy.

The in-memory index uses numpy for similarity calculations. Use it for
tests, local development and single-process deployments.
"""

import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from gatehouse.proxy.models import (
    DistanceMetric,
    IndexDetails,
    ReturnMetadata,
    VectorMatch,
    VectorMutationResult,
    VectorQueryResult,
    VectorRecord,
)

DEFAULT_TOP_K = 5

VectorInput = VectorRecord | dict[str, Any]


def coerce_vectors(vectors: Sequence[VectorInput]) -> list[VectorRecord]:
    """Accept records or plain dicts."""
    return [v if isinstance(v, VectorRecord) else VectorRecord.model_validate(v) for v in vectors]


class VectorIndex(ABC):
    """Operations of a hosted vector index binding."""

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        *,
        top_k: int | None = None,
        filter: dict[str, Any] | None = None,
        return_values: bool | None = None,
        return_metadata: ReturnMetadata | bool | None = None,
    ) -> VectorQueryResult:
        """Find the vectors most similar to `vector`."""
        pass

    @abstractmethod
    async def upsert(self, vectors: Sequence[VectorInput]) -> VectorMutationResult:
        """Insert or replace vectors by id."""
        pass

    async def insert(self, vectors: Sequence[VectorInput]) -> VectorMutationResult:
        """Insert vectors. Same semantics as upsert."""
        return await self.upsert(vectors)

    @abstractmethod
    async def delete_by_ids(self, ids: Sequence[str]) -> VectorMutationResult:
        """Delete vectors by id. Missing ids are ignored."""
        pass

    @abstractmethod
    async def get_by_ids(self, ids: Sequence[str]) -> list[VectorRecord]:
        """Fetch stored vectors by id, in request order, skipping missing ids."""
        pass

    @abstractmethod
    async def describe(self) -> IndexDetails:
        """Return dimensions, metric and vector count."""
        pass


class InMemoryVectorIndex(VectorIndex):
    """Dict-backed vector index with brute-force similarity search."""

    def __init__(self, dimensions: int, metric: DistanceMetric = "cosine") -> None:
        self._dimensions = dimensions
        self._metric: DistanceMetric = metric
        self._vectors: dict[str, VectorRecord] = {}

    def _check_dimensions(self, values: Sequence[float]) -> None:
        if len(values) != self._dimensions:
            raise ValueError(
                f"Vector dimension mismatch: expected {self._dimensions}, got {len(values)}"
            )

    def _score(self, query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        if self._metric == "dot-product":
            return matrix @ query
        if self._metric == "euclidean":
            return np.linalg.norm(matrix - query, axis=1)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)

    @staticmethod
    def _matches_filter(record: VectorRecord, filter: dict[str, Any] | None) -> bool:
        if not filter:
            return True
        metadata = record.metadata or {}
        return all(metadata.get(key) == value for key, value in filter.items())

    async def query(
        self,
        vector: Sequence[float],
        *,
        top_k: int | None = None,
        filter: dict[str, Any] | None = None,
        return_values: bool | None = None,
        return_metadata: ReturnMetadata | bool | None = None,
    ) -> VectorQueryResult:
        self._check_dimensions(vector)
        candidates = [r for r in self._vectors.values() if self._matches_filter(r, filter)]
        if not candidates:
            return VectorQueryResult(matches=[], count=0)

        matrix = np.array([r.values for r in candidates], dtype=float)
        scores = self._score(np.array(vector, dtype=float), matrix)
        order = np.argsort(scores)
        if self._metric != "euclidean":
            order = order[::-1]

        include_metadata = return_metadata not in (None, False, "none")
        matches = [
            VectorMatch(
                id=candidates[i].id,
                score=float(scores[i]),
                values=candidates[i].values if return_values else None,
                metadata=candidates[i].metadata if include_metadata else None,
            )
            for i in order[: top_k or DEFAULT_TOP_K]
        ]
        return VectorQueryResult(matches=matches, count=len(matches))

    async def upsert(self, vectors: Sequence[VectorInput]) -> VectorMutationResult:
        records = coerce_vectors(vectors)
        for record in records:
            self._check_dimensions(record.values)
        for record in records:
            self._vectors[record.id] = record
        ids = [r.id for r in records]
        return VectorMutationResult(mutation_id=uuid.uuid4().hex, count=len(ids), ids=ids)

    async def delete_by_ids(self, ids: Sequence[str]) -> VectorMutationResult:
        deleted = [i for i in ids if self._vectors.pop(i, None) is not None]
        return VectorMutationResult(
            mutation_id=uuid.uuid4().hex, count=len(deleted), ids=deleted
        )

    async def get_by_ids(self, ids: Sequence[str]) -> list[VectorRecord]:
        return [self._vectors[i] for i in ids if i in self._vectors]

    async def describe(self) -> IndexDetails:
        return IndexDetails(
            dimensions=self._dimensions,
            metric=self._metric,
            vector_count=len(self._vectors),
        )


class VectorIndexRegistry:
    """Indexes behind the proxy, isolated per (project, index name)."""

    def __init__(self, factory: Callable[[], VectorIndex]) -> None:
        self._factory = factory
        self._indexes: dict[tuple[str, str], VectorIndex] = {}

    def get(self, project_id: str, index_name: str) -> VectorIndex:
        """Get the index, creating it on first use."""
        key = (project_id, index_name)
        index = self._indexes.get(key)
        if index is None:
            index = self._factory()
            self._indexes[key] = index
        return index

    def register(self, project_id: str, index_name: str, index: VectorIndex) -> None:
        """Attach an existing index."""
        self._indexes[(project_id, index_name)] = index
