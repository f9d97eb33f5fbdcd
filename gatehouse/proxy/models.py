"""Wire models for the vector index binding.

Field names on the wire follow the hosted vector index API (camelCase);
Python code uses snake_case attributes.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

VectorOperation = Literal["query", "upsert", "deleteByIds", "getByIds", "describe"]
DistanceMetric = Literal["cosine", "euclidean", "dot-product"]
ReturnMetadata = Literal["none", "indexed", "all"]

QUERY_OPERATIONS: frozenset[str] = frozenset({"query", "getByIds"})
MUTATION_OPERATIONS: frozenset[str] = frozenset({"upsert", "deleteByIds"})


class WireModel(BaseModel):
    """Base for models serialized with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class VectorRecord(WireModel):
    """A stored vector."""

    id: str = Field(min_length=1)
    values: list[float]
    metadata: dict[str, Any] | None = None
    namespace: str | None = None


class VectorMatch(WireModel):
    """One query hit."""

    id: str
    score: float
    values: list[float] | None = None
    metadata: dict[str, Any] | None = None


class VectorQueryResult(WireModel):
    """Result of a similarity query."""

    matches: list[VectorMatch] = Field(default_factory=list)
    count: int = 0


class VectorMutationResult(WireModel):
    """Result of an upsert or delete."""

    mutation_id: str = Field(alias="mutationId")
    count: int
    ids: list[str] = Field(default_factory=list)


class IndexDetails(WireModel):
    """Index description."""

    dimensions: int
    metric: DistanceMetric = "cosine"
    vector_count: int = Field(alias="vectorCount")


class QueryParams(WireModel):
    """Params of a query operation."""

    vector: list[float]
    top_k: int | None = Field(default=None, alias="topK", gt=0)
    filter: dict[str, Any] | None = None
    return_values: bool | None = Field(default=None, alias="returnValues")
    return_metadata: ReturnMetadata | bool | None = Field(
        default=None, alias="returnMetadata"
    )


class VectorsParams(WireModel):
    """Params of upsert/insert operations."""

    vectors: list[VectorRecord]


class IdsParams(WireModel):
    """Params of deleteByIds/getByIds operations."""

    ids: list[str]


class VectorizeProxyRequest(BaseModel):
    """Body of a POST to the binding proxy."""

    operation: str = Field(min_length=1)
    index_name: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)


class QuotaCheckResult(BaseModel):
    """Outcome of a daily quota check."""

    allowed: bool
    remaining: int
    reset_in: int
