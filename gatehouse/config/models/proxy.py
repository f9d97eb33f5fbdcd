"""Binding proxy configuration models."""

from pydantic import BaseModel, Field


class ProxyConfig(BaseModel):
    """Quotas and limits enforced by the binding proxy."""

    query_quota_per_day: int = Field(
        default=33_000,
        gt=0,
        description="Daily query/getByIds operations per project",
    )
    mutation_quota_per_day: int = Field(
        default=10_000,
        gt=0,
        description="Daily upsert/deleteByIds operations per project",
    )
    burst_limit: int = Field(
        default=100,
        gt=0,
        description="Requests allowed per burst window per project",
    )
    burst_window_seconds: int = Field(
        default=10,
        gt=0,
        description="Burst window length",
    )
    vector_dimensions: int = Field(
        default=768,
        gt=0,
        description="Dimensions of indexes created by the in-memory registry",
    )
