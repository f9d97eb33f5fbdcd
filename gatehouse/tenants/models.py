"""Tenant configuration models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_REQUESTS_PER_MINUTE = 1000
MAX_REQUESTS_PER_MINUTE = 100_000


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class TenantStatus(str, Enum):
    """Lifecycle status of a tenant project."""

    PROVISIONING = "provisioning"
    ACTIVE = "active"
    ERROR = "error"
    DELETED = "deleted"


class TenantLimits(BaseModel):
    """Per-tenant request limits."""

    requests_per_minute: int | None = Field(
        default=None,
        validation_alias=AliasChoices("requests_per_minute", "requestsPerMinute"),
        description="Requests allowed per fixed one-minute window",
    )


class TenantConfig(BaseModel):
    """Routing record for one tenant project.

    Written by the control plane, read by the dispatcher on every request.
    Unknown fields are ignored so the control plane can evolve the record.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_id: str = Field(
        validation_alias=AliasChoices("project_id", "projectId"),
        description="Tenant project identifier",
    )
    org_id: str = Field(
        validation_alias=AliasChoices("org_id", "orgId"),
        description="Owning organization",
    )
    slug: str = Field(description="Hostname label the project is served under")
    worker_ref: str = Field(
        validation_alias=AliasChoices("worker_ref", "worker_name", "workerName"),
        description="Name of the deployed compute unit",
    )
    status: TenantStatus = Field(default=TenantStatus.PROVISIONING)
    limits: TenantLimits | None = Field(default=None)
    tier: str = Field(default="free", description="Billing tier recorded on usage")
    updated_at: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("updated_at", "updatedAt"),
    )

    @property
    def is_active(self) -> bool:
        """True when requests may be forwarded to this tenant."""
        return self.status == TenantStatus.ACTIVE

    def effective_requests_per_minute(
        self, default: int = DEFAULT_REQUESTS_PER_MINUTE
    ) -> int:
        """Limit to enforce; absent or non-positive limits fall back to default."""
        if self.limits is None or self.limits.requests_per_minute is None:
            return default
        if self.limits.requests_per_minute <= 0:
            return default
        return self.limits.requests_per_minute
