"""Tenant configuration as seen by the edge."""

from gatehouse.tenants.models import (
    DEFAULT_REQUESTS_PER_MINUTE,
    TenantConfig,
    TenantLimits,
    TenantStatus,
)
from gatehouse.tenants.store import TenantConfigStore

__all__ = [
    "DEFAULT_REQUESTS_PER_MINUTE",
    "TenantConfig",
    "TenantConfigStore",
    "TenantLimits",
    "TenantStatus",
]
