"""Tests for tenant config models."""

import pytest
from pydantic import ValidationError

from gatehouse.tenants.models import TenantConfig, TenantLimits, TenantStatus


def make_config(**overrides) -> TenantConfig:
    data = {
        "project_id": "proj_1",
        "org_id": "org_1",
        "slug": "shop",
        "worker_ref": "w-shop",
        "status": "active",
    }
    data.update(overrides)
    return TenantConfig.model_validate(data)


class TestTenantConfig:
    """Tests for TenantConfig."""

    def test_worker_name_alias(self) -> None:
        """Control plane records using worker_name are accepted."""
        config = TenantConfig.model_validate({
            "project_id": "p",
            "org_id": "o",
            "slug": "s",
            "worker_name": "w-legacy",
            "status": "active",
        })
        assert config.worker_ref == "w-legacy"

    def test_tier_defaults_to_free(self) -> None:
        """Missing tier is recorded as free."""
        assert make_config().tier == "free"

    def test_unknown_status_rejected(self) -> None:
        """Status must be one of the lifecycle values."""
        with pytest.raises(ValidationError):
            make_config(status="paused")

    @pytest.mark.parametrize(
        "status,active",
        [
            (TenantStatus.ACTIVE, True),
            (TenantStatus.PROVISIONING, False),
            (TenantStatus.ERROR, False),
            (TenantStatus.DELETED, False),
        ],
    )
    def test_is_active(self, status: TenantStatus, active: bool) -> None:
        """Only active tenants are dispatchable."""
        assert make_config(status=status).is_active is active


class TestEffectiveLimit:
    """Tests for the per-minute limit fallback."""

    def test_no_limits_uses_default(self) -> None:
        """Absent limits fall back to 1000."""
        assert make_config().effective_requests_per_minute() == 1000

    def test_limit_without_value_uses_default(self) -> None:
        """A limits object without a value falls back."""
        config = make_config(limits=TenantLimits())
        assert config.effective_requests_per_minute() == 1000

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_uses_default(self, value: int) -> None:
        """Zero or negative limits fall back."""
        config = make_config(limits={"requests_per_minute": value})
        assert config.effective_requests_per_minute(default=250) == 250

    def test_configured_limit(self) -> None:
        """A positive limit is used as is."""
        config = make_config(limits={"requests_per_minute": 42})
        assert config.effective_requests_per_minute() == 42
