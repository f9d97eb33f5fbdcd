"""Configuration model exports.

    from gatehouse.config.models import DispatchConfig, StorageConfig
"""

from gatehouse.config.models.api import APIConfig
from gatehouse.config.models.dispatch import DispatchConfig, GeoHeadersConfig
from gatehouse.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
    TracingConfig,
)
from gatehouse.config.models.proxy import ProxyConfig
from gatehouse.config.models.storage import (
    KVStoreConfig,
    StorageConfig,
    UsageSinkConfig,
)

__all__ = [
    "APIConfig",
    "DispatchConfig",
    "GeoHeadersConfig",
    "KVStoreConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "ProxyConfig",
    "StorageConfig",
    "TracingConfig",
    "UsageSinkConfig",
]
