"""Binding proxy: metered access to platform resources from tenant code.

The client half (VectorIndexProxyClient) runs inside tenant code; the
server half (create_proxy_app) enforces quotas and records usage.
"""

from gatehouse.proxy.client import (
    PROXY_ENDPOINT,
    VectorIndexProxyClient,
    create_vector_index_client,
)
from gatehouse.proxy.errors import ProxyError, ProxyOperationError, ProxyQuotaError
from gatehouse.proxy.index import InMemoryVectorIndex, VectorIndex, VectorIndexRegistry

__all__ = [
    "PROXY_ENDPOINT",
    "InMemoryVectorIndex",
    "ProxyError",
    "ProxyOperationError",
    "ProxyQuotaError",
    "VectorIndex",
    "VectorIndexProxyClient",
    "VectorIndexRegistry",
    "create_vector_index_client",
]
