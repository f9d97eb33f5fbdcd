"""Prometheus metrics for Gatehouse.

Labels stay bounded: per-tenant breakdowns belong in usage data points,
not in Prometheus series.
"""

from prometheus_client import Counter, Histogram, start_http_server

from gatehouse.observability.logging import get_logger

logger = get_logger(__name__)

# Dispatcher metrics
DISPATCH_REQUESTS = Counter(
    "gatehouse_dispatch_requests_total",
    "Total number of requests handled by the dispatcher",
    labelnames=["outcome", "status_bucket"],
)

DISPATCH_LATENCY = Histogram(
    "gatehouse_dispatch_latency_seconds",
    "End-to-end dispatch latency including the upstream hop",
    labelnames=["outcome"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

RATE_LIMITED_REQUESTS = Counter(
    "gatehouse_rate_limited_requests_total",
    "Requests rejected by the per-tenant fixed window limiter",
    labelnames=["tier"],
)

UPSTREAM_FAILURES = Counter(
    "gatehouse_upstream_failures_total",
    "Forwarding attempts that failed before a response was received",
    labelnames=["error_type"],
)

# Usage metering
USAGE_EMITTED = Counter(
    "gatehouse_usage_data_points_total",
    "Usage data points handed to the usage sink",
    labelnames=["sink", "outcome"],
)

# Binding proxy metrics
PROXY_OPERATIONS = Counter(
    "gatehouse_proxy_operations_total",
    "Vector index operations served by the binding proxy",
    labelnames=["operation", "outcome"],
)

PROXY_OPERATION_LATENCY = Histogram(
    "gatehouse_proxy_operation_latency_seconds",
    "Latency of vector index operations behind the binding proxy",
    labelnames=["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

QUOTA_REJECTIONS = Counter(
    "gatehouse_quota_rejections_total",
    "Binding proxy calls rejected by daily quota or burst limit",
    labelnames=["kind"],
)


def setup_metrics(port: int) -> None:
    """Expose metrics on a dedicated port.

    The dispatcher's own port forwards every path to tenants, so metrics
    are never mounted on it.

    Args:
        port: TCP port for the Prometheus scrape endpoint
    """
    start_http_server(port)
    logger.info("metrics_server_started", port=port)
