"""Observability: structured logging, metrics, tracing.

Provides standardized observability primitives using structlog for logging,
Prometheus for metrics, and OpenTelemetry for tracing.
"""
