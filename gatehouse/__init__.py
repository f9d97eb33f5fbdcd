"""Gatehouse: edge dispatch and usage metering for multi-tenant hosting.

Gatehouse routes inbound requests to tenant compute units, enforces
per-tenant request limits, records usage for billing, and generates
metering entry modules that wrap tenant code at build time.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
