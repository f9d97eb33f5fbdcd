"""Errors surfaced to tenant code by the binding proxy client."""


class ProxyError(Exception):
    """Base class for binding proxy failures."""


class ProxyQuotaError(ProxyError):
    """Raised when the proxy rejects a call for quota or burst reasons.

    Attributes:
        code: Machine-readable reason, e.g. VECTORIZE_QUERY_QUOTA_EXCEEDED
        reset_in: Seconds until the quota resets, when the proxy reports it
    """

    def __init__(
        self,
        message: str,
        code: str = "QUOTA_EXCEEDED",
        reset_in: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.reset_in = reset_in


class ProxyOperationError(ProxyError):
    """Raised when a proxied operation fails for any other reason."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
