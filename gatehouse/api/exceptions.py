"""API exception hierarchy for consistent error handling.

All API exceptions inherit from GatehouseAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from gatehouse.api.models.errors import ErrorCode


class GatehouseAPIError(Exception):
    """Base exception for all API errors.

    Subclasses set status_code and error_code to define the HTTP response.
    Extra response headers travel on the exception.
    """

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, headers: dict[str, str] | None = None) -> None:
        self.message = message
        self.headers = headers or {}
        super().__init__(message)


class InvalidRequestError(GatehouseAPIError):
    """Raised when the Host header is missing or malformed."""

    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


class TenantNotFoundError(GatehouseAPIError):
    """Raised when no tenant config exists for the hostname."""

    status_code = 404
    error_code = ErrorCode.TENANT_NOT_FOUND


class TenantUnavailableError(GatehouseAPIError):
    """Raised when the tenant exists but is not active."""

    status_code = 503
    error_code = ErrorCode.TENANT_UNAVAILABLE


class UpstreamUnavailableError(GatehouseAPIError):
    """Raised when forwarding to the tenant compute unit fails."""

    status_code = 503
    error_code = ErrorCode.UPSTREAM_UNAVAILABLE


class RateLimitExceededError(GatehouseAPIError):
    """Raised when a tenant exceeds its rate limit."""

    status_code = 429
    error_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(
        self,
        message: str,
        limit: int,
        reset: int,
        retry_after: int,
    ) -> None:
        super().__init__(
            message,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(reset),
            },
        )
        self.limit = limit
        self.reset = reset
        self.retry_after = retry_after
