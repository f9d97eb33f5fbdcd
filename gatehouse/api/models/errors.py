"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Machine-readable error codes returned by the edge."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Missing or malformed Host header, or an invalid request body."""

    TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
    """No tenant config exists for the hostname."""

    TENANT_UNAVAILABLE = "TENANT_UNAVAILABLE"
    """The tenant exists but is not active."""

    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    """The tenant compute unit could not be reached."""

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    """The tenant has exceeded its per-minute request limit."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorDetail(BaseModel):
    """Field-level error information for validation failures."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    message: str
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Example:
        {
            "error": {
                "code": "TENANT_NOT_FOUND",
                "message": "Project not found"
            }
        }
    """

    error: ErrorBody
