"""API request and response models."""

from gatehouse.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from gatehouse.api.models.health import HealthResponse

__all__ = [
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
]
