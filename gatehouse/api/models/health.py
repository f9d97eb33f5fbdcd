"""Health check response model."""

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness payload returned by /health."""

    status: Literal["ok"] = "ok"
    service: str
