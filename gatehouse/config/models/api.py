"""HTTP server configuration models."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """Configuration for the HTTP server process."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Port number")
    workers: int = Field(default=1, ge=1, description="Number of worker processes")
    proxy_port: int = Field(
        default=8001,
        ge=1,
        le=65535,
        description="Port for the binding proxy when served standalone",
    )
