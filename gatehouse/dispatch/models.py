"""Rate limiting models."""

from pydantic import BaseModel, Field


class RateLimitWindow(BaseModel):
    """Counter stored per tenant for the current fixed window."""

    count: int = Field(ge=0)
    window_start: int = Field(description="Window start in epoch milliseconds")


class RateLimitResult(BaseModel):
    """Outcome of one rate limit check."""

    allowed: bool
    limit: int
    remaining: int = Field(ge=0)
    reset: int = Field(description="End of the current window in epoch seconds")
