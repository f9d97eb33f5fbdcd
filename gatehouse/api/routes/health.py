"""Health check endpoint."""

from fastapi import APIRouter

from gatehouse.api.models.health import HealthResponse


def create_health_router(service: str) -> APIRouter:
    """Create a router serving GET /health for the named service.

    Args:
        service: Name reported in the payload

    Returns:
        APIRouter with the health route
    """
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Liveness check."""
        return HealthResponse(service=service)

    return router
