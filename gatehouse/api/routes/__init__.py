"""API route registration."""

from fastapi import FastAPI

from gatehouse.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    """Register dispatcher routes.

    Health is registered first; the catch-all dispatch route must come last
    so it only sees requests no other route claims.

    Args:
        app: FastAPI application instance
    """
    from gatehouse.api.routes.dispatch import router as dispatch_router
    from gatehouse.api.routes.health import create_health_router

    app.include_router(create_health_router("gatehouse-dispatch"), tags=["Health"])
    app.include_router(dispatch_router, tags=["Dispatch"])

    logger.info("routes_registered")
