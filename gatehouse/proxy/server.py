"""Binding proxy application.

Runs next to the dispatcher and serves metered, quota-checked vector index
operations for tenant code.
"""

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from gatehouse import __version__
from gatehouse.api.app import register_exception_handlers
from gatehouse.api.dependencies import VectorizeHandlerDep
from gatehouse.api.routes.health import create_health_router
from gatehouse.config import get_settings
from gatehouse.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/vectorize")
async def vectorize(request: Request, handler: VectorizeHandlerDep) -> JSONResponse:
    """Run one vector index operation for the calling project."""
    return await handler.handle(request)


def create_proxy_app() -> FastAPI:
    """Create and configure the binding proxy application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Gatehouse Binding Proxy",
        description="Metered, quota-checked binding operations for tenant code",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    register_exception_handlers(app)
    app.include_router(create_health_router("gatehouse-binding-proxy"), tags=["Health"])
    app.include_router(router, tags=["Bindings"])

    if settings.observability.tracing.enabled:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("opentelemetry_instrumentation_enabled")

    logger.info("proxy_app_created", burst_limit=settings.proxy.burst_limit)

    return app
