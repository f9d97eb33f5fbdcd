"""FastAPI application factory for the dispatcher.

Creates and configures the FastAPI application with exception handlers,
tracing and route registration.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from gatehouse import __version__
from gatehouse.api.exceptions import GatehouseAPIError
from gatehouse.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from gatehouse.api.routes import register_routes
from gatehouse.config import Settings, get_settings
from gatehouse.observability.logging import get_logger, setup_logging
from gatehouse.observability.metrics import setup_metrics

logger = get_logger(__name__)


def configure_observability(settings: Settings) -> None:
    """Apply logging and metrics settings for the process."""
    obs = settings.observability
    setup_logging(
        level=obs.logging.level,
        format=obs.logging.format,
        redact_secrets=obs.logging.redact_secrets,
    )
    if obs.metrics.enabled:
        setup_metrics(obs.metrics.port)


def create_app() -> FastAPI:
    """Create and configure the dispatcher application.

    The dispatcher serves /health itself and forwards every other path to
    the tenant named by the Host header. Interactive docs are disabled
    because their paths belong to tenants.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Gatehouse Dispatch",
        description="Host-based routing, rate limiting and usage metering",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    register_exception_handlers(app)
    register_routes(app)

    if settings.observability.tracing.enabled:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("opentelemetry_instrumentation_enabled")

    logger.info(
        "app_created",
        debug=settings.debug,
        base_domain=settings.dispatch.base_domain,
    )

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(GatehouseAPIError)
    async def gatehouse_api_error_handler(
        request: Request, exc: GatehouseAPIError
    ) -> JSONResponse:
        """Handle GatehouseAPIError and its subclasses."""
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
            host=request.headers.get("host"),
        )

        response = ErrorResponse(error=ErrorBody(code=exc.error_code, message=exc.message))

        return JSONResponse(
            status_code=exc.status_code,
            content=response.model_dump(mode="json", exclude_none=True),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
        )

        details = [
            ErrorDetail(
                field=".".join(str(loc) for loc in error["loc"]),
                message=error["msg"],
            )
            for error in exc.errors()
        ]

        response = ErrorResponse(
            error=ErrorBody(
                code=ErrorCode.INVALID_REQUEST,
                message="Request validation failed",
                details=details,
            )
        )

        return JSONResponse(
            status_code=400,
            content=response.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )

        response = ErrorResponse(
            error=ErrorBody(
                code=ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
            )
        )

        return JSONResponse(
            status_code=500,
            content=response.model_dump(mode="json", exclude_none=True),
        )

    logger.debug("exception_handlers_registered")
