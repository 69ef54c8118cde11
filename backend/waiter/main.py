"""
FastAPI application entry point.

This module builds the application with an explicit configuration object:
settings are read once, logging is configured, and the entity encoder used
for every JSON response is constructed and attached to the application
state. Invalid configuration aborts startup.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waiter.api.deps import AppSettings, EntityEncoderDep
from waiter.core.config import Settings, get_settings
from waiter.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from waiter.serialization.encoder import EntityEncoder
from waiter.serialization.responses import EntityJSONResponse
from waiter.serialization.temporal import JSONRenderConfig

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance

    Yields:
        None during application runtime
    """
    settings: Settings = app.state.settings
    render_config: JSONRenderConfig = app.state.render_config

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
        time_zone=render_config.time_zone.key,
        indent_output=render_config.indent_output,
    )

    yield

    logger.info("Application shutting down")


async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request logging and correlation ID management.

    Sets request ID for correlation, logs request details, and measures
    response time. Clears context after request processing.

    Args:
        request: Incoming HTTP request
        call_next: Next middleware or route handler

    Returns:
        HTTP response with X-Request-ID header
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))
    request.state.request_id = request_id

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )

        return response
    except Exception as e:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    finally:
        clear_context()


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors with structured error response.

    Args:
        request: HTTP request that caused validation error
        exc: Validation exception with error details

    Returns:
        JSON response with validation error details
    """
    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        errors=exc.errors(),
    )

    encoder: EntityEncoder = request.app.state.entity_encoder
    return encoder.render(
        {
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(),
            "request_id": get_request_id(),
        },
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with structured error response.

    Logs error with full context and returns generic error message
    to avoid exposing internal details.
    """
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    # The middleware context is already cleared when this handler runs.
    request_id = getattr(request.state, "request_id", None) or get_request_id()

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "request_id": request_id,
        },
        headers={"X-Request-ID": request_id} if request_id else None,
    )


async def health_check(
    settings: AppSettings, encoder: EntityEncoderDep
) -> EntityJSONResponse:
    """
    Basic health check endpoint.

    Reports service metadata and the active JSON rendering zone. The
    server time is rendered through the entity encoder, so it shows the
    configured offset.
    """
    return encoder.render(
        {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "time_zone": encoder.config.time_zone.key,
            "server_time": datetime.now(timezone.utc),
        }
    )


async def liveness_check(settings: AppSettings) -> dict[str, str]:
    """Liveness check endpoint for orchestration."""
    return {
        "status": "alive",
        "service": settings.app_name,
        "version": settings.app_version,
    }


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings, read from the environment if omitted

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If the JSON rendering configuration is invalid
    """
    if settings is None:
        settings = get_settings()
    configure_logging(settings)

    with log_performance(logger, "application_bootstrap"):
        render_config = JSONRenderConfig.from_settings(settings)
        encoder = EntityEncoder(render_config)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Waiter service backend API",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.render_config = render_config
    app.state.entity_encoder = encoder

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health check endpoint",
    )
    app.add_api_route(
        "/live",
        liveness_check,
        methods=["GET"],
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Liveness check endpoint",
    )

    logger.info(
        "JSON rendering configured",
        time_zone=render_config.time_zone.key,
        indent_output=render_config.indent_output,
        expose_ids=render_config.expose_ids,
    )

    return app


app = create_app()
