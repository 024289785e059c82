"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, and route registration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from garrison import __version__
from garrison.api.dependencies import close_dependencies, get_settings
from garrison.api.middleware.context import RequestContextMiddleware
from garrison.api.models.errors import ErrorResponse
from garrison.api.routes import register_routes
from garrison.errors import (
    GarrisonError,
    ValidationError,
    as_garrison_error,
    log_error,
    to_error_payload,
)
from garrison.observability.logging import get_logger, setup_logging
from garrison.observability.metrics import ERRORS

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_dependencies()
    logger.info("app_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a fully configured FastAPI app with:
    - Structured logging configured from settings
    - CORS and request context middleware
    - Global exception handlers
    - All API routes registered

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    log_cfg = settings.observability.logging
    setup_logging(level=log_cfg.level, format=log_cfg.format, redact_pii=log_cfg.redact_pii)

    app = FastAPI(
        title="Garrison API",
        description="Tamper-evident audit trail and bilingual notifications",
        version=__version__,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request context middleware
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)
    register_routes(app, settings)

    logger.info(
        "app_created",
        debug=settings.debug,
        environment=settings.environment,
        storage_backend=settings.storage.backend,
    )

    return app


def _error_response(request: Request, error: GarrisonError) -> JSONResponse:
    ERRORS.labels(error_code=error.error_code.value).inc()
    log_error(error, path=request.url.path, method=request.method)

    payload = to_error_payload(error, debug=get_settings().debug)
    response = ErrorResponse.model_validate({"error": payload})
    return JSONResponse(
        status_code=error.status_code,
        content=response.model_dump(mode="json", exclude_none=True),
    )


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(GarrisonError)
    async def garrison_error_handler(request: Request, exc: GarrisonError) -> JSONResponse:
        """Handle GarrisonError and its subclasses."""
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors."""
        details = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        error = ValidationError("Request validation failed", {"validation_errors": details})
        return _error_response(request, error)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        return _error_response(request, as_garrison_error(exc))

    logger.debug("exception_handlers_registered")


def main() -> None:
    """Run the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "garrison.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
    )
