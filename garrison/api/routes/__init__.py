"""API route registration."""

from fastapi import FastAPI

from garrison.config.settings import Settings
from garrison.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Settings used for the metrics endpoint path
    """
    from garrison.api.routes.audit_logs import router as audit_logs_router
    from garrison.api.routes.health import metrics
    from garrison.api.routes.health import router as health_router
    from garrison.api.routes.notifications import router as notifications_router

    app.include_router(notifications_router, tags=["Notifications"])
    app.include_router(audit_logs_router, tags=["Audit"])
    app.include_router(health_router, tags=["Health"])

    if settings.observability.metrics.enabled:
        app.add_api_route(
            settings.observability.metrics.path,
            metrics,
            methods=["GET"],
            include_in_schema=False,
        )

    logger.info("routes_registered")
