"""Request context middleware for observability."""

import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from garrison.observability.logging import get_logger
from garrison.observability.metrics import REQUEST_COUNT, REQUEST_LATENCY

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request_id and path into structlog contextvars.

    The auth dependency adds actor_id once the caller is known. Request
    count and latency are recorded per route template.
    """

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """Process request and bind context."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
        )

        logger.debug("request_started", method=request.method)
        start = time.perf_counter()

        response = await call_next(request)  # type: ignore[misc]

        elapsed = time.perf_counter() - start
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=str(response.status_code),
        ).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(elapsed)

        logger.debug(
            "request_completed",
            method=request.method,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response  # type: ignore[no-any-return]
