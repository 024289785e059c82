"""Error response models for consistent API error handling."""

from typing import Any

from pydantic import BaseModel

from garrison.errors import ErrorCode


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    """Machine-readable error code."""

    message: str
    """Human-readable message; generic for non-operational errors."""

    timestamp: str
    """When the error was raised, ISO-8601."""

    stack: str | None = None
    """Traceback, debug mode only."""

    context: dict[str, Any] | None = None
    """Error context, debug mode only."""


class ErrorResponse(BaseModel):
    """Top-level error response wrapper."""

    error: ErrorBody
