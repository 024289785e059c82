"""Error taxonomy shared by stores, services and the API.

Every error carries a machine-readable ErrorCode and the HTTP status the
API exception handler renders it with. Operational errors are expected
failures (bad input, missing rows, an unavailable dependency) whose
message is safe to show a caller; non-operational errors are bugs or
infrastructure faults whose details stay in the logs.
"""

import traceback
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from garrison.observability.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class GarrisonError(Exception):
    """Base exception for all Garrison errors.

    Subclasses set status_code and error_code to define the HTTP response.
    """

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    is_operational: bool = True

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(UTC)
        super().__init__(message)


class ValidationError(GarrisonError):
    """Raised when input fails validation."""

    status_code = 400
    error_code = ErrorCode.VALIDATION_ERROR


class AuthenticationError(GarrisonError):
    """Raised when a request carries no valid credentials."""

    status_code = 401
    error_code = ErrorCode.AUTHENTICATION_ERROR

    def __init__(
        self,
        message: str = "Authentication required",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)


class AuthorizationError(GarrisonError):
    """Raised when the caller lacks a required permission."""

    status_code = 403
    error_code = ErrorCode.AUTHORIZATION_ERROR

    def __init__(
        self,
        message: str = "Insufficient permissions",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)


class NotFoundError(GarrisonError):
    """Raised when a resource does not exist."""

    status_code = 404
    error_code = ErrorCode.NOT_FOUND_ERROR

    def __init__(self, resource: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(f"{resource} not found", context)
        self.resource = resource


class DatabaseError(GarrisonError):
    """Raised when a store operation fails."""

    status_code = 500
    error_code = ErrorCode.DATABASE_ERROR
    is_operational = False


class ExternalServiceError(GarrisonError):
    """Raised when an outbound dependency fails or is unavailable."""

    status_code = 502
    error_code = ErrorCode.EXTERNAL_SERVICE_ERROR

    def __init__(
        self,
        service: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"{service}: {message}", context)
        self.service = service


class TemplateNotFoundError(ValidationError):
    """Raised when a notification type has no predefined template."""

    def __init__(self, template_type: str) -> None:
        super().__init__(
            f"Notification template not found: {template_type}",
            {"template_type": template_type},
        )
        self.template_type = template_type


def log_error(error: BaseException, **context: Any) -> None:
    """Log an error at a level matching its kind.

    Operational GarrisonErrors are warnings; everything else is an error
    with the traceback attached.
    """
    fields: dict[str, Any] = {
        "error_type": type(error).__name__,
        "error": str(error),
        **context,
    }

    if isinstance(error, GarrisonError):
        fields.update(
            code=error.error_code.value,
            status_code=error.status_code,
            is_operational=error.is_operational,
            error_context=error.context,
        )
        if error.is_operational:
            logger.warning("operational_error", **fields)
            return

    logger.error(
        "unexpected_error",
        stack="".join(traceback.format_exception(error)),
        **fields,
    )


def as_garrison_error(error: BaseException, **context: Any) -> GarrisonError:
    """Wrap a foreign exception as a non-operational internal error."""
    if isinstance(error, GarrisonError):
        return error

    wrapped = GarrisonError(
        str(error) or "An unexpected error occurred",
        {"original_error": type(error).__name__, **context},
    )
    wrapped.is_operational = False
    wrapped.__cause__ = error
    return wrapped


def to_error_payload(error: GarrisonError, *, debug: bool = False) -> dict[str, Any]:
    """Build the public error body for an API response.

    Non-operational errors hide their message behind a generic one;
    stack and context are only exposed in debug mode.
    """
    body: dict[str, Any] = {
        "code": error.error_code.value,
        "message": error.message if error.is_operational else "Internal server error",
        "timestamp": error.timestamp.isoformat(),
    }

    if debug:
        origin = error.__cause__ or error
        body["stack"] = "".join(traceback.format_exception(origin))
        body["context"] = error.context

    return body


def handle_database_error(
    error: BaseException, operation: str, **context: Any
) -> DatabaseError:
    """Log a store failure and return it as a DatabaseError.

    Callers raise the result with ``from error`` to keep the cause.
    """
    db_error = DatabaseError(
        f"Database operation failed: {operation}",
        {
            "operation": operation,
            "original_error": str(error),
            **context,
        },
    )
    log_error(db_error, **context)
    return db_error


def validate_input(model: type[ModelT], data: Any, **context: Any) -> ModelT:
    """Validate raw input against a pydantic model.

    Raises:
        ValidationError: With the field errors in its context
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        validation_error = ValidationError(
            "Input validation failed",
            {
                "validation_errors": e.errors(
                    include_url=False, include_context=False, include_input=False
                ),
                **context,
            },
        )
        log_error(validation_error, **context)
        raise validation_error from e
