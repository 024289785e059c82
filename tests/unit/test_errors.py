"""Tests for the error taxonomy and helpers."""

import pytest
from pydantic import BaseModel, Field
from structlog.testing import capture_logs

from garrison.errors import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    ErrorCode,
    ExternalServiceError,
    GarrisonError,
    NotFoundError,
    TemplateNotFoundError,
    ValidationError,
    as_garrison_error,
    handle_database_error,
    log_error,
    to_error_payload,
    validate_input,
)


class TestErrorClasses:
    @pytest.mark.parametrize(
        ("error", "status", "code"),
        [
            (GarrisonError("boom"), 500, ErrorCode.INTERNAL_ERROR),
            (ValidationError("bad"), 400, ErrorCode.VALIDATION_ERROR),
            (AuthenticationError(), 401, ErrorCode.AUTHENTICATION_ERROR),
            (AuthorizationError(), 403, ErrorCode.AUTHORIZATION_ERROR),
            (NotFoundError("Course"), 404, ErrorCode.NOT_FOUND_ERROR),
            (DatabaseError("db"), 500, ErrorCode.DATABASE_ERROR),
            (ExternalServiceError("SMTP", "timeout"), 502, ErrorCode.EXTERNAL_SERVICE_ERROR),
        ],
    )
    def test_status_and_code(self, error: GarrisonError, status: int, code: ErrorCode) -> None:
        assert error.status_code == status
        assert error.error_code == code

    def test_not_found_message(self) -> None:
        assert NotFoundError("Notification").message == "Notification not found"

    def test_external_service_message(self) -> None:
        error = ExternalServiceError("SMTP", "timeout")
        assert error.message == "SMTP: timeout"
        assert error.service == "SMTP"

    def test_default_auth_messages(self) -> None:
        assert AuthenticationError().message == "Authentication required"
        assert AuthorizationError().message == "Insufficient permissions"

    def test_database_error_not_operational(self) -> None:
        assert DatabaseError("x").is_operational is False
        assert ValidationError("x").is_operational is True

    def test_context_and_timestamp(self) -> None:
        error = ValidationError("bad", {"field": "title"})
        assert error.context == {"field": "title"}
        assert error.timestamp.tzinfo is not None

    def test_template_not_found_is_validation_error(self) -> None:
        error = TemplateNotFoundError("CUSTOM_MESSAGE")
        assert isinstance(error, ValidationError)
        assert error.status_code == 400
        assert "CUSTOM_MESSAGE" in error.message


class TestLogError:
    def test_operational_logs_warning(self) -> None:
        with capture_logs() as logs:
            log_error(NotFoundError("User"), path="/x")

        assert logs[0]["event"] == "operational_error"
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["path"] == "/x"

    def test_unexpected_logs_error_with_stack(self) -> None:
        try:
            raise RuntimeError("kaboom")
        except RuntimeError as e:
            with capture_logs() as logs:
                log_error(e)

        assert logs[0]["event"] == "unexpected_error"
        assert logs[0]["log_level"] == "error"
        assert "RuntimeError: kaboom" in logs[0]["stack"]


class TestToErrorPayload:
    def test_operational_message_exposed(self) -> None:
        payload = to_error_payload(NotFoundError("Notification"))

        assert payload["code"] == "NOT_FOUND_ERROR"
        assert payload["message"] == "Notification not found"
        assert "stack" not in payload
        assert "context" not in payload

    def test_non_operational_message_hidden(self) -> None:
        payload = to_error_payload(DatabaseError("password=secret leaked"))
        assert payload["message"] == "Internal server error"

    def test_debug_includes_stack_and_context(self) -> None:
        payload = to_error_payload(ValidationError("bad", {"field": "x"}), debug=True)
        assert payload["context"] == {"field": "x"}
        assert "ValidationError" in payload["stack"]


class TestAsGarrisonError:
    def test_passthrough(self) -> None:
        error = NotFoundError("X")
        assert as_garrison_error(error) is error

    def test_wraps_foreign_error(self) -> None:
        original = KeyError("k")
        wrapped = as_garrison_error(original)

        assert wrapped.is_operational is False
        assert wrapped.__cause__ is original
        assert wrapped.context["original_error"] == "KeyError"


class TestHandleDatabaseError:
    def test_returns_database_error(self) -> None:
        with capture_logs():
            error = handle_database_error(OSError("conn reset"), "audit_append", action="a")

        assert isinstance(error, DatabaseError)
        assert error.context["operation"] == "audit_append"
        assert error.context["original_error"] == "conn reset"

    def test_raise_from_keeps_cause(self) -> None:
        original = OSError("conn reset")
        with pytest.raises(DatabaseError) as exc_info, capture_logs():
            raise handle_database_error(original, "op") from original
        assert exc_info.value.__cause__ is original


class Payload(BaseModel):
    title: str = Field(..., min_length=1)
    count: int


class TestValidateInput:
    def test_valid_input(self) -> None:
        assert validate_input(Payload, {"title": "t", "count": 1}) == Payload(title="t", count=1)

    def test_invalid_input_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info, capture_logs():
            validate_input(Payload, {"title": "", "count": "x"}, endpoint="/api/x")

        error = exc_info.value
        assert error.status_code == 400
        assert error.context["endpoint"] == "/api/x"
        fields = {tuple(e["loc"]) for e in error.context["validation_errors"]}
        assert fields == {("title",), ("count",)}
