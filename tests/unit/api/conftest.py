"""Fixtures for API tests.

The app is built with create_app() against the test config; stores are
swapped for in-memory instances the tests can inspect.
"""

from collections.abc import Callable
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from garrison.api.app import create_app
from garrison.api.dependencies import (
    get_audit_store,
    get_notification_store,
    get_recipient_directory,
)
from garrison.audit.stores import InMemoryAuditStore
from garrison.notifications import Recipient
from garrison.notifications.stores import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
)

JWT_SECRET = "test-secret"


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory for signed bearer tokens."""

    def _make_token(sub: str | None = "u1", role: str | None = "trainee", **claims: Any) -> str:
        payload: dict[str, Any] = dict(claims)
        if sub is not None:
            payload["sub"] = sub
        if role is not None:
            payload["role"] = role
        return jwt.encode(payload, JWT_SECRET, algorithm="HS256")

    return _make_token


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    """Factory for Authorization headers."""

    def _auth_headers(sub: str = "u1", role: str = "trainee") -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub=sub, role=role)}"}

    return _auth_headers


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def recipients() -> InMemoryRecipientDirectory:
    return InMemoryRecipientDirectory(
        [Recipient(id="u1", email="u1@example.com", phone="+966500000001")]
    )


@pytest.fixture
def app(
    monkeypatch: pytest.MonkeyPatch,
    audit_store: InMemoryAuditStore,
    notification_store: InMemoryNotificationStore,
    recipients: InMemoryRecipientDirectory,
) -> FastAPI:
    """Create the application with in-memory stores."""
    monkeypatch.setenv("GARRISON_API__AUTH__JWT_SECRET", JWT_SECRET)

    app = create_app()
    app.dependency_overrides[get_audit_store] = lambda: audit_store
    app.dependency_overrides[get_notification_store] = lambda: notification_store
    app.dependency_overrides[get_recipient_directory] = lambda: recipients
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client that renders unhandled errors as 500 responses."""
    return TestClient(app, raise_server_exceptions=False)
