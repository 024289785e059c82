"""JWT authentication and role-based permissions for API requests."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Annotated

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from garrison.api.dependencies import SettingsDep
from garrison.errors import AuthenticationError, AuthorizationError
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

# Security scheme for OpenAPI docs
security_scheme = HTTPBearer(auto_error=False)


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    COMMANDER = "commander"
    TRAINEE = "trainee"


class Permission(str, Enum):
    NOTIFICATIONS_READ = "notifications:read"
    NOTIFICATIONS_WRITE = "notifications:write"
    AUDIT_READ = "audit:read"


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.ADMIN: frozenset({Permission.NOTIFICATIONS_READ, Permission.NOTIFICATIONS_WRITE}),
    Role.INSTRUCTOR: frozenset({Permission.NOTIFICATIONS_READ}),
    Role.COMMANDER: frozenset({Permission.NOTIFICATIONS_READ}),
    Role.TRAINEE: frozenset({Permission.NOTIFICATIONS_READ}),
}


def normalize_role(role: str | None) -> Role | None:
    """Map 'Super-Admin', 'super.admin' or 'SUPER_ADMIN' to Role.SUPER_ADMIN."""
    if not role:
        return None
    key = role.strip().lower().replace("-", "_").replace(".", "_")
    try:
        return Role(key)
    except ValueError:
        return None


def has_permission(role: Role | None, permission: Permission) -> bool:
    return role is not None and permission in ROLE_PERMISSIONS[role]


class Principal(BaseModel):
    """The authenticated caller."""

    user_id: str
    role: Role | None = None
    ip: str | None = None


async def get_principal(
    request: Request,
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> Principal:
    """Validate the bearer token and build the caller's identity.

    Raises:
        AuthenticationError: If the token is missing, invalid or has no subject
    """
    if credentials is None:
        logger.warning("auth_missing_token", path=request.url.path)
        raise AuthenticationError()

    secret = settings.api.auth.jwt_secret
    if not secret:
        logger.error("auth_secret_not_configured")
        raise AuthenticationError("Authentication is not configured")

    try:
        payload = jwt.decode(
            credentials.credentials,
            secret,
            algorithms=[settings.api.auth.jwt_algorithm],
        )
    except JWTError as e:
        logger.warning("auth_jwt_error", error=str(e), path=request.url.path)
        raise AuthenticationError("Invalid or expired token") from None

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("auth_missing_subject", path=request.url.path)
        raise AuthenticationError("Token missing sub claim")

    principal = Principal(
        user_id=str(user_id),
        role=normalize_role(payload.get("role")),
        ip=request.client.host if request.client else None,
    )
    structlog.contextvars.bind_contextvars(actor_id=principal.user_id)
    logger.debug("auth_success", user_id=principal.user_id, role=principal.role)
    return principal


PrincipalDep = Annotated[Principal, Depends(get_principal)]


def require_permission(permission: Permission) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory: the caller must hold permission.

    Raises:
        AuthorizationError: If the caller's role lacks the permission
    """

    async def dependency(principal: PrincipalDep) -> Principal:
        if not has_permission(principal.role, permission):
            logger.warning(
                "auth_permission_denied",
                user_id=principal.user_id,
                role=principal.role,
                permission=permission.value,
            )
            raise AuthorizationError(context={"permission": permission.value})
        return principal

    return dependency


NotificationsReader = Annotated[
    Principal, Depends(require_permission(Permission.NOTIFICATIONS_READ))
]
NotificationsWriter = Annotated[
    Principal, Depends(require_permission(Permission.NOTIFICATIONS_WRITE))
]
AuditReader = Annotated[Principal, Depends(require_permission(Permission.AUDIT_READ))]
