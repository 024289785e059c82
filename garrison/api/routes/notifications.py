"""Notification endpoints."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Query

from garrison.api.dependencies import AuditWriterDep, NotificationServiceDep, SettingsDep
from garrison.api.middleware.auth import NotificationsReader, NotificationsWriter, Principal
from garrison.api.models.notifications import (
    CountResponse,
    NotificationCreateRequest,
    NotificationPageResponse,
    NotificationResponse,
    SuccessResponse,
    TemplateNotificationRequest,
)
from garrison.audit import AuditWriter
from garrison.errors import NotFoundError, ValidationError, validate_input
from garrison.notifications import Notification, NotificationCreate, NotificationType
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/notifications")


async def _audit_created(
    writer: AuditWriter, principal: Principal, notification: Notification
) -> None:
    await writer.append(
        actor_id=principal.user_id,
        action="notification_created",
        entity="notifications",
        entity_id=str(notification.id),
        ip=principal.ip,
        metadata={
            "type": notification.type.value,
            "recipientId": notification.recipient_id,
        },
    )


@router.get("", response_model=NotificationPageResponse)
async def list_notifications(
    principal: NotificationsReader,
    service: NotificationServiceDep,
    settings: SettingsDep,
    limit: int | None = Query(default=None),
    offset: int = Query(default=0),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    type: NotificationType | None = Query(default=None),
) -> NotificationPageResponse:
    """List the caller's notifications, most recent first."""
    cfg = settings.notifications
    limit = min(cfg.max_page_size, max(1, limit if limit is not None else cfg.default_page_size))
    offset = max(0, offset)

    page = await service.get_user_notifications(
        principal.user_id,
        limit=limit,
        offset=offset,
        unread_only=unread_only,
        type=type,
    )

    logger.info(
        "notifications_fetched",
        user_id=principal.user_id,
        count=len(page.notifications),
        total=page.total,
    )
    return NotificationPageResponse(
        notifications=[NotificationResponse.from_notification(n) for n in page.notifications],
        total=page.total,
        has_more=page.has_more,
    )


@router.post("", response_model=NotificationResponse, status_code=201)
async def create_notification(
    principal: NotificationsWriter,
    service: NotificationServiceDep,
    writer: AuditWriterDep,
    body: dict[str, Any] = Body(...),
) -> NotificationResponse:
    """Create a notification with explicit bilingual text."""
    request = validate_input(
        NotificationCreateRequest, body, endpoint="/api/notifications", method="POST"
    )
    data = NotificationCreate(
        **request.model_dump(),
        sender_id=principal.user_id,
    )
    notification = await service.create_notification(data)
    await _audit_created(writer, principal, notification)
    return NotificationResponse.from_notification(notification)


@router.post(
    "/templates/{template_type}",
    response_model=NotificationResponse,
    status_code=201,
)
async def create_from_template(
    template_type: str,
    principal: NotificationsWriter,
    service: NotificationServiceDep,
    writer: AuditWriterDep,
    body: dict[str, Any] = Body(...),
) -> NotificationResponse:
    """Create a notification from a predefined template."""
    request = validate_input(
        TemplateNotificationRequest,
        body,
        endpoint="/api/notifications/templates",
        method="POST",
    )
    options = request.model_dump(exclude={"recipient_id", "variables"}, exclude_none=True)
    notification = await service.create_from_template(
        template_type,
        request.recipient_id,
        request.variables,
        sender_id=principal.user_id,
        **options,
    )
    await _audit_created(writer, principal, notification)
    return NotificationResponse.from_notification(notification)


@router.post("/mark-all-read", response_model=CountResponse)
async def mark_all_read(
    principal: NotificationsReader,
    service: NotificationServiceDep,
    writer: AuditWriterDep,
) -> CountResponse:
    """Mark every unread notification of the caller as read."""
    count = await service.mark_all_as_read(principal.user_id)
    await writer.append(
        actor_id=principal.user_id,
        action="notifications_marked_read",
        entity="notifications",
        ip=principal.ip,
        metadata={"count": count},
    )
    return CountResponse(count=count)


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(
    principal: NotificationsReader,
    service: NotificationServiceDep,
) -> CountResponse:
    """Count the caller's unread notifications."""
    return CountResponse(count=await service.get_unread_count(principal.user_id))


@router.patch("/{notification_id}", response_model=SuccessResponse)
async def update_notification(
    notification_id: UUID,
    principal: NotificationsReader,
    service: NotificationServiceDep,
    action: str | None = Query(default=None),
) -> SuccessResponse:
    """Apply an action to one of the caller's notifications.

    Only action=mark_read is supported.
    """
    if action != "mark_read":
        raise ValidationError("Invalid action", {"action": action})

    if not await service.mark_as_read(notification_id, principal.user_id):
        raise NotFoundError(
            "Notification",
            {"notification_id": str(notification_id), "hint": "missing or already read"},
        )
    return SuccessResponse(success=True)
