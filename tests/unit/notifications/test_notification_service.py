"""Tests for NotificationService."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from garrison.errors import ExternalServiceError, NotFoundError, TemplateNotFoundError
from garrison.notifications import (
    Notification,
    NotificationChannel,
    NotificationCreate,
    NotificationPriority,
    NotificationService,
    NotificationType,
    Recipient,
)
from garrison.notifications.channels import ChannelSender, default_senders
from garrison.notifications.stores import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
)
from garrison.resilience import CircuitState


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FlakySender(ChannelSender):
    """Email sender that fails a set number of times before succeeding."""

    channel = NotificationChannel.EMAIL

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def send(self, notification: Notification, recipient: Recipient | None) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("smtp down")


class BrokenNotificationStore(InMemoryNotificationStore):
    async def count_for_user(self, user_id, *, unread_only=False, type=None) -> int:  # type: ignore[no-untyped-def]
        raise ConnectionError("db down")


@pytest.fixture
def store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def recipients() -> InMemoryRecipientDirectory:
    return InMemoryRecipientDirectory(
        [
            Recipient(id="u1", email="u1@example.com", phone="+966500000001"),
            Recipient(id="u2", email="u2@example.com", locale="en"),
        ]
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def service(
    store: InMemoryNotificationStore,
    recipients: InMemoryRecipientDirectory,
    sleep: RecordingSleep,
) -> NotificationService:
    return NotificationService(store, recipients, sleep=sleep)


def make_create(**overrides) -> NotificationCreate:  # type: ignore[no-untyped-def]
    fields = {
        "type": NotificationType.CUSTOM_MESSAGE,
        "recipient_id": "u1",
        "title_ar": "تنبيه",
        "title_en": "Notice",
        "message_ar": "رسالة",
        "message_en": "Message",
    }
    fields.update(overrides)
    return NotificationCreate(**fields)


class TestCreateNotification:
    async def test_defaults_applied(self, service: NotificationService) -> None:
        notification = await service.create_notification(make_create())

        assert notification.priority == NotificationPriority.MEDIUM
        assert notification.channels == [NotificationChannel.IN_APP]
        assert notification.is_read is False

    async def test_configured_defaults(
        self, store: InMemoryNotificationStore, recipients: InMemoryRecipientDirectory
    ) -> None:
        service = NotificationService(
            store,
            recipients,
            default_priority=NotificationPriority.LOW,
            default_channels=[NotificationChannel.EMAIL],
        )
        notification = await service.create_notification(make_create())

        assert notification.priority == NotificationPriority.LOW
        assert notification.channels == [NotificationChannel.EMAIL]

    async def test_explicit_channels_kept(
        self, store: InMemoryNotificationStore, recipients: InMemoryRecipientDirectory
    ) -> None:
        service = NotificationService(
            store, recipients, default_channels=[NotificationChannel.EMAIL]
        )
        notification = await service.create_notification(
            make_create(channels=[NotificationChannel.IN_APP])
        )

        assert notification.channels == [NotificationChannel.IN_APP]

    def test_empty_channel_list_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_create(channels=[])

    async def test_sent_immediately(
        self, service: NotificationService, store: InMemoryNotificationStore
    ) -> None:
        notification = await service.create_notification(make_create())

        assert notification.sent_at is not None
        stored = await store.get(notification.id)
        assert stored is not None
        assert stored.sent_at == notification.sent_at

    async def test_scheduled_not_sent(
        self, service: NotificationService, store: InMemoryNotificationStore
    ) -> None:
        notification = await service.create_notification(
            make_create(scheduled_at=datetime(2030, 1, 1, tzinfo=UTC))
        )

        assert notification.sent_at is None
        stored = await store.get(notification.id)
        assert stored is not None
        assert stored.sent_at is None

    async def test_logs_created_and_sent(self, service: NotificationService) -> None:
        with capture_logs() as logs:
            notification = await service.create_notification(make_create())

        events = [log["event"] for log in logs]
        assert "notification_created" in events
        assert "notification_sent" in events
        created = next(log for log in logs if log["event"] == "notification_created")
        assert created["notification_id"] == str(notification.id)


class TestChannels:
    async def test_email_uses_recipient_locale(self, service: NotificationService) -> None:
        with capture_logs() as logs:
            await service.create_notification(
                make_create(recipient_id="u2", channels=[NotificationChannel.EMAIL])
            )

        email = next(log for log in logs if log["event"] == "email_notification_would_be_sent")
        assert email["to"] == "u2@example.com"
        assert email["subject"] == "Notice"
        assert email["message"] == "Message"

    async def test_sms_defaults_to_arabic(self, service: NotificationService) -> None:
        with capture_logs() as logs:
            await service.create_notification(
                make_create(channels=[NotificationChannel.SMS])
            )

        sms = next(log for log in logs if log["event"] == "sms_notification_would_be_sent")
        assert sms["to"] == "+966500000001"
        assert sms["message"] == "رسالة"

    async def test_missing_address_skipped(self, service: NotificationService) -> None:
        with capture_logs() as logs:
            notification = await service.create_notification(
                make_create(recipient_id="u2", channels=[NotificationChannel.SMS])
            )

        assert notification.sent_at is not None
        assert any(log["event"] == "sms_notification_skipped" for log in logs)

    async def test_unknown_recipient_skipped(self, service: NotificationService) -> None:
        with capture_logs() as logs:
            await service.create_notification(
                make_create(recipient_id="ghost", channels=[NotificationChannel.EMAIL])
            )

        assert any(log["event"] == "email_notification_skipped" for log in logs)


class TestDeliveryResilience:
    async def test_retries_with_backoff(
        self,
        store: InMemoryNotificationStore,
        recipients: InMemoryRecipientDirectory,
        sleep: RecordingSleep,
    ) -> None:
        flaky = FlakySender(failures=2)
        service = NotificationService(
            store,
            recipients,
            senders={**default_senders(), NotificationChannel.EMAIL: flaky},
            retry_delay=0.5,
            sleep=sleep,
        )

        notification = await service.create_notification(
            make_create(channels=[NotificationChannel.EMAIL])
        )

        assert notification.sent_at is not None
        assert flaky.calls == 3
        assert sleep.calls == [0.5, 1.0]

    async def test_exhausted_retries_raise(
        self,
        store: InMemoryNotificationStore,
        recipients: InMemoryRecipientDirectory,
        sleep: RecordingSleep,
    ) -> None:
        service = NotificationService(
            store,
            recipients,
            senders={**default_senders(), NotificationChannel.EMAIL: FlakySender(failures=99)},
            sleep=sleep,
        )

        with capture_logs() as logs, pytest.raises(ConnectionError):
            await service.create_notification(
                make_create(channels=[NotificationChannel.EMAIL])
            )

        events = [log["event"] for log in logs]
        assert "notification_send_failed" in events
        assert "notification_create_failed" in events

    async def test_breaker_opens_after_repeated_failures(
        self,
        store: InMemoryNotificationStore,
        recipients: InMemoryRecipientDirectory,
        sleep: RecordingSleep,
    ) -> None:
        flaky = FlakySender(failures=99)
        service = NotificationService(
            store,
            recipients,
            senders={**default_senders(), NotificationChannel.EMAIL: flaky},
            max_retries=1,
            breaker_failure_threshold=2,
            sleep=sleep,
        )
        data = make_create(channels=[NotificationChannel.EMAIL])

        for _ in range(2):
            with pytest.raises(ConnectionError):
                await service.create_notification(data)
        assert service.breaker(NotificationChannel.EMAIL).state == CircuitState.OPEN

        with pytest.raises(ExternalServiceError):
            await service.create_notification(data)
        assert flaky.calls == 2

    async def test_breakers_are_per_channel(self, service: NotificationService) -> None:
        assert service.breaker(NotificationChannel.EMAIL).name == "notifications_email"
        assert service.breaker(NotificationChannel.SMS).name == "notifications_sms"
        with pytest.raises(KeyError):
            service.breaker(NotificationChannel.IN_APP)


class TestSendNotification:
    async def test_unknown_id(self, service: NotificationService) -> None:
        with pytest.raises(NotFoundError):
            await service.send_notification(uuid4())

    async def test_sends_scheduled(self, service: NotificationService) -> None:
        scheduled = await service.create_notification(
            make_create(scheduled_at=datetime(2030, 1, 1, tzinfo=UTC))
        )

        sent = await service.send_notification(scheduled.id)
        assert sent.sent_at is not None


class TestCreateFromTemplate:
    async def test_renders_template(self, service: NotificationService) -> None:
        notification = await service.create_from_template(
            NotificationType.COURSE_ENROLLMENT,
            "u1",
            {"courseTitle": "Navigation"},
            priority=NotificationPriority.HIGH,
        )

        assert notification.type == NotificationType.COURSE_ENROLLMENT
        assert notification.title_en == "Enrolled in Training Course"
        assert notification.message_en.endswith("Navigation")
        assert notification.priority == NotificationPriority.HIGH

    async def test_custom_message_rejected(
        self, service: NotificationService, store: InMemoryNotificationStore
    ) -> None:
        with pytest.raises(TemplateNotFoundError):
            await service.create_from_template(NotificationType.CUSTOM_MESSAGE, "u1", {})
        assert await store.count_for_user("u1") == 0


class TestReadState:
    async def test_mark_as_read(self, service: NotificationService) -> None:
        notification = await service.create_notification(make_create())

        assert await service.mark_as_read(notification.id, "u2") is False
        assert await service.mark_as_read(notification.id, "u1") is True
        assert await service.mark_as_read(notification.id, "u1") is False
        assert await service.get_unread_count("u1") == 0

    async def test_mark_all_as_read(self, service: NotificationService) -> None:
        for _ in range(3):
            await service.create_notification(make_create())
        await service.create_notification(make_create(recipient_id="u2"))

        with capture_logs() as logs:
            count = await service.mark_all_as_read("u1")

        assert count == 3
        assert logs[-1]["event"] == "notifications_marked_read"
        assert logs[-1]["count"] == 3
        assert await service.get_unread_count("u2") == 1

    async def test_unread_count_falls_back_to_zero(
        self, recipients: InMemoryRecipientDirectory
    ) -> None:
        service = NotificationService(BrokenNotificationStore(), recipients)

        with capture_logs() as logs:
            assert await service.get_unread_count("u1") == 0
        assert logs[-1]["event"] == "notification_unread_count_failed"


class TestGetUserNotifications:
    async def test_pagination(self, service: NotificationService) -> None:
        for _ in range(5):
            await service.create_notification(make_create())

        first = await service.get_user_notifications("u1", limit=2, offset=0)
        assert len(first.notifications) == 2
        assert first.total == 5
        assert first.has_more is True

        last = await service.get_user_notifications("u1", limit=2, offset=4)
        assert len(last.notifications) == 1
        assert last.has_more is False

    async def test_unread_only(self, service: NotificationService) -> None:
        a = await service.create_notification(make_create())
        await service.create_notification(make_create())
        await service.mark_as_read(a.id, "u1")

        page = await service.get_user_notifications("u1", unread_only=True)
        assert page.total == 1
        assert all(not n.is_read for n in page.notifications)

    async def test_type_filter(self, service: NotificationService) -> None:
        await service.create_notification(make_create())
        await service.create_from_template(
            NotificationType.EXAM_GRADED, "u1", {"courseTitle": "A", "score": "80"}
        )

        page = await service.get_user_notifications("u1", type=NotificationType.EXAM_GRADED)
        assert page.total == 1
        assert page.notifications[0].type == NotificationType.EXAM_GRADED
