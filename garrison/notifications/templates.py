"""Predefined bilingual notification templates.

Placeholders are written as {name}. Substitution replaces only the first
occurrence of each placeholder and leaves unknown placeholders as they
are.
"""

from types import MappingProxyType

from garrison.errors import TemplateNotFoundError
from garrison.notifications.enums import NotificationType
from garrison.notifications.models import NotificationTemplate, RenderedNotification


TEMPLATES: MappingProxyType[NotificationType, NotificationTemplate] = MappingProxyType(
    {
        NotificationType.COURSE_ENROLLMENT: NotificationTemplate(
            title_ar="تم تسجيلك في دورة تدريبية",
            title_en="Enrolled in Training Course",
            message_ar="تم تسجيلك بنجاح في الدورة: {courseTitle}",
            message_en="You have been successfully enrolled in the course: {courseTitle}",
        ),
        NotificationType.COURSE_COMPLETION: NotificationTemplate(
            title_ar="أكملت دورة تدريبية",
            title_en="Course Completed",
            message_ar="تهانينا! لقد أكملت الدورة: {courseTitle}",
            message_en="Congratulations! You have completed the course: {courseTitle}",
        ),
        NotificationType.EXAM_AVAILABLE: NotificationTemplate(
            title_ar="امتحان متاح",
            title_en="Exam Available",
            message_ar="امتحان جديد متاح للدورة: {courseTitle}",
            message_en="A new exam is available for the course: {courseTitle}",
        ),
        NotificationType.EXAM_SUBMITTED: NotificationTemplate(
            title_ar="تم تسليم الامتحان",
            title_en="Exam Submitted",
            message_ar="تم تسليم امتحانك للدورة: {courseTitle}",
            message_en="Your exam has been submitted for the course: {courseTitle}",
        ),
        NotificationType.EXAM_GRADED: NotificationTemplate(
            title_ar="تم تقييم الامتحان",
            title_en="Exam Graded",
            message_ar="تم تقييم امتحانك في الدورة: {courseTitle}. الدرجة: {score}%",
            message_en="Your exam has been graded for the course: {courseTitle}. Score: {score}%",
        ),
        NotificationType.CERTIFICATE_ISSUED: NotificationTemplate(
            title_ar="شهادة جديدة",
            title_en="New Certificate",
            message_ar="تم إصدار شهادة لك في الدورة: {courseTitle}",
            message_en="A certificate has been issued for you in the course: {courseTitle}",
        ),
        NotificationType.SESSION_REMINDER: NotificationTemplate(
            title_ar="تذكير بجلسة تدريبية",
            title_en="Session Reminder",
            message_ar="تذكير: لديك جلسة تدريبية في {sessionTime} - {courseTitle}",
            message_en="Reminder: You have a training session at {sessionTime} - {courseTitle}",
        ),
        NotificationType.SYSTEM_ANNOUNCEMENT: NotificationTemplate(
            title_ar="إعلان نظام",
            title_en="System Announcement",
            message_ar="{message}",
            message_en="{message}",
        ),
    }
)


def substitute(text: str, variables: dict[str, str]) -> str:
    """Replace the first {key} occurrence for each variable."""
    for key, value in variables.items():
        text = text.replace("{" + key + "}", str(value), 1)
    return text


def get_template(template_type: NotificationType | str) -> NotificationTemplate:
    """Look up a template.

    Raises:
        TemplateNotFoundError: If the type has no predefined template
    """
    try:
        return TEMPLATES[NotificationType(template_type)]
    except (KeyError, ValueError):
        raise TemplateNotFoundError(str(getattr(template_type, "value", template_type))) from None


def render(
    template_type: NotificationType | str,
    variables: dict[str, str],
) -> RenderedNotification:
    """Fill a template's four texts with variables."""
    template = get_template(template_type)
    return RenderedNotification(
        title_ar=substitute(template.title_ar, variables),
        title_en=substitute(template.title_en, variables),
        message_ar=substitute(template.message_ar, variables),
        message_en=substitute(template.message_en, variables),
    )
