"""
Celery tasks for pre-project notifications.
"""

import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def render_notification(payload: dict) -> str:
    """Render a payload as a plain-text email body."""
    lines = [payload.get("message", "")]
    for key, value in payload.items():
        if key != "message":
            lines.append(f"{key}: {value}")
    return "\n".join(line for line in lines if line)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_notification(self, recipient: str, subject: str, payload: dict) -> bool:
    """
    Email ``recipient`` about a pre-project event.

    Args:
        recipient: Email address of the user to notify
        subject: Email subject
        payload: Event data; ``message`` is the lead line

    Returns:
        True if the email was handed to the mail backend
    """
    try:
        send_mail(
            subject,
            render_notification(payload),
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
        )
    except OSError as exc:
        logger.warning("Notification '%s' to %s failed, retrying: %s", subject, recipient, exc)
        raise self.retry(exc=exc)

    logger.info("Notification '%s' sent to %s", subject, recipient)
    return True
