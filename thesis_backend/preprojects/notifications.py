"""
Post-commit notifications.

Notifications are queued only once the surrounding transaction commits, so a
rolled-back operation never tells anybody anything. Dispatch failures are
logged and never affect the committed state.
"""

import logging

from django.db import transaction

from thesis_backend.preprojects.tasks import send_notification

logger = logging.getLogger(__name__)


def notify_on_commit(recipient: str, subject: str, payload: dict) -> None:
    """Schedule ``send_notification`` for ``recipient`` after commit."""

    def dispatch():
        try:
            send_notification.delay(recipient, subject, payload)
        except Exception:
            logger.exception("Failed to dispatch notification '%s' to %s", subject, recipient)

    transaction.on_commit(dispatch)


def notify_many_on_commit(recipients, subject: str, payload: dict) -> None:
    for recipient in recipients:
        if recipient:
            notify_on_commit(recipient, subject, payload)
