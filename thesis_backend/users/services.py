"""
Identity resolution: turns email lists into users before any write happens.
"""

import logging

from thesis_backend.core.exceptions import UnknownEmailError
from thesis_backend.users.models import User

logger = logging.getLogger(__name__)


def parse_email_list(raw: str | None) -> list[str] | None:
    """
    Split a comma-separated email list.

    Returns None when ``raw`` is None (field not supplied), and an empty list
    when it is supplied but holds no address.
    """
    if raw is None:
        return None
    return [email.strip() for email in raw.split(",") if email.strip()]


def resolve_users(emails: list[str], field: str) -> list[User]:
    """
    Resolve each email to a user, preserving order and dropping duplicates.

    Raises UnknownEmailError naming ``field`` on the first unknown address.
    """
    users: list[User] = []
    seen: set = set()
    for email in emails:
        user = User.objects.filter(email__iexact=email.strip()).first()
        if user is None:
            logger.info("Unknown email %s supplied for %s", email, field)
            raise UnknownEmailError(
                f"Aucun utilisateur avec l'email {email}.",
                details={field: f"Email inconnu : {email}"},
            )
        if user.id not in seen:
            seen.add(user.id)
            users.append(user)
    return users
