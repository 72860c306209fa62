"""
Error-collecting validator used by the service layer.

Unlike schema validation, which stops at the request boundary, business
rules need the merged state of an entity, so checks are accumulated here and
raised together as a single ``ValidationError`` by the caller.
"""

from collections.abc import Iterable


class Validator:
    """
    Collects field -> message pairs.

    Only the first message recorded for a field is kept.
    """

    def __init__(self):
        self.errors: dict[str, str] = {}

    def add_error(self, key: str, message: str) -> None:
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)


def permitted_value(value, permitted: Iterable) -> bool:
    """Return True if ``value`` is one of ``permitted``."""
    return value in set(permitted)
