"""
Validation for books.

Books are historical records, so the year has no lower bound here.
"""

from collections.abc import Mapping
from collections.abc import Sequence

from thesis_backend.core.validator import Validator
from thesis_backend.core.validator import permitted_value
from thesis_backend.preprojects.models import Season
from thesis_backend.preprojects.validation import NAME_MAX_LENGTH
from thesis_backend.preprojects.validation import NAME_MIN_LENGTH


def validate_book(candidate: Mapping, student_ids: Sequence, advisor_ids: Sequence) -> dict[str, str]:
    """Return a field -> message mapping, empty when the book is valid."""
    validator = Validator()

    name = (candidate.get("name") or "").strip()
    validator.check(
        NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH,
        "name",
        f"Le nom doit contenir entre {NAME_MIN_LENGTH} et {NAME_MAX_LENGTH} caractères.",
    )
    year = candidate.get("year")
    validator.check(isinstance(year, int) and year > 0, "year", "L'année est invalide.")
    validator.check(
        permitted_value(candidate.get("season"), Season.values),
        "season",
        "La saison doit être 'spring' ou 'fall'.",
    )
    validator.check(len(student_ids) >= 1, "students", "Un livre doit avoir au moins un étudiant.")
    validator.check(len(advisor_ids) == 1, "advisor", "Un livre doit avoir exactement un encadrant.")

    return validator.errors
