"""
Business-rule validation for pre-projects and advisor responses.

Both functions are pure: they return a field -> message mapping, empty when
the candidate is valid. Callers decide which exception to raise.
"""

from collections.abc import Mapping
from collections.abc import Sequence

from django.conf import settings
from django.utils import timezone

from thesis_backend.core.validator import Validator
from thesis_backend.core.validator import permitted_value
from thesis_backend.preprojects.models import ResponseStatus
from thesis_backend.preprojects.models import Season

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 600
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1500
FILE_DESCRIPTION_MAX_LENGTH = 1000
DEGREE_MAX = 100


def validate_pre_project(
    candidate: Mapping,
    student_ids: Sequence,
    advisor_ids: Sequence,
) -> dict[str, str]:
    """
    Check a merged pre-project candidate.

    ``candidate`` holds the scalar fields (name, description, file,
    file_description, year, season, owner_id, degree). Every violation is
    collected; only the first message per field is kept.
    """
    validator = Validator()

    name = (candidate.get("name") or "").strip()
    validator.check(
        NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH,
        "name",
        f"Le nom doit contenir entre {NAME_MIN_LENGTH} et {NAME_MAX_LENGTH} caractères.",
    )

    description = candidate.get("description") or ""
    if description:
        validator.check(
            DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH,
            "description",
            f"La description doit contenir entre {DESCRIPTION_MIN_LENGTH} "
            f"et {DESCRIPTION_MAX_LENGTH} caractères.",
        )

    if candidate.get("file"):
        validator.check(
            len(candidate.get("file_description") or "") <= FILE_DESCRIPTION_MAX_LENGTH,
            "file_description",
            f"La description du fichier ne doit pas dépasser {FILE_DESCRIPTION_MAX_LENGTH} caractères.",
        )

    year = candidate.get("year")
    current_year = timezone.now().year
    validator.check(
        isinstance(year, int) and year >= current_year,
        "year",
        f"L'année doit être supérieure ou égale à {current_year}.",
    )

    validator.check(
        permitted_value(candidate.get("season"), Season.values),
        "season",
        "La saison doit être 'spring' ou 'fall'.",
    )

    owner_id = candidate.get("owner_id")
    validator.check(owner_id is not None, "owner", "Le propriétaire est obligatoire.")
    if owner_id is not None:
        validator.check(
            owner_id in set(student_ids),
            "students",
            "Le propriétaire doit faire partie des étudiants.",
        )

    max_students = settings.PRE_PROJECT_MAX_STUDENTS
    validator.check(
        1 <= len(student_ids) <= max_students,
        "students",
        f"Le pré-projet doit compter entre 1 et {max_students} étudiants.",
    )

    max_advisors = settings.PRE_PROJECT_MAX_ADVISORS
    validator.check(
        1 <= len(advisor_ids) <= max_advisors,
        "advisors",
        f"Le pré-projet doit solliciter entre 1 et {max_advisors} encadrants.",
    )

    degree = candidate.get("degree")
    if degree:
        validator.check(
            0 < degree <= DEGREE_MAX,
            "degree",
            f"La note doit être comprise entre 0 et {DEGREE_MAX}.",
        )

    return validator.errors


def validate_advisor_response(advisor_id, status: str, solicited_ids: Sequence) -> dict[str, str]:
    """Check an advisor's answer against the known statuses and solicited advisors."""
    validator = Validator()
    validator.check(
        permitted_value(status, ResponseStatus.values),
        "status",
        "Le statut doit être 'pending', 'accepted' ou 'rejected'.",
    )
    validator.check(
        permitted_value(advisor_id, solicited_ids),
        "advisor",
        "Cet encadrant n'est pas sollicité pour ce pré-projet.",
    )
    return validator.errors
