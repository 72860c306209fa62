"""
Pre-project lifecycle: create, update, delete and read.

Emails are resolved before any transaction starts. Every write runs in one
``transaction.atomic()`` block and re-reads the aggregate afterwards; side
effects on storage and notifications only happen after commit.
"""

import logging
from functools import partial

from django.db import IntegrityError
from django.db import transaction
from django.db.models import Q

from thesis_backend.core.exceptions import AlreadyAcceptedError
from thesis_backend.core.exceptions import DuplicateActiveProjectError
from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.core.exceptions import NotOwnerError
from thesis_backend.core.exceptions import PermissionDeniedError
from thesis_backend.core.exceptions import ValidationError
from thesis_backend.core.roles import is_admin
from thesis_backend.core.storage import delete_file
from thesis_backend.preprojects.advisor_responses import solicit_advisors
from thesis_backend.preprojects.decoder import PreProjectAggregate
from thesis_backend.preprojects.decoder import load_aggregate
from thesis_backend.preprojects.models import AdvisorResponse
from thesis_backend.preprojects.models import PreProject
from thesis_backend.preprojects.models import PreProjectDiscussant
from thesis_backend.preprojects.models import PreProjectStudent
from thesis_backend.preprojects.similarity import ensure_not_similar
from thesis_backend.preprojects.validation import validate_pre_project
from thesis_backend.users.services import resolve_users

logger = logging.getLogger(__name__)

# Fields only an administrator may change
ADMIN_FIELDS = {"degree", "can_update"}


def _ensure_no_other_pre_project(students, exclude_pre_project_id=None) -> None:
    """Raise DuplicateActiveProjectError naming the first student already taken."""
    memberships = PreProjectStudent.objects.filter(student__in=students).select_related("student")
    if exclude_pre_project_id is not None:
        memberships = memberships.exclude(pre_project_id=exclude_pre_project_id)

    membership = memberships.first()
    if membership is not None:
        email = membership.student.email
        raise DuplicateActiveProjectError(
            f"L'étudiant {email} a déjà un pré-projet en cours.",
            details={"students": email},
        )


def _raise_if_invalid(candidate: dict, student_ids, advisor_ids) -> None:
    errors = validate_pre_project(candidate, student_ids, advisor_ids)
    if errors:
        raise ValidationError(details=errors)


def create_pre_project(
    owner,
    data: dict,
    student_emails: list[str],
    advisor_emails: list[str],
    discussant_emails: list[str] | None = None,
    file_reference: str | None = None,
) -> PreProjectAggregate:
    """
    Create a pre-project owned by ``owner``.

    The owner is always one of the students. Every advisor starts with a
    pending response. Solicited advisors are notified after commit.
    """
    students = [owner]
    for student in resolve_users(student_emails, "student_emails"):
        if student.id != owner.id:
            students.append(student)
    advisors = resolve_users(advisor_emails, "advisor_emails")
    discussants = resolve_users(discussant_emails or [], "discussant_emails")

    _ensure_no_other_pre_project(students)

    candidate = {
        **data,
        "owner_id": owner.id,
        "file": file_reference,
    }
    _raise_if_invalid(candidate, [s.id for s in students], [a.id for a in advisors])

    ensure_not_similar(data.get("name", ""), data.get("description", ""))

    try:
        with transaction.atomic():
            pre_project = PreProject.objects.create(
                name=data["name"].strip(),
                description=data.get("description") or "",
                file=file_reference,
                file_description=data.get("file_description") or "",
                owner=owner,
                year=data["year"],
                season=data["season"],
            )
            PreProjectStudent.objects.bulk_create(
                [PreProjectStudent(pre_project=pre_project, student=student) for student in students]
            )
            PreProjectDiscussant.objects.bulk_create(
                [PreProjectDiscussant(pre_project=pre_project, discussant=d) for d in discussants]
            )
            solicit_advisors(pre_project, advisors)
    except IntegrityError as exc:
        # Another request enrolled one of the students in the meantime
        raise DuplicateActiveProjectError() from exc

    logger.info("Pre-project %s created by %s", pre_project.id, owner.id)
    return load_aggregate(pre_project.id)


def _check_update_allowed(pre_project: PreProject, requester, changes: dict) -> None:
    if is_admin(requester):
        return
    if not pre_project.is_owner(requester):
        raise NotOwnerError("Seul le propriétaire peut modifier ce pré-projet.")
    if not pre_project.can_update:
        raise PermissionDeniedError("Ce pré-projet n'est plus modifiable.")
    restricted = ADMIN_FIELDS.intersection(changes)
    if restricted:
        raise PermissionDeniedError(
            "Seul un administrateur peut modifier ces champs.",
            details={name: "Réservé aux administrateurs." for name in sorted(restricted)},
        )


def _replace_students(pre_project: PreProject, current_ids, students) -> None:
    new_ids = {student.id for student in students}
    PreProjectStudent.objects.filter(pre_project=pre_project).exclude(student_id__in=new_ids).delete()
    PreProjectStudent.objects.bulk_create(
        [
            PreProjectStudent(pre_project=pre_project, student=student)
            for student in students
            if student.id not in set(current_ids)
        ]
    )


def _replace_discussants(pre_project: PreProject, current_ids, discussants) -> None:
    new_ids = {discussant.id for discussant in discussants}
    PreProjectDiscussant.objects.filter(pre_project=pre_project).exclude(discussant_id__in=new_ids).delete()
    PreProjectDiscussant.objects.bulk_create(
        [
            PreProjectDiscussant(pre_project=pre_project, discussant=discussant)
            for discussant in discussants
            if discussant.id not in set(current_ids)
        ]
    )


def update_pre_project(
    pre_project_id,
    requester,
    changes: dict,
    student_emails: list[str] | None = None,
    advisor_emails: list[str] | None = None,
    discussant_emails: list[str] | None = None,
    file_reference: str | None = None,
) -> PreProjectAggregate:
    """
    Merge ``changes`` into a pre-project.

    ``changes`` only holds the fields the caller supplied. A list argument
    left to None keeps the current relation; an empty discussant list clears
    the discussants. Kept advisors keep their answer, removed advisors lose
    their response row and new advisors start pending. New advisors are
    refused once an advisor has accepted and is kept.
    """
    students = None if student_emails is None else resolve_users(student_emails, "student_emails")
    advisors = None if advisor_emails is None else resolve_users(advisor_emails, "advisor_emails")
    discussants = None if discussant_emails is None else resolve_users(discussant_emails, "discussant_emails")

    with transaction.atomic():
        pre_project = PreProject.objects.select_for_update().filter(id=pre_project_id).first()
        if pre_project is None:
            raise NotFoundError("Pré-projet introuvable.")

        _check_update_allowed(pre_project, requester, changes)
        current = load_aggregate(pre_project_id)

        candidate = {
            "name": current.name,
            "description": current.description,
            "file": current.file,
            "file_description": current.file_description,
            "year": current.year,
            "season": current.season,
            "owner_id": current.owner_id,
            "degree": current.degree,
        }
        candidate.update(changes)
        if file_reference is not None:
            candidate["file"] = file_reference

        student_ids = current.student_ids if students is None else [s.id for s in students]
        advisor_ids = current.advisor_ids if advisors is None else [a.id for a in advisors]
        _raise_if_invalid(candidate, student_ids, advisor_ids)

        if advisors is not None and current.accepted_advisor_id in advisor_ids:
            new_advisor_ids = set(advisor_ids) - set(current.advisor_ids)
            if new_advisor_ids:
                raise AlreadyAcceptedError(
                    "Ce pré-projet a déjà un encadrant, aucun autre ne peut être sollicité.",
                    details={"advisor_emails": "Pré-projet déjà accepté."},
                )

        if students is not None:
            added = [s for s in students if s.id not in set(current.student_ids)]
            _ensure_no_other_pre_project(added, exclude_pre_project_id=pre_project_id)

        if {"name", "description"}.intersection(changes) and (
            candidate["name"] != current.name or candidate["description"] != current.description
        ):
            ensure_not_similar(candidate["name"], candidate["description"])

        for name, value in changes.items():
            setattr(pre_project, name, value)
        if isinstance(changes.get("name"), str):
            pre_project.name = changes["name"].strip()
        if file_reference is not None:
            pre_project.file = file_reference

        if advisors is not None:
            removed_ids = set(current.advisor_ids) - set(advisor_ids)
            if removed_ids:
                AdvisorResponse.objects.filter(pre_project=pre_project, advisor_id__in=removed_ids).delete()
                if pre_project.accepted_advisor_id in removed_ids:
                    # Kept advisors stay rejected until the owner or an admin resets them
                    logger.warning(
                        "Accepted advisor %s removed from pre-project %s; remaining responses stay rejected, "
                        "reset advisors to solicit them again",
                        pre_project.accepted_advisor_id,
                        pre_project_id,
                    )
                    pre_project.accepted_advisor = None

        try:
            pre_project.save()
            if students is not None:
                _replace_students(pre_project, current.student_ids, students)
            if discussants is not None:
                _replace_discussants(pre_project, current.discussant_ids, discussants)
            if advisors is not None:
                solicit_advisors(pre_project, advisors)
        except IntegrityError as exc:
            raise DuplicateActiveProjectError() from exc

        old_file = current.file
        if file_reference is not None and old_file and old_file != file_reference:
            transaction.on_commit(partial(delete_file, old_file))

    logger.info("Pre-project %s updated by %s", pre_project_id, requester.id)
    return load_aggregate(pre_project_id)


def delete_pre_project(pre_project_id, requester) -> None:
    """
    Delete a pre-project. Only its owner may do so.

    The attached file is removed after commit; a failure there is logged.
    """
    with transaction.atomic():
        pre_project = PreProject.objects.select_for_update().filter(id=pre_project_id).first()
        if pre_project is None:
            raise NotFoundError("Pré-projet introuvable.")
        if not pre_project.is_owner(requester):
            raise NotOwnerError("Seul le propriétaire peut supprimer ce pré-projet.")

        file_reference = pre_project.file
        pre_project.delete()
        if file_reference:
            transaction.on_commit(partial(delete_file, file_reference))

    logger.info("Pre-project %s deleted by %s", pre_project_id, requester.id)


def get_pre_project(pre_project_id) -> PreProjectAggregate:
    return load_aggregate(pre_project_id)


def list_pre_projects(user=None, year: int | None = None, season: str | None = None, mine: bool = False):
    """List pre-projects, newest first, with simple filters."""
    pre_projects = PreProject.objects.select_related("owner", "accepted_advisor")

    if year is not None:
        pre_projects = pre_projects.filter(year=year)
    if season:
        pre_projects = pre_projects.filter(season=season)
    if mine and user is not None:
        pre_projects = pre_projects.filter(
            Q(owner=user) | Q(students=user) | Q(advisors=user) | Q(discussants=user)
        ).distinct()

    return pre_projects.order_by("-created")
