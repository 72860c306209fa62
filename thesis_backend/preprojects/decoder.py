"""
Rebuilds a pre-project aggregate from one flattened multi-join read.

``aggregate_rows`` joins the pre-project against its advisor responses,
student memberships, discussant memberships and accepted advisor in a single
``values()`` query. Each relation is a LEFT OUTER JOIN, so the result fans
out: every row repeats the pre-project's scalar columns and carries at most
one entry per relation (or NULLs when that relation has nothing to add).

``decode_rows`` folds those rows back into one ``PreProjectAggregate`` with
each related list deduplicated by id, in first-seen order.
"""

from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from uuid import UUID

from django.db.models import F

from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.preprojects.models import PreProject

SCALAR_FIELDS = (
    "id",
    "name",
    "description",
    "file",
    "file_description",
    "owner_id",
    "accepted_advisor_id",
    "year",
    "season",
    "can_update",
    "degree",
    "created",
    "modified",
)


@dataclass(frozen=True)
class PersonDetails:
    """Student, discussant or accepted advisor as seen from a pre-project."""

    id: UUID
    name: str
    email: str


@dataclass(frozen=True)
class AdvisorResponseDetails:
    advisor_id: UUID
    name: str
    email: str
    status: str
    created: datetime
    modified: datetime


@dataclass
class PreProjectAggregate:
    """A pre-project with its advisor responses, students and discussants."""

    id: UUID
    name: str
    description: str
    file: str | None
    file_description: str
    owner_id: UUID
    accepted_advisor_id: UUID | None
    year: int
    season: str
    can_update: bool
    degree: int | None
    created: datetime
    modified: datetime
    advisors: list[AdvisorResponseDetails] = field(default_factory=list)
    students: list[PersonDetails] = field(default_factory=list)
    discussants: list[PersonDetails] = field(default_factory=list)
    accepted_advisor: PersonDetails | None = None

    @property
    def advisor_ids(self) -> list[UUID]:
        return [advisor.advisor_id for advisor in self.advisors]

    @property
    def student_ids(self) -> list[UUID]:
        return [student.id for student in self.students]

    @property
    def discussant_ids(self) -> list[UUID]:
        return [discussant.id for discussant in self.discussants]


def _full_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()


def aggregate_rows(pre_project_id) -> list[dict]:
    """Run the fan-out query for one pre-project and return its raw rows."""
    return list(
        PreProject.objects.filter(id=pre_project_id)
        .order_by()
        .values(
            *SCALAR_FIELDS,
            response_advisor_id=F("advisor_responses__advisor_id"),
            response_first_name=F("advisor_responses__advisor__first_name"),
            response_last_name=F("advisor_responses__advisor__last_name"),
            response_email=F("advisor_responses__advisor__email"),
            response_status=F("advisor_responses__status"),
            response_created=F("advisor_responses__created"),
            response_modified=F("advisor_responses__modified"),
            member_id=F("student_memberships__student_id"),
            member_first_name=F("student_memberships__student__first_name"),
            member_last_name=F("student_memberships__student__last_name"),
            member_email=F("student_memberships__student__email"),
            reviewer_id=F("discussant_memberships__discussant_id"),
            reviewer_first_name=F("discussant_memberships__discussant__first_name"),
            reviewer_last_name=F("discussant_memberships__discussant__last_name"),
            reviewer_email=F("discussant_memberships__discussant__email"),
            accepted_first_name=F("accepted_advisor__first_name"),
            accepted_last_name=F("accepted_advisor__last_name"),
            accepted_email=F("accepted_advisor__email"),
        )
    )


def decode_rows(rows: Iterable[Mapping]) -> PreProjectAggregate:
    """
    Fold fan-out rows into a single aggregate.

    A NULL id in a relation's columns means that row has nothing for the
    relation. Raises NotFoundError when there are no rows at all.
    """
    aggregate = None
    seen_advisors: set = set()
    seen_students: set = set()
    seen_discussants: set = set()

    for row in rows:
        if aggregate is None:
            aggregate = PreProjectAggregate(**{name: row[name] for name in SCALAR_FIELDS})

        advisor_id = row.get("response_advisor_id")
        if advisor_id is not None and advisor_id not in seen_advisors:
            seen_advisors.add(advisor_id)
            aggregate.advisors.append(
                AdvisorResponseDetails(
                    advisor_id=advisor_id,
                    name=_full_name(row.get("response_first_name"), row.get("response_last_name")),
                    email=row.get("response_email") or "",
                    status=row.get("response_status"),
                    created=row.get("response_created"),
                    modified=row.get("response_modified"),
                )
            )

        student_id = row.get("member_id")
        if student_id is not None and student_id not in seen_students:
            seen_students.add(student_id)
            aggregate.students.append(
                PersonDetails(
                    id=student_id,
                    name=_full_name(row.get("member_first_name"), row.get("member_last_name")),
                    email=row.get("member_email") or "",
                )
            )

        discussant_id = row.get("reviewer_id")
        if discussant_id is not None and discussant_id not in seen_discussants:
            seen_discussants.add(discussant_id)
            aggregate.discussants.append(
                PersonDetails(
                    id=discussant_id,
                    name=_full_name(row.get("reviewer_first_name"), row.get("reviewer_last_name")),
                    email=row.get("reviewer_email") or "",
                )
            )

        accepted_id = row.get("accepted_advisor_id")
        if accepted_id is not None and aggregate.accepted_advisor is None:
            aggregate.accepted_advisor = PersonDetails(
                id=accepted_id,
                name=_full_name(row.get("accepted_first_name"), row.get("accepted_last_name")),
                email=row.get("accepted_email") or "",
            )

    if aggregate is None:
        raise NotFoundError("Pré-projet introuvable.")
    return aggregate


def load_aggregate(pre_project_id) -> PreProjectAggregate:
    """Read and decode the aggregate for ``pre_project_id``."""
    return decode_rows(aggregate_rows(pre_project_id))
