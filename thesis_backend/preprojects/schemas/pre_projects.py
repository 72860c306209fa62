"""
Pre-project schemas for API requests and responses.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema
from pydantic import field_validator

from thesis_backend.users.schemas import UserMinimalSchema

# Scalar fields a caller may change through an update
UPDATABLE_FIELDS = ("name", "description", "file_description", "year", "season", "degree", "can_update")


class PersonSchema(Schema):
    """Student, discussant or accepted advisor of a pre-project."""

    id: UUID
    name: str
    email: str

    @classmethod
    def from_details(cls, details) -> "PersonSchema":
        return cls(id=details.id, name=details.name, email=details.email)


class AdvisorResponseSchema(Schema):
    """One solicited advisor and their answer."""

    advisor_id: UUID
    name: str
    email: str
    status: str
    created: datetime
    modified: datetime


class PreProjectListSchema(Schema):
    """Schema for pre-project list view."""

    id: UUID
    name: str
    year: int
    season: str
    owner: UserMinimalSchema
    accepted_advisor: UserMinimalSchema | None
    can_update: bool
    degree: int | None
    created: datetime
    modified: datetime

    @classmethod
    def from_pre_project(cls, pre_project) -> "PreProjectListSchema":
        return cls(
            id=pre_project.id,
            name=pre_project.name,
            year=pre_project.year,
            season=pre_project.season,
            owner=UserMinimalSchema.from_user(pre_project.owner),
            accepted_advisor=(
                UserMinimalSchema.from_user(pre_project.accepted_advisor)
                if pre_project.accepted_advisor
                else None
            ),
            can_update=pre_project.can_update,
            degree=pre_project.degree,
            created=pre_project.created,
            modified=pre_project.modified,
        )


class PreProjectDetailSchema(Schema):
    """Full pre-project aggregate."""

    id: UUID
    name: str
    description: str
    file: str | None
    file_description: str
    owner_id: UUID
    year: int
    season: str
    can_update: bool
    degree: int | None
    created: datetime
    modified: datetime
    advisors: list[AdvisorResponseSchema]
    students: list[PersonSchema]
    discussants: list[PersonSchema]
    accepted_advisor: PersonSchema | None

    @classmethod
    def from_aggregate(cls, aggregate) -> "PreProjectDetailSchema":
        return cls(
            id=aggregate.id,
            name=aggregate.name,
            description=aggregate.description,
            file=aggregate.file,
            file_description=aggregate.file_description,
            owner_id=aggregate.owner_id,
            year=aggregate.year,
            season=aggregate.season,
            can_update=aggregate.can_update,
            degree=aggregate.degree,
            created=aggregate.created,
            modified=aggregate.modified,
            advisors=[
                AdvisorResponseSchema(
                    advisor_id=advisor.advisor_id,
                    name=advisor.name,
                    email=advisor.email,
                    status=advisor.status,
                    created=advisor.created,
                    modified=advisor.modified,
                )
                for advisor in aggregate.advisors
            ],
            students=[PersonSchema.from_details(s) for s in aggregate.students],
            discussants=[PersonSchema.from_details(d) for d in aggregate.discussants],
            accepted_advisor=(
                PersonSchema.from_details(aggregate.accepted_advisor) if aggregate.accepted_advisor else None
            ),
        )


class PreProjectCreateSchema(Schema):
    """
    Multipart form for creating a pre-project.

    Email lists are comma-separated. The creator is always added to the
    students.
    """

    name: str
    description: str = ""
    file_description: str = ""
    year: int
    season: str
    student_emails: str = ""
    advisor_emails: str
    discussant_emails: str = ""

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Le nom du pré-projet est requis.")
        return v.strip()


class PreProjectUpdateSchema(Schema):
    """
    Partial update. Only the fields present in the body are applied.

    A missing list leaves the relation untouched; ``discussant_emails: []``
    removes every discussant.
    """

    name: str | None = None
    description: str | None = None
    file_description: str | None = None
    year: int | None = None
    season: str | None = None
    degree: int | None = None
    can_update: bool | None = None
    student_emails: list[str] | None = None
    advisor_emails: list[str] | None = None
    discussant_emails: list[str] | None = None

    @field_validator("description", "file_description")
    @classmethod
    def blank_if_null(cls, v: str | None) -> str:
        return v or ""

    @field_validator("can_update")
    @classmethod
    def can_update_not_null(cls, v: bool | None) -> bool:
        if v is None:
            raise ValueError("can_update ne peut pas être nul.")
        return v

    def changes(self) -> dict:
        """Scalar fields the caller actually supplied."""
        return self.model_dump(include=set(UPDATABLE_FIELDS), exclude_unset=True)


class AdvisorResponseCreateSchema(Schema):
    """Advisor's answer: pending, accepted or rejected."""

    status: str


class ResetAdvisorsSchema(Schema):
    """Optional fresh list of advisors to solicit after the reset."""

    advisor_emails: list[str] | None = None
