"""
Book schemas for API responses.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema

from thesis_backend.users.schemas import UserMinimalSchema


class BookSchema(Schema):
    """Archived book with its student, advisor and discussant snapshots."""

    id: UUID
    name: str
    description: str
    file: str | None
    file_description: str
    year: int
    season: str
    degree: int | None
    source_pre_project_id: UUID
    advisor: UserMinimalSchema | None
    students: list[UserMinimalSchema]
    discussants: list[UserMinimalSchema]
    created: datetime

    @classmethod
    def from_book(cls, book) -> "BookSchema":
        return cls(
            id=book.id,
            name=book.name,
            description=book.description,
            file=book.file,
            file_description=book.file_description,
            year=book.year,
            season=book.season,
            degree=book.degree,
            source_pre_project_id=book.source_pre_project_id,
            advisor=UserMinimalSchema.from_user(book.advisor) if book.advisor else None,
            students=[UserMinimalSchema.from_user(s) for s in book.students.all()],
            discussants=[UserMinimalSchema.from_user(d) for d in book.discussants.all()],
            created=book.created,
        )
