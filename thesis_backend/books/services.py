"""
Promotion of accepted pre-projects into books.
"""

import logging

from django.db import IntegrityError
from django.db import transaction

from thesis_backend.books.models import Book
from thesis_backend.books.validation import validate_book
from thesis_backend.core.exceptions import ConflictError
from thesis_backend.core.exceptions import NoAcceptedAdvisorError
from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.core.exceptions import ValidationError
from thesis_backend.preprojects.decoder import load_aggregate
from thesis_backend.preprojects.models import PreProject
from thesis_backend.preprojects.notifications import notify_many_on_commit

logger = logging.getLogger(__name__)


def promote_to_book(pre_project_id) -> Book:
    """
    Turn an accepted pre-project into a book.

    The book insert and the pre-project delete share one transaction. The
    attached file moves to the book and is kept in storage. Students are
    notified after commit.
    """
    with transaction.atomic():
        pre_project = PreProject.objects.select_for_update().filter(id=pre_project_id).first()
        if pre_project is None:
            raise NotFoundError("Pré-projet introuvable.")

        aggregate = load_aggregate(pre_project_id)
        if aggregate.accepted_advisor_id is None:
            raise NoAcceptedAdvisorError()

        candidate = {"name": aggregate.name, "year": aggregate.year, "season": aggregate.season}
        errors = validate_book(candidate, aggregate.student_ids, [aggregate.accepted_advisor_id])
        if errors:
            raise ValidationError(details=errors)

        try:
            with transaction.atomic():
                book = Book.objects.create(
                    name=aggregate.name,
                    description=aggregate.description,
                    file=aggregate.file,
                    file_description=aggregate.file_description,
                    year=aggregate.year,
                    season=aggregate.season,
                    degree=aggregate.degree,
                    advisor_id=aggregate.accepted_advisor_id,
                    source_pre_project_id=aggregate.id,
                )
        except IntegrityError as exc:
            raise ConflictError("Ce pré-projet a déjà été archivé.") from exc

        book.students.set(aggregate.student_ids)
        book.discussants.set(aggregate.discussant_ids)
        pre_project.delete()

        logger.info("PROMOTED: pre-project %s became book %s", pre_project_id, book.id)
        notify_many_on_commit(
            [student.email for student in aggregate.students],
            "Pré-projet archivé",
            {
                "message": "Votre pré-projet a été archivé dans la bibliothèque.",
                "book": book.name,
            },
        )

    return book


def list_books(year: int | None = None, season: str | None = None):
    books = Book.objects.select_related("advisor").prefetch_related("students", "discussants")
    if year is not None:
        books = books.filter(year=year)
    if season:
        books = books.filter(season=season)
    return books
