"""
Books API controller.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja_extra import api_controller
from ninja_extra import http_get

from thesis_backend.books.models import Book
from thesis_backend.books.schemas import BookSchema
from thesis_backend.books.services import list_books
from thesis_backend.core.api import BaseAPI
from thesis_backend.core.api import IsAuthenticated
from thesis_backend.core.exceptions import ErrorSchema
from thesis_backend.core.exceptions import NotAuthenticatedError
from thesis_backend.core.exceptions import NotFoundError


@api_controller("/books", tags=["Books"], permissions=[IsAuthenticated])
class BookController(BaseAPI):
    """Read-only access to promoted pre-projects."""

    @http_get(
        "/",
        response={200: list[BookSchema], 401: ErrorSchema},
        url_name="books_list",
    )
    def list_books(self, request: HttpRequest, year: int | None = None, season: str | None = None):
        """List books, most recent year first."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        return 200, [BookSchema.from_book(book) for book in list_books(year=year, season=season)]

    @http_get(
        "/{book_id}",
        response={200: BookSchema, 401: ErrorSchema, 404: ErrorSchema},
        url_name="books_detail",
    )
    def get_book(self, request: HttpRequest, book_id: UUID):
        """Get a book."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        book = Book.objects.select_related("advisor").filter(id=book_id).first()
        if book is None:
            return NotFoundError("Livre introuvable.").to_response()

        return 200, BookSchema.from_book(book)
