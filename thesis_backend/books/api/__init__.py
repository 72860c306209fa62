"""
Book API controllers.

- BookController: read-only access to archived books (/api/books/)
"""

from thesis_backend.books.api.books import BookController

__all__ = [
    "BookController",
]
