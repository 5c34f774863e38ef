"""Read-only catalog lookups and search."""

import logging

from ..database.store import LibraryStore, StorageUnit
from ..errors import BookNotFoundError
from ..models.book import Book

logger = logging.getLogger(__name__)


class BookService:
    """
    Catalog queries.

    Nothing here writes. Substring searches escape ``%`` and ``_`` so they
    match literally; case sensitivity follows the database collation. An
    empty result is an empty list, never an error.
    """

    def __init__(self, store: LibraryStore):
        self.store = store

    def get_all_books(self) -> list[Book]:
        return self.store.run_read(
            lambda unit: [unit.books.to_model(b) for b in unit.books.get_all()]
        )

    def get_book_by_id(self, book_id: int) -> Book:
        """Raises BookNotFoundError when there is no book with this ID."""

        def _get(unit: StorageUnit) -> Book | None:
            book = unit.books.get_by_id(book_id)
            return unit.books.to_model(book) if book is not None else None

        book = self.store.run_read(_get)
        if book is None:
            raise BookNotFoundError(f"Book {book_id} not found")
        return book

    def get_book_by_title(self, title: str) -> Book:
        """Exact title lookup; raises BookNotFoundError on a miss."""

        def _get(unit: StorageUnit) -> Book | None:
            book = unit.books.get_by_title(title)
            return unit.books.to_model(book) if book is not None else None

        book = self.store.run_read(_get)
        if book is None:
            raise BookNotFoundError(f"Book '{title}' not found")
        return book

    def search_by_keyword(self, keyword: str) -> list[Book]:
        """Books whose title or author contains ``keyword``."""
        books = self.store.run_read(
            lambda unit: [unit.books.to_model(b) for b in unit.books.search_by_keyword(keyword)]
        )
        logger.debug("Keyword search '%s' matched %d book(s)", keyword, len(books))
        return books

    def search_by_title_keyword(self, title_keyword: str) -> list[Book]:
        return self.store.run_read(
            lambda unit: [
                unit.books.to_model(b) for b in unit.books.search_by_title_keyword(title_keyword)
            ]
        )

    def search_by_author(self, author: str) -> list[Book]:
        return self.store.run_read(
            lambda unit: [unit.books.to_model(b) for b in unit.books.search_by_author(author)]
        )
