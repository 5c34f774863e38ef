"""
Admin cascade engine.

Catalog maintenance reserved to administrators. Deleting a book first
force-closes every open record that points at it, then removes the book, in
one storage unit, so no open record is ever left referencing a missing book.
Rows are locked in the order a return locks them: borrow records first,
then the book.

Force-closed records do not give their copies back: the book is gone, so
there is no stock to restore. Each cascade logs how many loans it closed so
the unreturned copies stay visible.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from ..config import get_config
from ..database.store import LibraryStore, StorageUnit
from ..errors import (
    BookExistsError,
    BookNotFoundError,
    ConstraintViolationError,
    InvalidInputError,
)
from ..models.book import Book
from ..models.circulation import BorrowRecord
from ..models.limits import NAME_MAX_LENGTH

logger = logging.getLogger(__name__)


def _check_book_fields(title: str, author: str, stock: int) -> None:
    for field, value in (("title", title), ("author", author)):
        if value is None or not value.strip():
            raise InvalidInputError(f"{field} is required")
        if len(value) > NAME_MAX_LENGTH:
            raise InvalidInputError(f"{field} must be at most {NAME_MAX_LENGTH} characters")
    if stock < 0:
        raise InvalidInputError("stock must be >= 0")


class AdminService:
    """Add, edit and delete books; audit every borrow record."""

    def __init__(
        self,
        store: LibraryStore,
        min_book_id: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.min_book_id = (
            min_book_id if min_book_id is not None else get_config().admin_min_book_id
        )
        self.clock = clock

    def _check_book_id(self, book_id: int) -> None:
        if book_id < self.min_book_id:
            raise InvalidInputError(f"Book id must be >= {self.min_book_id}")

    def add_book(self, title: str, author: str, stock: int) -> Book:
        """
        Add a new title to the catalog.

        Raises:
            InvalidInputError: Blank or overlong title/author, or negative stock
            BookExistsError: A book with this title already exists
        """
        _check_book_fields(title, author, stock)

        def _add(unit: StorageUnit) -> Book:
            if unit.books.get_by_title(title) is not None:
                raise BookExistsError(f"Book '{title}' already exists")
            try:
                book = unit.books.create(title=title, author=author, stock=stock)
            except ConstraintViolationError as e:
                raise BookExistsError(f"Book '{title}' already exists") from e
            return unit.books.to_model(book)

        book = self.store.run_atomically(_add)
        logger.info("Added book %d '%s' with stock %d", book.id, book.title, book.stock)
        return book

    def update_book(self, title: str, author: str, book_id: int, stock: int) -> Book:
        """
        Overwrite title, author and stock of an existing book.

        All three fields are replaced; there is no partial update.

        Raises:
            InvalidInputError: Bad fields (as for add_book) or an ID below the boundary
            BookNotFoundError: No such book
            BookExistsError: Another book already has the new title
        """
        _check_book_fields(title, author, stock)
        self._check_book_id(book_id)

        def _update(unit: StorageUnit) -> Book:
            book = unit.books.get_by_id(book_id, for_update=True)
            if book is None:
                raise BookNotFoundError(f"Book {book_id} not found")

            if title != book.title:
                other = unit.books.get_by_title(title)
                if other is not None:
                    raise BookExistsError(f"Book '{title}' already exists")

            book.title = title
            book.author = author
            book.stock = stock
            try:
                unit.books.save(book)
            except ConstraintViolationError as e:
                raise BookExistsError(f"Book '{title}' already exists") from e
            return unit.books.to_model(book)

        book = self.store.run_atomically(_update)
        logger.info("Updated book %d", book.id)
        return book

    def delete_book(self, book_id: int) -> list[BorrowRecord]:
        """
        Remove a book, force-closing its open borrow records first.

        Returns:
            The records this call closed (empty if none were open)

        Raises:
            InvalidInputError: ID below the boundary
            BookNotFoundError: No such book
        """
        self._check_book_id(book_id)

        def _delete(unit: StorageUnit) -> list[BorrowRecord]:
            unit.records.get_by_book_id(book_id, for_update=True)
            book = unit.books.get_by_id(book_id, for_update=True)
            if book is None:
                raise BookNotFoundError(f"Book {book_id} not found")

            now = self.clock()
            # Re-read under the book lock to catch borrows committed in between
            closed = []
            for record in unit.records.get_by_book_id(book_id, for_update=True):
                if record.returned_at is None:
                    unit.records.close(record, now)
                    closed.append(unit.records.to_model(record))

            unit.books.delete(book)
            return closed

        closed = self.store.run_atomically(_delete)
        if closed:
            logger.warning(
                "Deleted book %d and force-closed %d open borrow record(s) without restocking",
                book_id,
                len(closed),
            )
        else:
            logger.info("Deleted book %d", book_id)
        return closed

    def get_all_borrow_records(self) -> list[BorrowRecord]:
        """Every borrow record in the store, for auditing."""

        def _records(unit: StorageUnit) -> list[BorrowRecord]:
            return [unit.records.to_model(r) for r in unit.records.get_all()]

        return self.store.run_read(_records)
