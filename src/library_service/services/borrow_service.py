"""
Borrow transaction engine.

Borrowing and returning each touch two tables (the book's stock and the
borrow record) and must never leave one changed without the other. Both run
as a single storage unit:

- borrow: lock book → check stock → lock borrower → count open records →
  stock - 1 → insert open record
- return: lock record → check owner → check still open → lock book →
  stock + 1 → close record

Concurrent requests are serialized by the store (row locks, or SQLite's
write lock taken at ``BEGIN IMMEDIATE``), so two borrows of the last copy
cannot both see ``stock > 0`` and two returns of one record cannot both see
it open.
"""

import calendar
import logging
from collections.abc import Callable
from datetime import datetime

from ..config import get_config
from ..database.store import LibraryStore, StorageUnit
from ..errors import (
    AlreadyReturnedError,
    BookNotFoundError,
    BorrowLimitError,
    InvalidInputError,
    PermissionDeniedError,
    RecordNotFoundError,
    StockNotEnoughError,
)
from ..models.circulation import BorrowRecord

logger = logging.getLogger(__name__)


def add_months(moment: datetime, months: int) -> datetime:
    """
    Shift ``moment`` by whole calendar months.

    The day is clamped to the length of the target month, so Jan 31 plus one
    month is the last day of February.
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class BorrowService:
    """Borrow, return and per-user history."""

    def __init__(
        self,
        store: LibraryStore,
        borrow_limit: int | None = None,
        loan_period_months: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        config = get_config()
        self.store = store
        self.borrow_limit = borrow_limit if borrow_limit is not None else config.borrow_limit
        self.loan_period_months = (
            loan_period_months if loan_period_months is not None else config.loan_period_months
        )
        self.clock = clock

    def borrow_book(self, user_id: int, book_id: int) -> BorrowRecord:
        """
        Lend one copy of a book to a user.

        Args:
            user_id: Borrower, taken from the caller's session
            book_id: Book to borrow

        Returns:
            The new open borrow record

        Raises:
            InvalidInputError: Non-positive IDs
            BookNotFoundError: No such book
            StockNotEnoughError: No copy left
            BorrowLimitError: The user already has the maximum of open records
        """
        if user_id <= 0 or book_id <= 0:
            raise InvalidInputError("user_id and book_id must be positive integers")

        def _borrow(unit: StorageUnit) -> BorrowRecord:
            book = unit.books.get_by_id(book_id, for_update=True)
            if book is None:
                raise BookNotFoundError(f"Book {book_id} not found")

            if book.stock <= 0:
                raise StockNotEnoughError(f"No copies of '{book.title}' left to borrow")

            # Serializes concurrent borrows by the same user on server databases
            unit.users.lock(user_id)
            open_count = unit.records.count_open_by_user_id(user_id)
            if open_count >= self.borrow_limit:
                raise BorrowLimitError(
                    f"User {user_id} already has {open_count} books out "
                    f"(limit {self.borrow_limit})"
                )

            unit.books.adjust_stock(book, -1)

            now = self.clock()
            record = unit.records.create(
                user_id=user_id,
                book_id=book_id,
                borrowed_at=now,
                due_at=add_months(now, self.loan_period_months),
            )
            return unit.records.to_model(record)

        record = self.store.run_atomically(_borrow)
        logger.info("User %d borrowed book %d (record %d)", user_id, book_id, record.id)
        return record

    def return_book(self, record_id: int, current_user_id: int) -> BorrowRecord:
        """
        Close a borrow record on behalf of its borrower and restock the book.

        Args:
            record_id: Record to close
            current_user_id: Caller, taken from the session; must own the record

        Returns:
            The closed record

        Raises:
            InvalidInputError: Non-positive IDs
            RecordNotFoundError: No such record
            PermissionDeniedError: The record belongs to someone else
            AlreadyReturnedError: The record is already closed
            BookNotFoundError: The record points at a book that no longer exists
        """
        if record_id <= 0 or current_user_id <= 0:
            raise InvalidInputError("record_id and user_id must be positive integers")

        def _return(unit: StorageUnit) -> BorrowRecord:
            record = unit.records.get_by_id(record_id, for_update=True)
            if record is None:
                raise RecordNotFoundError(f"Borrow record {record_id} not found")

            if record.user_id != current_user_id:
                raise PermissionDeniedError("Only the borrower can return this book")

            if record.returned_at is not None:
                raise AlreadyReturnedError(f"Borrow record {record_id} is already returned")

            book = unit.books.get_by_id(record.book_id, for_update=True)
            if book is None:
                raise BookNotFoundError(
                    f"Book {record.book_id} of borrow record {record_id} not found"
                )

            unit.books.adjust_stock(book, +1)
            unit.records.close(record, self.clock())
            return unit.records.to_model(record)

        record = self.store.run_atomically(_return)
        logger.info("User %d returned record %d", current_user_id, record_id)
        return record

    def get_user_borrow_records(self, user_id: int) -> list[BorrowRecord]:
        """All records of a user, open and closed; empty when there are none."""
        if user_id <= 0:
            raise InvalidInputError("user_id must be a positive integer")

        def _records(unit: StorageUnit) -> list[BorrowRecord]:
            return [unit.records.to_model(r) for r in unit.records.get_by_user_id(user_id)]

        return self.store.run_read(_records)
