"""
Borrow record repository implementation for the Library Service.

Records are inserted by the borrow engine and closed exactly once, either by
the borrower's return or by the admin cascade delete. ``close()`` is the
only mutation and refuses to touch a record that is already closed.
"""

from datetime import datetime

from sqlalchemy import func, select

from ..database.schema import BorrowRecord as BorrowRecordDB
from ..models.circulation import BorrowRecord as BorrowRecordModel
from .repository import BaseRepository
from .session import safe_query


class BorrowRecordRepository(BaseRepository[BorrowRecordDB, BorrowRecordModel]):
    """Repository for borrow records."""

    @property
    def model_class(self):
        return BorrowRecordDB

    @property
    def response_schema(self):
        return BorrowRecordModel

    def create(
        self, user_id: int, book_id: int, borrowed_at: datetime, due_at: datetime
    ) -> BorrowRecordDB:
        """Insert a new open record."""
        return self.add(
            BorrowRecordDB(
                user_id=user_id,
                book_id=book_id,
                borrowed_at=borrowed_at,
                due_at=due_at,
                returned_at=None,
            )
        )

    def get_by_user_id(self, user_id: int) -> list[BorrowRecordDB]:
        """All records of a user, oldest first."""
        query = (
            select(BorrowRecordDB)
            .where(BorrowRecordDB.user_id == user_id)
            .order_by(BorrowRecordDB.id)
        )
        return self._all(query, "get borrow records by user id")

    def get_by_book_id(self, book_id: int, for_update: bool = False) -> list[BorrowRecordDB]:
        """All records that reference a book, oldest first."""
        query = (
            select(BorrowRecordDB)
            .where(BorrowRecordDB.book_id == book_id)
            .order_by(BorrowRecordDB.id)
        )
        if for_update:
            query = query.with_for_update()
        return self._all(query, "get borrow records by book id")

    def count_open_by_user_id(self, user_id: int) -> int:
        """Number of records the user has not returned yet."""
        query = (
            select(func.count())
            .select_from(BorrowRecordDB)
            .where(
                BorrowRecordDB.user_id == user_id,
                BorrowRecordDB.returned_at.is_(None),
            )
        )
        count = safe_query(
            self.session,
            lambda s: s.execute(query).scalar(),
            "count open borrow records by user id",
        )
        return count or 0

    def close(self, record: BorrowRecordDB, returned_at: datetime) -> BorrowRecordDB:
        """
        Set ``returned_at`` on an open record.

        Raises:
            ValueError: If the record is already closed
        """
        if record.returned_at is not None:
            raise ValueError(f"Borrow record {record.id} is already closed")

        record.returned_at = returned_at
        return self.save(record)

    def _all(self, query, operation: str) -> list[BorrowRecordDB]:
        results = safe_query(self.session, lambda s: s.execute(query).scalars().all(), operation)
        return list(results)
