"""Storage port for the Library Service.

Services depend on the ``LibraryStore`` protocol, not on SQLAlchemy. A store
hands out *storage units*: a bundle of repositories that share one
transaction. Whatever a service does with a unit either commits as a whole
when the unit closes or is rolled back as a whole. Queries that change
nothing use a read unit instead, which never takes the write lock.

``SqlLibraryStore`` is the SQLAlchemy implementation used by the server and
the tests.
"""

from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol, TypeVar

from sqlalchemy.orm import Session

from .book_repository import BookRepository
from .borrow_record_repository import BorrowRecordRepository
from .login_session_repository import LoginSessionRepository
from .session import DatabaseManager
from .user_repository import UserRepository

T = TypeVar("T")


class StorageUnit(Protocol):
    """Repositories bound to a single transaction."""

    users: UserRepository
    books: BookRepository
    records: BorrowRecordRepository
    login_sessions: LoginSessionRepository


class LibraryStore(Protocol):
    """Contract for transactional access to the library's data."""

    def atomic(self) -> AbstractContextManager[StorageUnit]: ...

    def run_atomically(self, operation: Callable[[StorageUnit], T]) -> T: ...

    def read(self) -> AbstractContextManager[StorageUnit]: ...

    def run_read(self, operation: Callable[[StorageUnit], T]) -> T: ...


class SqlStorageUnit:
    """A ``StorageUnit`` backed by one SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session
        self.users = UserRepository(session)
        self.books = BookRepository(session)
        self.records = BorrowRecordRepository(session)
        self.login_sessions = LoginSessionRepository(session)


class SqlLibraryStore:
    """``LibraryStore`` on top of a ``DatabaseManager``."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    @contextmanager
    def atomic(self) -> Generator[SqlStorageUnit, None, None]:
        """Open one transaction and yield the repositories bound to it."""
        with self.db_manager.session_scope() as session:
            yield SqlStorageUnit(session)

    def run_atomically(self, operation: Callable[[StorageUnit], T]) -> T:
        """
        Run ``operation`` inside one transaction and return its result.

        The transaction commits when ``operation`` returns and rolls back if
        it raises; the exception propagates to the caller.
        """
        with self.atomic() as unit:
            return operation(unit)

    @contextmanager
    def read(self) -> Generator[SqlStorageUnit, None, None]:
        """Yield repositories for lookups; nothing written through them is kept."""
        with self.db_manager.read_scope() as session:
            yield SqlStorageUnit(session)

    def run_read(self, operation: Callable[[StorageUnit], T]) -> T:
        with self.read() as unit:
            return operation(unit)
