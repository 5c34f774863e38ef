"""
Database package for the Library Service.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and connection handling (session.py)
- One repository per table
- The storage port the services depend on (store.py)
"""

from .book_repository import BookRepository
from .borrow_record_repository import BorrowRecordRepository
from .login_session_repository import LoginSessionRepository
from .repository import BaseRepository
from .schema import (
    Base,
    Book,
    BorrowRecord,
    LoginSession,
    RoleEnum,
    User,
)
from .session import (
    DatabaseManager,
    get_db_manager,
    reset_db_manager,
    safe_flush,
    safe_query,
    session_scope,
)
from .store import LibraryStore, SqlLibraryStore, SqlStorageUnit, StorageUnit
from .user_repository import UserRepository

__all__ = [
    "Base",
    "BaseRepository",
    "Book",
    "BookRepository",
    "BorrowRecord",
    "BorrowRecordRepository",
    "DatabaseManager",
    "LibraryStore",
    "LoginSession",
    "LoginSessionRepository",
    "RoleEnum",
    "SqlLibraryStore",
    "SqlStorageUnit",
    "StorageUnit",
    "User",
    "UserRepository",
    "get_db_manager",
    "reset_db_manager",
    "safe_flush",
    "safe_query",
    "session_scope",
]
