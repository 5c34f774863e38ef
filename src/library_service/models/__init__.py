"""
Library Service Models.

Pydantic models for the entities the core hands back to its callers:

- Book: catalog entries with their available stock
- User / Role / Identity: accounts and the caller identity of a session
- BorrowRecord: one borrow transaction, open until returned
- SessionInfo: a login session as seen by the client
"""

from .book import Book
from .circulation import BorrowRecord
from .session import SessionInfo
from .user import Identity, Role, User

__all__ = [
    "Book",
    "BorrowRecord",
    "Identity",
    "Role",
    "SessionInfo",
    "User",
]
