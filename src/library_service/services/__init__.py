"""
Core services of the Library Service.

Each service talks to the data only through a ``LibraryStore``. The
request layer gets them from ``get_services()``, which wires them to the
process-wide database manager; tests build their own with
``build_services()`` or replace the shared container with
``reset_services()``.
"""

from dataclasses import dataclass

from ..database.session import DatabaseManager, get_db_manager
from ..database.store import LibraryStore, SqlLibraryStore
from .admin_service import AdminService
from .auth_service import AuthService
from .book_service import BookService
from .borrow_service import BorrowService, add_months


@dataclass(frozen=True)
class LibraryServices:
    """All services, sharing one store."""

    store: LibraryStore
    auth: AuthService
    books: BookService
    borrow: BorrowService
    admin: AdminService


def build_services(db_manager: DatabaseManager | None = None) -> LibraryServices:
    """Wire every service to a SQL store on ``db_manager`` (default: the shared one)."""
    store = SqlLibraryStore(db_manager or get_db_manager())
    return LibraryServices(
        store=store,
        auth=AuthService(store),
        books=BookService(store),
        borrow=BorrowService(store),
        admin=AdminService(store),
    )


_services: LibraryServices | None = None


def get_services() -> LibraryServices:
    """Get the process-wide services container, building it on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def reset_services() -> None:
    """Drop the shared container so the next call rebuilds it."""
    global _services
    _services = None


__all__ = [
    "AdminService",
    "AuthService",
    "BookService",
    "BorrowService",
    "LibraryServices",
    "add_months",
    "build_services",
    "get_services",
    "reset_services",
]
