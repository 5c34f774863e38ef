"""Test configuration and fixtures for the Library Service.

1. Isolated databases - every test gets its own SQLite file under tmp_path
2. Configuration overrides - LIBRARY_* variables are cleared and set per test
3. Controllable time - services get a clock the test can move forward
4. Shared services - tool tests swap the process-wide container for one
   bound to the test database
"""

import os
from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from library_service import services as services_module
from library_service.config import reset_config
from library_service.database import DatabaseManager, SqlLibraryStore, reset_db_manager
from library_service.services import (
    AdminService,
    AuthService,
    BookService,
    BorrowService,
    LibraryServices,
    reset_services,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# === Environment and Configuration ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for each test."""
    return tmp_path / "test_library.db"


@pytest.fixture
def test_database_url(test_db_path: Path) -> str:
    return f"sqlite:///{test_db_path}"


@pytest.fixture(autouse=True)
def isolated_environment(
    test_db_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Start every test from a clean configuration and no shared state."""
    for key in list(os.environ):
        if key.startswith("LIBRARY_"):
            monkeypatch.delenv(key)

    monkeypatch.setenv("LIBRARY_DATABASE_PATH", str(test_db_path))
    # Cheapest bcrypt cost keeps the suite fast
    monkeypatch.setenv("LIBRARY_BCRYPT_ROUNDS", "4")

    reset_config()
    reset_services()
    reset_db_manager()

    yield

    reset_services()
    reset_db_manager()
    reset_config()


# === Database Fixtures ===


@pytest.fixture
def db_manager(test_database_url: str) -> Generator[DatabaseManager, None, None]:
    """Database manager with all tables created."""
    manager = DatabaseManager(test_database_url)
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def store(db_manager: DatabaseManager) -> SqlLibraryStore:
    return SqlLibraryStore(db_manager)


# === Service Fixtures ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 10, 30))


@pytest.fixture
def services(store: SqlLibraryStore, clock: FakeClock) -> LibraryServices:
    """All services on the test store, sharing the fake clock."""
    return LibraryServices(
        store=store,
        auth=AuthService(store, clock=clock),
        books=BookService(store),
        borrow=BorrowService(store, clock=clock),
        admin=AdminService(store, clock=clock),
    )


@pytest.fixture
def shared_services(
    services: LibraryServices, monkeypatch: pytest.MonkeyPatch
) -> LibraryServices:
    """Make ``get_services()`` return the test services."""
    monkeypatch.setattr(services_module, "_services", services)
    return services


# === Test Data Fixtures ===


@pytest.fixture
def sample_books(services: LibraryServices):
    """A small catalog with one title out of stock."""
    return [
        services.admin.add_book("The Great Gatsby", "F. Scott Fitzgerald", 3),
        services.admin.add_book("To Kill a Mockingbird", "Harper Lee", 1),
        services.admin.add_book("1984", "George Orwell", 0),
        services.admin.add_book("Animal Farm", "George Orwell", 2),
    ]


@pytest.fixture
def alice(services: LibraryServices):
    return services.auth.register("alice", "wonderland")


@pytest.fixture
def bob(services: LibraryServices):
    return services.auth.register("bob", "builder")


@pytest.fixture
def admin_user(services: LibraryServices):
    return services.auth.ensure_admin("librarian", "s3cret-shelves")
