"""
Database session management for the Library Service.

This module owns the SQLAlchemy engine and hands out transactional scopes.
Every multi-step operation of the service (borrow, return, cascade delete)
runs inside exactly one ``session_scope()``, so the scope boundary is the
atomic unit:

1. Transaction Management: commit on success, roll back on any exception
2. Concurrency: writers are serialized by the database, not by the process
   (row locks on server databases, ``BEGIN IMMEDIATE`` on SQLite)
3. Error Wrapping: driver failures surface as ``StorageError`` naming the
   operation that failed
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..config import IN_MEMORY_REJECTED, get_config, is_in_memory_sqlite
from ..errors import ConstraintViolationError, LibraryError, StorageError
from .schema import Base

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Seconds a SQLite connection waits for the write lock before giving up
SQLITE_BUSY_TIMEOUT = 30

# Connection option marking a transaction that only reads
READ_ONLY = "library_read_only"


class DatabaseManager:
    """
    Manages the engine and session factory for the service.

    The engine is created lazily so that configuration overrides made by
    tests or the CLI take effect before the first connection.
    """

    def __init__(self, database_url: str | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, uses the configured one.

        Raises:
            ValueError: The URL names an in-memory SQLite database
        """
        if database_url is None:
            config = get_config()
            database_url = config.get_database_url()

            if database_url.startswith("sqlite:///"):
                db_path = Path(database_url.removeprefix("sqlite:///"))
                db_path.parent.mkdir(exist_ok=True, parents=True)
                logger.info("Using SQLite database at: %s", db_path)

        if is_in_memory_sqlite(database_url):
            raise ValueError(IN_MEMORY_REJECTED)

        self.database_url = database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def engine(self) -> Engine:
        """
        Get or create the database engine.

        SQLite engines take the write lock when a transaction begins, which
        turns every read-modify-write sequence into a serialized one.
        Transactions opened by ``read_scope()`` begin deferred instead.
        """
        if self._engine is None:
            if self.is_sqlite:
                self._engine = create_engine(
                    self.database_url,
                    connect_args={
                        "check_same_thread": False,
                        "timeout": SQLITE_BUSY_TIMEOUT,
                    },
                    echo=False,
                )

                @event.listens_for(self._engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
                    # Let SQLAlchemy emit BEGIN itself instead of pysqlite's deferred BEGIN
                    dbapi_connection.isolation_level = None
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()

                @event.listens_for(self._engine, "begin")
                def begin_transaction(conn):
                    if conn.get_execution_options().get(READ_ONLY):
                        conn.exec_driver_sql("BEGIN")
                    else:
                        conn.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                self._engine = create_engine(
                    self.database_url,
                    pool_size=10,
                    max_overflow=20,
                    pool_pre_ping=True,
                    echo=False,
                )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                # Keep returned objects readable after commit
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        """
        Create a new database session.

        Callers own the session and must close it; prefer ``session_scope()``.
        """
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        ```python
        with db_manager.session_scope() as session:
            book = session.get(Book, book_id)
            book.stock -= 1
        # committed here, or rolled back if the block raised
        ```

        Library errors raised inside the block roll the transaction back and
        propagate unchanged. Driver failures, including a failed commit, are
        re-raised as ``StorageError``.
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
            logger.debug("Database transaction committed successfully")
        except LibraryError as e:
            session.rollback()
            logger.debug("Transaction rolled back: %s", e.code)
            raise
        except IntegrityError as e:
            session.rollback()
            logger.warning("Commit rejected by constraint: %s", e.orig)
            raise ConstraintViolationError("commit transaction") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Database error, rolling back")
            raise StorageError("commit transaction") from e
        except Exception:
            session.rollback()
            logger.exception("Unexpected error, rolling back")
            raise
        finally:
            session.close()

    @contextmanager
    def read_scope(self) -> Generator[Session, None, None]:
        """
        Provide a scope for queries that change nothing.

        On SQLite the transaction begins deferred, so readers do not queue
        for the write lock. The transaction is always rolled back.
        """
        with self.engine.connect() as connection:
            connection.execution_options(**{READ_ONLY: True})
            session = self.session_factory(bind=connection)
            try:
                yield session
            except SQLAlchemyError as e:
                logger.exception("Database error during read")
                raise StorageError("read") from e
            finally:
                session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """
        Initialize the database schema.

        Args:
            drop_existing: If True, drop all tables before creating
        """
        engine = self.engine

        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=engine)

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialization complete")

    def verify_connection(self) -> bool:
        """
        Verify the database connection is working.

        Returns:
            True if connection is successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """
    Get the global database manager instance.

    Args:
        database_url: Database URL (only used on first call)
    """
    global _db_manager  # noqa: PLW0603 - process-wide engine

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)

    return _db_manager


def reset_db_manager() -> None:
    """Dispose of the global manager (useful for testing)."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Convenience wrapper around the global manager's ``session_scope``."""
    with get_db_manager().session_scope() as session:
        yield session


def safe_flush(session: Session, operation: str) -> None:
    """
    Flush pending changes, translating driver errors.

    Args:
        session: The database session
        operation: Description of the operation (for error messages)

    Raises:
        ConstraintViolationError: If a unique or check constraint rejects the write
        StorageError: On any other database failure
    """
    try:
        session.flush()
    except IntegrityError as e:
        raise ConstraintViolationError(operation) from e
    except SQLAlchemyError as e:
        logger.exception("Flush failed during %s", operation)
        raise StorageError(operation) from e


def safe_query(session: Session, query_func: Callable[[Session], T], operation: str) -> T:
    """
    Execute a query, translating driver errors.

    Args:
        session: The database session
        query_func: Function that performs the query
        operation: Description of the query (for error messages)

    Raises:
        StorageError: If the query fails
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed during %s", operation)
        raise StorageError(operation) from e
