"""
SQLAlchemy database schema for the Library Service.

Four tables back the service:

1. ``users`` - accounts, unique by name
2. ``books`` - the catalog, unique by title, with a non-negative stock
3. ``borrow_records`` - one row per borrow, closed by setting ``returned_at``
4. ``login_sessions`` - server-side sessions created at login

Borrow records reference users and books by ID only. They are history: a
closed record keeps its ``book_id`` after the book is deleted, so there is
no foreign key from ``borrow_records`` to ``books``.
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from ..models.limits import NAME_MAX_LENGTH

Base = declarative_base()


class RoleEnum(str, enum.Enum):
    """Database enum for account roles."""

    USER = "user"
    ADMIN = "admin"


def _role_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base):
    """
    Users table - library accounts.

    The password column holds a bcrypt hash, never the plain password.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    role = Column(
        Enum(RoleEnum, name="user_role", values_callable=_role_values),
        nullable=False,
        default=RoleEnum.USER,
    )

    created_at = Column(DateTime, nullable=False, default=func.now())


class Book(Base):
    """
    Books table - the library's catalog.

    ``stock`` is modified by every borrow and return; the check constraint
    backs up the service-level guard against going negative.
    """

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(NAME_MAX_LENGTH), nullable=False, unique=True)
    author = Column(String(NAME_MAX_LENGTH), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=True, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_book_author", "author"),
        CheckConstraint("stock >= 0", name="check_stock_non_negative"),
    )


class BorrowRecord(Base):
    """
    Borrow records table - one row per borrow transaction.

    A row with ``returned_at`` NULL is an open loan. ``returned_at`` is set
    once, either by the borrower's return or by an admin cascade delete.
    """

    __tablename__ = "borrow_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False)
    book_id = Column(Integer, nullable=False)
    borrowed_at = Column(DateTime, nullable=False)
    due_at = Column(DateTime, nullable=False)
    returned_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_record_user", "user_id"),
        Index("idx_record_book", "book_id"),
        Index("idx_record_user_open", "user_id", "returned_at"),
        CheckConstraint("due_at > borrowed_at", name="check_due_after_borrow"),
    )


class LoginSession(Base):
    """
    Login sessions table - server-side session state.

    A session is valid while ``authenticated`` is true and ``expires_at``
    lies in the future. Logging out expires it in place.
    """

    __tablename__ = "login_sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    username = Column(String(NAME_MAX_LENGTH), nullable=False)
    role = Column(
        Enum(RoleEnum, name="session_role", values_callable=_role_values),
        nullable=False,
    )
    authenticated = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_session_user", "user_id"),
        Index("idx_session_expires", "expires_at"),
    )
