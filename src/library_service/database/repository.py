"""
Repository pattern implementation for the Library Service.

Repositories are the only code that builds SQL. Each one is bound to the
session of the atomic unit it runs in and never commits: the surrounding
``session_scope()`` decides whether the whole unit commits or rolls back.
Writes are flushed immediately so that constraint violations surface at the
call that caused them, wrapped as ``StorageError`` subclasses.

Reads that a service will modify in the same unit can ask for a row lock
(``for_update=True``); on SQLite the lock is already held for the whole
transaction and the clause is ignored by the dialect.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from .schema import Base
from .session import safe_flush, safe_query

ModelType = TypeVar("ModelType", bound=Base)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)


class BaseRepository(ABC, Generic[ModelType, ResponseSchemaType]):
    """
    Abstract base repository providing common data access.

    Subclasses name their ORM class and Pydantic response schema; rows are
    converted with ``to_model()`` before they leave the service layer.
    """

    def __init__(self, session: Session):
        """Initialize repository with database session."""
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    @property
    def entity_name(self) -> str:
        return self.model_class.__name__

    def to_model(self, db_obj: ModelType) -> ResponseSchemaType:
        """Convert database row to Pydantic response model."""
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def get_by_id(self, id: int, for_update: bool = False) -> ModelType | None:
        """
        Get a row by primary key.

        Args:
            id: Entity ID
            for_update: Lock the row until the unit commits

        Returns:
            The row or None if not found

        Raises:
            StorageError: On database errors
        """
        query = select(self.model_class).where(self.model_class.id == id)
        if for_update:
            query = query.with_for_update()
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"get {self.entity_name} by id",
        )

    def get_all(self) -> list[ModelType]:
        """Get every row ordered by ID."""
        query = select(self.model_class).order_by(self.model_class.id)
        results = safe_query(
            self.session,
            lambda s: s.execute(query).scalars().all(),
            f"list {self.entity_name}",
        )
        return list(results)

    def add(self, db_obj: ModelType) -> ModelType:
        """
        Insert a new row and flush it so its ID is assigned.

        Raises:
            ConstraintViolationError: If a unique or check constraint rejects it
            StorageError: On other database errors
        """
        self.session.add(db_obj)
        safe_flush(self.session, f"create {self.entity_name}")
        return db_obj

    def save(self, db_obj: ModelType) -> ModelType:
        """Flush pending changes of an already loaded row."""
        safe_flush(self.session, f"update {self.entity_name}")
        return db_obj

    def delete(self, db_obj: ModelType) -> None:
        """Delete a loaded row."""
        self.session.delete(db_obj)
        safe_flush(self.session, f"delete {self.entity_name}")
