"""
User repository implementation for the Library Service.

Accounts are created at registration and looked up by name at login. There
is no update or delete path. The borrow engine locks the borrower's row so
that two borrows by the same user count open records one after the other.
"""

from sqlalchemy import select

from ..database.schema import RoleEnum
from ..database.schema import User as UserDB
from ..models.user import Role
from ..models.user import User as UserModel
from .repository import BaseRepository
from .session import safe_query


class UserRepository(BaseRepository[UserDB, UserModel]):
    """Repository for user accounts."""

    @property
    def model_class(self):
        return UserDB

    @property
    def response_schema(self):
        return UserModel

    def to_model(self, db_obj: UserDB) -> UserModel:
        return UserModel(id=db_obj.id, name=db_obj.name, role=Role(db_obj.role.value))

    def get_by_username(self, username: str) -> UserDB | None:
        """
        Get user by exact name.

        Returns:
            User row (including the password hash) or None if not found
        """
        query = select(UserDB).where(UserDB.name == username)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "get user by username",
        )

    def create(self, username: str, password_hash: str, role: Role = Role.USER) -> UserDB:
        """
        Insert a new account.

        Raises:
            ConstraintViolationError: If the name is already taken
        """
        return self.add(
            UserDB(name=username, password=password_hash, role=RoleEnum(role.value))
        )

    def lock(self, user_id: int) -> UserDB | None:
        """Lock a user's row for the rest of the unit."""
        return self.get_by_id(user_id, for_update=True)
