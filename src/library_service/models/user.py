"""
User and identity models for the Library Service.

``User`` is the public view of an account: the password hash never leaves
the database layer. ``Identity`` is what an authenticated session resolves
to, and is the only thing downstream operations learn about the caller.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .limits import NAME_MAX_LENGTH


class Role(str, Enum):
    """Closed set of account roles."""

    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """Represents a registered library user."""

    id: int = Field(
        ...,
        description="Store-assigned user identifier",
        ge=1,
    )

    name: str = Field(
        ...,
        description="Unique display name used to log in",
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        examples=["alice", "librarian"],
    )

    role: Role = Field(
        default=Role.USER,
        description="Account role",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    model_config = ConfigDict(from_attributes=True, use_enum_values=False)


class Identity(BaseModel):
    """The caller of a request, as established by its login session."""

    user_id: int = Field(..., ge=1)
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    model_config = ConfigDict(frozen=True)
