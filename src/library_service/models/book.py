"""
Book model for the Library Service.

A catalog entry: a unique title, its author and the number of copies that
are currently on the shelf. Services return this model (never the ORM row)
so tool responses serialize cleanly to JSON.
"""

from pydantic import BaseModel, ConfigDict, Field

from .limits import NAME_MAX_LENGTH


class Book(BaseModel):
    """
    Represents a book in the library catalog.

    ``stock`` is the number of copies available for borrowing. It drops by
    one on every borrow and grows by one on every return.
    """

    id: int = Field(
        ...,
        description="Store-assigned book identifier",
        ge=1,
        examples=[1, 42],
    )

    title: str = Field(
        ...,
        description="Unique title of the book",
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        examples=["The Great Gatsby", "To Kill a Mockingbird"],
    )

    author: str = Field(
        ...,
        description="Author of the book",
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        examples=["F. Scott Fitzgerald", "Harper Lee"],
    )

    stock: int = Field(
        ...,
        description="Copies currently available for borrowing",
        ge=0,
        examples=[0, 3, 10],
    )

    @property
    def is_available(self) -> bool:
        """Check if the book has any copy left to borrow."""
        return self.stock > 0

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "The Great Gatsby",
                "author": "F. Scott Fitzgerald",
                "stock": 3,
            }
        },
    )
