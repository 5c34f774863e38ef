"""
Circulation model for the Library Service.

A ``BorrowRecord`` is written once when a user borrows a book and updated
exactly once, when ``returned_at`` is set. Records are never deleted: closed
records are the lending history, and they may keep pointing at a book that
has since been removed from the catalog.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BorrowRecord(BaseModel):
    """
    Represents one borrow transaction.

    A record whose ``returned_at`` is ``None`` is *open* and counts against
    the borrower's limit of simultaneously borrowed books.
    """

    id: int = Field(..., description="Store-assigned record identifier", ge=1)

    user_id: int = Field(..., description="ID of the borrowing user", ge=1)

    book_id: int = Field(..., description="ID of the borrowed book", ge=0)

    borrowed_at: datetime = Field(
        ...,
        description="When the book was borrowed",
    )

    due_at: datetime = Field(
        ...,
        description="When the book is due back (one loan period after borrowing)",
    )

    returned_at: datetime | None = Field(
        None,
        description="When the record was closed, by a return or by an admin cascade delete",
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "BorrowRecord":
        """Ensure the due date follows the borrow date."""
        if self.due_at <= self.borrowed_at:
            raise ValueError("Due date must be after borrow date")
        return self

    @property
    def is_open(self) -> bool:
        """Check if the book is still out."""
        return self.returned_at is None

    def is_overdue(self, now: datetime | None = None) -> bool:
        """Check if an open record is past its due date."""
        if not self.is_open:
            return False
        return (now or datetime.now()) > self.due_at

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "user_id": 3,
                "book_id": 7,
                "borrowed_at": "2024-01-15T10:30:00",
                "due_at": "2024-02-15T10:30:00",
                "returned_at": None,
            }
        },
    )
