"""Error hierarchy for the Library Service.

Every failure the core can report is a ``LibraryError`` carrying a stable
code, a category and the transport status the request layer should use.

- ``DomainError`` subclasses are expected, caller-recoverable conditions
  (bad input, missing entities, policy rejections).
- ``StorageError`` wraps unexpected persistence failures. Its message names
  the operation that failed; ``to_response()`` never includes the cause.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BUSINESS_RULE = "business_rule"
    INTERNAL = "internal"


class LibraryError(Exception):
    """Base exception for all Library Service errors."""

    code = "LIBRARY_ERROR"
    category = ErrorCategory.INTERNAL
    http_status = 500
    default_message = "Library operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """Message that is safe to show to end users."""
        return self.message

    def to_response(self) -> dict:
        """Convert to the error envelope used by the request layer."""
        return {
            "code": self.code,
            "status": self.http_status,
            "category": self.category.value,
            "message": self.public_message,
        }


class DomainError(LibraryError):
    """An expected condition the caller can act on."""


# ─── Validation ─────────────────────────────────────────────────


class InvalidInputError(DomainError):
    code = "INVALID_INPUT"
    category = ErrorCategory.VALIDATION
    http_status = 400
    default_message = "Invalid input parameters"


# ─── Authentication / Authorization ─────────────────────────────


class InvalidPasswordError(DomainError):
    code = "INVALID_PASSWORD"
    category = ErrorCategory.AUTHENTICATION
    http_status = 401
    default_message = "Invalid password"


class UnauthenticatedError(DomainError):
    code = "UNAUTHENTICATED"
    category = ErrorCategory.AUTHENTICATION
    http_status = 401
    default_message = "Authentication required, please log in"


class ForbiddenError(DomainError):
    code = "FORBIDDEN"
    category = ErrorCategory.AUTHORIZATION
    http_status = 403
    default_message = "Administrator role required"


class PermissionDeniedError(DomainError):
    code = "PERMISSION_DENIED"
    category = ErrorCategory.AUTHORIZATION
    http_status = 403
    default_message = "Permission denied"


# ─── Not Found ──────────────────────────────────────────────────


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    category = ErrorCategory.NOT_FOUND
    http_status = 404


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class BookNotFoundError(NotFoundError):
    code = "BOOK_NOT_FOUND"
    default_message = "Book not found"


class RecordNotFoundError(NotFoundError):
    code = "RECORD_NOT_FOUND"
    default_message = "Borrow record not found"


# ─── Conflicts ──────────────────────────────────────────────────


class AlreadyExistsError(DomainError):
    code = "ALREADY_EXISTS"
    category = ErrorCategory.CONFLICT
    http_status = 409


class UserExistsError(AlreadyExistsError):
    code = "USER_EXISTS"
    default_message = "User already exists"


class BookExistsError(AlreadyExistsError):
    code = "BOOK_EXISTS"
    default_message = "Book already exists"


# ─── Circulation rules ──────────────────────────────────────────


class StockNotEnoughError(DomainError):
    code = "STOCK_NOT_ENOUGH"
    category = ErrorCategory.BUSINESS_RULE
    http_status = 409
    default_message = "Book is out of stock"


class BorrowLimitError(DomainError):
    code = "BORROW_LIMIT"
    category = ErrorCategory.BUSINESS_RULE
    http_status = 409
    default_message = "Borrow limit reached"


class AlreadyReturnedError(DomainError):
    code = "ALREADY_RETURNED"
    category = ErrorCategory.BUSINESS_RULE
    http_status = 409
    default_message = "Book has already been returned"


# ─── Infrastructure ─────────────────────────────────────────────


class InternalError(LibraryError):
    """Failure the caller cannot act on; details stay in the logs."""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    http_status = 500
    default_message = "Internal server error"

    @property
    def public_message(self) -> str:
        return "Internal server error"


class StorageError(InternalError):
    """Unexpected persistence failure, wrapped with the failing operation."""

    default_message = "Storage operation failed"

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Storage operation '{operation}' failed")


class ConstraintViolationError(StorageError):
    """A unique constraint rejected the write."""
