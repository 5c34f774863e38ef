"""
Circulation tools: borrow, return and the caller's own history.

The borrower is always the caller. No tool here accepts a user ID; it comes
from the session, so a user can neither borrow on someone else's account nor
return someone else's book.
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import Field

from ..models.circulation import BorrowRecord
from ..services import get_services
from .auth import SessionInput, resolve_caller
from .responses import run_tool, text_response

logger = logging.getLogger(__name__)


class BorrowBookInput(SessionInput):
    """Input schema for the borrow_book tool."""

    book_id: int = Field(..., description="ID of the book to borrow", ge=1, examples=[1])


class ReturnBookInput(SessionInput):
    """Input schema for the return_book tool."""

    record_id: int = Field(
        ...,
        description="ID of the borrow record to close, as returned by borrow_book",
        ge=1,
        examples=[1],
    )


def record_data(record: BorrowRecord, now: datetime | None = None) -> dict[str, Any]:
    data = record.model_dump(mode="json")
    data["status"] = "borrowed" if record.is_open else "returned"
    data["overdue"] = record.is_overdue(now or get_services().borrow.clock())
    return data


def _borrow_book(params: BorrowBookInput) -> dict[str, Any]:
    caller = resolve_caller(params.session_token)
    record = get_services().borrow.borrow_book(caller.user_id, params.book_id)
    return text_response(
        f"Borrowed book {record.book_id} (record {record.id}). "
        f"Due {record.due_at.strftime('%B %d, %Y')}",
        {"record": record_data(record)},
    )


def _return_book(params: ReturnBookInput) -> dict[str, Any]:
    caller = resolve_caller(params.session_token)
    record = get_services().borrow.return_book(params.record_id, caller.user_id)
    return text_response(
        f"Returned book {record.book_id} (record {record.id})",
        {"record": record_data(record)},
    )


def _my_borrow_records(params: SessionInput) -> dict[str, Any]:
    caller = resolve_caller(params.session_token)
    borrow = get_services().borrow
    records = borrow.get_user_borrow_records(caller.user_id)
    now = borrow.clock()
    open_count = sum(1 for r in records if r.is_open)
    overdue_count = sum(1 for r in records if r.is_overdue(now))
    message = f"{len(records)} borrow record(s), {open_count} still out"
    if overdue_count:
        message += f", {overdue_count} overdue"
    return text_response(
        message,
        {"records": [record_data(r, now) for r in records], "count": len(records)},
    )


async def borrow_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the borrow_book tool.

    Stock, the caller's open-loan limit and the new record are all checked
    and written in one transaction; a rejected borrow changes nothing.
    """
    return await run_tool("borrow_book", BorrowBookInput, arguments, _borrow_book)


async def return_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the return_book tool."""
    return await run_tool("return_book", ReturnBookInput, arguments, _return_book)


async def my_borrow_records_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("my_borrow_records", SessionInput, arguments, _my_borrow_records)


borrow_book = {
    "name": "borrow_book",
    "description": (
        "Borrow one copy of a book for the logged-in user. Fails when no copy is left "
        "or the user already has the maximum number of books out. The loan is due one "
        "month after borrowing."
    ),
    "inputSchema": BorrowBookInput.model_json_schema(),
    "handler": borrow_book_handler,
}

return_book = {
    "name": "return_book",
    "description": (
        "Return a borrowed book by its borrow record ID. Only the borrower can return "
        "it, and only once; the copy goes back into stock."
    ),
    "inputSchema": ReturnBookInput.model_json_schema(),
    "handler": return_book_handler,
}

my_borrow_records = {
    "name": "my_borrow_records",
    "description": "List the logged-in user's borrow records, returned and still out.",
    "inputSchema": SessionInput.model_json_schema(),
    "handler": my_borrow_records_handler,
}
