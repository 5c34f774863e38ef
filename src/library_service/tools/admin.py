"""
Administration tools.

Only sessions with the admin role get past ``resolve_caller(...,
require_admin=True)``; anyone else gets a 403 envelope before the catalog is
touched.
"""

import logging
from typing import Any

from pydantic import Field

from ..models.limits import NAME_MAX_LENGTH
from ..services import get_services
from .auth import SessionInput, resolve_caller
from .circulation import record_data
from .responses import run_tool, text_response

logger = logging.getLogger(__name__)


class AddBookInput(SessionInput):
    """Input schema for the add_book tool."""

    title: str = Field(
        ...,
        description="Title; must not already exist in the catalog",
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        examples=["Structure and Interpretation of Computer Programs"],
    )

    author: str = Field(
        ...,
        description="Author name",
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        examples=["Harold Abelson"],
    )

    stock: int = Field(..., description="Copies on the shelf", ge=0, examples=[3])


class UpdateBookInput(AddBookInput):
    """
    Input schema for the update_book tool.

    Title, author and stock all replace the stored values.
    """

    book_id: int = Field(..., description="ID of the book to edit", ge=0, examples=[1])


class DeleteBookInput(SessionInput):
    book_id: int = Field(..., description="ID of the book to delete", ge=0, examples=[1])


def _add_book(params: AddBookInput) -> dict[str, Any]:
    resolve_caller(params.session_token, require_admin=True)
    book = get_services().admin.add_book(params.title, params.author, params.stock)
    return text_response(
        f"Added '{book.title}' by {book.author} (id {book.id}, {book.stock} in stock)",
        {"book": book.model_dump(mode="json")},
    )


def _update_book(params: UpdateBookInput) -> dict[str, Any]:
    resolve_caller(params.session_token, require_admin=True)
    book = get_services().admin.update_book(
        params.title, params.author, params.book_id, params.stock
    )
    return text_response(
        f"Updated book {book.id}: '{book.title}' by {book.author}, {book.stock} in stock",
        {"book": book.model_dump(mode="json")},
    )


def _delete_book(params: DeleteBookInput) -> dict[str, Any]:
    caller = resolve_caller(params.session_token, require_admin=True)
    closed = get_services().admin.delete_book(params.book_id)
    logger.info("Admin %d deleted book %d", caller.user_id, params.book_id)
    message = f"Deleted book {params.book_id}"
    if closed:
        message += f"; force-closed {len(closed)} open borrow record(s)"
    return text_response(
        message,
        {
            "book_id": params.book_id,
            "closed_records": [record_data(r) for r in closed],
        },
    )


def _list_borrow_records(params: SessionInput) -> dict[str, Any]:
    resolve_caller(params.session_token, require_admin=True)
    records = get_services().admin.get_all_borrow_records()
    return text_response(
        f"{len(records)} borrow record(s)",
        {"records": [record_data(r) for r in records], "count": len(records)},
    )


async def add_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("add_book", AddBookInput, arguments, _add_book)


async def update_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("update_book", UpdateBookInput, arguments, _update_book)


async def delete_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the delete_book tool.

    Open loans of the book are closed in the same transaction that removes
    it; their copies are not returned to stock.
    """
    return await run_tool("delete_book", DeleteBookInput, arguments, _delete_book)


async def list_borrow_records_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool(
        "list_borrow_records", SessionInput, arguments, _list_borrow_records
    )


add_book = {
    "name": "add_book",
    "description": "Admin only. Add a book with a unique title, an author and a stock count.",
    "inputSchema": AddBookInput.model_json_schema(),
    "handler": add_book_handler,
}

update_book = {
    "name": "update_book",
    "description": (
        "Admin only. Replace the title, author and stock of a book. The new title must "
        "not belong to another book."
    ),
    "inputSchema": UpdateBookInput.model_json_schema(),
    "handler": update_book_handler,
}

delete_book = {
    "name": "delete_book",
    "description": (
        "Admin only. Delete a book. Open borrow records for it are closed first, "
        "without restoring stock."
    ),
    "inputSchema": DeleteBookInput.model_json_schema(),
    "handler": delete_book_handler,
}

list_borrow_records = {
    "name": "list_borrow_records",
    "description": "Admin only. List every borrow record in the library.",
    "inputSchema": SessionInput.model_json_schema(),
    "handler": list_borrow_records_handler,
}
