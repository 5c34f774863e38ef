"""
Catalog tools: listing, lookup and search.

All of them are read-only and open to any logged-in user. Searches that
match nothing return an empty list rather than an error.
"""

from typing import Any

from pydantic import Field

from ..models.book import Book
from ..services import get_services
from .auth import SessionInput, resolve_caller
from .responses import run_tool, text_response


class BookIdInput(SessionInput):
    book_id: int = Field(..., description="Book ID", ge=1, examples=[1])


class BookTitleInput(SessionInput):
    title: str = Field(
        ...,
        description="Full title, matched exactly",
        min_length=1,
        examples=["The Pragmatic Programmer"],
    )


class KeywordInput(SessionInput):
    keyword: str = Field(
        ...,
        description="Text to look for; % and _ match literally",
        min_length=1,
        examples=["python"],
    )


class AuthorInput(SessionInput):
    author: str = Field(
        ...,
        description="Author name, matched exactly",
        min_length=1,
        examples=["Donald Knuth"],
    )


def _books_response(books: list[Book], what: str) -> dict[str, Any]:
    if books:
        lines = [f"Found {len(books)} {what}:"]
        lines.extend(
            f"- [{b.id}] {b.title} by {b.author} "
            + (f"({b.stock} in stock)" if b.is_available else "(out of stock)")
            for b in books
        )
        message = "\n".join(lines)
    else:
        message = f"No {what} found"
    return text_response(
        message,
        {"books": [b.model_dump(mode="json") for b in books], "count": len(books)},
    )


def _book_response(book: Book) -> dict[str, Any]:
    return text_response(
        f"[{book.id}] {book.title} by {book.author} ({book.stock} in stock)",
        {"book": book.model_dump(mode="json")},
    )


def _list_books(params: SessionInput) -> dict[str, Any]:
    resolve_caller(params.session_token)
    return _books_response(get_services().books.get_all_books(), "books")


def _get_book(params: BookIdInput) -> dict[str, Any]:
    resolve_caller(params.session_token)
    return _book_response(get_services().books.get_book_by_id(params.book_id))


def _get_book_by_title(params: BookTitleInput) -> dict[str, Any]:
    resolve_caller(params.session_token)
    return _book_response(get_services().books.get_book_by_title(params.title))


def _search_books(params: KeywordInput) -> dict[str, Any]:
    resolve_caller(params.session_token)
    books = get_services().books.search_by_keyword(params.keyword)
    return _books_response(books, f"books matching '{params.keyword}'")


def _search_books_by_title(params: KeywordInput) -> dict[str, Any]:
    resolve_caller(params.session_token)
    books = get_services().books.search_by_title_keyword(params.keyword)
    return _books_response(books, f"books with '{params.keyword}' in the title")


def _search_books_by_author(params: AuthorInput) -> dict[str, Any]:
    resolve_caller(params.session_token)
    books = get_services().books.search_by_author(params.author)
    return _books_response(books, f"books by '{params.author}'")


async def list_books_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("list_books", SessionInput, arguments, _list_books)


async def get_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("get_book", BookIdInput, arguments, _get_book)


async def get_book_by_title_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("get_book_by_title", BookTitleInput, arguments, _get_book_by_title)


async def search_books_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool("search_books", KeywordInput, arguments, _search_books)


async def search_books_by_title_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool(
        "search_books_by_title", KeywordInput, arguments, _search_books_by_title
    )


async def search_books_by_author_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return await run_tool(
        "search_books_by_author", AuthorInput, arguments, _search_books_by_author
    )


list_books = {
    "name": "list_books",
    "description": "List every book in the catalog with its current stock, ordered by ID.",
    "inputSchema": SessionInput.model_json_schema(),
    "handler": list_books_handler,
}

get_book = {
    "name": "get_book",
    "description": "Get one book by its ID.",
    "inputSchema": BookIdInput.model_json_schema(),
    "handler": get_book_handler,
}

get_book_by_title = {
    "name": "get_book_by_title",
    "description": "Get one book by its exact title.",
    "inputSchema": BookTitleInput.model_json_schema(),
    "handler": get_book_by_title_handler,
}

search_books = {
    "name": "search_books",
    "description": "Find books whose title or author contains a keyword.",
    "inputSchema": KeywordInput.model_json_schema(),
    "handler": search_books_handler,
}

search_books_by_title = {
    "name": "search_books_by_title",
    "description": "Find books whose title contains a keyword.",
    "inputSchema": KeywordInput.model_json_schema(),
    "handler": search_books_by_title_handler,
}

search_books_by_author = {
    "name": "search_books_by_author",
    "description": "Find books by an exact author name.",
    "inputSchema": AuthorInput.model_json_schema(),
    "handler": search_books_by_author_handler,
}
