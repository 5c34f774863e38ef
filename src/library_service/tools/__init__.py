"""
MCP tools for the Library Service.

Each tool is a dict with ``name``, ``description``, ``inputSchema`` and an
async ``handler`` taking the raw arguments. Handlers never raise: failures
come back as an ``isError`` envelope whose ``error.status`` follows HTTP
conventions (400, 401, 403, 404, 409, 500).
"""

from .admin import add_book, delete_book, list_borrow_records, update_book
from .auth import login, logout, register
from .catalog import (
    get_book,
    get_book_by_title,
    list_books,
    search_books,
    search_books_by_author,
    search_books_by_title,
)
from .circulation import borrow_book, my_borrow_records, return_book

all_tools = [
    register,
    login,
    logout,
    list_books,
    get_book,
    get_book_by_title,
    search_books,
    search_books_by_title,
    search_books_by_author,
    borrow_book,
    return_book,
    my_borrow_records,
    add_book,
    update_book,
    delete_book,
    list_borrow_records,
]

__all__ = [
    "add_book",
    "all_tools",
    "borrow_book",
    "delete_book",
    "get_book",
    "get_book_by_title",
    "list_books",
    "list_borrow_records",
    "login",
    "logout",
    "my_borrow_records",
    "register",
    "return_book",
    "search_books",
    "search_books_by_author",
    "search_books_by_title",
    "update_book",
]
