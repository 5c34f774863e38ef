"""Tests for the catalog tools."""

import pytest

from library_service.tools.catalog import (
    get_book_by_title_handler,
    get_book_handler,
    list_books_handler,
    search_books_by_author_handler,
    search_books_by_title_handler,
    search_books_handler,
)


def error_of(response: dict) -> dict:
    assert response.get("isError") is True, response
    return response["error"]


async def test_list_books(user_token, sample_books):
    response = await list_books_handler({"session_token": user_token})

    assert response["data"]["count"] == 4
    assert [b["title"] for b in response["data"]["books"]] == [b.title for b in sample_books]
    text = response["content"][0]["text"]
    assert text.startswith("Found 4 books:")
    assert f"- [{sample_books[2].id}] 1984 by George Orwell (out of stock)" in text


@pytest.mark.parametrize(
    "handler,arguments",
    [
        (list_books_handler, {}),
        (get_book_handler, {"book_id": 1}),
        (search_books_handler, {"keyword": "x"}),
    ],
)
async def test_requires_session(shared_services, handler, arguments):
    error = error_of(await handler(arguments))
    assert error["status"] == 401

    error = error_of(await handler(arguments | {"session_token": "bogus"}))
    assert error["status"] == 401


async def test_get_book(user_token, sample_books):
    response = await get_book_handler({"session_token": user_token, "book_id": sample_books[0].id})
    assert response["data"]["book"]["title"] == "The Great Gatsby"

    error = error_of(await get_book_handler({"session_token": user_token, "book_id": 999}))
    assert (error["code"], error["status"]) == ("BOOK_NOT_FOUND", 404)


async def test_get_book_rejects_bad_id(user_token):
    error = error_of(await get_book_handler({"session_token": user_token, "book_id": 0}))
    assert error["status"] == 400


async def test_get_book_by_title(user_token, sample_books):
    response = await get_book_by_title_handler({"session_token": user_token, "title": "1984"})
    assert response["data"]["book"]["stock"] == 0


async def test_searches(user_token, sample_books):
    by_keyword = await search_books_handler({"session_token": user_token, "keyword": "orwell"})
    by_title = await search_books_by_title_handler(
        {"session_token": user_token, "keyword": "Farm"}
    )
    by_author = await search_books_by_author_handler(
        {"session_token": user_token, "author": "Harper Lee"}
    )

    assert by_keyword["data"]["count"] == 2
    assert [b["title"] for b in by_title["data"]["books"]] == ["Animal Farm"]
    assert [b["title"] for b in by_author["data"]["books"]] == ["To Kill a Mockingbird"]


async def test_empty_search_is_not_an_error(user_token, sample_books):
    response = await search_books_handler({"session_token": user_token, "keyword": "Tolkien"})

    assert "isError" not in response
    assert response["data"] == {"books": [], "count": 0}
