"""
Tests for the repositories, the storage units and the session scope.

Repositories flush but never commit, so most tests here run inside one
``store.atomic()`` block and check what the next unit sees.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from library_service.database import Book as BookDB
from library_service.database import SqlLibraryStore
from library_service.errors import BookNotFoundError, ConstraintViolationError
from library_service.models import Identity, Role

NOW = datetime(2024, 1, 15, 10, 30)


def test_book_repository_crud(store: SqlLibraryStore):
    with store.atomic() as unit:
        book = unit.books.create("Dune", "Frank Herbert", 2)
        book_id = book.id

    with store.atomic() as unit:
        loaded = unit.books.get_by_id(book_id)
        assert loaded is not None
        assert unit.books.to_model(loaded).title == "Dune"
        assert unit.books.get_by_title("Dune").id == book_id
        assert unit.books.get_by_title("dune") is None

        unit.books.delete(loaded)

    with store.atomic() as unit:
        assert unit.books.get_by_id(book_id) is None


def test_duplicate_title_is_a_constraint_violation(store: SqlLibraryStore):
    with store.atomic() as unit:
        unit.books.create("Dune", "Frank Herbert", 2)

    with pytest.raises(ConstraintViolationError), store.atomic() as unit:
        unit.books.create("Dune", "Someone Else", 1)


def test_negative_stock_rejected(store: SqlLibraryStore):
    with store.atomic() as unit:
        book = unit.books.create("Dune", "Frank Herbert", 0)
        with pytest.raises(ValueError, match="below zero"):
            unit.books.adjust_stock(book, -1)

    with pytest.raises(ConstraintViolationError), store.atomic() as unit:
        unit.books.create("Emma", "Jane Austen", -1)


def test_unit_rolls_back_on_error(store: SqlLibraryStore):
    with pytest.raises(BookNotFoundError), store.atomic() as unit:
        unit.books.create("Dune", "Frank Herbert", 2)
        raise BookNotFoundError("abort")

    with store.atomic() as unit:
        assert unit.books.get_all() == []


def test_run_atomically_returns_result(store: SqlLibraryStore):
    book_id = store.run_atomically(lambda unit: unit.books.create("Dune", "F. H.", 1).id)

    with store.atomic() as unit:
        assert unit.books.get_by_id(book_id).stock == 1



def test_read_unit_keeps_nothing(store: SqlLibraryStore):
    with store.read() as unit:
        unit.books.create("Dune", "Frank Herbert", 2)

    assert store.run_read(lambda unit: unit.books.get_by_title("Dune")) is None


def test_reads_do_not_wait_for_an_open_writer(store: SqlLibraryStore):
    store.run_atomically(lambda unit: unit.books.create("Emma", "Jane Austen", 1))

    with store.atomic() as unit:
        unit.books.create("Dune", "Frank Herbert", 2)
        # the writer holds the SQLite write lock until this block ends
        titles = store.run_read(lambda reader: [b.title for b in reader.books.get_all()])
        assert titles == ["Emma"]

    assert len(store.run_read(lambda unit: unit.books.get_all())) == 2

class TestBookSearch:
    @pytest.fixture(autouse=True)
    def catalog(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            unit.books.create("Python Tricks", "Dan Bader", 1)
            unit.books.create("Fluent Python", "Luciano Ramalho", 2)
            unit.books.create("100% Coverage", "Test_Author", 1)
            unit.books.create("Clean Code", "Robert Martin", 3)
            unit.books.create("Clean Architecture", "Robert Martin", 1)

    def titles(self, books) -> list[str]:
        return [b.title for b in books]

    def test_keyword_matches_title_or_author(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            assert self.titles(unit.books.search_by_keyword("Python")) == [
                "Python Tricks",
                "Fluent Python",
            ]
            assert self.titles(unit.books.search_by_keyword("Martin")) == [
                "Clean Code",
                "Clean Architecture",
            ]

    def test_wildcards_match_literally(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            assert self.titles(unit.books.search_by_keyword("%")) == ["100% Coverage"]
            assert self.titles(unit.books.search_by_keyword("_")) == ["100% Coverage"]
            assert unit.books.search_by_title_keyword("_") == []

    def test_title_keyword_ignores_author(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            assert self.titles(unit.books.search_by_title_keyword("Clean")) == [
                "Clean Code",
                "Clean Architecture",
            ]
            assert unit.books.search_by_title_keyword("Martin") == []

    def test_author_is_exact(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            assert len(unit.books.search_by_author("Robert Martin")) == 2
            assert unit.books.search_by_author("Martin") == []

    def test_get_all_ordered_by_id(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            books = unit.books.get_all()
            assert [b.id for b in books] == sorted(b.id for b in books)
            assert len(books) == 5


class TestBorrowRecordRepository:
    def test_open_count_and_close(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            first = unit.records.create(7, 1, NOW, NOW + timedelta(days=31))
            unit.records.create(7, 2, NOW, NOW + timedelta(days=31))
            unit.records.create(8, 1, NOW, NOW + timedelta(days=31))
            first_id = first.id

        with store.atomic() as unit:
            assert unit.records.count_open_by_user_id(7) == 2
            record = unit.records.get_by_id(first_id)
            unit.records.close(record, NOW + timedelta(days=3))

        with store.atomic() as unit:
            assert unit.records.count_open_by_user_id(7) == 1
            assert [r.book_id for r in unit.records.get_by_user_id(7)] == [1, 2]
            assert [r.user_id for r in unit.records.get_by_book_id(1)] == [7, 8]
            closed = unit.records.to_model(unit.records.get_by_id(first_id))
            assert closed.returned_at == NOW + timedelta(days=3)

    def test_closing_twice_is_rejected(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            record = unit.records.create(7, 1, NOW, NOW + timedelta(days=31))
            unit.records.close(record, NOW)
            with pytest.raises(ValueError, match="already closed"):
                unit.records.close(record, NOW + timedelta(days=1))

    def test_due_date_check_constraint(self, store: SqlLibraryStore):
        with pytest.raises(ConstraintViolationError), store.atomic() as unit:
            unit.records.create(7, 1, NOW, NOW)


class TestUserAndSessionRepositories:
    def test_user_roles_round_trip(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            unit.users.create("alice", "hash-a")
            unit.users.create("root", "hash-r", Role.ADMIN)

        with store.atomic() as unit:
            alice = unit.users.to_model(unit.users.get_by_username("alice"))
            root = unit.users.to_model(unit.users.get_by_username("root"))
            assert alice.role == Role.USER
            assert root.role == Role.ADMIN
            assert unit.users.get_by_username("ALICE") is None

    def test_duplicate_username(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            unit.users.create("alice", "hash-a")

        with pytest.raises(ConstraintViolationError), store.atomic() as unit:
            unit.users.create("alice", "hash-b")

    def test_sessions_expire_and_purge(self, store: SqlLibraryStore):
        with store.atomic() as unit:
            user = unit.users.create("alice", "hash-a")
            identity = Identity(user_id=user.id, username="alice", role=Role.USER)
            unit.login_sessions.create("a" * 43, identity, NOW, NOW + timedelta(hours=1))
            unit.login_sessions.create("b" * 43, identity, NOW, NOW + timedelta(hours=5))

        with store.atomic() as unit:
            row = unit.login_sessions.get_by_token("a" * 43)
            assert unit.login_sessions.to_model(row).identity == identity
            unit.login_sessions.expire(row, NOW + timedelta(minutes=5))

        with store.atomic() as unit:
            row = unit.login_sessions.get_by_token("a" * 43)
            assert row.authenticated is False
            assert unit.login_sessions.purge_expired(NOW + timedelta(hours=2)) == 1
            assert unit.login_sessions.get_by_token("a" * 43) is None
            assert unit.login_sessions.get_by_token("b" * 43) is not None


def test_for_update_lock_is_accepted_by_sqlite(store: SqlLibraryStore):
    with store.atomic() as unit:
        book = unit.books.create("Dune", "Frank Herbert", 2)
        locked = unit.books.get_by_id(book.id, for_update=True)
        assert locked is book
        assert unit.session.execute(select(BookDB.stock)).scalar_one() == 2
