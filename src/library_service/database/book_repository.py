"""
Book repository implementation for the Library Service.

Data access for the catalog:

1. **Lookups**: by ID (optionally locked for a stock update) and by exact title
2. **Search**: keyword over title or author, title substring, exact author
3. **Stock**: the single place where stock is moved up or down

Substring searches use ``LIKE`` with the user's keyword escaped, so ``%`` and
``_`` in a keyword match literally. Case sensitivity follows the database
collation (ASCII case-insensitive on SQLite).
"""

from sqlalchemy import or_, select

from ..database.schema import Book as BookDB
from ..models.book import Book as BookModel
from .repository import BaseRepository
from .session import safe_query


class BookRepository(BaseRepository[BookDB, BookModel]):
    """Repository for book data access."""

    @property
    def model_class(self):
        return BookDB

    @property
    def response_schema(self):
        return BookModel

    def get_by_title(self, title: str) -> BookDB | None:
        """
        Get book by exact title.

        Args:
            title: Full title, compared with ``=``

        Returns:
            Book row or None if not found
        """
        query = select(BookDB).where(BookDB.title == title)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "get book by title",
        )

    def create(self, title: str, author: str, stock: int) -> BookDB:
        """Insert a new catalog entry."""
        return self.add(BookDB(title=title, author=author, stock=stock))

    def search_by_keyword(self, keyword: str) -> list[BookDB]:
        """Books whose title or author contains the keyword."""
        query = (
            select(BookDB)
            .where(
                or_(
                    BookDB.title.contains(keyword, autoescape=True),
                    BookDB.author.contains(keyword, autoescape=True),
                )
            )
            .order_by(BookDB.id)
        )
        return self._all(query, "search books by keyword")

    def search_by_title_keyword(self, title_keyword: str) -> list[BookDB]:
        """Books whose title contains the keyword."""
        query = (
            select(BookDB)
            .where(BookDB.title.contains(title_keyword, autoescape=True))
            .order_by(BookDB.id)
        )
        return self._all(query, "search books by title keyword")

    def search_by_author(self, author: str) -> list[BookDB]:
        """Books whose author matches exactly."""
        query = select(BookDB).where(BookDB.author == author).order_by(BookDB.id)
        return self._all(query, "search books by author")

    def adjust_stock(self, book: BookDB, delta: int) -> BookDB:
        """
        Move the stock of a loaded (and locked) book.

        Args:
            book: Row fetched in the current unit
            delta: -1 for a borrow, +1 for a return

        Raises:
            ValueError: If the change would make stock negative
            ConstraintViolationError: If the database rejects the new value
        """
        new_stock = book.stock + delta
        if new_stock < 0:
            raise ValueError(f"Stock of book {book.id} cannot go below zero")

        book.stock = new_stock
        return self.save(book)

    def _all(self, query, operation: str) -> list[BookDB]:
        results = safe_query(self.session, lambda s: s.execute(query).scalars().all(), operation)
        return list(results)
