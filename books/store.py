"""
books/store.py -- SQLAlchemy-backed persistence layer for the book catalogue.

Uses SQLAlchemy Core (not ORM) so the dataclasses in books/models.py remain the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. BookStore is the repository; _row_to_book
is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL. Search terms
are passed to LIKE as bound values with %/_ escaped, so a title search for
"100%" matches the literal text.

Usage:
    store = BookStore("sqlite:///library.db")
    store.create(book)
    page = store.list_books(page=1, limit=10)
    page = store.search(title="dune", page=1, limit=10)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, and_, func, select, true
from sqlalchemy.engine import Engine

from books.models import Book, BookPage
from core.db import make_engine

metadata = MetaData()

_books = Table(
    "books",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID4
    Column("title", String(255), nullable=False),
    Column("author", String(255), nullable=False),
    Column("genre", String(100)),
    Column("publication_year", Integer),
    Column("description", Text),
    Column("status", String(30)),
    Column("created_at", String(32), nullable=False),
)

# Fields replaced by update(); id and created_at are immutable.
_MUTABLE_FIELDS = ("title", "author", "genre", "publication_year", "description", "status")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class BookStore:
    """Repository for Book records."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, book: Book) -> str:
        """Insert a book and return its id."""
        with self.engine.connect() as conn:
            conn.execute(
                _books.insert().values(
                    id=book.id,
                    title=book.title,
                    author=book.author,
                    genre=book.genre,
                    publication_year=book.publication_year,
                    description=book.description,
                    status=book.status,
                    created_at=book.created_at or _now_iso(),
                )
            )
            conn.commit()
        return book.id

    def update(self, book_id: str, **fields) -> bool:
        """Replace the mutable fields of a book. Fields not passed become NULL.

        Returns True if a row was updated, False if book_id was not found.
        """
        unknown = set(fields) - set(_MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown book fields: {unknown!r}")
        values = {name: fields.get(name) for name in _MUTABLE_FIELDS}
        with self.engine.connect() as conn:
            result = conn.execute(_books.update().where(_books.c.id == book_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete(self, book_id: str) -> bool:
        """Delete a book. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_books.delete().where(_books.c.id == book_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, book_id: str) -> Optional[Book]:
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
        return _row_to_book(row) if row is not None else None

    def list_books(self, page: int = 1, limit: int = 10) -> BookPage:
        return self._page(true(), page, limit)

    def search(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        year: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> BookPage:
        """Filter books: substring match on title/author, exact match on genre/year.

        Filters that are None or empty are ignored; with no filters this is
        the same as list_books().
        """
        conditions = []
        if title:
            conditions.append(_books.c.title.like(_like_pattern(title), escape="\\"))
        if author:
            conditions.append(_books.c.author.like(_like_pattern(author), escape="\\"))
        if genre:
            conditions.append(_books.c.genre == genre)
        if year is not None:
            conditions.append(_books.c.publication_year == year)
        where = and_(*conditions) if conditions else true()
        return self._page(where, page, limit)

    def _page(self, where, page: int, limit: int) -> BookPage:
        page = max(page, 1)
        offset = (page - 1) * limit
        with self.engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(_books).where(where)).scalar() or 0
            rows = conn.execute(
                _books.select().where(where).order_by(_books.c.created_at, _books.c.id).limit(limit).offset(offset)
            ).fetchall()
        return BookPage(books=[_row_to_book(r) for r in rows], total=total, page=page, limit=limit)

    def close(self) -> None:
        self.engine.dispose()


def _row_to_book(row) -> Book:
    return Book(
        id=row.id,
        title=row.title,
        author=row.author,
        genre=row.genre,
        publication_year=row.publication_year,
        description=row.description,
        status=row.status,
        created_at=row.created_at,
    )
