"""
books/models.py -- Domain dataclasses for the book catalogue.

Pure data containers with zero logic. Queries, pagination and search live in
books/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Book:
    """A catalogue record.

    id is a UUID4 string assigned by the route on create. created_at is set by
    the store on insert.
    """

    id: str
    title: str
    author: str
    genre: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    status: Optional[str] = None  # free-form, e.g. "available" | "checked_out"
    created_at: str = ""  # ISO 8601


@dataclass
class BookPage:
    """One page of a book listing plus the totals needed for pagination."""

    books: list[Book]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
