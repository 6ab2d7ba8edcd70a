"""
api/routes/v1/books.py -- Book catalogue routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /books              -- paginated listing            (authenticated)
  GET    /books/search       -- filtered, paginated listing  (authenticated)
  GET    /books/{book_id}    -- single book                  (authenticated)
  POST   /books              -- create                       (admin)
  PUT    /books/{book_id}    -- full replace                 (admin)
  DELETE /books/{book_id}    -- delete                       (admin)

/books/search is registered before /books/{book_id}; otherwise "search" would
be captured as a book id.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.models import (
    BookCreate,
    BookCreatedResponse,
    BookListResponse,
    BookResponse,
    MessageResponse,
    Pagination,
)
from auth.dependencies import get_current_claims, require_admin
from books.models import Book, BookPage
from books.store import BookStore
from core.config import get_settings

logger = logging.getLogger("libraryapi.api.books")

# Reads need any valid token; writes add require_admin per route.
router = APIRouter(dependencies=[Depends(get_current_claims)])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Book not found."})


def _to_response(book: Book) -> BookResponse:
    return BookResponse(
        id=book.id,
        title=book.title,
        author=book.author,
        genre=book.genre,
        publication_year=book.publication_year,
        description=book.description,
        status=book.status,
        created_at=book.created_at,
    )


def _to_list_response(page: BookPage, message: Optional[str] = None) -> BookListResponse:
    return BookListResponse(
        message=message,
        data=[_to_response(b) for b in page.books],
        pagination=Pagination(total=page.total, page=page.page, limit=page.limit, pages=page.pages),
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/books", response_model=BookListResponse)
def list_books(request: Request, page: int = Query(default=1, ge=1)) -> BookListResponse:
    store: BookStore = request.app.state.book_store
    return _to_list_response(store.list_books(page=page, limit=get_settings().books_page_size))


@router.get("/books/search", response_model=BookListResponse)
def search_books(
    request: Request,
    title: Optional[str] = Query(default=None, max_length=255),
    author: Optional[str] = Query(default=None, max_length=255),
    genre: Optional[str] = Query(default=None, max_length=100),
    year: Optional[str] = Query(default=None, max_length=10),
    page: int = Query(default=1, ge=1),
) -> BookListResponse:
    """Search by title/author substring and exact genre/year.

    A year that is not an integer is ignored rather than rejected.
    """
    store: BookStore = request.app.state.book_store
    parsed_year: Optional[int] = None
    if year:
        try:
            parsed_year = int(year)
        except ValueError:
            logger.debug("Ignoring non-numeric year filter %r", year)

    result = store.search(
        title=title,
        author=author,
        genre=genre,
        year=parsed_year,
        page=page,
        limit=get_settings().books_page_size,
    )
    message = "Books found" if result.books else "No books match your search"
    return _to_list_response(result, message=message)


@router.get("/books/{book_id}", response_model=BookResponse)
def get_book(request: Request, book_id: str) -> BookResponse:
    store: BookStore = request.app.state.book_store
    book = store.get(book_id)
    if book is None:
        raise _not_found()
    return _to_response(book)


# ---------------------------------------------------------------------------
# Writes (admin only)
# ---------------------------------------------------------------------------


@router.post(
    "/books",
    response_model=BookCreatedResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_book(request: Request, body: BookCreate) -> BookCreatedResponse:
    store: BookStore = request.app.state.book_store
    book = Book(id=str(uuid.uuid4()), **body.model_dump())
    store.create(book)
    logger.info("Created book %s", book.id)
    return BookCreatedResponse(id=book.id)


@router.put("/books/{book_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def update_book(request: Request, book_id: str, body: BookCreate) -> MessageResponse:
    store: BookStore = request.app.state.book_store
    if not store.update(book_id, **body.model_dump()):
        raise _not_found()
    logger.info("Updated book %s", book_id)
    return MessageResponse(message="Book updated successfully")


@router.delete("/books/{book_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
def delete_book(request: Request, book_id: str) -> MessageResponse:
    store: BookStore = request.app.state.book_store
    if not store.delete(book_id):
        raise _not_found()
    logger.info("Deleted book %s", book_id)
    return MessageResponse(message="Book deleted successfully")
