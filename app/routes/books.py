from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from app.database import get_session
from app.services.book_detail import get_book_detail
from app.services.book_scopes import BookFilter, list_books
from app.services.cache import BookCache, get_cache
from app.utils.template import template_response

router = APIRouter()


# ---------------------------------------------------------
# LIST BOOKS (title search + preset filter)
# ---------------------------------------------------------
@router.get("", summary="List books")
def index(
    title: str | None = None,
    filter_key: str | None = Query(None, alias="filter"),
    session: Session = Depends(get_session),
):
    active_filter = BookFilter.from_key(filter_key)
    books = list_books(session, title=title, book_filter=active_filter)

    return template_response(
        "books/index.html",
        books=books,
        title=title,
        active_filter=active_filter,
        filters=list(BookFilter),
    )


# ---------------------------------------------------------
# BOOK DETAIL (cached)
# ---------------------------------------------------------
@router.get("/{book_id}", summary="Show a book with its reviews")
def show(
    book_id: int,
    session: Session = Depends(get_session),
    cache: BookCache = Depends(get_cache),
):
    detail = get_book_detail(session, cache, book_id)

    if detail is None:
        raise HTTPException(404, "Book not found")

    return template_response("books/show.html", detail=detail)
