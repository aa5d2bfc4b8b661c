import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.database import get_session
from app.models.book import Book
from app.schemas.book_schemas import BookCreate, BookRead, BookUpdate
from app.services.book_detail import forget_book
from app.services.cache import BookCache, get_cache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=BookRead, status_code=status.HTTP_201_CREATED)
def create_book(data: BookCreate, session: Session = Depends(get_session)):
    book = Book(title=data.title, author=data.author)

    session.add(book)
    session.commit()
    session.refresh(book)

    logger.info(f"Book {book.id} created")
    return book


@router.put("/{book_id}", response_model=BookRead)
def update_book(
    book_id: int,
    data: BookUpdate,
    session: Session = Depends(get_session),
    cache: BookCache = Depends(get_cache),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    if data.title is not None: book.title = data.title
    if data.author is not None: book.author = data.author
    book.updated_at = datetime.utcnow()

    session.add(book)
    session.commit()
    session.refresh(book)

    forget_book(cache, book_id)
    logger.info(f"Book {book_id} updated")
    return book


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    session: Session = Depends(get_session),
    cache: BookCache = Depends(get_cache),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    session.delete(book)
    session.commit()

    forget_book(cache, book_id)
    logger.info(f"Book {book_id} deleted")
    return {"message": "Book deleted successfully"}
