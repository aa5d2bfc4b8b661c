import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlmodel import Session
from app.database import get_session
from app.models.book import Book
from app.models.review import Review, MIN_RATING, MAX_RATING
from app.schemas.review_schemas import ReviewCreate
from app.services.book_detail import forget_book
from app.services.cache import BookCache, get_cache
from app.utils.template import template_response

logger = logging.getLogger(__name__)

router = APIRouter()

RATINGS = list(range(MIN_RATING, MAX_RATING + 1))


def get_book_or_404(book_id: int, session: Session) -> Book:
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return book


def validation_messages(exc: ValidationError) -> dict:
    errors = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__all__"
        message = error["msg"].removeprefix("Value error, ")
        errors.setdefault(field, message)
    return errors


def render_form(book: Book, old: dict | None = None, errors: dict | None = None, status_code: int = 200):
    return template_response(
        "reviews/create.html",
        status_code=status_code,
        book=book,
        ratings=RATINGS,
        old=old or {},
        errors=errors or {},
    )


# ---------------------------------------------------------
# REVIEW FORM
# ---------------------------------------------------------
@router.get("/{book_id}/reviews/create")
def create_review_form(book_id: int, session: Session = Depends(get_session)):
    book = get_book_or_404(book_id, session)
    return render_form(book)


# ---------------------------------------------------------
# STORE A REVIEW
# ---------------------------------------------------------
@router.post("/{book_id}/reviews")
def store_review(
    book_id: int,
    rating: str = Form(""),
    review: str = Form(""),
    session: Session = Depends(get_session),
    cache: BookCache = Depends(get_cache),
):
    book = get_book_or_404(book_id, session)
    submitted = {"rating": rating, "review": review}

    try:
        data = ReviewCreate.model_validate(submitted)
    except ValidationError as exc:
        return render_form(book, old=submitted, errors=validation_messages(exc), status_code=422)

    new_review = Review(book_id=book.id, rating=data.rating, review=data.review)
    # touch the parent so in-flight detail reads see a new version
    book.updated_at = datetime.utcnow()
    session.add(new_review)
    session.add(book)
    session.commit()
    session.refresh(new_review)

    # aggregates on the detail page changed
    forget_book(cache, book.id)
    logger.info(f"Review {new_review.id} added to book {book.id}")

    return RedirectResponse(url=f"/books/{book.id}", status_code=303)


# ---------------------------------------------------------
# SHOW ONE REVIEW (scoped to its book)
# ---------------------------------------------------------
@router.get("/{book_id}/reviews/{review_id}")
def show_review(book_id: int, review_id: int, session: Session = Depends(get_session)):
    book = get_book_or_404(book_id, session)

    review = session.get(Review, review_id)
    if not review or review.book_id != book.id:
        raise HTTPException(404, "Review not found")

    return template_response("reviews/show.html", book=book, review=review)
