import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from app.models.book import Book
from app.models.review import Review
from app.schemas.book_schemas import BookDetail, BookRead
from app.schemas.review_schemas import ReviewRead
from app.services.book_scopes import BookQuery
from app.services.cache import BookCache, CACHE_TTL, book_cache_key

logger = logging.getLogger(__name__)


def build_book_detail(session: Session, book_id: int) -> Optional[BookDetail]:
    """Book, its reviews newest first and the all-time aggregates."""
    listing = (
        BookQuery()
        .where(Book.id == book_id)
        .with_reviews_count()
        .with_avg_rated()
        .first(session)
    )
    if listing is None:
        return None

    reviews = session.exec(
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()

    return BookDetail(
        book=BookRead.model_validate(listing.model_dump()),
        reviews=[ReviewRead.model_validate(r, from_attributes=True) for r in reviews],
        reviews_count=listing.reviews_count or 0,
        reviews_avg_rating=listing.reviews_avg_rating,
    )


def get_book_detail(
    session: Session,
    cache: BookCache,
    book_id: int,
    ttl: int = CACHE_TTL,
) -> Optional[BookDetail]:
    """Cache-aside read. Missing books return None and are never cached."""
    key = book_cache_key(book_id)

    cached = cache.get(key)
    if cached is not None:
        logger.debug(f"Book detail cache hit: {key}")
        return BookDetail.model_validate(cached)

    logger.debug(f"Book detail cache miss: {key}")
    detail = build_book_detail(session, book_id)
    if detail is None:
        return None

    payload = detail.model_dump(mode="json")
    version = detail.book.updated_at

    if book_version(session, book_id) != version:
        logger.debug(f"Book {book_id} changed while building detail, not caching")
        return BookDetail.model_validate(payload)

    cache.set(key, payload, ttl)

    # a write committed between the check and the set must not outlive its eviction
    if book_version(session, book_id) != version:
        logger.debug(f"Book {book_id} changed after caching, evicting {key}")
        cache.invalidate(key)

    return BookDetail.model_validate(payload)


def book_version(session: Session, book_id: int) -> Optional[datetime]:
    """Committed ``updated_at`` of the book, None once it is deleted."""
    return session.exec(select(Book.updated_at).where(Book.id == book_id)).first()


def forget_book(cache: BookCache, book_id: int) -> None:
    logger.debug(f"Evicting book detail cache: book:{book_id}")
    cache.invalidate(book_cache_key(book_id))
