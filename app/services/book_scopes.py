"""
Composable query scopes over the book catalogue.

A ``BookQuery`` collects filters, aggregate annotations and orderings and
turns them into a single ``SELECT``. Review aggregates are correlated scalar
subqueries, so each book row carries ``reviews_count`` and
``reviews_avg_rating`` computed over an optional ``created_at`` window.
Filters on those aggregates (``min_reviews``) compare against the
aggregated value per book rather than restricting the reviews counted.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlmodel import Session, select

from app.models.book import Book
from app.models.review import Review
from app.schemas.book_schemas import BookWithStats

logger = logging.getLogger(__name__)


def date_range_filter(stmt, from_: Optional[datetime] = None, to: Optional[datetime] = None):
    """Bound a review subquery by ``Review.created_at``; open ends are unbounded."""
    if from_ and not to:
        return stmt.where(Review.created_at >= from_)
    if to and not from_:
        return stmt.where(Review.created_at <= to)
    if from_ and to:
        return stmt.where(Review.created_at.between(from_, to))
    return stmt


def reviews_count_column(from_: Optional[datetime] = None, to: Optional[datetime] = None):
    stmt = select(func.count(Review.id)).where(Review.book_id == Book.id)
    return date_range_filter(stmt, from_, to).correlate(Book).scalar_subquery()


def reviews_avg_rating_column(from_: Optional[datetime] = None, to: Optional[datetime] = None):
    # AVG over zero rows is NULL, which is what "no rating" must stay as
    stmt = select(func.avg(Review.rating)).where(Review.book_id == Book.id)
    return date_range_filter(stmt, from_, to).correlate(Book).scalar_subquery()


class BookQuery:
    """Chainable builder; every scope returns ``self``."""

    def __init__(self):
        self.conditions = []
        self.aggregate_conditions = []
        self.ordering = []
        self.reviews_count = None
        self.reviews_avg_rating = None

    def where(self, *conditions) -> "BookQuery":
        self.conditions.extend(conditions)
        return self

    def title(self, text: str) -> "BookQuery":
        return self.where(Book.title.contains(text, autoescape=True))

    def with_reviews_count(self, from_=None, to=None) -> "BookQuery":
        self.reviews_count = reviews_count_column(from_, to)
        return self

    def with_avg_rated(self, from_=None, to=None) -> "BookQuery":
        self.reviews_avg_rating = reviews_avg_rating_column(from_, to)
        return self

    def popular(self, from_=None, to=None) -> "BookQuery":
        self.with_reviews_count(from_, to)
        self.ordering.append(self.reviews_count.desc())
        return self

    def highest_rated(self, from_=None, to=None) -> "BookQuery":
        self.with_avg_rated(from_, to)
        self.ordering.append(self.reviews_avg_rating.desc().nulls_last())
        return self

    def min_reviews(self, minimum: int = 0) -> "BookQuery":
        if self.reviews_count is None:
            self.with_reviews_count()
        self.aggregate_conditions.append(self.reviews_count >= minimum)
        return self

    def latest(self) -> "BookQuery":
        self.ordering.extend([Book.created_at.desc(), Book.id.desc()])
        return self

    def statement(self):
        columns = [Book]
        if self.reviews_count is not None:
            columns.append(self.reviews_count.label("reviews_count"))
        if self.reviews_avg_rating is not None:
            columns.append(self.reviews_avg_rating.label("reviews_avg_rating"))

        stmt = select(*columns)
        if self.conditions:
            stmt = stmt.where(*self.conditions)
        if self.aggregate_conditions:
            stmt = stmt.where(*self.aggregate_conditions)
        if self.ordering:
            stmt = stmt.order_by(*self.ordering)
        return stmt

    def all(self, session: Session) -> List[BookWithStats]:
        rows = session.exec(self.statement()).all()
        return [self._to_listing(row) for row in rows]

    def first(self, session: Session) -> Optional[BookWithStats]:
        row = session.exec(self.statement()).first()
        return self._to_listing(row) if row is not None else None

    def _to_listing(self, row) -> BookWithStats:
        if isinstance(row, Book):
            return BookWithStats.from_book(row)
        mapping = row._mapping
        avg = mapping.get("reviews_avg_rating")
        return BookWithStats.from_book(
            mapping[Book],
            reviews_count=mapping.get("reviews_count"),
            reviews_avg_rating=float(avg) if avg is not None else None,
        )


# ---------------------------------------------------------
# Presets selected by the ``filter`` query parameter
# ---------------------------------------------------------

class BookFilter(str, Enum):
    LATEST = ""
    POPULAR_LAST_MONTH = "popular_last_month"
    POPULAR_LAST_6MONTHS = "popular_last_6months"
    HIGHEST_RATED_LAST_MONTH = "highest_rated_last_month"
    HIGHEST_RATED_LAST_6MONTHS = "highest_rated_last_6months"

    @property
    def label(self) -> str:
        return FILTER_LABELS[self]

    @classmethod
    def from_key(cls, key: Optional[str]) -> "BookFilter":
        try:
            return cls(key or "")
        except ValueError:
            logger.warning(f"Unknown book filter {key!r}, using latest")
            return cls.LATEST


FILTER_LABELS = {
    BookFilter.LATEST: "Latest",
    BookFilter.POPULAR_LAST_MONTH: "Popular Last Month",
    BookFilter.POPULAR_LAST_6MONTHS: "Popular Last 6 Months",
    BookFilter.HIGHEST_RATED_LAST_MONTH: "Highest Rated Last Month",
    BookFilter.HIGHEST_RATED_LAST_6MONTHS: "Highest Rated Last 6 Months",
}


def months_ago(now: datetime, months: int) -> datetime:
    return now - relativedelta(months=months)


def popular_last_month(query: BookQuery, now: datetime) -> BookQuery:
    since = months_ago(now, 1)
    return query.popular(since, now).highest_rated(since, now).min_reviews(2)


def popular_last_6months(query: BookQuery, now: datetime) -> BookQuery:
    since = months_ago(now, 6)
    return query.popular(since, now).highest_rated(since, now).min_reviews(5)


def highest_rated_last_month(query: BookQuery, now: datetime) -> BookQuery:
    since = months_ago(now, 1)
    return query.highest_rated(since, now).popular(since, now).min_reviews(2)


def highest_rated_last_6months(query: BookQuery, now: datetime) -> BookQuery:
    # rating over six months, popularity over one month
    return (
        query.highest_rated(months_ago(now, 6), now)
        .popular(months_ago(now, 1), now)
        .min_reviews(3)
    )


def latest(query: BookQuery, now: datetime) -> BookQuery:
    return query.with_reviews_count().with_avg_rated().latest()


PRESETS: Dict[BookFilter, Callable[[BookQuery, datetime], BookQuery]] = {
    BookFilter.LATEST: latest,
    BookFilter.POPULAR_LAST_MONTH: popular_last_month,
    BookFilter.POPULAR_LAST_6MONTHS: popular_last_6months,
    BookFilter.HIGHEST_RATED_LAST_MONTH: highest_rated_last_month,
    BookFilter.HIGHEST_RATED_LAST_6MONTHS: highest_rated_last_6months,
}


def list_books(
    session: Session,
    title: Optional[str] = None,
    book_filter: BookFilter = BookFilter.LATEST,
    now: Optional[datetime] = None,
) -> List[BookWithStats]:
    """Title search first, then the preset composition."""
    now = now or datetime.utcnow()
    query = BookQuery()
    if title:
        query.title(title)
    query = PRESETS[book_filter](query, now)
    return query.all(session)
