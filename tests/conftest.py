import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import app.models  # noqa: F401  registers tables on SQLModel.metadata
from app.database import get_session
from app.main import app
from app.models.book import Book
from app.models.review import Review
from app.services.cache import MemoryCache, get_cache


# ============================================================================
# Database / cache fixtures
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def client(engine, cache):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def now():
    return datetime.utcnow()


# ============================================================================
# Data builders
# ============================================================================

@pytest.fixture
def add_reviews(session, now):
    """Attach reviews with the given ratings, created ``days_ago`` before now."""
    def _add(book, ratings, days_ago=1):
        for i, rating in enumerate(ratings):
            session.add(Review(
                book_id=book.id,
                rating=rating,
                review=f"Review {i} of {book.title}",
                created_at=now - timedelta(days=days_ago, minutes=i),
            ))
        session.commit()
        return book
    return _add


@pytest.fixture
def make_book(session, now, add_reviews):
    def _make(title="Dune", author="Frank Herbert", ratings=(), days_ago=1, created_at=None):
        book = Book(title=title, author=author, created_at=created_at or now)
        session.add(book)
        session.commit()
        session.refresh(book)
        if ratings:
            add_reviews(book, ratings, days_ago=days_ago)
        return book
    return _make
