import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.database import get_session
from app.models.book import Book
from app.models.review import Review
from app.services.cache import BookCache, get_cache

logger = logging.getLogger(__name__)

router = APIRouter()

CACHE_CHECK_KEY = "health:check"


@router.get("/check")
def health_check(
    session: Session = Depends(get_session),
    cache: BookCache = Depends(get_cache),
):
    catalogue = None
    try:
        catalogue = {
            "books": session.exec(select(func.count(Book.id))).one(),
            "reviews": session.exec(select(func.count(Review.id))).one(),
        }
        db_status = "ok"
    except SQLAlchemyError:
        logger.exception("Database check failed")
        db_status = "failed"

    try:
        cache.set(CACHE_CHECK_KEY, "ok", ttl=10)
        cache_status = "ok" if cache.get(CACHE_CHECK_KEY) == "ok" else "failed"
        cache.invalidate(CACHE_CHECK_KEY)
    except RedisError:
        logger.exception("Book cache check failed")
        cache_status = "failed"

    return {
        "status": "ok" if db_status == cache_status == "ok" else "degraded",
        "database": db_status,
        "cache": {"backend": settings.cache_backend, "status": cache_status},
        "catalogue": catalogue,
        "timestamp": datetime.utcnow().isoformat(),
    }
