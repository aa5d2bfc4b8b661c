from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel

from app.schemas.review_schemas import ReviewRead


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    author: Optional[str] = Field(None, min_length=1, max_length=100)


class BookRead(SQLModel):
    id: int
    title: str
    author: str
    created_at: datetime
    updated_at: datetime


class BookWithStats(BookRead):
    # None when the query did not annotate the value
    reviews_count: Optional[int] = None
    # None when no review falls inside the window
    reviews_avg_rating: Optional[float] = None

    @classmethod
    def from_book(cls, book, **stats) -> "BookWithStats":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            created_at=book.created_at,
            updated_at=book.updated_at,
            **stats,
        )


class BookDetail(BaseModel):
    book: BookRead
    reviews: List[ReviewRead] = []
    reviews_count: int = 0
    reviews_avg_rating: Optional[float] = None
