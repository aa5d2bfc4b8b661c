from pydantic import field_validator
from datetime import datetime
from sqlmodel import SQLModel, Field

from app.models.review import MIN_RATING, MAX_RATING


class ReviewCreate(SQLModel):
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    review: str

    @field_validator("review")
    @classmethod
    def review_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("The review field is required")
        return value


class ReviewRead(SQLModel):
    id: int
    book_id: int
    rating: int
    review: str
    created_at: datetime
    updated_at: datetime | None = None
