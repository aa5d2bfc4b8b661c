import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from app.database import create_db_and_tables
from app.config import settings
from app.routes import (
    books,
    books_admin,
    health,
    review,
)

from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Book Reviews", lifespan=lifespan)

app.include_router(books.router, prefix="/books", tags=["Books"])
app.include_router(review.router, prefix="/books", tags=["Reviews"])
app.include_router(books_admin.router, prefix="/admin/books", tags=["Admin Books"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/books")
