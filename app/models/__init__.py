from app.models.book import Book
from app.models.review import Review

# add ALL models here
