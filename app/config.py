from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "local"

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "bookreviews"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # overrides the postgres_* fields when set (e.g. sqlite:///./books.db)
    database_url_override: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")

    cache_backend: str = "memory"  # memory | redis
    redis_url: str = "redis://localhost:6379/0"
    book_cache_ttl: int = 60 * 60

    log_level: str = "INFO"

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
