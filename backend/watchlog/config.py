from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database: full URLs (SQLite by default for a local install)
    database_url: str = "sqlite+aiosqlite:///./watchlog.db"
    sync_database_url: str = "sqlite:///./watchlog.db"

    # Individual PostgreSQL params. When present, get_async_url() / get_sync_url()
    # return a URL *object* so the password is never rendered through
    # SQLAlchemy's RFC-1738 string quoting.
    postgres_host: str | None = None
    postgres_port: int = 5432
    postgres_db: str | None = None
    postgres_user: str | None = None
    postgres_password: str | None = None

    def get_async_url(self):
        """Return a SQLAlchemy URL object (or the plain string from database_url)."""
        if self.postgres_host and self.postgres_password:
            from sqlalchemy.engine import URL
            return URL.create(
                drivername="postgresql+asyncpg",
                username=self.postgres_user,
                password=self.postgres_password,
                host=self.postgres_host,
                port=self.postgres_port,
                database=self.postgres_db,
            )
        return self.database_url

    def get_sync_url(self):
        """Return a SQLAlchemy URL object (or the plain string from sync_database_url)."""
        if self.postgres_host and self.postgres_password:
            from sqlalchemy.engine import URL
            return URL.create(
                drivername="postgresql+psycopg2",
                username=self.postgres_user,
                password=self.postgres_password,
                host=self.postgres_host,
                port=self.postgres_port,
                database=self.postgres_db,
            )
        return self.sync_database_url

    # App
    app_name: str = "Watchlog"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Create tables on startup (local SQLite); run alembic instead for PostgreSQL
    create_tables: bool = True
    seed_user_names: list[str] = ["Person 1", "Person 2", "Person 3"]

    # Search provider: "tvmaze" (shows, no key) | "omdb" (movies, needs omdb_api_key)
    search_provider: str = "tvmaze"
    tvmaze_base_url: str = "https://api.tvmaze.com"
    omdb_base_url: str = "https://www.omdbapi.com"
    omdb_api_key: str | None = None
    search_timeout_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
