from functools import lru_cache
import os

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config_models import DatabaseConfig, LoggingConfig, ServerConfig


def to_async_dsn(url: str) -> str:
    """Rewrite sync PostgreSQL URLs to the asyncpg driver form."""
    if "+asyncpg" in url:
        return url
    for prefix in ("postgresql+psycopg2://", "postgresql://", "postgres://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+asyncpg://", 1)
    return url


class Settings(BaseSettings):
    """Application settings assembled from environment variables and defaults."""

    # Environment
    environment: str = Field(default="development", pattern="^(development|staging|production)$")
    debug: bool = Field(default=False)

    # API
    api_title: str = Field(default="Posts API")
    api_version: str = Field(default="1.0.0")
    api_description: str = Field(default="CRUD service for the posts resource")

    # Server
    server: ServerConfig = ServerConfig()

    # Logging
    logging: LoggingConfig = LoggingConfig()

    # Database (populated in validator)
    database: DatabaseConfig | None = None

    # Pydantic v2 settings config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **values):
        # Ensure plain ValueError is raised (not Pydantic ValidationError)
        if not os.getenv("DATABASE_URL"):
            raise ValueError("DATABASE_URL environment variable is required")
        super().__init__(**values)

    @model_validator(mode="after")
    def _assemble_subconfigs(self):
        """Assemble nested configurations from environment variables."""
        database_url = to_async_dsn(os.environ["DATABASE_URL"])

        self.database = DatabaseConfig(
            url=database_url,
            echo=self.environment == "development" and self.debug,
            pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
            pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            time_zone=os.getenv("DB_TIME_ZONE", "Asia/Bangkok"),
        )

        # Adjust logging for environment
        if self.environment == "production":
            self.logging.level = "WARNING"
        elif self.environment == "development":
            self.logging.level = "DEBUG"

        # Server env overrides
        self.server = ServerConfig(
            host=os.getenv("HOST", self.server.host),
            port=int(os.getenv("PORT") or self.server.port),
            reload=self.server.reload,
            check_db_on_start=self.server.check_db_on_start,
        )
        check_flag = os.getenv("DB_CHECK_ON_START")
        if isinstance(check_flag, str):
            self.server.check_db_on_start = check_flag.strip().lower() in (
                "1",
                "true",
                "yes",
                "on",
            )

        return self


@lru_cache
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()
