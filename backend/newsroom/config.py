"""Application configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


def sqlalchemy_url(url: str) -> str:
    """Map Supabase-style postgres:// URLs onto the psycopg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./newsroom.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Storage backend: memory, sqlite or postgres (inferred from DATABASE_URL when unset)
    STORAGE_BACKEND: Optional[str] = None

    # Redis (empty disables caching and rate limiting)
    REDIS_URL: str = ""

    # Security
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # Supabase identity bridge
    SUPABASE_URL: str = ""
    SUPABASE_JWT_SECRET: str = ""

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:8501"

    # Error tracking
    SENTRY_DSN: str = ""

    # APScheduler
    SCHEDULER_ENABLED: bool = True
    SESSION_CLEANUP_INTERVAL_MINUTES: int = 60

    # Application
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 120

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS comma-separated string into list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def database_url(self) -> str:
        """DATABASE_URL as SQLAlchemy expects it."""
        return sqlalchemy_url(self.DATABASE_URL)

    @property
    def storage_backend(self) -> str:
        """Resolve which storage implementation serves requests."""
        if self.STORAGE_BACKEND:
            backend = self.STORAGE_BACKEND.lower()
            if backend not in ("memory", "sqlite", "postgres"):
                raise ValueError(f"Unknown STORAGE_BACKEND: {self.STORAGE_BACKEND}")
            return backend

        if self.database_url.startswith("sqlite"):
            return "sqlite"
        return "postgres"


# Global settings instance
settings = Settings()
