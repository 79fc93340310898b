"""Database connection and session management."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from newsroom.config import settings


def create_storage_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with options suited to the database dialect.

    SQLite connections are shared across FastAPI's worker threads; an in-memory
    SQLite database must also live on a single connection. Postgres (and
    Supabase) gets a sized pool with pre-ping.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=echo
    )


engine = create_storage_engine(settings.database_url, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """Create any missing tables on the given engine, the application engine by default."""
    # Registers every table on Base.metadata
    from newsroom.models import user, channel, article, note  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
