"""Database configuration and session management."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from snippetbox.config import get_settings

settings = get_settings()


def engine_options(database_url: str) -> dict[str, Any]:
    """Connection pool options for the given database URL."""
    if database_url.startswith("sqlite"):
        # Requests may be served from a different thread than the one that connected
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize the database by creating all tables."""
    # Import all models here so they are registered with Base.metadata
    from snippetbox import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
