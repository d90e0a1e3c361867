"""Mixins for SQLAlchemy models."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, func


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class CreatedAtMixin:
    """Mixin to add a created_at timestamp column."""

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
