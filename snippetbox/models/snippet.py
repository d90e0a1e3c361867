"""Snippet model."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from snippetbox.database import Base
from snippetbox.models.mixins import CreatedAtMixin


class Snippet(Base, CreatedAtMixin):
    """A piece of text shown to every visitor until it expires."""

    __tablename__ = "snippets"
    __table_args__ = (Index("idx_snippets_created", "created_at"),)

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
