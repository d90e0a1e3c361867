"""Snippet persistence."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from snippetbox.errors import NotFoundError, StoreError
from snippetbox.models.mixins import utcnow
from snippetbox.models.snippet import Snippet

logger = logging.getLogger(__name__)

LATEST_LIMIT = 10


class SnippetRepository:
    """Reads and writes snippets; expired rows are never returned."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def insert(self, title: str, content: str, expiry_days: int) -> int:
        """Store a snippet that expires ``expiry_days`` from now and return its id."""
        now = self.clock()
        snippet = Snippet(
            title=title,
            content=content,
            created_at=now,
            expires_at=now + timedelta(days=expiry_days),
        )
        try:
            self.db.add(snippet)
            self.db.commit()
            self.db.refresh(snippet)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"insert snippet: {e}") from e
        logger.info(f"Created snippet {snippet.id} expiring in {expiry_days} day(s)")
        return snippet.id

    def get(self, snippet_id: int) -> Snippet:
        """Get a live snippet by id.

        Absent and expired snippets both raise ``NotFoundError``.
        """
        try:
            snippet = (
                self.db.query(Snippet)
                .filter(Snippet.id == snippet_id, Snippet.expires_at > self.clock())
                .first()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"get snippet {snippet_id}: {e}") from e
        if snippet is None:
            raise NotFoundError(f"snippet {snippet_id}")
        return snippet

    def latest(self) -> list[Snippet]:
        """The most recently created live snippets, newest first."""
        try:
            return (
                self.db.query(Snippet)
                .filter(Snippet.expires_at > self.clock())
                .order_by(Snippet.created_at.desc(), Snippet.id.desc())
                .limit(LATEST_LIMIT)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"latest snippets: {e}") from e
