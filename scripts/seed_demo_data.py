#!/usr/bin/env python3
"""Seed demo data.

Creates a demo user and a few snippets so a fresh database has something
to show. Running it again adds the snippets again but leaves an
existing demo user alone.

Usage:
    DATABASE_URL=sqlite:///./snippetbox.db python scripts/seed_demo_data.py
"""

import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from snippetbox.config import get_settings
from snippetbox.database import SessionLocal, init_db
from snippetbox.errors import DuplicateEmailError
from snippetbox.logging_config import configure_logging
from snippetbox.repositories.snippets import SnippetRepository
from snippetbox.repositories.users import UserRepository

logger = logging.getLogger("seed_demo_data")

DEMO_NAME = "Alice Jones"
DEMO_EMAIL = "alice@example.com"
DEMO_PASSWORD = "alicepassword"

# (title, content, expiry in days)
DEMO_SNIPPETS = [
    (
        "An old silent pond",
        "An old silent pond...\nA frog jumps into the pond,\nsplash! Silence again.\n\n– Matsuo Bashō",
        365,
    ),
    (
        "Over the wintry forest",
        "Over the wintry\nforest, winds howl in rage\nwith no leaves to blow.\n\n– Natsume Soseki",
        365,
    ),
    (
        "First autumn morning",
        "First autumn morning\nthe mirror I stare into\nshows my father's face.\n\n– Murakami Kijo",
        7,
    ),
]


def seed_demo_data(db: Session) -> dict[str, int]:
    """Insert the demo user and snippets; returns how many of each were created."""
    created = {"users": 0, "snippets": 0}

    try:
        UserRepository(db).insert(DEMO_NAME, DEMO_EMAIL, DEMO_PASSWORD)
        created["users"] += 1
    except DuplicateEmailError:
        logger.info(f"Demo user {DEMO_EMAIL} already exists")

    snippets = SnippetRepository(db)
    for title, content, days in DEMO_SNIPPETS:
        snippets.insert(title, content, days)
        created["snippets"] += 1

    return created


def main() -> None:
    configure_logging(get_settings())
    init_db()
    db = SessionLocal()
    try:
        created = seed_demo_data(db)
    finally:
        db.close()
    logger.info(f"Seeded {created['users']} user(s) and {created['snippets']} snippet(s)")
    logger.info(f"Log in as {DEMO_EMAIL} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
