"""Tests for the SQLAlchemy repositories against the test database."""

from datetime import UTC, datetime, timedelta

import pytest

from snippetbox.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidHashError,
    NotFoundError,
)
from snippetbox.models.user import User
from snippetbox.repositories.snippets import SnippetRepository
from snippetbox.repositories.users import UserRepository

T0 = datetime(2026, 3, 17, 10, 15, tzinfo=UTC)


class FixedClock:
    """A clock the test moves by hand."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def snippets(db, clock):
    return SnippetRepository(db, clock=clock)


@pytest.fixture
def users(db):
    return UserRepository(db)


class TestSnippetRepository:
    """Tests for SnippetRepository."""

    def test_insert_then_get(self, snippets):
        snippet_id = snippets.insert("An old silent pond", "An old silent pond...", 7)

        snippet = snippets.get(snippet_id)
        assert snippet.id == snippet_id
        assert snippet.title == "An old silent pond"
        assert snippet.content == "An old silent pond..."

    def test_ids_are_distinct(self, snippets):
        first = snippets.insert("one", "one", 1)
        second = snippets.insert("two", "two", 1)
        assert first != second

    def test_get_missing_raises_not_found(self, snippets):
        with pytest.raises(NotFoundError):
            snippets.get(9999)

    def test_snippet_expires_at_its_deadline(self, snippets, clock):
        """Visible just before expires_at, gone once now reaches it."""
        snippet_id = snippets.insert("Brief", "Brief", 1)

        clock.advance(days=1, seconds=-1)
        assert snippets.get(snippet_id).title == "Brief"

        clock.advance(seconds=1)
        with pytest.raises(NotFoundError):
            snippets.get(snippet_id)

    def test_latest_is_newest_ten(self, snippets, clock):
        ids = []
        for i in range(12):
            ids.append(snippets.insert(f"Snippet {i}", "content", 365))
            clock.advance(minutes=1)

        latest = snippets.latest()

        assert [s.id for s in latest] == list(reversed(ids))[:10]

    def test_latest_excludes_expired(self, snippets, clock):
        snippets.insert("Short-lived", "content", 1)
        clock.advance(hours=1)
        long = snippets.insert("Long-lived", "content", 365)

        clock.advance(days=2)

        assert [s.id for s in snippets.latest()] == [long]

    def test_latest_empty(self, snippets):
        assert snippets.latest() == []


class TestUserRepository:
    """Tests for UserRepository."""

    def test_insert_and_authenticate(self, users, db):
        users.insert("Alice", "alice@example.com", "alicepassword")

        user_id = users.authenticate("alice@example.com", "alicepassword")

        user = users.get(user_id)
        assert user.name == "Alice"
        assert user.active is True
        assert user.hashed_password != "alicepassword"

    def test_duplicate_email_keeps_first_user(self, users, db):
        users.insert("Alice", "alice@example.com", "alicepassword")

        with pytest.raises(DuplicateEmailError):
            users.insert("Impostor", "alice@example.com", "otherpassword")

        stored = db.query(User).filter(User.email == "alice@example.com").all()
        assert len(stored) == 1
        assert stored[0].name == "Alice"
        assert users.authenticate("alice@example.com", "alicepassword") == stored[0].id

    def test_bad_credentials_are_indistinguishable(self, users):
        users.insert("Alice", "alice@example.com", "alicepassword")

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            users.authenticate("alice@example.com", "wrongpassword")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            users.authenticate("nobody@example.com", "alicepassword")

        assert str(wrong_password.value) == str(unknown_email.value)

    def test_inactive_user_cannot_authenticate(self, users, db):
        users.insert("Alice", "alice@example.com", "alicepassword")
        user = db.query(User).filter(User.email == "alice@example.com").one()
        user.active = False
        db.commit()

        with pytest.raises(InvalidCredentialsError):
            users.authenticate("alice@example.com", "alicepassword")

    def test_get_missing_raises_not_found(self, users):
        with pytest.raises(NotFoundError):
            users.get(9999)

    def test_change_password(self, users):
        users.insert("Alice", "alice@example.com", "alicepassword")
        user_id = users.authenticate("alice@example.com", "alicepassword")

        users.change_password(user_id, "alicepassword", "newalicepassword")

        assert users.authenticate("alice@example.com", "newalicepassword") == user_id
        with pytest.raises(InvalidCredentialsError):
            users.authenticate("alice@example.com", "alicepassword")

    def test_change_password_wrong_current(self, users):
        users.insert("Alice", "alice@example.com", "alicepassword")
        user_id = users.authenticate("alice@example.com", "alicepassword")

        with pytest.raises(InvalidCredentialsError):
            users.change_password(user_id, "notmypassword", "newalicepassword")

        assert users.authenticate("alice@example.com", "alicepassword") == user_id

    def test_change_password_missing_user(self, users):
        with pytest.raises(NotFoundError):
            users.change_password(9999, "alicepassword", "newalicepassword")

    def test_malformed_digest_is_an_error_not_a_mismatch(self, users, db):
        users.insert("Alice", "alice@example.com", "alicepassword")
        user = db.query(User).filter(User.email == "alice@example.com").one()
        user.hashed_password = "not-a-bcrypt-digest"
        db.commit()

        with pytest.raises(InvalidHashError):
            users.authenticate("alice@example.com", "alicepassword")
