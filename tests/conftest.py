"""Pytest configuration and fixtures."""

import os
import re
from datetime import UTC, datetime, timedelta

# Settings are read at import time: cheap hashes, in-process sessions, local SQLite
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from snippetbox import models  # noqa: E402, F401
from snippetbox.api.dependencies import get_snippet_repository, get_user_repository  # noqa: E402
from snippetbox.database import Base, engine_options, get_db  # noqa: E402
from snippetbox.errors import (  # noqa: E402
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
)
from snippetbox.main import create_app  # noqa: E402
from snippetbox.models.snippet import Snippet  # noqa: E402
from snippetbox.models.user import User  # noqa: E402
from snippetbox.services.sessions import MemorySessionStore  # noqa: E402

SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]
engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_options(SQLALCHEMY_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

CSRF_RX = re.compile(r'<input type="hidden" name="csrf_token" value="(.+?)">')

ALICE_EMAIL = "alice@example.com"
ALICE_PASSWORD = "alicepassword"


def extract_csrf_token(html: str) -> str:
    """Pull the CSRF token out of a rendered form."""
    match = CSRF_RX.search(html)
    assert match, "no csrf token in page"
    return match.group(1)


def login(client: TestClient, email: str = ALICE_EMAIL, password: str = ALICE_PASSWORD):
    """Log in through the real form and return the login response."""
    token = extract_csrf_token(client.get("/user/login").text)
    return client.post(
        "/user/login",
        data={"email": email, "password": password, "csrf_token": token},
    )


class FakeSnippetStore:
    """In-memory snippets; #1 always exists and is live."""

    def __init__(self):
        now = datetime.now(UTC)
        self.snippets = {
            1: Snippet(
                id=1,
                title="An old silent pond",
                content="An old silent pond...",
                created_at=now,
                expires_at=now + timedelta(days=365),
            )
        }

    def insert(self, title, content, expiry_days):
        now = datetime.now(UTC)
        snippet_id = max(self.snippets) + 1
        self.snippets[snippet_id] = Snippet(
            id=snippet_id,
            title=title,
            content=content,
            created_at=now,
            expires_at=now + timedelta(days=expiry_days),
        )
        return snippet_id

    def get(self, snippet_id):
        snippet = self.snippets.get(snippet_id)
        if snippet is None or snippet.expires_at <= datetime.now(UTC):
            raise NotFoundError(f"snippet {snippet_id}")
        return snippet

    def latest(self):
        live = [s for s in self.snippets.values() if s.expires_at > datetime.now(UTC)]
        return sorted(live, key=lambda s: s.created_at, reverse=True)[:10]


class FakeUserStore:
    """In-memory users with plain-text passwords; alice (#1) is active."""

    def __init__(self):
        self.users = {
            1: User(
                id=1,
                name="Alice",
                email=ALICE_EMAIL,
                hashed_password="",
                created_at=datetime.now(UTC),
                active=True,
            )
        }
        self.passwords = {1: ALICE_PASSWORD}

    def insert(self, name, email, password):
        if any(u.email == email for u in self.users.values()):
            raise DuplicateEmailError(email)
        user_id = max(self.users) + 1
        self.users[user_id] = User(
            id=user_id,
            name=name,
            email=email,
            hashed_password="",
            created_at=datetime.now(UTC),
            active=True,
        )
        self.passwords[user_id] = password

    def authenticate(self, email, password):
        for user in self.users.values():
            if user.email == email and user.active and self.passwords[user.id] == password:
                return user.id
        raise InvalidCredentialsError()

    def get(self, user_id):
        if user_id not in self.users:
            raise NotFoundError(f"user {user_id}")
        return self.users[user_id]

    def change_password(self, user_id, current_password, new_password):
        self.get(user_id)
        if self.passwords[user_id] != current_password:
            raise InvalidCredentialsError()
        self.passwords[user_id] = new_password


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function")
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def app():
    """A fresh app with its own in-memory session store."""
    return create_app(session_store=MemorySessionStore())


@pytest.fixture
def client(app, db):
    """Test client backed by the SQLite test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # https so the Secure session cookie is sent back
    with TestClient(app, base_url="https://testserver", follow_redirects=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def snippet_store():
    return FakeSnippetStore()


@pytest.fixture
def user_store():
    return FakeUserStore()


@pytest.fixture
def fake_client(app, snippet_store, user_store):
    """Test client whose repositories are in-memory fakes."""
    app.dependency_overrides[get_snippet_repository] = lambda: snippet_store
    app.dependency_overrides[get_user_repository] = lambda: user_store
    with TestClient(app, base_url="https://testserver", follow_redirects=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
