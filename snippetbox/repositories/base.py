"""Storage contracts the handlers depend on.

The SQLAlchemy repositories implement these; tests substitute in-memory
fakes through FastAPI's dependency overrides.
"""

from collections.abc import Sequence
from typing import Protocol

from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User


class SnippetStore(Protocol):
    def insert(self, title: str, content: str, expiry_days: int) -> int: ...

    def get(self, snippet_id: int) -> Snippet: ...

    def latest(self) -> Sequence[Snippet]: ...


class UserStore(Protocol):
    def insert(self, name: str, email: str, password: str) -> None: ...

    def authenticate(self, email: str, password: str) -> int: ...

    def get(self, user_id: int) -> User: ...

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None: ...
