"""Domain exceptions.

Handlers catch the user-correctable ones (bad credentials, duplicate email) and
re-render the originating form. ``NotFoundError`` and ``ClientError`` are turned
into plain 404/400 responses by the app's exception handlers. Everything else
is an infrastructure failure: it propagates to the recovery middleware, which
logs it and answers with an opaque 500.
"""


class SnippetboxError(Exception):
    """Base class for all application errors."""


class NotFoundError(SnippetboxError):
    """No matching record (absent, or a snippet that has expired)."""


class InvalidCredentialsError(SnippetboxError):
    """Email/password pair rejected.

    Raised for an unknown email, an inactive user and a wrong password alike.
    """

    def __init__(self) -> None:
        super().__init__("invalid credentials")


class DuplicateEmailError(SnippetboxError):
    """A user with this email address already exists."""


class StoreError(SnippetboxError):
    """The relational store failed."""


class HashingError(SnippetboxError):
    """A password could not be hashed."""


class InvalidHashError(SnippetboxError):
    """A stored password digest is malformed or uses an unknown scheme."""


class ClientError(SnippetboxError):
    """Malformed request: unparsable form body or failed CSRF check."""

    def __init__(self, message: str = "Bad Request", status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationRequired(SnippetboxError):
    """The route needs a logged-in user."""

    def __init__(self, path: str) -> None:
        super().__init__(f"authentication required for {path}")
        self.path = path
