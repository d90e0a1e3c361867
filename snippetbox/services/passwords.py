"""Password hashing and verification."""

from passlib.context import CryptContext

from snippetbox.config import get_settings
from snippetbox.errors import HashingError, InvalidHashError

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    """Hash a password."""
    try:
        return pwd_context.hash(password)
    except (ValueError, TypeError, OSError) as e:
        raise HashingError(f"could not hash password: {e}") from e


def verify_password(hashed_password: str, password: str) -> bool:
    """Check a password against its digest.

    A mismatch is ``False``; a digest bcrypt cannot parse raises
    ``InvalidHashError``.
    """
    try:
        return pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError) as e:
        raise InvalidHashError(f"stored password digest is malformed: {e}") from e


def dummy_verify() -> None:
    """Spend the same time as a real verification.

    Used when there is no user to check against, so an unknown email
    takes as long to reject as a wrong password.
    """
    pwd_context.dummy_verify()
