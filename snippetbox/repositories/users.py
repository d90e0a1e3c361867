"""User persistence and credential checks."""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from snippetbox.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    StoreError,
)
from snippetbox.models.user import EMAIL_UNIQUE_CONSTRAINT, User
from snippetbox.services.passwords import dummy_verify, hash_password, verify_password

logger = logging.getLogger(__name__)


def is_duplicate_email(error: IntegrityError) -> bool:
    """Whether the store rejected an insert because the email is taken."""
    message = str(error.orig)
    # PostgreSQL/MySQL name the constraint, SQLite names the column
    return EMAIL_UNIQUE_CONSTRAINT in message or "users.email" in message


class UserRepository:
    """Reads and writes users."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, name: str, email: str, password: str) -> None:
        """Create a user with a freshly hashed password."""
        user = User(name=name, email=email, hashed_password=hash_password(password))
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_duplicate_email(e):
                raise DuplicateEmailError(email) from e
            raise StoreError(f"insert user: {e}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"insert user: {e}") from e
        logger.info(f"Created user {user.id}")

    def authenticate(self, email: str, password: str) -> int:
        """Return the id of the active user with these credentials.

        An unknown email and a wrong password raise the same
        ``InvalidCredentialsError`` after the same amount of hashing work.
        """
        try:
            row = (
                self.db.query(User.id, User.hashed_password)
                .filter(User.email == email, User.active.is_(True))
                .first()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"authenticate: {e}") from e

        if row is None:
            dummy_verify()
            raise InvalidCredentialsError()
        user_id, hashed_password = row
        if not verify_password(hashed_password, password):
            raise InvalidCredentialsError()
        return user_id

    def get(self, user_id: int) -> User:
        """Get a user by id, active or not."""
        try:
            user = self.db.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            raise StoreError(f"get user {user_id}: {e}") from e
        if user is None:
            raise NotFoundError(f"user {user_id}")
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one."""
        user = self.get(user_id)
        if not verify_password(user.hashed_password, current_password):
            raise InvalidCredentialsError()

        user.hashed_password = hash_password(new_password)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"change password for user {user_id}: {e}") from e
        logger.info(f"Changed password for user {user_id}")
