"""User model."""

from sqlalchemy import Boolean, Column, Integer, String, UniqueConstraint, true

from snippetbox.database import Base
from snippetbox.models.mixins import CreatedAtMixin

# Repositories match on this name to recognise duplicate signups
EMAIL_UNIQUE_CONSTRAINT = "users_uc_email"


class User(Base, CreatedAtMixin):
    """User model for authentication."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name=EMAIL_UNIQUE_CONSTRAINT),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    hashed_password = Column(String(60), nullable=False)
    active = Column(Boolean, nullable=False, default=True, server_default=true())
