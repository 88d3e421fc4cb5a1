"""
User and Role models.

Security considerations:
- Passwords are hashed with Argon2id (see taskmanager.auth.password)
- Refresh tokens are hashed (SHA-256) before storage
- Email and username are unique
- All timestamps use UTC
"""

import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum as PyEnum
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.core.database import Base
from taskmanager.auth.password import hash_password, verify_password, needs_rehash
from taskmanager.auth.jwt import hash_refresh_token

if TYPE_CHECKING:
    from taskmanager.models.task import Task


class UserRole(str, PyEnum):
    """The two roles a user can hold."""
    USER = "User"
    ADMIN = "Admin"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class User(Base):
    """Registered account. Never hard-deleted by the API."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Authentication
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.USER,
    )

    # Refresh token (hashed)
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    tasks: Mapped[List["Task"]] = relationship(
        "Task",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.username}>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def set_password(self, password: str) -> None:
        """Hash and set password using Argon2id."""
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        """
        Verify password against stored hash.
        Rehashes in place when the hasher parameters have changed.
        """
        if not verify_password(password, self.password_hash):
            return False
        if needs_rehash(self.password_hash):
            self.set_password(password)
        return True

    def set_refresh_token(self, token: str, lifetime: timedelta) -> None:
        """Store the digest of a freshly issued refresh token."""
        self.refresh_token_hash = hash_refresh_token(token)
        self.refresh_token_expires_at = datetime.now(timezone.utc) + lifetime

    def clear_refresh_token(self) -> None:
        self.refresh_token_hash = None
        self.refresh_token_expires_at = None

    def verify_refresh_token(self, token: str) -> bool:
        """Check a presented refresh token against the stored digest and expiry."""
        if not self.refresh_token_hash or not self.refresh_token_expires_at:
            return False

        if datetime.now(timezone.utc) >= as_utc(self.refresh_token_expires_at):
            return False

        return secrets.compare_digest(hash_refresh_token(token), self.refresh_token_hash)

    def record_successful_login(self) -> None:
        self.last_login_at = datetime.now(timezone.utc)
