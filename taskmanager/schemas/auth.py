"""
Authentication-related schemas.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import Field, EmailStr, field_validator

from taskmanager.schemas.common import CamelModel
from taskmanager.schemas.user import UserProfile


class RegisterRequest(CamelModel):
    """
    Self-registration.

    There is deliberately no role field: any role sent by the client is
    dropped and the account is always created as "User".
    """

    username: str = Field(min_length=3, max_length=100, description="Unique username")
    email: EmailStr = Field(description="User email address")
    password: str = Field(min_length=6, max_length=128)
    confirm_password: str = Field(min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be between 3 and 100 characters")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        """Ensure password meets complexity requirements."""
        errors = []

        if not re.search(r'[A-Z]', v):
            errors.append("one uppercase letter")
        if not re.search(r'[a-z]', v):
            errors.append("one lowercase letter")
        if not re.search(r'\d', v):
            errors.append("one number")

        if errors:
            raise ValueError(f"Password must contain at least {', '.join(errors)}")

        return v


class LoginRequest(CamelModel):
    """Login request with email and password."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(min_length=1, max_length=128, description="User password")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()


class RefreshRequest(CamelModel):
    """Expired (or live) access token plus the current refresh token."""

    token: str = Field(min_length=1, description="Access token, may be expired")
    refresh_token: str = Field(min_length=1, description="Current refresh token")


class AuthResponse(CamelModel):
    """Token pair returned by register, login and refresh."""

    token: str = Field(description="JWT access token")
    refresh_token: str = Field(description="Opaque refresh token")
    token_expiry: datetime = Field(description="Access token expiry (UTC)")
    token_type: str = "bearer"
    message: str
    user: Optional[UserProfile] = None


class TokenClaimsResponse(CamelModel):
    """Claims of the caller's access token (debug view, never the token)."""

    user_id: int
    username: str
    email: str
    role: str
    token_id: Optional[str] = None
    issued_at: datetime
    expires_at: datetime
