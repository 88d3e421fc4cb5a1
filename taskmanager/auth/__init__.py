"""
Authentication and Authorization module.

Provides:
- JWT access token generation and validation
- Opaque refresh tokens
- Password hashing (Argon2id)
"""

from taskmanager.auth.jwt import (
    create_access_token,
    create_refresh_token,
    hash_refresh_token,
    verify_token,
    verify_token_ignoring_expiry,
    TokenPayload,
    TokenError,
    TokenExpiredError,
    TokenSignatureError,
    TokenMalformedError,
)
from taskmanager.auth.password import (
    hash_password,
    verify_password,
    needs_rehash,
)

__all__ = [
    # JWT
    "create_access_token",
    "create_refresh_token",
    "hash_refresh_token",
    "verify_token",
    "verify_token_ignoring_expiry",
    "TokenPayload",
    "TokenError",
    "TokenExpiredError",
    "TokenSignatureError",
    "TokenMalformedError",
    # Password
    "hash_password",
    "verify_password",
    "needs_rehash",
]
