"""
JWT token handling.

- Short-lived access tokens (15 min default), HS256-signed
- Opaque random refresh tokens (7 days), stored hashed against the user
- Issuer, audience and token type validation
- A second validation mode that tolerates expiry, for the refresh flow only
"""

import base64
import hashlib
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel
from jose import jwt, JWTError, ExpiredSignatureError
from jose.exceptions import JWTClaimsError

logger = logging.getLogger(__name__)

# Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY:
    # Generate a random key for development (NOT for production!)
    JWT_SECRET_KEY = secrets.token_urlsafe(32)
    logger.warning("Using auto-generated JWT_SECRET_KEY. Set JWT_SECRET_KEY env var in production!")

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
TOKEN_ISSUER = os.getenv("TOKEN_ISSUER", "taskmanager-api")
TOKEN_AUDIENCE = os.getenv("TOKEN_AUDIENCE", "taskmanager-client")

REFRESH_TOKEN_BYTES = 64


class TokenError(JWTError):
    """Base class for token validation failures."""


class TokenExpiredError(TokenError):
    pass


class TokenSignatureError(TokenError):
    pass


class TokenMalformedError(TokenError):
    pass


class TokenPayload(BaseModel):
    """JWT access token claims."""
    sub: str                          # User ID (subject)
    username: str
    email: str
    role: str
    type: str                         # always "access"
    iat: datetime                     # Issued at
    exp: datetime                     # Expiration
    iss: str = TOKEN_ISSUER
    aud: str = TOKEN_AUDIENCE
    jti: Optional[str] = None         # JWT ID

    @property
    def user_id(self) -> int:
        return int(self.sub)


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_lifetime() -> timedelta:
    return timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)


def create_access_token(
    user_id: int,
    username: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a short-lived access token.

    Args:
        user_id: The user's database ID
        username: The user's unique username
        email: User's email address
        role: User's role ("User" or "Admin")
        expires_delta: Override of the configured lifetime

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else access_token_lifetime())

    payload = {
        "sub": str(user_id),
        "username": username,
        "email": email,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": expire,
        "iss": TOKEN_ISSUER,
        "aud": TOKEN_AUDIENCE,
        "jti": secrets.token_urlsafe(16),  # Unique token ID
    }

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_refresh_token() -> str:
    """
    Create an opaque refresh token: 64 random bytes, base64-encoded.

    The caller attaches the expiry and persists it (hashed) on the user.
    """
    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def hash_refresh_token(token: str) -> str:
    """SHA-256 digest for storage (SHA-256 is fine for tokens, not passwords)."""
    return hashlib.sha256(token.encode()).hexdigest()


def _decode(token: str, verify_exp: bool) -> TokenPayload:
    # Structural check first so garbage input is reported as malformed,
    # not as a signature failure.
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError:
        raise TokenMalformedError("Malformed token")

    try:
        payload = jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            audience=TOKEN_AUDIENCE,
            issuer=TOKEN_ISSUER,
            options={"verify_exp": verify_exp},
        )
    except ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except JWTClaimsError as e:
        raise TokenMalformedError(f"Invalid token claims: {e}")
    except JWTError:
        raise TokenSignatureError("Invalid token signature")

    if payload.get("type") != "access":
        raise TokenMalformedError("Invalid token type")

    try:
        return TokenPayload(
            sub=payload["sub"],
            username=payload["username"],
            email=payload["email"],
            role=payload["role"],
            type=payload["type"],
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iss=payload.get("iss", TOKEN_ISSUER),
            aud=payload.get("aud", TOKEN_AUDIENCE),
            jti=payload.get("jti"),
        )
    except (KeyError, TypeError, ValueError):
        raise TokenMalformedError("Token is missing required claims")


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode an access token.

    Raises:
        TokenExpiredError: token is genuine but past its expiry
        TokenSignatureError: signature does not match the server key
        TokenMalformedError: not a JWT, wrong issuer/audience/type, missing claims
    """
    return _decode(token, verify_exp=True)


def verify_token_ignoring_expiry(token: str) -> TokenPayload:
    """
    Verify an access token that may already be expired.

    Only the refresh flow uses this: it recovers the identity from a token
    that must still be cryptographically genuine.

    Raises:
        TokenSignatureError, TokenMalformedError
    """
    return _decode(token, verify_exp=False)
