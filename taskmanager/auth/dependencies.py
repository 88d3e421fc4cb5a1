"""
FastAPI dependencies for authentication.

The bearer token is validated once here and turned into an explicit
CurrentUser that endpoints pass into the services.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from taskmanager.auth.jwt import verify_token, TokenError, TokenPayload
from taskmanager.models.user import UserRole

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity and role carried by a validated access token."""

    id: int
    username: str
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_token(cls, payload: TokenPayload) -> "CurrentUser":
        return cls(
            id=payload.user_id,
            username=payload.username,
            email=payload.email,
            role=UserRole(payload.role),
        )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenPayload:
    """
    Validate the Authorization: Bearer <token> header.

    Raises:
        HTTPException 401: If token is missing, expired or invalid
    """
    if not credentials or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    try:
        return verify_token(credentials.credentials)
    except TokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise _unauthorized(str(e))


async def get_current_user(
    payload: TokenPayload = Depends(get_token_payload),
) -> CurrentUser:
    """Extract identity and role claims from the validated token."""
    try:
        return CurrentUser.from_token(payload)
    except ValueError:
        raise _unauthorized("Invalid user claims in token")
