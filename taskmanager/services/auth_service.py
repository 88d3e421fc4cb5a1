"""
Authentication service.

Owns the session lifecycle of a user:
Anonymous -> Authenticated (access token valid) -> AccessExpired (only the
refresh token is usable) -> LoggedOut (refresh token cleared).

Also hosts the admin-only user management operations.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.jwt import (
    create_access_token,
    create_refresh_token,
    verify_token_ignoring_expiry,
    access_token_lifetime,
    refresh_token_lifetime,
    TokenError,
)
from taskmanager.core.errors import AuthError, Forbidden, NotFound, ValidationError
from taskmanager.models.user import User, UserRole
from taskmanager.repositories.user_repository import UserRepository
from taskmanager.schemas.auth import RegisterRequest
from taskmanager.schemas.user import (
    AdminUserView,
    UserProfile,
    user_to_admin_view,
    user_to_profile,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH = "Invalid refresh token"
DUPLICATE_ACCOUNT = "Username or email already exists"


@dataclass
class AuthResult:
    """Token pair plus the profile it was issued for."""

    token: str
    refresh_token: str
    token_expiry: datetime
    message: str
    user: Optional[UserProfile] = None


class AuthService:
    """Register / login / refresh / logout plus admin user management."""

    def __init__(self, db: AsyncSession) -> None:
        self._users = UserRepository(db)

    def _issue_tokens(self, user: User) -> tuple[str, str, datetime]:
        """Mint a new access token and rotate the stored refresh token."""
        access_token = create_access_token(
            user_id=user.id,
            username=user.username,
            email=user.email,
            role=user.role.value,
        )
        refresh_token = create_refresh_token()
        user.set_refresh_token(refresh_token, refresh_token_lifetime())
        expiry = datetime.now(timezone.utc) + access_token_lifetime()
        return access_token, refresh_token, expiry

    async def register(self, data: RegisterRequest) -> AuthResult:
        if data.password != data.confirm_password:
            raise ValidationError("Passwords do not match")

        if await self._users.email_exists(data.email):
            raise ValidationError("Email already exists")

        if await self._users.username_exists(data.username):
            raise ValidationError("Username already exists")

        # Always "User"; Admin is only ever granted by another Admin
        user = User(
            username=data.username,
            email=data.email.lower(),
            role=UserRole.USER,
        )
        user.set_password(data.password)
        try:
            user = await self._users.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self._users.rollback()
            logger.info("Registration for %s hit a unique constraint", data.username)
            raise ValidationError(DUPLICATE_ACCOUNT)

        access_token, refresh_token, expiry = self._issue_tokens(user)
        user = await self._users.save(user)

        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return AuthResult(
            token=access_token,
            refresh_token=refresh_token,
            token_expiry=expiry,
            message="Registration successful",
            user=user_to_profile(user),
        )

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self._users.get_by_email(email)

        # Same message for unknown email and wrong password
        if not user or not user.check_password(password):
            logger.info("Failed login attempt for %s", email)
            raise AuthError(INVALID_CREDENTIALS)

        user.record_successful_login()
        access_token, refresh_token, expiry = self._issue_tokens(user)
        user = await self._users.save(user)

        logger.info("User %s (id=%s) logged in", user.username, user.id)
        return AuthResult(
            token=access_token,
            refresh_token=refresh_token,
            token_expiry=expiry,
            message=f"Login successful. Welcome {user.role.value}!",
            user=user_to_profile(user),
        )

    async def refresh(self, access_token: str, refresh_token: str) -> AuthResult:
        try:
            claims = verify_token_ignoring_expiry(access_token)
        except TokenError as e:
            logger.info("Refresh rejected: %s", e)
            raise AuthError(INVALID_REFRESH)

        user = await self._users.get_by_id(claims.user_id)
        if not user or not user.verify_refresh_token(refresh_token):
            logger.info("Refresh rejected for user id=%s: stale or expired refresh token", claims.user_id)
            raise AuthError(INVALID_REFRESH)

        new_access, new_refresh, expiry = self._issue_tokens(user)
        await self._users.save(user)

        logger.info("Rotated tokens for user id=%s", user.id)
        return AuthResult(
            token=new_access,
            refresh_token=new_refresh,
            token_expiry=expiry,
            message="Token refreshed successfully",
        )

    async def logout(self, user_id: int) -> bool:
        """Clear the stored refresh token. False only when the user is unknown."""
        user = await self._users.get_by_id(user_id)
        if not user:
            return False

        user.clear_refresh_token()
        await self._users.save(user)
        logger.info("User id=%s logged out", user_id)
        return True

    async def get_profile(self, user_id: int) -> Optional[UserProfile]:
        user = await self._users.get_by_id(user_id)
        if not user:
            return None
        return user_to_profile(user)

    async def _require_admin(self, requester_id: int) -> User:
        requester = await self._users.get_by_id(requester_id)
        if not requester or not requester.is_admin:
            logger.warning("User id=%s attempted an admin-only action", requester_id)
            raise Forbidden("Admin access required")
        return requester

    async def list_users(self, requester_id: int) -> List[AdminUserView]:
        await self._require_admin(requester_id)
        rows = await self._users.list_with_task_counts()
        return [user_to_admin_view(user, count) for user, count in rows]

    async def update_user_role(self, target_id: int, new_role: str, requester_id: int) -> UserProfile:
        await self._require_admin(requester_id)

        target = await self._users.get_by_id(target_id)
        if not target:
            raise NotFound("User not found")

        if target.id == requester_id:
            raise ValidationError("Cannot change your own role")

        try:
            role = UserRole(new_role)
        except ValueError:
            raise ValidationError("Invalid role. Must be 'Admin' or 'User'")

        old_role = target.role
        target.role = role
        target = await self._users.save(target)

        logger.info(
            "Admin id=%s changed role of user id=%s from %s to %s",
            requester_id, target.id, old_role.value, role.value,
        )
        return user_to_profile(target)

    async def ensure_admin(self, username: str, email: str, password: str) -> Optional[User]:
        """Create the seed admin when no admin exists yet."""
        if await self._users.admin_exists():
            return None

        if await self._users.email_exists(email) or await self._users.username_exists(username):
            logger.warning("Seed admin not created: %s / %s already registered", username, email)
            return None

        admin = User(username=username, email=email.lower(), role=UserRole.ADMIN)
        admin.set_password(password)
        admin = await self._users.add(admin)
        logger.info("Created default admin account %s", admin.email)
        return admin
