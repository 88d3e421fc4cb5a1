"""
User-related schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from taskmanager.models.user import User, UserRole
from taskmanager.schemas.common import CamelModel, ensure_utc


class UserProfile(CamelModel):
    """Public profile (no credentials or token state)."""

    id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime
    last_login_at: Optional[datetime] = None

    @field_validator("created_at", "last_login_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class AdminUserView(UserProfile):
    """Profile plus the number of tasks the user owns."""

    task_count: int = 0


class RoleUpdateRequest(CamelModel):
    """Admin request to change another user's role."""

    new_role: str = Field(max_length=20, description="'Admin' or 'User'")


def user_to_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


def user_to_admin_view(user: User, task_count: int) -> AdminUserView:
    return AdminUserView(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        task_count=task_count,
    )
