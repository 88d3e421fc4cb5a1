"""
User Repository.

Data access for User rows. There is no delete(): users are never
hard-deleted through the API.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.models.user import User, UserRole
from taskmanager.models.task import Task


class UserRepository:
    """Data access layer for User entities."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self._db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self._db.execute(
            select(exists().where(User.email == email.lower()))
        )
        return bool(result.scalar())

    async def username_exists(self, username: str) -> bool:
        result = await self._db.execute(
            select(exists().where(User.username == username))
        )
        return bool(result.scalar())

    async def admin_exists(self) -> bool:
        result = await self._db.execute(
            select(exists().where(User.role == UserRole.ADMIN))
        )
        return bool(result.scalar())

    async def list_with_task_counts(self) -> List[Tuple[User, int]]:
        """Every user with the number of tasks they own."""
        query = (
            select(User, func.count(Task.id))
            .outerjoin(Task, Task.user_id == User.id)
            .group_by(User.id)
            .order_by(User.id)
        )
        result = await self._db.execute(query)
        return [(user, count) for user, count in result.all()]

    async def add(self, user: User) -> User:
        self._db.add(user)
        await self._db.commit()
        await self._db.refresh(user)
        return user

    async def save(self, user: User) -> User:
        await self._db.commit()
        await self._db.refresh(user)
        return user

    async def rollback(self) -> None:
        await self._db.rollback()
