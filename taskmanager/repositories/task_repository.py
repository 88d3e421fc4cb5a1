"""
Task Repository.

Data access for Task rows. The owner is always eager-loaded so responses
can carry the owner's username without lazy loads on the async session.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskmanager.models.task import Task


class TaskRepository:
    """Data access layer for Task entities."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def _query(self):
        return (
            select(Task)
            .options(selectinload(Task.owner))
            .order_by(Task.created_at.desc(), Task.id.desc())
        )

    async def get(self, task_id: int) -> Optional[Task]:
        result = await self._db.execute(self._query().where(Task.id == task_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Task]:
        result = await self._db.execute(self._query())
        return list(result.scalars().all())

    async def list_for_user(self, user_id: int) -> List[Task]:
        result = await self._db.execute(self._query().where(Task.user_id == user_id))
        return list(result.scalars().all())

    async def add(self, task: Task) -> Task:
        self._db.add(task)
        await self._db.commit()
        # Re-query with eager loading to avoid lazy load issues
        return await self.get(task.id)

    async def save(self, task: Task) -> Task:
        await self._db.commit()
        return await self.get(task.id)

    async def delete(self, task: Task) -> None:
        await self._db.delete(task)
        await self._db.commit()
