"""
Task service: CRUD and filtering with ownership checks.

Authorization rule, applied to every single-task operation: an Admin may
act on any task, anyone else only on tasks they own.
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.dependencies import CurrentUser
from taskmanager.core.errors import Forbidden, NotFound, ValidationError
from taskmanager.models.task import Task, TaskPriority
from taskmanager.repositories.task_repository import TaskRepository
from taskmanager.schemas.common import ensure_utc
from taskmanager.schemas.task import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


def check_due_date(due_date: datetime) -> datetime:
    """
    Normalise to UTC and reject dates before today.

    Only the calendar date counts: a task due earlier today is accepted.
    """
    due_date = ensure_utc(due_date)
    if due_date.date() < datetime.now(timezone.utc).date():
        raise ValidationError("Due date cannot be in the past")
    return due_date


class TaskService:
    """Task operations on behalf of one authenticated user."""

    def __init__(self, db: AsyncSession, identity: CurrentUser) -> None:
        self._tasks = TaskRepository(db)
        self.identity = identity

    def _authorize(self, task: Task, action: str) -> None:
        if self.identity.is_admin or task.is_owned_by(self.identity.id):
            return
        logger.warning(
            "User %s attempted to %s task %s owned by user %s",
            self.identity.id, action, task.id, task.user_id,
        )
        raise Forbidden("You do not have permission to access this task")

    async def _get_authorized(self, task_id: int, action: str) -> Task:
        task = await self._tasks.get(task_id)
        if not task:
            raise NotFound("Task not found")
        self._authorize(task, action)
        return task

    async def _scoped(self) -> List[Task]:
        """Admin sees every task, everyone else only their own."""
        if self.identity.is_admin:
            return await self._tasks.list_all()
        return await self._tasks.list_for_user(self.identity.id)

    async def create(self, data: TaskCreate) -> Task:
        if not data.title or not data.title.strip():
            raise ValidationError("Task title is required")

        task = Task(
            title=data.title,
            description=data.description or "",
            due_date=check_due_date(data.due_date),
            priority=data.priority,
            is_completed=False,
            user_id=self.identity.id,
            created_at=datetime.now(timezone.utc),
        )
        task = await self._tasks.add(task)
        logger.info("Task %s created for user %s", task.id, self.identity.id)
        return task

    async def get(self, task_id: int) -> Task:
        return await self._get_authorized(task_id, "access")

    async def list_all(self) -> List[Task]:
        return await self._scoped()

    async def list_for_user(self, owner_id: int) -> List[Task]:
        if owner_id != self.identity.id and not self.identity.is_admin:
            raise Forbidden("You do not have permission to view these tasks")
        return await self._tasks.list_for_user(owner_id)

    async def update(self, task_id: int, data: TaskUpdate) -> Task:
        task = await self._get_authorized(task_id, "update")
        due_date = check_due_date(data.due_date) if data.due_date is not None else None

        # Only supplied fields change
        if data.title is not None:
            task.title = data.title
        if data.description is not None:
            task.description = data.description
        if data.is_completed is not None:
            task.is_completed = data.is_completed
        if due_date is not None:
            task.due_date = due_date
        if data.priority is not None:
            task.priority = data.priority

        task = await self._tasks.save(task)
        logger.info("Task %s updated by user %s", task_id, self.identity.id)
        return task

    async def delete(self, task_id: int) -> None:
        task = await self._get_authorized(task_id, "delete")
        await self._tasks.delete(task)
        logger.info("Task %s deleted by user %s", task_id, self.identity.id)

    async def set_completed(self, task_id: int, completed: bool) -> Task:
        return await self.update(task_id, TaskUpdate(is_completed=completed))

    async def search(self, title: str) -> List[Task]:
        if not title or not title.strip():
            raise ValidationError("Search term is required")
        needle = title.strip().casefold()
        return [t for t in await self._scoped() if needle in t.title.casefold()]

    async def filter_completed(self, completed: bool) -> List[Task]:
        return [t for t in await self._scoped() if t.is_completed == completed]

    async def filter_priority(self, priority: str) -> List[Task]:
        parsed = TaskPriority.parse(priority)
        if parsed is None:
            raise ValidationError("Invalid priority. Must be: Low, Medium, or High")
        return [t for t in await self._scoped() if t.priority == parsed]
