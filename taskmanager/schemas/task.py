"""
Task schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from taskmanager.models.task import Task, TaskPriority
from taskmanager.schemas.common import CamelModel, ensure_utc


class TaskCreate(CamelModel):
    """New task. Title blankness and past due dates are checked by the service."""

    title: str = Field(default="", max_length=200)
    description: str = Field(default="")
    due_date: datetime
    priority: TaskPriority = TaskPriority.MEDIUM

    @field_validator("priority", mode="before")
    @classmethod
    def parse_priority(cls, v):
        if isinstance(v, str):
            parsed = TaskPriority.parse(v)
            if parsed is None:
                raise ValueError("Invalid priority. Must be: Low, Medium, or High")
            return parsed
        return v


class TaskUpdate(CamelModel):
    """
    Partial update. None means "not provided".

    An empty string title, description or priority is also treated as
    "not provided" and leaves the stored value untouched.
    """

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    is_completed: Optional[bool] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None

    @field_validator("title")
    @classmethod
    def blank_title_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("description")
    @classmethod
    def empty_description_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("priority", mode="before")
    @classmethod
    def parse_priority(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            parsed = TaskPriority.parse(v)
            if parsed is None:
                raise ValueError("Invalid priority. Must be: Low, Medium, or High")
            return parsed
        return v


class TaskResponse(CamelModel):
    id: int
    title: str
    description: str
    is_completed: bool
    due_date: datetime
    priority: TaskPriority
    created_at: datetime
    user_id: int
    username: str

    @field_validator("due_date", "created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class TaskEnvelope(CamelModel):
    """Single task with a status message."""

    message: str
    task: TaskResponse


class TaskListResponse(CamelModel):
    """List of tasks with a status message and count."""

    message: str
    count: int
    tasks: List[TaskResponse]
    search_term: Optional[str] = None
    priority: Optional[TaskPriority] = None


def task_to_response(task: Task) -> TaskResponse:
    """Convert a Task (with owner loaded) to its response schema."""
    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description or "",
        is_completed=task.is_completed,
        due_date=task.due_date,
        priority=task.priority,
        created_at=task.created_at,
        user_id=task.user_id,
        username=task.owner.username if task.owner else "Unknown",
    )


def build_task_list(message: str, tasks: List[Task], **extra) -> TaskListResponse:
    items = [task_to_response(t) for t in tasks]
    return TaskListResponse(message=message, count=len(items), tasks=items, **extra)
