"""
Task model.

Every task belongs to exactly one user; deleting the user deletes
their tasks (FK ON DELETE CASCADE).
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Enum, Text, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.core.database import Base

if TYPE_CHECKING:
    from taskmanager.models.user import User


class TaskPriority(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: str) -> Optional["TaskPriority"]:
        """Case-insensitive lookup by value; None when unknown."""
        for priority in cls:
            if priority.value.lower() == value.strip().lower():
                return priority
        return None


class Task(Base):
    """A to-do item owned by one user."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, values_callable=lambda items: [p.value for p in items]),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    # Ownership
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    owner: Mapped["User"] = relationship("User", back_populates="tasks")

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id
