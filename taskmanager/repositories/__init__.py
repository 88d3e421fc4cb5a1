from taskmanager.repositories.user_repository import UserRepository
from taskmanager.repositories.task_repository import TaskRepository

__all__ = ["UserRepository", "TaskRepository"]
