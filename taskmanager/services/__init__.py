from taskmanager.services.auth_service import AuthService, AuthResult
from taskmanager.services.task_service import TaskService

__all__ = ["AuthService", "AuthResult", "TaskService"]
