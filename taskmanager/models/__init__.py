"""
Task Manager Database Models

This module exports all SQLAlchemy models for the application.
"""

from taskmanager.models.user import User, UserRole
from taskmanager.models.task import Task, TaskPriority

__all__ = [
    # User models
    "User",
    "UserRole",
    # Task models
    "Task",
    "TaskPriority",
]
