"""
API Router configuration.

Aggregates all v1 API endpoints with proper tagging and prefixes.
"""

from fastapi import APIRouter

from taskmanager.api.v1.endpoints import auth, tasks

api_router = APIRouter()

# Authentication (no auth required for register/login/refresh)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

# Task management (bearer auth, ownership checks)
api_router.include_router(
    tasks.router,
    prefix="/tasks",
    tags=["tasks"]
)
