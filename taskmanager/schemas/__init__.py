"""
Pydantic schemas for API request/response validation.

These schemas provide:
- Input validation with security constraints
- Output serialization (camelCase JSON)
- OpenAPI documentation generation
"""

from taskmanager.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    AuthResponse,
    TokenClaimsResponse,
)
from taskmanager.schemas.user import (
    UserProfile,
    AdminUserView,
    RoleUpdateRequest,
)
from taskmanager.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskEnvelope,
    TaskListResponse,
)
from taskmanager.schemas.common import (
    MessageResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "AuthResponse",
    "TokenClaimsResponse",
    # User
    "UserProfile",
    "AdminUserView",
    "RoleUpdateRequest",
    # Task
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskEnvelope",
    "TaskListResponse",
    # Common
    "MessageResponse",
    "ErrorResponse",
    "HealthResponse",
]
