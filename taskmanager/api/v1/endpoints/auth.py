"""
Authentication endpoints.

Provides:
- Registration and login (email/password -> access + refresh tokens)
- Token refresh (single-use refresh token rotation)
- Logout (refresh token revocation)
- Profile and token debug view
- Admin user management (list users, change roles)
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.core.database import get_db
from taskmanager.core.errors import NotFound
from taskmanager.auth.dependencies import CurrentUser, get_current_user, get_token_payload
from taskmanager.auth.jwt import TokenPayload
from taskmanager.services.auth_service import AuthService, AuthResult
from taskmanager.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    AuthResponse,
    TokenClaimsResponse,
)
from taskmanager.schemas.user import UserProfile, AdminUserView, RoleUpdateRequest
from taskmanager.schemas.common import MessageResponse

router = APIRouter()


def to_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        token=result.token,
        refresh_token=result.refresh_token,
        token_expiry=result.token_expiry,
        message=result.message,
        user=result.user,
    )


@router.post("/register", response_model=AuthResponse)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account and return a token pair.

    New accounts always get the "User" role.
    """
    result = await AuthService(db).register(data)
    return to_response(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate with email and password."""
    result = await AuthService(db).login(data.email, data.password)
    return to_response(result)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Exchange an (expired) access token plus the current refresh token
    for a new pair. The presented refresh token stops working.
    """
    result = await AuthService(db).refresh(data.token, data.refresh_token)
    return to_response(result)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the stored refresh token. The access token simply expires."""
    if not await AuthService(db).logout(current_user.id):
        raise NotFound("User not found")
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=UserProfile)
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get current user's profile information."""
    profile = await AuthService(db).get_profile(current_user.id)
    if profile is None:
        raise NotFound("User not found")
    return profile


@router.get("/debug", response_model=TokenClaimsResponse)
async def debug_token(
    payload: TokenPayload = Depends(get_token_payload),
):
    """Show the claims the server sees in the caller's access token."""
    return TokenClaimsResponse(
        user_id=payload.user_id,
        username=payload.username,
        email=payload.email,
        role=payload.role,
        token_id=payload.jti,
        issued_at=payload.iat,
        expires_at=payload.exp,
    )


# =============================================================================
# Admin
# =============================================================================

@router.get("/admin/users", response_model=List[AdminUserView])
async def list_users(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List every user with their task count. Admin only."""
    return await AuthService(db).list_users(current_user.id)


@router.put(
    "/admin/users/{user_id}/role",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def update_user_role(
    user_id: int,
    data: RoleUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change another user's role. Admin only; admins cannot change their own role."""
    profile = await AuthService(db).update_user_role(user_id, data.new_role, current_user.id)
    return MessageResponse(message=f"User role updated to {profile.role.value}")
