"""
Global Payroll Portal - FastAPI Dependencies

Shared dependencies for authentication, database sessions, and role checks.

This module provides dependency injection for:
1. Current user authentication (Bearer header or session cookie)
2. The resolved admin identity
3. Permission-based access control
"""

from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_async_session
from app.models.user import User
from app.services.access_gate import AdminIdentity
from app.services.auth_service import AuthService
from app.utils.error_handling import TokenInvalidException
from app.utils.permissions import PortalPermission, has_permission, is_management_role
from app.utils.security import verify_access_token


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Get the current authenticated user from JWT token.

    Token can be provided via:
    1. Authorization: Bearer <token> header
    2. access_token cookie

    Raises:
        TokenInvalidException: If the token is malformed, expired or tampered
        HTTPException: If no token is sent or the user is missing or inactive
    """
    token = None

    # Try Bearer header first
    if credentials:
        token = credentials.credentials
    else:
        # Fallback to cookie
        token = request.cookies.get(settings.session_cookie_name)
        if token and token.startswith("Bearer "):
            token = token[7:]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = verify_access_token(token)

    if not payload:
        raise TokenInvalidException()

    user_id = payload.get("sub")
    try:
        user_pk = int(user_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await AuthService(db).get_user_by_id(user_pk)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


async def get_current_identity(
    current_user: User = Depends(get_current_user),
) -> AdminIdentity:
    """
    Identity of the calling admin.

    The role is read from the database row, not the token, so a role change
    takes effect on the next request. Unrecognised roles are rejected here.
    """
    if not is_management_role(current_user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Management role required.",
        )
    return AdminIdentity(id=current_user.id, email=current_user.email, role=current_user.role)


def require_permission(permission: PortalPermission):
    """
    Dependency factory for permission-based access control.

    Usage:
        @router.delete("/{payroll_id}", dependencies=[Depends(require_permission(PortalPermission.DELETE_PAYROLL))])
    """
    async def permission_checker(
        identity: AdminIdentity = Depends(get_current_identity),
    ) -> AdminIdentity:
        if not has_permission(identity.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {permission.value}",
            )
        return identity

    return permission_checker
