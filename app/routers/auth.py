"""
Global Payroll Portal - Authentication Router

API endpoints for admin login, sign-up and session info.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_async_session
from app.dependencies import get_current_identity
from app.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PermissionsResponse,
    SignUpRequest,
    TokenResponse,
    UserResponse,
)
from app.services.access_gate import AdminIdentity
from app.services.auth_service import AuthService
from app.utils.permissions import (
    get_country_restriction_message,
    get_role_display_name,
)


router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    description="Authenticate with email and password. The token is returned and also set as a session cookie.",
)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
):
    """Login with email and password."""
    auth_service = AuthService(db)
    user = await auth_service.authenticate_user(request.email, request.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    tokens = auth_service.create_tokens(user)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=tokens["access_token"],
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )

    return LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
    )


@router.post(
    "/sign-up",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an admin",
)
async def sign_up(
    request: SignUpRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Create an admin account. The role must be one of the admin roles."""
    user = await AuthService(db).register_user(request.email, request.password, request.role)
    return UserResponse.model_validate(user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current admin",
)
async def me(identity: AdminIdentity = Depends(get_current_identity)):
    """Identity, resolved permissions and country restriction of the caller."""
    country = identity.allowed_country
    return CurrentUserResponse(
        id=identity.id,
        email=identity.email,
        role=identity.role,
        role_display_name=get_role_display_name(identity.role),
        allowed_country=country.value if country else None,
        restriction_message=get_country_restriction_message(identity.role),
        permissions=PermissionsResponse(**identity.policy.to_dict()),
    )
