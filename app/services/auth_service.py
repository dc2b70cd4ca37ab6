"""
Global Payroll Portal - Authentication Service

Business logic for admin authentication and registration.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import AdminRole, User
from app.utils.error_handling import DuplicateEntryException, InvalidRoleException
from app.utils.permissions import parse_role
from app.utils.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)

        if not user:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    async def register_user(self, email: str, password: str, role: str) -> User:
        """
        Create a new admin account.

        Raises:
            InvalidRoleException: role is not one of the admin roles
            DuplicateEntryException: email already registered
        """
        admin_role = parse_role(role)
        if admin_role is None:
            raise InvalidRoleException(role)

        email = email.strip().lower()
        if await self.get_user_by_email(email):
            raise DuplicateEntryException("User", "email", email)

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            role=admin_role.value,
            is_active=True,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered admin {user.email} with role {user.role}")
        return user

    def create_tokens(self, user: User) -> dict:
        """
        Create a session token for user.

        Returns:
            Dictionary with access_token, token_type, expires_in
        """
        token_data = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
        }

        return {
            "access_token": create_access_token(token_data),
            "token_type": "bearer",
            "expires_in": settings.access_token_expire_minutes * 60,
        }

    async def get_or_create_seed_admin(self) -> Optional[User]:
        """Ensure the configured global admin exists. No-op when unconfigured."""
        if not settings.seed_admin_email or not settings.seed_admin_password:
            return None

        existing = await self.get_user_by_email(settings.seed_admin_email)
        if existing:
            return existing

        logger.info(f"Creating seed global admin {settings.seed_admin_email}")
        return await self.register_user(
            settings.seed_admin_email,
            settings.seed_admin_password,
            AdminRole.ADMIN.value,
        )
