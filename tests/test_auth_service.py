"""
Global Payroll Portal - Auth Service Tests

Unit tests for authentication service and session tokens.
"""

import pytest
from datetime import timedelta

from app.config import settings
from app.models.user import AdminRole
from app.services.auth_service import AuthService
from app.utils.error_handling import DuplicateEntryException, InvalidRoleException
from app.utils.security import create_access_token, verify_access_token


TEST_PASSWORD = "TestPassword123!"


class TestAuthService:
    """Test cases for AuthService."""

    @pytest.mark.asyncio
    async def test_register_user(self, db_session):
        """Registered admins get a hashed password and a normalised email."""
        service = AuthService(db_session)

        user = await service.register_user("New.Admin@Example.com", "SecurePassword123!", "france_admin")

        assert user.id is not None
        assert user.email == "new.admin@example.com"
        assert user.role == AdminRole.FRANCE_ADMIN.value
        assert user.hashed_password != "SecurePassword123!"

    @pytest.mark.asyncio
    async def test_register_invalid_role(self, db_session):
        service = AuthService(db_session)

        with pytest.raises(InvalidRoleException) as exc_info:
            await service.register_user("someone@example.com", "SecurePassword123!", "employee")

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, db_session, admin_user):
        service = AuthService(db_session)

        with pytest.raises(DuplicateEntryException):
            await service.register_user("ADMIN@example.com", "SecurePassword123!", "admin")

    @pytest.mark.asyncio
    async def test_authenticate_user_success(self, db_session, admin_user):
        user = await AuthService(db_session).authenticate_user("admin@example.com", TEST_PASSWORD)

        assert user is not None
        assert user.id == admin_user.id

    @pytest.mark.asyncio
    async def test_authenticate_user_wrong_password(self, db_session, admin_user):
        user = await AuthService(db_session).authenticate_user("admin@example.com", "WrongPassword!")

        assert user is None

    @pytest.mark.asyncio
    async def test_authenticate_user_not_found(self, db_session):
        user = await AuthService(db_session).authenticate_user("nobody@example.com", TEST_PASSWORD)

        assert user is None

    @pytest.mark.asyncio
    async def test_create_tokens(self, db_session, us_admin_user):
        tokens = AuthService(db_session).create_tokens(us_admin_user)

        payload = verify_access_token(tokens["access_token"])
        assert payload["sub"] == str(us_admin_user.id)
        assert payload["role"] == "us_admin"
        assert tokens["token_type"] == "bearer"
        assert tokens["expires_in"] == settings.access_token_expire_minutes * 60

    @pytest.mark.asyncio
    async def test_seed_admin_is_noop_without_config(self, db_session):
        assert await AuthService(db_session).get_or_create_seed_admin() is None


class TestSessionTokens:

    def test_expired_token_is_rejected(self):
        token = create_access_token({"sub": "1"}, expires_delta=timedelta(minutes=-5))

        assert verify_access_token(token) is None

    def test_tampered_token_is_rejected(self):
        header, _, signature = create_access_token({"sub": "1"}).split(".")
        _, other_payload, _ = create_access_token({"sub": "2"}).split(".")

        assert verify_access_token(f"{header}.{other_payload}.{signature}") is None
