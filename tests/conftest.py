"""
Global Payroll Portal - Test Configuration

Pytest fixtures and configuration.
Tests run against an in-memory SQLite database (aiosqlite).
"""

import os

# Settings are read at import time; these must be set before importing app
os.environ["APP_ENV"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["DATABASE_URL_ASYNC"] = "sqlite+aiosqlite:///:memory:"
os.environ["OPENAI_API_KEY"] = ""
os.environ["NET_PAY_INCLUDES_COUNTRY_DEDUCTIONS"] = "false"

from datetime import date
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_async_session
from app.models.payroll import PayPeriod
from app.models.user import AdminRole, User
from app.services.access_gate import AdminIdentity
from app.services.auth_service import AuthService
from app.services.employee_service import EmployeeService
from app.services.reference_service import ReferenceService
from app.utils.security import get_password_hash
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "TestPassword123!"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh database with reference data for each test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        await ReferenceService(session).seed_reference_data()
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# USERS
# ===========================================

async def _make_user(db_session: AsyncSession, email: str, role: str, is_active: bool = True) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", AdminRole.ADMIN.value)


@pytest_asyncio.fixture
async def india_admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "india@example.com", AdminRole.INDIA_ADMIN.value)


@pytest_asyncio.fixture
async def france_admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "france@example.com", AdminRole.FRANCE_ADMIN.value)


@pytest_asyncio.fixture
async def us_admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "us@example.com", AdminRole.US_ADMIN.value)


def identity_for(user: User) -> AdminIdentity:
    return AdminIdentity(id=user.id, email=user.email, role=user.role)


def auth_headers_for(db_session: AsyncSession, user: User) -> Dict[str, str]:
    token = AuthService(db_session).create_tokens(user)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_identity(admin_user: User) -> AdminIdentity:
    return identity_for(admin_user)


@pytest.fixture
def india_identity(india_admin_user: User) -> AdminIdentity:
    return identity_for(india_admin_user)


@pytest.fixture
def france_identity(france_admin_user: User) -> AdminIdentity:
    return identity_for(france_admin_user)


@pytest.fixture
def us_identity(us_admin_user: User) -> AdminIdentity:
    return identity_for(us_admin_user)


@pytest.fixture
def admin_headers(db_session: AsyncSession, admin_user: User) -> Dict[str, str]:
    return auth_headers_for(db_session, admin_user)


@pytest.fixture
def india_headers(db_session: AsyncSession, india_admin_user: User) -> Dict[str, str]:
    return auth_headers_for(db_session, india_admin_user)


@pytest.fixture
def us_headers(db_session: AsyncSession, us_admin_user: User) -> Dict[str, str]:
    return auth_headers_for(db_session, us_admin_user)


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def monthly_period(db_session: AsyncSession) -> PayPeriod:
    """January 2024 (30 day span)."""
    return await ReferenceService(db_session).create_pay_period(date(2024, 1, 1), date(2024, 1, 31))


@pytest_asyncio.fixture
async def next_monthly_period(db_session: AsyncSession) -> PayPeriod:
    """February 2024 (28 day span)."""
    return await ReferenceService(db_session).create_pay_period(date(2024, 2, 1), date(2024, 2, 29))


@pytest_asyncio.fixture
async def biweekly_period(db_session: AsyncSession) -> PayPeriod:
    """First half of January 2024 (14 day span)."""
    return await ReferenceService(db_session).create_pay_period(date(2024, 1, 1), date(2024, 1, 15))


@pytest_asyncio.fixture
async def employees(db_session: AsyncSession, admin_identity: AdminIdentity) -> Dict[str, object]:
    """One active employee per country, created by the global admin."""
    service = EmployeeService(db_session, admin_identity)
    india = await service.create_employee({
        "employee_id": "IN001",
        "full_name": "Asha Rao",
        "date_of_birth": "1990-04-12",
        "start_date": "2020-01-06",
        "country_id": 1,
        "profile": {"aadhar_number": "123412341234", "pan": "ABCDE1234F", "ifsc": "HDFC0001234"},
    })
    france = await service.create_employee({
        "employee_id": "FR001",
        "full_name": "Luc Martin",
        "country_id": "France",
        "profile": {"bank_iban": "FR7630006000011234567890189", "department_code": "75"},
    })
    usa = await service.create_employee({
        "employee_id": "US001",
        "full_name": "Dana Smith",
        "country_id": 3,
        "profile": {"ssn": "123-45-6789", "routing_number": "021000021"},
    })
    return {"india": india, "france": france, "usa": usa}
