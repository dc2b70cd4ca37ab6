"""
Global Payroll Portal - User Model

Admin accounts for the portal.

Role Hierarchy:
- Global Admin (admin): every country, may delete payroll entries
- Country Admins (india_admin, france_admin, us_admin): one country each

The role column is stored as plain text rather than a database enum so that
a stale or hand-edited value still loads; the permission resolver treats
anything outside AdminRole as having no access.
"""

from enum import Enum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class AdminRole(str, Enum):
    """Closed set of portal admin roles."""
    ADMIN = "admin"                  # Global admin
    INDIA_ADMIN = "india_admin"
    FRANCE_ADMIN = "france_admin"
    US_ADMIN = "us_admin"


class User(BaseModel):
    """Portal admin account."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
