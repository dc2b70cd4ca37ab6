"""
Global Payroll Portal - Authentication Schemas

Pydantic schemas for authentication requests and responses.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class LoginRequest(BaseModel):
    """Schema for login request."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignUpRequest(BaseModel):
    """
    Schema for admin sign-up.

    The role is validated by the service against the admin role set so an
    unknown role is reported with the portal's error format.
    """
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    role: str = Field(..., description="admin, india_admin, france_admin or us_admin")


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class TokenResponse(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class PermissionsResponse(BaseModel):
    """Resolved role policy."""
    can_view_all_countries: bool
    allowed_countries: List[str]
    can_create_payroll: bool
    can_edit_payroll: bool
    can_delete_payroll: bool
    can_manage_employee_status: bool


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    email: str
    role: str
    is_active: bool

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """Schema for login response."""
    user: UserResponse
    tokens: TokenResponse


class CurrentUserResponse(BaseModel):
    """Identity, role policy and UI hints for the logged-in admin."""
    id: int
    email: str
    role: str
    role_display_name: str
    allowed_country: Optional[str] = None
    restriction_message: Optional[str] = None
    permissions: PermissionsResponse


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    success: bool = True
