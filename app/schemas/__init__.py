"""
Global Payroll Portal - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.auth import (
    LoginRequest,
    SignUpRequest,
    TokenResponse,
    PermissionsResponse,
    UserResponse,
    LoginResponse,
    CurrentUserResponse,
    MessageResponse,
)
from app.schemas.reference import CountryResponse, CurrencyResponse, PayrollTypeResponse
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeStatusUpdate,
    BulkEmployeeUpload,
    EmployeeResponse,
    EmployeeListResponse,
    EmployeeStatusResponse,
    BulkUploadResponse,
)
from app.schemas.payroll import (
    PayrollCreate,
    PayrollUpdate,
    PayrollCalculateRequest,
    PayPeriodResponse,
    PayrollResponse,
    PayrollListResponse,
    PayrollDetailResponse,
    PayrollCalculationResponse,
    PayrollSummaryResponse,
)
from app.schemas.ai_query import AIQueryRequest, AIQueryResponse

__all__ = [
    # Auth
    "LoginRequest",
    "SignUpRequest",
    "TokenResponse",
    "PermissionsResponse",
    "UserResponse",
    "LoginResponse",
    "CurrentUserResponse",
    "MessageResponse",
    # Reference data
    "CountryResponse",
    "CurrencyResponse",
    "PayrollTypeResponse",
    # Employees
    "EmployeeCreate",
    "EmployeeUpdate",
    "EmployeeStatusUpdate",
    "BulkEmployeeUpload",
    "EmployeeResponse",
    "EmployeeListResponse",
    "EmployeeStatusResponse",
    "BulkUploadResponse",
    # Payroll
    "PayrollCreate",
    "PayrollUpdate",
    "PayrollCalculateRequest",
    "PayPeriodResponse",
    "PayrollResponse",
    "PayrollListResponse",
    "PayrollDetailResponse",
    "PayrollCalculationResponse",
    "PayrollSummaryResponse",
    # AI query
    "AIQueryRequest",
    "AIQueryResponse",
]
