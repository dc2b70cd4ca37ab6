"""
Global Payroll Portal - Employee Schemas

Pydantic schemas for employee requests and responses.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.models.employee import Employee
from app.services.country_rules import profile_fields


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class EmployeeCreate(BaseModel):
    """
    Create employee request.

    `country_id` accepts 1/2/3 or the country name. `profile` holds the
    country compliance fields:
    - India: aadhar_number, pan, bank_account, ifsc
    - France: numero_securite_sociale, bank_iban, department_code
    - USA: ssn, bank_account, routing_number
    """
    employee_id: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=200)
    date_of_birth: Optional[Union[date, str]] = None
    start_date: Optional[Union[date, str]] = None
    country_id: Union[int, str]
    currency_code: Optional[str] = Field(None, max_length=3)
    profile: Dict[str, Optional[str]] = Field(default_factory=dict)

    @field_validator("employee_id", "full_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class EmployeeUpdate(BaseModel):
    """Update employee request. Omitted fields are left unchanged."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    date_of_birth: Optional[Union[date, str]] = None
    start_date: Optional[Union[date, str]] = None
    country_id: Optional[Union[int, str]] = None
    currency_code: Optional[str] = Field(None, max_length=3)
    profile: Optional[Dict[str, Optional[str]]] = None


class EmployeeStatusUpdate(BaseModel):
    is_active: bool


class BulkEmployeeUpload(BaseModel):
    """Bulk upload as JSON rows (same shape as EmployeeCreate, validated per row)."""
    employees: List[Dict[str, Any]] = Field(..., min_length=1)


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class EmployeeResponse(BaseModel):
    """Employee with its country profile."""
    employee_id: str
    full_name: str
    date_of_birth: Optional[date] = None
    start_date: Optional[date] = None
    country_id: int
    country_name: Optional[str] = None
    currency_code: str
    is_active: bool
    profile: Dict[str, Optional[str]] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_employee(cls, employee: Employee) -> "EmployeeResponse":
        profile_row = employee.profile
        profile = {}
        if employee.country is not None:
            profile = {
                name: getattr(profile_row, name, None) if profile_row else None
                for name in profile_fields(employee.country)
            }
        return cls(
            employee_id=employee.employee_id,
            full_name=employee.full_name,
            date_of_birth=employee.date_of_birth,
            start_date=employee.start_date,
            country_id=employee.country_id,
            country_name=employee.country_name,
            currency_code=employee.currency_code,
            is_active=employee.is_active,
            profile=profile,
            created_at=employee.created_at,
            updated_at=employee.updated_at,
        )


class EmployeeListResponse(BaseModel):
    items: List[EmployeeResponse]
    total: int
    page: int
    per_page: int
    pages: int


class EmployeeStatusResponse(BaseModel):
    message: str
    employee: EmployeeResponse


class BulkUploadError(BaseModel):
    row: int
    employee_id: Optional[str] = None
    error: str


class BulkUploadResult(BaseModel):
    row: int
    employee_id: str
    status: str


class BulkUploadResponse(BaseModel):
    message: str
    successful: int
    failed: int
    results: List[BulkUploadResult]
    errors: List[BulkUploadError]
