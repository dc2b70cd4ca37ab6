"""
Global Payroll Portal - Employees Router

API endpoints for employee records, country profiles, status and bulk upload.
Country admins only ever see and change employees of their own country.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_identity
from app.schemas.employee import (
    BulkEmployeeUpload,
    BulkUploadResponse,
    EmployeeCreate,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeStatusResponse,
    EmployeeStatusUpdate,
    EmployeeUpdate,
)
from app.schemas.payroll import PayPeriodResponse, pay_period_response
from app.services.access_gate import AdminIdentity
from app.services.employee_service import EmployeeService
from app.services.payroll_service import PayrollService
from app.utils.error_handling import ValidationException


router = APIRouter()


@router.get("", response_model=EmployeeListResponse, summary="List employees")
async def list_employees(
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = None,
    country: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """List employees in the caller's country scope."""
    employees, total = await EmployeeService(db, identity).list_employees(
        search=search,
        is_active=is_active,
        country=country,
        page=page,
        per_page=per_page,
    )
    return {
        "items": [EmployeeResponse.from_employee(e) for e in employees],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page,
    }


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create employee",
)
async def create_employee(
    request: EmployeeCreate,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """Create an employee and its country profile."""
    employee = await EmployeeService(db, identity).create_employee(request.model_dump())
    return EmployeeResponse.from_employee(employee)


@router.post(
    "/bulk-upload",
    response_model=BulkUploadResponse,
    summary="Bulk create employees from JSON rows",
)
async def bulk_upload(
    request: BulkEmployeeUpload,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """Each row succeeds or fails on its own."""
    return await EmployeeService(db, identity).bulk_create_employees(request.employees)


@router.post(
    "/bulk-upload/csv",
    response_model=BulkUploadResponse,
    summary="Bulk create employees from a CSV file",
)
async def bulk_upload_csv(
    file: UploadFile = File(...),
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """
    CSV columns: employee_id, full_name (or name), country_id, currency_code
    (or currency), date_of_birth (or dob), start_date, plus profile columns.
    """
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationException(message="CSV file must be UTF-8 encoded", field="file")

    return await EmployeeService(db, identity).bulk_create_from_csv(text)


@router.get("/{employee_id}", response_model=EmployeeResponse, summary="Get employee")
async def get_employee(
    employee_id: str,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    employee = await EmployeeService(db, identity).get_employee(employee_id)
    return EmployeeResponse.from_employee(employee)


@router.put("/{employee_id}", response_model=EmployeeResponse, summary="Update employee")
async def update_employee(
    employee_id: str,
    request: EmployeeUpdate,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    employee = await EmployeeService(db, identity).update_employee(
        employee_id, request.model_dump(exclude_unset=True)
    )
    return EmployeeResponse.from_employee(employee)


@router.put("/{employee_id}/profile", response_model=EmployeeResponse, summary="Upsert employee profile")
async def update_employee_profile(
    employee_id: str,
    profile: dict,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """Create or update the country profile only."""
    employee = await EmployeeService(db, identity).update_profile(employee_id, profile)
    return EmployeeResponse.from_employee(employee)


@router.patch("/{employee_id}/status", response_model=EmployeeStatusResponse, summary="Activate or deactivate")
async def set_employee_status(
    employee_id: str,
    request: EmployeeStatusUpdate,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    employee = await EmployeeService(db, identity).set_employee_status(employee_id, request.is_active)
    return EmployeeStatusResponse(
        message=f"Employee {'activated' if request.is_active else 'deactivated'} successfully",
        employee=EmployeeResponse.from_employee(employee),
    )


@router.get(
    "/{employee_id}/pay-periods",
    response_model=List[PayPeriodResponse],
    summary="Pay periods matching the employee's country",
)
async def eligible_pay_periods(
    employee_id: str,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    periods = await PayrollService(db, identity).get_eligible_pay_periods(employee_id)
    return [pay_period_response(p) for p in periods]
