"""
Global Payroll Portal - Payroll Router

API endpoints for payroll entries: create, update, delete, list, summary,
calculation preview and export.
"""

import json
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_identity, require_permission
from app.schemas.payroll import (
    CountryBreakdownResponse,
    PayrollCalculateRequest,
    PayrollCalculationResponse,
    PayrollCreate,
    PayrollDetailResponse,
    PayrollListResponse,
    PayrollResponse,
    PayrollSummaryResponse,
    PayrollUpdate,
    summary_response,
)
from app.schemas.auth import MessageResponse
from app.schemas.employee import EmployeeResponse
from app.services.access_gate import AdminIdentity
from app.services.payroll_service import PayrollService, export_filename, render_csv
from app.utils.permissions import PortalPermission


router = APIRouter()


@router.get("", response_model=PayrollListResponse, summary="List payroll entries")
async def list_payrolls(
    country: Optional[str] = None,
    pay_period_id: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """List entries in the caller's country scope, newest first."""
    payrolls, total = await PayrollService(db, identity).list_payrolls(
        country=country,
        pay_period_id=pay_period_id,
        search=search,
        page=page,
        limit=limit,
    )
    return {
        "items": [PayrollResponse.from_payroll(p) for p in payrolls],
        "total": total,
        "page": page,
        "per_page": limit,
        "pages": (total + limit - 1) // limit,
    }


@router.post(
    "",
    response_model=PayrollResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create payroll entry",
)
async def create_payroll(
    request: PayrollCreate,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Create a payroll entry. Net pay is computed server side from the
    selected payroll types. One entry per employee and pay period.
    """
    payroll = await PayrollService(db, identity).create_payroll(request.model_dump())
    return PayrollResponse.from_payroll(payroll)


@router.post(
    "/calculate",
    response_model=PayrollCalculationResponse,
    summary="Preview a payroll calculation",
)
async def calculate_payroll(
    request: PayrollCalculateRequest,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    calculation = await PayrollService(db, identity).preview_calculation(request.model_dump())
    return PayrollCalculationResponse(**calculation.to_dict())


@router.get("/summary", response_model=PayrollSummaryResponse, summary="Payroll summary")
async def payroll_summary(
    pay_period_id: Optional[int] = None,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """Totals overall and per country, plus the most recent entries."""
    summary = await PayrollService(db, identity).get_payroll_summary(pay_period_id)
    return summary_response(summary)


@router.get("/export", summary="Export payroll entries")
async def export_payrolls(
    format: Literal["csv", "json"] = "csv",
    country: Optional[str] = None,
    pay_period_id: Optional[int] = None,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """Download every entry in scope as CSV or JSON."""
    payrolls = await PayrollService(db, identity).export_payrolls(
        country=country,
        pay_period_id=pay_period_id,
    )
    filename = export_filename()

    if format == "json":
        items = [PayrollResponse.from_payroll(p) for p in payrolls]
        body = json.dumps(jsonable_encoder(items), indent=2)
        return StreamingResponse(
            iter([body]),
            media_type="application/json",
            headers={"Content-Disposition": f"attachment; filename={filename}.json"},
        )

    return StreamingResponse(
        iter([render_csv(payrolls)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}.csv"},
    )


@router.get("/{payroll_id}", response_model=PayrollDetailResponse, summary="Get payroll entry")
async def get_payroll(
    payroll_id: int,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    """Entry, the employee's profile and the country breakdown."""
    detail = await PayrollService(db, identity).get_payroll_detail(payroll_id)
    employee = detail["employee"]
    return PayrollDetailResponse(
        payroll=PayrollResponse.from_payroll(detail["payroll"]),
        employee_is_active=employee.is_active,
        profile=EmployeeResponse.from_employee(employee).profile,
        breakdown=CountryBreakdownResponse(**detail["breakdown"].to_dict()),
    )


@router.put("/{payroll_id}", response_model=PayrollResponse, summary="Update payroll entry")
async def update_payroll(
    payroll_id: int,
    request: PayrollUpdate,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    payroll = await PayrollService(db, identity).update_payroll(
        payroll_id, request.model_dump(exclude_unset=True)
    )
    return PayrollResponse.from_payroll(payroll)


@router.delete(
    "/{payroll_id}",
    response_model=MessageResponse,
    summary="Delete payroll entry",
    dependencies=[Depends(require_permission(PortalPermission.DELETE_PAYROLL))],
)
async def delete_payroll(
    payroll_id: int,
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    await PayrollService(db, identity).delete_payroll(payroll_id)
    return MessageResponse(message="Payroll deleted successfully")
