"""
Global Payroll Portal - Reference Data Router

Countries, currencies, pay periods and payroll types.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_identity
from app.schemas.payroll import PayPeriodResponse, pay_period_response
from app.schemas.reference import CountryResponse, CurrencyResponse, PayrollTypeResponse
from app.services.access_gate import AdminIdentity
from app.services.country_rules import currency_for
from app.services.reference_service import ReferenceService


router = APIRouter()


@router.get("/countries", response_model=List[CountryResponse], summary="List countries")
async def list_countries(
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    countries = await ReferenceService(db).list_countries()
    return [
        CountryResponse(
            country_id=c.country_id,
            country_name=c.country_name,
            currency_code=currency_for(c.country_id),
        )
        for c in countries
    ]


@router.get("/currencies", response_model=List[CurrencyResponse], summary="List currencies")
async def list_currencies(
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    return await ReferenceService(db).list_currencies()


@router.get("/pay-periods", response_model=List[PayPeriodResponse], summary="List pay periods")
async def list_pay_periods(
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    periods = await ReferenceService(db).list_pay_periods()
    return [pay_period_response(p) for p in periods]


@router.get("/payroll-types", response_model=List[PayrollTypeResponse], summary="List payroll types")
async def list_payroll_types(
    identity: AdminIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_async_session),
):
    return await ReferenceService(db).list_payroll_types()
