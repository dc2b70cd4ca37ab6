"""
Global Payroll Portal - Payroll Schemas

Pydantic schemas for payroll requests and responses.
Amounts are Decimal end to end and serialize as strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from app.models.payroll import PayPeriod, Payroll


PayrollTypeLiteral = Literal["Regular", "Bonus", "Commission", "Overtime"]

NonNegativeDecimal = Annotated[Decimal, Field(ge=0)]


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class PayrollCreate(BaseModel):
    """
    Create payroll entry request.

    Inputs only count when their payroll type is selected: bonus with Bonus,
    commission with Commission, overtime hours/rate with Overtime.
    Net pay is computed by the server.
    """
    employee_id: str = Field(..., min_length=1)
    pay_period_id: int
    payroll_types: List[PayrollTypeLiteral] = Field(default_factory=list)
    basic_salary: Decimal = Field(..., ge=0)
    bonus: NonNegativeDecimal = Decimal("0")
    commission: NonNegativeDecimal = Decimal("0")
    overtime_hours: NonNegativeDecimal = Decimal("0")
    overtime_rate: NonNegativeDecimal = Decimal("0")
    stock_options: NonNegativeDecimal = Decimal("0")
    union_dues: NonNegativeDecimal = Decimal("0")


class PayrollUpdate(BaseModel):
    """Update payroll entry request. Omitted fields keep their stored value."""
    pay_period_id: Optional[int] = None
    payroll_types: Optional[List[PayrollTypeLiteral]] = None
    basic_salary: Optional[Decimal] = Field(None, ge=0)
    bonus: Optional[Decimal] = Field(None, ge=0)
    commission: Optional[Decimal] = Field(None, ge=0)
    overtime_hours: Optional[Decimal] = Field(None, ge=0)
    overtime_rate: Optional[Decimal] = Field(None, ge=0)
    stock_options: Optional[Decimal] = Field(None, ge=0)
    union_dues: Optional[Decimal] = Field(None, ge=0)


class PayrollCalculateRequest(BaseModel):
    """Preview a calculation for an employee, or for a country directly."""
    employee_id: Optional[str] = None
    country: Optional[str] = None
    payroll_types: List[PayrollTypeLiteral] = Field(default_factory=list)
    basic_salary: Decimal = Field(..., ge=0)
    bonus: NonNegativeDecimal = Decimal("0")
    commission: NonNegativeDecimal = Decimal("0")
    overtime_hours: NonNegativeDecimal = Decimal("0")
    overtime_rate: NonNegativeDecimal = Decimal("0")
    stock_options: NonNegativeDecimal = Decimal("0")
    union_dues: NonNegativeDecimal = Decimal("0")

    @model_validator(mode="after")
    def require_employee_or_country(self):
        if not self.employee_id and not self.country:
            raise ValueError("Either employee_id or country is required")
        return self


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class PayPeriodResponse(BaseModel):
    id: int
    period_start: date
    period_end: date
    span_days: int

    class Config:
        from_attributes = True


class PayrollResponse(BaseModel):
    """Payroll entry with employee and period details."""
    id: int
    employee_id: str
    full_name: str
    country_name: Optional[str] = None
    currency_code: str
    pay_period_id: int
    period_start: date
    period_end: date
    payroll_type_id: int
    payroll_type: str
    payroll_types: List[str]
    basic_salary: Decimal
    bonus: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    net_pay: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_payroll(cls, payroll: Payroll) -> "PayrollResponse":
        return cls(
            id=payroll.id,
            employee_id=payroll.employee_id,
            full_name=payroll.employee.full_name,
            country_name=payroll.employee.country_name,
            currency_code=payroll.employee.currency_code,
            pay_period_id=payroll.pay_period_id,
            period_start=payroll.pay_period.period_start,
            period_end=payroll.pay_period.period_end,
            payroll_type_id=payroll.payroll_type_id,
            payroll_type=payroll.primary_type.type_name,
            payroll_types=payroll.type_names,
            basic_salary=payroll.basic_salary,
            bonus=payroll.bonus,
            overtime_hours=payroll.overtime_hours,
            overtime_rate=payroll.overtime_rate,
            net_pay=payroll.net_pay,
            created_at=payroll.created_at,
            updated_at=payroll.updated_at,
        )


class PayrollListResponse(BaseModel):
    items: List[PayrollResponse]
    total: int
    page: int
    per_page: int
    pages: int


class CountryBreakdownResponse(BaseModel):
    country: str
    currency_code: str
    basic_salary: Decimal
    additions: Dict[str, Decimal]
    deductions: Dict[str, Decimal]
    total_additions: Decimal
    total_deductions: Decimal


class PayrollDetailResponse(BaseModel):
    """Entry, employee profile and the informational country breakdown."""
    payroll: PayrollResponse
    employee_is_active: bool
    profile: Dict[str, Optional[str]]
    breakdown: CountryBreakdownResponse


class PayrollCalculationResponse(BaseModel):
    country: str
    currency_code: str
    payroll_types: List[str]
    basic_salary: Decimal
    bonus: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    additions: Dict[str, Decimal]
    deductions: Dict[str, Decimal]
    total_additions: Decimal
    total_deductions: Decimal
    breakdown_net_pay: Decimal


class SummaryStats(BaseModel):
    total_payrolls: int
    total_payout: Decimal
    avg_salary: Decimal
    countries_count: int


class CountrySummary(BaseModel):
    country: str
    currency_code: Optional[str] = None
    total_payrolls: int
    total_payout: Decimal
    avg_salary: Decimal


class PayrollSummaryResponse(BaseModel):
    overall: SummaryStats
    by_country: List[CountrySummary]
    recent: List[PayrollResponse]


def pay_period_response(period: PayPeriod) -> PayPeriodResponse:
    return PayPeriodResponse(
        id=period.id,
        period_start=period.period_start,
        period_end=period.period_end,
        span_days=period.span_days,
    )


def summary_response(summary: Dict[str, Any]) -> PayrollSummaryResponse:
    return PayrollSummaryResponse(
        overall=SummaryStats(**summary["overall"]),
        by_country=[CountrySummary(**row) for row in summary["by_country"]],
        recent=[PayrollResponse.from_payroll(p) for p in summary["recent"]],
    )
