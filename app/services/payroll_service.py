"""
Global Payroll Portal - Payroll Service

Payroll entries: create, update, delete, listing, summary and export.

- net pay is always computed server-side by PayrollCalculator
- one entry per employee per pay period (checked here and by a unique constraint)
- inactive employees cannot receive new or updated entries
- all filters are bound parameters
"""

import csv
import io
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.country import Country
from app.models.employee import Employee
from app.models.payroll import PayPeriod, Payroll, PayrollTypeName
from app.services.access_gate import AccessGate, AdminIdentity
from app.services.country_rules import CountryBreakdown, currency_for, quantize_money, resolve_country
from app.services.payroll_calculator import (
    PayrollCalculation,
    PayrollCalculator,
    calculate_breakdown,
    parse_payroll_types,
)
from app.services.reference_service import ReferenceService
from app.utils.error_handling import (
    DuplicatePayrollPeriodException,
    EmployeeNotFoundException,
    NoPayrollTypeSelectedException,
    PayrollNotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)


EXPORT_HEADERS = [
    "Employee ID",
    "Full Name",
    "Country",
    "Currency",
    "Period Start",
    "Period End",
    "Payroll Type",
    "Basic Salary",
    "Bonus",
    "Overtime Hours",
    "Overtime Rate",
    "Net Pay",
    "Created At",
]

RECENT_PAYROLL_LIMIT = 5


def _money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return quantize_money(Decimal(str(value)))


def _ordered_type_names(selected: List[Any]) -> List[str]:
    """Selected type names, de-duplicated, in the order given."""
    ordered: List[str] = []
    for item in selected:
        name = next(iter(parse_payroll_types([item]))).value
        if name not in ordered:
            ordered.append(name)
    return ordered


def render_csv(payrolls: List[Payroll]) -> str:
    """Render payroll entries as CSV with the export header set."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_HEADERS)

    for p in payrolls:
        writer.writerow([
            p.employee_id,
            p.employee.full_name,
            p.employee.country_name or "",
            p.employee.currency_code,
            p.pay_period.period_start.isoformat(),
            p.pay_period.period_end.isoformat(),
            ", ".join(p.type_names) or (p.primary_type.type_name if p.primary_type else ""),
            f"{_money(p.basic_salary):.2f}",
            f"{_money(p.bonus):.2f}",
            f"{_money(p.overtime_hours):.2f}",
            f"{_money(p.overtime_rate):.2f}",
            f"{_money(p.net_pay):.2f}",
            p.created_at.isoformat() if p.created_at else "",
        ])

    return output.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    """Download file name without extension."""
    return f"payroll-export-{(today or date.today()).isoformat()}"


class PayrollService:
    """Service for payroll entries."""

    def __init__(self, db: AsyncSession, identity: AdminIdentity, calculator: Optional[PayrollCalculator] = None):
        self.db = db
        self.identity = identity
        self.gate = AccessGate(identity)
        self.calculator = calculator or PayrollCalculator()
        self.reference = ReferenceService(db)

    # ===========================================
    # HELPERS
    # ===========================================

    def _payroll_query(self):
        return select(Payroll).options(
            selectinload(Payroll.employee),
            selectinload(Payroll.pay_period),
            selectinload(Payroll.primary_type),
            selectinload(Payroll.payroll_types),
        )

    async def _load_payroll(self, payroll_id: int, refresh: bool = False) -> Payroll:
        query = self._payroll_query().where(Payroll.id == payroll_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        payroll = result.scalar_one_or_none()
        if not payroll:
            raise PayrollNotFoundException(payroll_id)
        return payroll

    async def _load_employee(self, employee_id: str) -> Employee:
        result = await self.db.execute(
            select(Employee)
            .options(
                selectinload(Employee.india_profile),
                selectinload(Employee.france_profile),
                selectinload(Employee.usa_profile),
            )
            .where(Employee.employee_id == employee_id)
        )
        employee = result.scalar_one_or_none()
        if not employee:
            raise EmployeeNotFoundException(employee_id)
        return employee

    @staticmethod
    def _ensure_split_amounts(stored_types: List[str], new_types: List[str], data: Dict[str, Any]) -> None:
        """
        An entry with both Bonus and Commission stores their sum in one column,
        so the stored figure cannot be split again. Updates that would need the
        split must supply every amount they keep.
        """
        combined = {PayrollTypeName.BONUS.value, PayrollTypeName.COMMISSION.value}
        if not combined <= set(stored_types):
            return

        kept = {name.lower() for name in combined if name in new_types}
        supplied = {k for k in ("bonus", "commission") if data.get(k) is not None}
        # Keeping both without new amounts carries the stored sum over unchanged
        if kept <= supplied or (len(kept) == 2 and not supplied):
            return
        raise ValidationException(
            message="Bonus and commission are stored combined for this entry; supply both amounts to change them",
            field=sorted(kept - supplied)[0],
            details={"required": sorted(kept)},
        )

    async def _ensure_no_duplicate(
        self,
        employee_id: str,
        pay_period_id: int,
        exclude_payroll_id: Optional[int] = None,
    ) -> None:
        query = select(Payroll.id).where(
            and_(
                Payroll.employee_id == employee_id,
                Payroll.pay_period_id == pay_period_id,
            )
        )
        if exclude_payroll_id is not None:
            query = query.where(Payroll.id != exclude_payroll_id)
        existing = await self.db.execute(query)
        if existing.first() is not None:
            raise DuplicatePayrollPeriodException(employee_id, pay_period_id)

    async def _commit_or_duplicate(self, employee_id: str, pay_period_id: int) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicatePayrollPeriodException(employee_id, pay_period_id)

    def _scoped(self, query, country: Optional[Any] = None):
        """Apply role scope and an optional country filter to a query joined on Employee."""
        scope = self.gate.country_filter()
        if scope is not None:
            query = query.where(Employee.country_id == scope.country_id)
        if country is not None and country != "":
            requested = resolve_country(country)
            if scope is not None and requested != scope:
                self.gate.ensure_country_access(requested)
            query = query.where(Employee.country_id == requested.country_id)
        return query

    def _calculate(self, country: Country, data: Dict[str, Any], types: List[str]) -> PayrollCalculation:
        return self.calculator.calculate(
            country,
            data.get("basic_salary"),
            bonus=data.get("bonus"),
            commission=data.get("commission"),
            overtime_hours=data.get("overtime_hours"),
            overtime_rate=data.get("overtime_rate"),
            selected_types=types,
            stock_options=data.get("stock_options"),
            union_dues=data.get("union_dues"),
        )

    # ===========================================
    # WRITE OPERATIONS
    # ===========================================

    async def create_payroll(self, data: Dict[str, Any]) -> Payroll:
        """
        Create a payroll entry in one transaction.

        Raises:
            NoPayrollTypeSelectedException, EmployeeNotFoundException,
            CrossCountryAccessDenied, InactiveEmployeeException,
            DuplicatePayrollPeriodException, InvalidAmountException
        """
        type_names = _ordered_type_names(data.get("payroll_types") or [])
        if not type_names:
            raise NoPayrollTypeSelectedException()

        employee = await self._load_employee(data["employee_id"])
        self.gate.authorize_payroll_create(employee)

        period = await self.reference.get_pay_period(data["pay_period_id"])
        await self._ensure_no_duplicate(employee.employee_id, period.id)

        calc = self._calculate(employee.country, data, type_names)

        type_rows = await self.reference.get_payroll_types_by_name(type_names)
        by_name = {t.type_name: t for t in type_rows}

        payroll = Payroll(
            employee_id=employee.employee_id,
            pay_period_id=period.id,
            payroll_type_id=by_name[type_names[0]].id,
            basic_salary=calc.basic_salary,
            bonus=calc.stored_bonus,
            overtime_hours=calc.overtime_hours,
            overtime_rate=calc.overtime_rate,
            net_pay=calc.net_pay,
            payroll_types=[by_name[name] for name in type_names],
        )
        self.db.add(payroll)
        await self._commit_or_duplicate(employee.employee_id, period.id)

        logger.info(
            f"Payroll {payroll.id} created for {employee.employee_id} "
            f"period {period.id} net_pay={calc.net_pay} by {self.identity.email}"
        )
        return await self._load_payroll(payroll.id, refresh=True)

    async def update_payroll(self, payroll_id: int, data: Dict[str, Any]) -> Payroll:
        """Update an entry and recompute net pay from the selected types."""
        payroll = await self._load_payroll(payroll_id)
        employee = await self._load_employee(payroll.employee_id)
        self.gate.authorize_payroll_update(employee)

        if data.get("payroll_types") is not None:
            type_names = _ordered_type_names(data["payroll_types"])
            if not type_names:
                raise NoPayrollTypeSelectedException()
        else:
            type_names = payroll.type_names or [payroll.primary_type.type_name]
        self._ensure_split_amounts(payroll.type_names, type_names, data)

        new_period_id = data.get("pay_period_id")
        if new_period_id is not None and new_period_id != payroll.pay_period_id:
            period = await self.reference.get_pay_period(new_period_id)
            await self._ensure_no_duplicate(employee.employee_id, period.id, exclude_payroll_id=payroll.id)
            payroll.pay_period_id = period.id

        # Amounts not supplied keep their stored values
        # The stored bonus column holds bonus + commission combined
        stored_as_bonus = PayrollTypeName.BONUS.value in type_names
        merged = {
            "basic_salary": payroll.basic_salary,
            "bonus": payroll.bonus if stored_as_bonus else Decimal("0"),
            "commission": Decimal("0") if stored_as_bonus else payroll.bonus,
            "overtime_hours": payroll.overtime_hours,
            "overtime_rate": payroll.overtime_rate,
        }
        merged.update({k: v for k, v in data.items() if v is not None})
        calc = self._calculate(employee.country, merged, type_names)

        type_rows = await self.reference.get_payroll_types_by_name(type_names)
        by_name = {t.type_name: t for t in type_rows}

        payroll.basic_salary = calc.basic_salary
        payroll.bonus = calc.stored_bonus
        payroll.overtime_hours = calc.overtime_hours
        payroll.overtime_rate = calc.overtime_rate
        payroll.net_pay = calc.net_pay
        payroll.payroll_type_id = by_name[type_names[0]].id
        payroll.payroll_types = [by_name[name] for name in type_names]

        await self._commit_or_duplicate(employee.employee_id, payroll.pay_period_id)

        logger.info(f"Payroll {payroll_id} updated by {self.identity.email} net_pay={calc.net_pay}")
        return await self._load_payroll(payroll_id, refresh=True)

    async def delete_payroll(self, payroll_id: int) -> None:
        """Delete an entry. Global admin only; allowed for inactive employees."""
        payroll = await self._load_payroll(payroll_id)
        self.gate.authorize_payroll_delete(payroll.employee)

        await self.db.delete(payroll)
        await self.db.commit()
        logger.info(f"Payroll {payroll_id} deleted by {self.identity.email}")

    # ===========================================
    # READ OPERATIONS
    # ===========================================

    async def get_payroll(self, payroll_id: int) -> Payroll:
        payroll = await self._load_payroll(payroll_id)
        self.gate.authorize_payroll_read(payroll.employee)
        return payroll

    async def get_payroll_detail(self, payroll_id: int) -> Dict[str, Any]:
        """Entry plus employee profile and the country breakdown."""
        payroll = await self._load_payroll(payroll_id)
        employee = await self._load_employee(payroll.employee_id)
        self.gate.authorize_payroll_read(employee)

        breakdown: CountryBreakdown = calculate_breakdown(employee.country, payroll.basic_salary)
        return {
            "payroll": payroll,
            "employee": employee,
            "breakdown": breakdown,
        }

    async def list_payrolls(
        self,
        country: Optional[Any] = None,
        pay_period_id: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Payroll], int]:
        """List entries within the caller's scope, newest first."""
        query = self._payroll_query().join(Employee, Payroll.employee_id == Employee.employee_id)
        query = self._scoped(query, country)

        if pay_period_id is not None:
            query = query.where(Payroll.pay_period_id == pay_period_id)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    Employee.full_name.ilike(search_term),
                    Employee.employee_id.ilike(search_term),
                )
            )

        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar()

        query = query.order_by(Payroll.created_at.desc(), Payroll.id.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_payroll_summary(self, pay_period_id: Optional[int] = None) -> Dict[str, Any]:
        """Overall stats, per-country breakdown and recent entries."""
        base = select(Payroll).join(Employee, Payroll.employee_id == Employee.employee_id)
        base = self._scoped(base)
        if pay_period_id is not None:
            base = base.where(Payroll.pay_period_id == pay_period_id)
        scoped = base.subquery()

        overall_row = (await self.db.execute(
            select(
                func.count(scoped.c.id),
                func.coalesce(func.sum(scoped.c.net_pay), 0),
                func.avg(scoped.c.net_pay),
            )
        )).one()

        by_country_rows = (await self.db.execute(
            select(
                Employee.country_id,
                func.count(Payroll.id),
                func.coalesce(func.sum(Payroll.net_pay), 0),
                func.avg(Payroll.net_pay),
            )
            .select_from(Payroll)
            .join(Employee, Payroll.employee_id == Employee.employee_id)
            .where(Payroll.id.in_(select(scoped.c.id)))
            .group_by(Employee.country_id)
            .order_by(Employee.country_id)
        )).all()

        by_country = []
        for country_id, count, total_payout, avg_salary in by_country_rows:
            country = Country.from_id(country_id)
            by_country.append({
                "country": country.value if country else str(country_id),
                "currency_code": currency_for(country) if country else None,
                "total_payrolls": count,
                "total_payout": _money(total_payout),
                "avg_salary": _money(avg_salary),
            })

        recent, _ = await self.list_payrolls(pay_period_id=pay_period_id, page=1, limit=RECENT_PAYROLL_LIMIT)

        return {
            "overall": {
                "total_payrolls": overall_row[0],
                "total_payout": _money(overall_row[1]),
                "avg_salary": _money(overall_row[2]),
                "countries_count": len(by_country),
            },
            "by_country": by_country,
            "recent": recent,
        }

    async def export_payrolls(
        self,
        country: Optional[Any] = None,
        pay_period_id: Optional[int] = None,
    ) -> List[Payroll]:
        """All entries within scope for export."""
        query = self._payroll_query().join(Employee, Payroll.employee_id == Employee.employee_id)
        query = self._scoped(query, country)
        if pay_period_id is not None:
            query = query.where(Payroll.pay_period_id == pay_period_id)
        query = query.order_by(Payroll.created_at.desc(), Payroll.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_eligible_pay_periods(self, employee_id: str) -> List[PayPeriod]:
        """Pay periods matching the employee's country pay cadence."""
        employee = await self._load_employee(employee_id)
        self.gate.authorize_employee_read(employee)

        periods = await self.reference.list_pay_periods()
        return self.gate.filter_pay_periods(periods, employee.country)

    async def preview_calculation(self, data: Dict[str, Any]) -> PayrollCalculation:
        """Run the calculator without persisting anything."""
        if data.get("employee_id"):
            employee = await self._load_employee(data["employee_id"])
            self.gate.authorize_employee_read(employee)
            country = employee.country
        else:
            country = resolve_country(data.get("country"))
            self.gate.ensure_country_access(country)

        type_names = _ordered_type_names(data.get("payroll_types") or [])
        return self._calculate(country, data, type_names)
