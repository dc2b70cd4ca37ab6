"""
Global Payroll Portal - Employee Service

Employee records and their country compliance profiles.

Every operation goes through the AccessGate, so a country admin can only see
and change employees of their own country. List queries are scoped in SQL,
never by filtering results afterwards.
"""

import csv
import io
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.country import Country
from app.models.employee import Employee
from app.services.access_gate import AccessGate, AdminIdentity
from app.services.country_rules import (
    currency_for,
    get_country_rule,
    resolve_country,
)
from app.services.reference_service import STATIC_CURRENCIES
from app.utils.error_handling import (
    AppException,
    DuplicateEntryException,
    EmployeeNotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)


BASE_FIELDS = ("full_name", "date_of_birth", "start_date")
BULK_REQUIRED_FIELDS = ("employee_id", "full_name", "country_id", "currency_code")

# CSV header aliases -> canonical field
CSV_HEADER_ALIASES = {
    "name": "full_name",
    "fullname": "full_name",
    "currency": "currency_code",
    "dob": "date_of_birth",
    "country": "country_id",
}

KNOWN_CURRENCIES = {c["currency_code"] for c in STATIC_CURRENCIES}

PROFILE_ATTRS = {
    Country.INDIA: "india_profile",
    Country.FRANCE: "france_profile",
    Country.USA: "usa_profile",
}


def normalize_date(value: Any) -> Optional[date]:
    """Accept a date, YYYY-MM-DD or DD-MM-YYYY (also with '/'). Empty -> None."""
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    for fmt in ("%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationException(
        message=f"Invalid date: {text}. Expected YYYY-MM-DD or DD-MM-YYYY.",
        field="date",
    )


def describe_row_errors(exc: ValidationError) -> str:
    """One-line summary of a bulk row's schema errors."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def parse_employee_csv(text: str, restricted_country: Optional[Country] = None) -> List[Dict[str, Any]]:
    """
    Parse an employee CSV upload into row dicts for bulk_create_employees.

    Columns that are not base fields go into the row's profile. Rows whose
    column count does not match the header are skipped. When the uploader is
    a country admin, country and currency are forced to their country.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    rows = [r for r in reader if any(cell.strip() for cell in r)]
    if not rows:
        return []

    header = []
    for raw in rows[0]:
        key = raw.strip().lower().replace(" ", "_")
        header.append(CSV_HEADER_ALIASES.get(key, key))

    parsed: List[Dict[str, Any]] = []
    for line_no, values in enumerate(rows[1:], start=2):
        if len(values) != len(header):
            logger.warning(f"Skipping CSV line {line_no}: expected {len(header)} columns, got {len(values)}")
            continue

        row: Dict[str, Any] = {"profile": {}}
        for key, value in zip(header, values):
            value = value.strip()
            if key in BULK_REQUIRED_FIELDS or key in BASE_FIELDS:
                row[key] = value or None
            elif value:
                row["profile"][key] = value

        if restricted_country is not None:
            row["country_id"] = restricted_country.country_id
            row["currency_code"] = currency_for(restricted_country)

        parsed.append(row)

    return parsed


class EmployeeService:
    """Service for employee management."""

    def __init__(self, db: AsyncSession, identity: AdminIdentity):
        self.db = db
        self.identity = identity
        self.gate = AccessGate(identity)

    # ===========================================
    # HELPERS
    # ===========================================

    async def _load_employee(self, employee_id: str, refresh: bool = False) -> Optional[Employee]:
        query = (
            select(Employee)
            .options(
                selectinload(Employee.india_profile),
                selectinload(Employee.france_profile),
                selectinload(Employee.usa_profile),
            )
            .where(Employee.employee_id == employee_id)
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def _resolve_currency(self, country: Country, currency_code: Optional[str]) -> str:
        if not currency_code:
            return currency_for(country)
        code = currency_code.strip().upper()
        if code not in KNOWN_CURRENCIES:
            raise ValidationException(
                message=f"Unsupported currency: {currency_code}",
                field="currency_code",
            )
        return code

    @staticmethod
    def _clean_profile(country: Country, profile: Optional[Dict[str, Any]]) -> Dict[str, Optional[str]]:
        """Keep only the country's profile fields; reject anything else."""
        profile = profile or {}
        allowed = get_country_rule(country).profile_fields
        unknown = sorted(set(profile) - set(allowed))
        if unknown:
            raise ValidationException(
                message=f"Unknown {country.value} profile fields: {', '.join(unknown)}",
                field="profile",
                details={"allowed_fields": list(allowed)},
            )
        return {
            key: (str(value).strip() or None) if value is not None else None
            for key, value in profile.items()
        }

    @staticmethod
    def _apply_profile(employee: Employee, country: Country, values: Dict[str, Optional[str]]) -> None:
        """Create or update the employee's profile row for `country`."""
        rule = get_country_rule(country)
        attr = PROFILE_ATTRS[country]

        profile = getattr(employee, attr)
        if profile is None:
            profile = rule.profile_model(employee_id=employee.employee_id)
            setattr(employee, attr, profile)
        for key, value in values.items():
            setattr(profile, key, value)

    async def _add_employee(self, data: Dict[str, Any]) -> Employee:
        """Validate and stage a new employee plus profile. Caller commits."""
        employee_id = str(data.get("employee_id") or "").strip()
        if not employee_id:
            raise ValidationException(message="employee_id is required", field="employee_id")
        full_name = str(data.get("full_name") or "").strip()
        if not full_name:
            raise ValidationException(message="full_name is required", field="full_name")

        country = resolve_country(data.get("country_id") or data.get("country"))
        self.gate.authorize_employee_country(country)

        currency_code = self._resolve_currency(country, data.get("currency_code"))
        profile = self._clean_profile(country, data.get("profile"))

        if await self.db.get(Employee, employee_id):
            raise DuplicateEntryException("Employee", "employee_id", employee_id)

        employee = Employee(
            employee_id=employee_id,
            full_name=full_name,
            date_of_birth=normalize_date(data.get("date_of_birth")),
            start_date=normalize_date(data.get("start_date")),
            country_id=country.country_id,
            currency_code=currency_code,
            is_active=True,
            created_by_id=self.identity.id,
            india_profile=None,
            france_profile=None,
            usa_profile=None,
        )
        self.db.add(employee)
        self._apply_profile(employee, country, profile)
        return employee

    async def _commit_or_duplicate(self, employee_id: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateEntryException("Employee", "employee_id", employee_id)

    # ===========================================
    # OPERATIONS
    # ===========================================

    async def create_employee(self, data: Dict[str, Any]) -> Employee:
        """Create an employee and its country profile in one transaction."""
        employee = await self._add_employee(data)
        await self._commit_or_duplicate(employee.employee_id)

        logger.info(f"Employee {employee.employee_id} created by {self.identity.email}")
        return await self._load_employee(employee.employee_id, refresh=True)

    async def get_employee(self, employee_id: str) -> Employee:
        """Get employee with its profile."""
        employee = await self._load_employee(employee_id)
        if not employee:
            raise EmployeeNotFoundException(employee_id)
        self.gate.authorize_employee_read(employee)
        return employee

    async def list_employees(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        country: Optional[Any] = None,
        page: int = 1,
        per_page: int = 50,
    ) -> Tuple[List[Employee], int]:
        """List employees within the caller's country scope."""
        query = select(Employee)

        scope = self.gate.country_filter()
        if scope is not None:
            query = query.where(Employee.country_id == scope.country_id)
        if country is not None and country != "":
            requested = resolve_country(country)
            if scope is not None and requested != scope:
                self.gate.ensure_country_access(requested)
            query = query.where(Employee.country_id == requested.country_id)

        if is_active is not None:
            query = query.where(Employee.is_active == is_active)

        if search:
            search_term = f"%{search}%"
            query = query.where(
                or_(
                    Employee.full_name.ilike(search_term),
                    Employee.employee_id.ilike(search_term),
                )
            )

        # Count total
        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar()

        # Apply pagination
        query = query.order_by(Employee.created_at.desc(), Employee.employee_id)
        query = query.offset((page - 1) * per_page).limit(per_page)
        query = query.options(
            selectinload(Employee.india_profile),
            selectinload(Employee.france_profile),
            selectinload(Employee.usa_profile),
        )

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def update_employee(self, employee_id: str, data: Dict[str, Any]) -> Employee:
        """
        Update base fields and upsert the profile.

        Moving an employee to another country requires access to both
        countries. The old country's profile is replaced by one for the new
        country (empty unless a profile is supplied).
        """
        employee = await self.get_employee(employee_id)
        self.gate.authorize_employee_write(employee)

        country = employee.country
        new_country_value = data.get("country_id") or data.get("country")
        if new_country_value:
            new_country = resolve_country(new_country_value)
            if new_country != country:
                self.gate.authorize_employee_country(new_country)
                # delete-orphan cascade removes the old country profile
                setattr(employee, PROFILE_ATTRS[country], None)
                employee.country_id = new_country.country_id
                if not data.get("currency_code"):
                    employee.currency_code = currency_for(new_country)
                # The new country always gets a profile row, even an empty one
                self._apply_profile(employee, new_country, {})
                country = new_country

        if data.get("currency_code"):
            employee.currency_code = self._resolve_currency(country, data["currency_code"])

        for key in BASE_FIELDS:
            if key not in data or data[key] is None:
                continue
            value = data[key]
            if key in ("date_of_birth", "start_date"):
                value = normalize_date(value)
            elif key == "full_name":
                value = str(value).strip()
                if not value:
                    raise ValidationException(message="full_name cannot be empty", field="full_name")
            setattr(employee, key, value)

        if data.get("profile") is not None:
            self._apply_profile(employee, country, self._clean_profile(country, data["profile"]))

        await self.db.commit()
        logger.info(f"Employee {employee_id} updated by {self.identity.email}")
        return await self._load_employee(employee_id, refresh=True)

    async def update_profile(self, employee_id: str, profile: Dict[str, Any]) -> Employee:
        """Upsert only the country profile; the base record is untouched."""
        employee = await self.get_employee(employee_id)
        self.gate.authorize_employee_write(employee)

        self._apply_profile(employee, employee.country, self._clean_profile(employee.country, profile))
        await self.db.commit()
        return await self._load_employee(employee_id, refresh=True)

    async def set_employee_status(self, employee_id: str, is_active: bool) -> Employee:
        """Activate or deactivate an employee."""
        employee = await self.get_employee(employee_id)
        self.gate.authorize_status_change(employee)

        employee.is_active = is_active
        await self.db.commit()

        logger.info(
            f"Employee {employee_id} {'activated' if is_active else 'deactivated'} by {self.identity.email}"
        )
        return await self._load_employee(employee_id, refresh=True)

    async def bulk_create_employees(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Create employees row by row. A failing row does not affect the others.

        Returns:
            Dict with message, successful, failed, results, errors
        """
        # Deferred: app.schemas.employee imports from app.services
        from app.schemas.employee import EmployeeCreate

        results: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        restricted = self.identity.allowed_country

        for index, row in enumerate(rows, start=1):
            row = dict(row)
            if restricted is not None:
                row["country_id"] = restricted.country_id
                row["currency_code"] = currency_for(restricted)

            employee_id = str(row.get("employee_id") or "").strip() or None
            missing = [f for f in BULK_REQUIRED_FIELDS if not row.get(f)]
            if missing:
                errors.append({
                    "row": index,
                    "employee_id": employee_id,
                    "error": f"Missing required fields: {', '.join(missing)}",
                })
                continue

            try:
                validated = EmployeeCreate.model_validate(row)
                employee = await self._add_employee(validated.model_dump())
                await self._commit_or_duplicate(employee.employee_id)
            except ValidationError as exc:
                errors.append({"row": index, "employee_id": employee_id, "error": describe_row_errors(exc)})
                continue
            except AppException as exc:
                await self.db.rollback()
                errors.append({"row": index, "employee_id": employee_id, "error": exc.message})
                continue

            results.append({"row": index, "employee_id": employee.employee_id, "status": "created"})

        logger.info(
            f"Bulk upload by {self.identity.email}: {len(results)} created, {len(errors)} failed"
        )
        return {
            "message": f"Processed {len(rows)} rows: {len(results)} successful, {len(errors)} failed",
            "successful": len(results),
            "failed": len(errors),
            "results": results,
            "errors": errors,
        }

    async def bulk_create_from_csv(self, text: str) -> Dict[str, Any]:
        rows = parse_employee_csv(text, restricted_country=self.identity.allowed_country)
        return await self.bulk_create_employees(rows)

