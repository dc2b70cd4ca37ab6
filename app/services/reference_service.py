"""
Global Payroll Portal - Reference Data Service

Countries, currencies, pay periods and payroll types.
"""

import logging
from datetime import date
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.country import Country, CountryRecord, Currency
from app.models.payroll import PayPeriod, PayrollType, PayrollTypeName
from app.services.country_rules import COUNTRY_RULES
from app.utils.error_handling import NotFoundException, ValidationException

logger = logging.getLogger(__name__)


# Used when the currencies table has not been seeded
STATIC_CURRENCIES = [
    {"currency_code": "INR", "currency_name": "Indian Rupee"},
    {"currency_code": "EUR", "currency_name": "Euro"},
    {"currency_code": "USD", "currency_name": "US Dollar"},
]


class ReferenceService:
    """Service for reference data lookups and seeding."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_countries(self) -> List[CountryRecord]:
        result = await self.db.execute(select(CountryRecord).order_by(CountryRecord.country_id))
        return list(result.scalars().all())

    async def list_currencies(self) -> List[dict]:
        result = await self.db.execute(select(Currency).order_by(Currency.currency_code))
        currencies = result.scalars().all()
        if not currencies:
            return [dict(c) for c in STATIC_CURRENCIES]
        return [
            {"currency_code": c.currency_code, "currency_name": c.currency_name}
            for c in currencies
        ]

    async def list_pay_periods(self) -> List[PayPeriod]:
        result = await self.db.execute(
            select(PayPeriod).order_by(PayPeriod.period_start.desc())
        )
        return list(result.scalars().all())

    async def get_pay_period(self, pay_period_id: int) -> PayPeriod:
        period = await self.db.get(PayPeriod, pay_period_id)
        if not period:
            raise NotFoundException("PayPeriod", pay_period_id)
        return period

    async def create_pay_period(self, period_start: date, period_end: date) -> PayPeriod:
        if period_end <= period_start:
            raise ValidationException(
                message=f"Invalid date range: {period_start} to {period_end}. Start date must be before end date.",
                field="period_end",
            )
        period = PayPeriod(period_start=period_start, period_end=period_end)
        self.db.add(period)
        await self.db.commit()
        await self.db.refresh(period)
        return period

    async def list_payroll_types(self) -> List[PayrollType]:
        result = await self.db.execute(select(PayrollType).order_by(PayrollType.id))
        return list(result.scalars().all())

    async def get_payroll_types_by_name(self, names) -> List[PayrollType]:
        """Payroll type rows for the given names, in Regular/Bonus/Commission/Overtime order."""
        wanted = [PayrollTypeName(n).value for n in names]
        result = await self.db.execute(
            select(PayrollType).where(PayrollType.type_name.in_(wanted)).order_by(PayrollType.id)
        )
        return list(result.scalars().all())

    async def seed_reference_data(self) -> None:
        """Insert countries, currencies and payroll types if missing. Idempotent."""
        currency_names = {c["currency_code"]: c["currency_name"] for c in STATIC_CURRENCIES}
        added = 0

        for country, rule in COUNTRY_RULES.items():
            if not await self.db.get(CountryRecord, rule.country_id):
                self.db.add(CountryRecord(country_id=rule.country_id, country_name=country.value))
                added += 1
            if not await self.db.get(Currency, rule.currency_code):
                self.db.add(Currency(
                    currency_code=rule.currency_code,
                    currency_name=currency_names[rule.currency_code],
                ))
                added += 1

        existing = {t.type_name for t in await self.list_payroll_types()}
        for type_name in PayrollTypeName:
            if type_name.value not in existing:
                self.db.add(PayrollType(type_name=type_name.value))
                added += 1

        if added:
            await self.db.commit()
            logger.info(f"Seeded {added} reference data rows")
