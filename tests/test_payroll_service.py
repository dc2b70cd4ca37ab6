"""
Global Payroll Portal - Payroll Service Tests

Tests for payroll entry lifecycle, scoping, summary and export.
"""

import csv
import io
import pytest
from datetime import date
from decimal import Decimal

from app.services.employee_service import EmployeeService
from app.services.payroll_calculator import PayrollCalculator
from app.services.payroll_service import (
    EXPORT_HEADERS,
    PayrollService,
    export_filename,
    render_csv,
)
from app.utils.error_handling import (
    CrossCountryAccessDenied,
    DuplicatePayrollPeriodException,
    EmployeeNotFoundException,
    InactiveEmployeeException,
    InsufficientPermissionsException,
    NoPayrollTypeSelectedException,
    NotFoundException,
    PayrollNotFoundException,
    ValidationException,
)


def india_entry(period, **overrides):
    data = {
        "employee_id": "IN001",
        "pay_period_id": period.id,
        "payroll_types": ["Regular", "Bonus"],
        "basic_salary": Decimal("50000"),
        "bonus": Decimal("5000"),
        "commission": Decimal("0"),
        "overtime_hours": Decimal("0"),
        "overtime_rate": Decimal("0"),
    }
    data.update(overrides)
    return data


class TestCreatePayroll:

    @pytest.mark.asyncio
    async def test_create(self, db_session, india_identity, employees, monthly_period):
        payroll = await PayrollService(db_session, india_identity).create_payroll(india_entry(monthly_period))

        assert payroll.id is not None
        assert payroll.net_pay == Decimal("55000.00")
        assert payroll.bonus == Decimal("5000.00")
        assert payroll.type_names == ["Regular", "Bonus"]
        assert payroll.primary_type.type_name == "Regular"
        assert payroll.employee.full_name == "Asha Rao"

    @pytest.mark.asyncio
    async def test_selected_type_order_sets_primary_type(self, db_session, admin_identity, employees, monthly_period):
        payroll = await PayrollService(db_session, admin_identity).create_payroll(
            india_entry(monthly_period, payroll_types=["Bonus", "Regular", "Bonus"]),
        )

        assert payroll.primary_type.type_name == "Bonus"
        assert sorted(payroll.type_names) == ["Bonus", "Regular"]

    @pytest.mark.asyncio
    async def test_no_payroll_type(self, db_session, admin_identity, employees, monthly_period):
        with pytest.raises(NoPayrollTypeSelectedException):
            await PayrollService(db_session, admin_identity).create_payroll(
                india_entry(monthly_period, payroll_types=[]),
            )

    @pytest.mark.asyncio
    async def test_duplicate_period(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        await service.create_payroll(india_entry(monthly_period))

        with pytest.raises(DuplicatePayrollPeriodException) as exc_info:
            await service.create_payroll(india_entry(monthly_period, basic_salary=Decimal("1")))

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Payroll already exists for this employee in the selected period"

    @pytest.mark.asyncio
    async def test_inactive_employee(self, db_session, admin_identity, employees, monthly_period):
        await EmployeeService(db_session, admin_identity).set_employee_status("IN001", False)

        with pytest.raises(InactiveEmployeeException):
            await PayrollService(db_session, admin_identity).create_payroll(india_entry(monthly_period))

    @pytest.mark.asyncio
    async def test_cross_country(self, db_session, us_identity, employees, monthly_period):
        with pytest.raises(CrossCountryAccessDenied):
            await PayrollService(db_session, us_identity).create_payroll(india_entry(monthly_period))

    @pytest.mark.asyncio
    async def test_unknown_employee(self, db_session, admin_identity, monthly_period):
        with pytest.raises(EmployeeNotFoundException):
            await PayrollService(db_session, admin_identity).create_payroll(
                india_entry(monthly_period, employee_id="NOPE"),
            )

    @pytest.mark.asyncio
    async def test_unknown_pay_period(self, db_session, admin_identity, employees):
        class Missing:
            id = 999

        with pytest.raises(NotFoundException):
            await PayrollService(db_session, admin_identity).create_payroll(india_entry(Missing))

    @pytest.mark.asyncio
    async def test_country_deductions_policy(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(
            db_session, admin_identity, calculator=PayrollCalculator(include_country_deductions=True),
        )

        payroll = await service.create_payroll(india_entry(monthly_period, payroll_types=["Regular"]))

        assert payroll.net_pay == Decimal("71053.50")


class TestUpdatePayroll:

    @pytest.mark.asyncio
    async def test_recomputes_net_pay(self, db_session, india_identity, employees, monthly_period):
        service = PayrollService(db_session, india_identity)
        created = await service.create_payroll(india_entry(monthly_period))

        updated = await service.update_payroll(created.id, {"basic_salary": Decimal("60000")})

        # Stored bonus is kept when not supplied
        assert updated.basic_salary == Decimal("60000.00")
        assert updated.net_pay == Decimal("65000.00")

    @pytest.mark.asyncio
    async def test_deselecting_bonus_zeroes_it(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(monthly_period))

        updated = await service.update_payroll(created.id, {"payroll_types": ["Regular"]})

        assert updated.bonus == Decimal("0.00")
        assert updated.net_pay == Decimal("50000.00")
        assert updated.type_names == ["Regular"]

    @pytest.mark.asyncio
    async def test_stored_commission_survives_update(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(
            monthly_period, payroll_types=["Regular", "Commission"], bonus=Decimal("0"), commission=Decimal("700"),
        ))

        updated = await service.update_payroll(created.id, {"basic_salary": Decimal("51000")})

        assert updated.bonus == Decimal("700.00")
        assert updated.net_pay == Decimal("51700.00")

    @pytest.mark.asyncio
    async def test_combined_bonus_and_commission_need_both_amounts(
        self, db_session, admin_identity, employees, monthly_period,
    ):
        """Changing only one half of a combined bonus/commission is refused."""
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(
            monthly_period,
            payroll_types=["Regular", "Bonus", "Commission"],
            bonus=Decimal("1000"),
            commission=Decimal("500"),
        ))
        assert created.bonus == Decimal("1500.00")

        with pytest.raises(ValidationException) as exc_info:
            await service.update_payroll(created.id, {"commission": Decimal("600")})
        assert exc_info.value.field == "bonus"

        with pytest.raises(ValidationException):
            await service.update_payroll(created.id, {"payroll_types": ["Regular", "Bonus"]})

        unchanged = await service.get_payroll(created.id)
        assert unchanged.bonus == Decimal("1500.00")
        assert unchanged.net_pay == Decimal("51500.00")

    @pytest.mark.asyncio
    async def test_combined_bonus_and_commission_update_with_both(
        self, db_session, admin_identity, employees, monthly_period,
    ):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(
            monthly_period,
            payroll_types=["Regular", "Bonus", "Commission"],
            bonus=Decimal("1000"),
            commission=Decimal("500"),
        ))

        kept = await service.update_payroll(created.id, {"basic_salary": Decimal("50000")})
        assert kept.bonus == Decimal("1500.00")

        updated = await service.update_payroll(
            created.id, {"bonus": Decimal("1000"), "commission": Decimal("600")},
        )
        assert updated.bonus == Decimal("1600.00")
        assert updated.net_pay == Decimal("51600.00")

    @pytest.mark.asyncio
    async def test_move_to_taken_period(
        self, db_session, admin_identity, employees, monthly_period, next_monthly_period,
    ):
        service = PayrollService(db_session, admin_identity)
        await service.create_payroll(india_entry(monthly_period))
        second = await service.create_payroll(india_entry(next_monthly_period))

        with pytest.raises(DuplicatePayrollPeriodException):
            await service.update_payroll(second.id, {"pay_period_id": monthly_period.id})

    @pytest.mark.asyncio
    async def test_inactive_employee(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(monthly_period))
        await EmployeeService(db_session, admin_identity).set_employee_status("IN001", False)

        with pytest.raises(InactiveEmployeeException) as exc_info:
            await service.update_payroll(created.id, {"basic_salary": Decimal("1")})

        assert "activate the employee first" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_empty_type_list(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(monthly_period))

        with pytest.raises(NoPayrollTypeSelectedException):
            await service.update_payroll(created.id, {"payroll_types": []})


class TestDeletePayroll:

    @pytest.mark.asyncio
    async def test_global_admin_deletes(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(monthly_period))

        await service.delete_payroll(created.id)

        with pytest.raises(PayrollNotFoundException):
            await service.get_payroll(created.id)

    @pytest.mark.asyncio
    async def test_country_admin_cannot_delete(
        self, db_session, admin_identity, india_identity, employees, monthly_period,
    ):
        created = await PayrollService(db_session, admin_identity).create_payroll(india_entry(monthly_period))

        with pytest.raises(InsufficientPermissionsException):
            await PayrollService(db_session, india_identity).delete_payroll(created.id)

    @pytest.mark.asyncio
    async def test_delete_for_inactive_employee(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(monthly_period))
        await EmployeeService(db_session, admin_identity).set_employee_status("IN001", False)

        await service.delete_payroll(created.id)


class TestReads:

    @pytest.fixture
    def entries(self):
        async def create(service, monthly_period, biweekly_period):
            await service.create_payroll(india_entry(monthly_period))
            await service.create_payroll({
                "employee_id": "FR001",
                "pay_period_id": monthly_period.id,
                "payroll_types": ["Regular"],
                "basic_salary": Decimal("3000"),
            })
            await service.create_payroll({
                "employee_id": "US001",
                "pay_period_id": biweekly_period.id,
                "payroll_types": ["Regular", "Overtime"],
                "basic_salary": Decimal("4000"),
                "overtime_hours": Decimal("10"),
                "overtime_rate": Decimal("40"),
            })
        return create

    @pytest.mark.asyncio
    async def test_list_scoped_to_country(
        self, db_session, admin_identity, us_identity, employees, monthly_period, biweekly_period, entries,
    ):
        await entries(PayrollService(db_session, admin_identity), monthly_period, biweekly_period)

        items, total = await PayrollService(db_session, us_identity).list_payrolls()

        assert total == 1
        assert items[0].employee_id == "US001"
        assert items[0].net_pay == Decimal("4400.00")

    @pytest.mark.asyncio
    async def test_list_filters(
        self, db_session, admin_identity, employees, monthly_period, biweekly_period, entries,
    ):
        service = PayrollService(db_session, admin_identity)
        await entries(service, monthly_period, biweekly_period)

        _, total = await service.list_payrolls()
        assert total == 3

        items, total = await service.list_payrolls(pay_period_id=monthly_period.id)
        assert total == 2

        items, total = await service.list_payrolls(search="luc")
        assert [p.employee_id for p in items] == ["FR001"]

        items, total = await service.list_payrolls(page=2, limit=2)
        assert total == 3 and len(items) == 1

    @pytest.mark.asyncio
    async def test_summary(
        self, db_session, admin_identity, employees, monthly_period, biweekly_period, entries,
    ):
        service = PayrollService(db_session, admin_identity)
        await entries(service, monthly_period, biweekly_period)

        summary = await service.get_payroll_summary()

        assert summary["overall"]["total_payrolls"] == 3
        assert summary["overall"]["total_payout"] == Decimal("62400.00")
        assert summary["overall"]["countries_count"] == 3
        by_country = {row["country"]: row for row in summary["by_country"]}
        assert by_country["India"]["total_payout"] == Decimal("55000.00")
        assert by_country["France"]["currency_code"] == "EUR"
        assert len(summary["recent"]) == 3

    @pytest.mark.asyncio
    async def test_summary_for_country_admin(
        self, db_session, admin_identity, india_identity, employees, monthly_period, biweekly_period, entries,
    ):
        await entries(PayrollService(db_session, admin_identity), monthly_period, biweekly_period)

        summary = await PayrollService(db_session, india_identity).get_payroll_summary()

        assert summary["overall"]["total_payrolls"] == 1
        assert [row["country"] for row in summary["by_country"]] == ["India"]

    @pytest.mark.asyncio
    async def test_detail_includes_breakdown(self, db_session, admin_identity, employees, monthly_period):
        service = PayrollService(db_session, admin_identity)
        created = await service.create_payroll(india_entry(monthly_period))

        detail = await service.get_payroll_detail(created.id)

        assert detail["employee"].employee_id == "IN001"
        assert detail["breakdown"].deductions["ESIC"] == Decimal("150.00")
        # The breakdown does not change the stored net pay
        assert detail["payroll"].net_pay == Decimal("55000.00")

    @pytest.mark.asyncio
    async def test_detail_other_country(
        self, db_session, admin_identity, france_identity, employees, monthly_period,
    ):
        created = await PayrollService(db_session, admin_identity).create_payroll(india_entry(monthly_period))

        with pytest.raises(CrossCountryAccessDenied):
            await PayrollService(db_session, france_identity).get_payroll_detail(created.id)

    @pytest.mark.asyncio
    async def test_export_csv(
        self, db_session, admin_identity, employees, monthly_period, biweekly_period, entries,
    ):
        service = PayrollService(db_session, admin_identity)
        await entries(service, monthly_period, biweekly_period)

        payrolls = await service.export_payrolls(country="India")
        rows = list(csv.reader(io.StringIO(render_csv(payrolls))))

        assert rows[0] == EXPORT_HEADERS
        assert len(rows) == 2
        assert rows[1][0] == "IN001"
        assert rows[1][6] == "Regular, Bonus"
        assert rows[1][11] == "55000.00"


class TestPreviewAndPeriods:

    @pytest.mark.asyncio
    async def test_preview_for_employee(self, db_session, us_identity, employees):
        calc = await PayrollService(db_session, us_identity).preview_calculation({
            "employee_id": "US001",
            "payroll_types": ["Regular"],
            "basic_salary": Decimal("4000"),
        })

        assert calc.currency_code == "USD"
        assert calc.total_deductions == Decimal("1926.00")

    @pytest.mark.asyncio
    async def test_preview_for_other_country(self, db_session, us_identity):
        with pytest.raises(CrossCountryAccessDenied):
            await PayrollService(db_session, us_identity).preview_calculation({
                "country": "France",
                "payroll_types": ["Regular"],
                "basic_salary": Decimal("1"),
            })

    @pytest.mark.asyncio
    async def test_eligible_pay_periods(
        self, db_session, admin_identity, employees, monthly_period, biweekly_period,
    ):
        service = PayrollService(db_session, admin_identity)

        assert [p.id for p in await service.get_eligible_pay_periods("US001")] == [biweekly_period.id]
        assert [p.id for p in await service.get_eligible_pay_periods("FR001")] == [monthly_period.id]


class TestExportFilename:

    def test_filename(self):
        assert export_filename(date(2024, 3, 1)) == "payroll-export-2024-03-01"
