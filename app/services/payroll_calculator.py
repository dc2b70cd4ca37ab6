"""
Global Payroll Portal - Payroll Calculator

Computes the persisted pay figures for a payroll entry and the informational
country breakdown.

Selection rules:
- bonus counts only when Bonus is selected
- commission counts only when Commission is selected
- overtime hours and rate count only when Overtime is selected
- stored bonus = bonus + commission (one persisted column)
- net pay = basic + stored bonus (once, if Bonus or Commission selected)
  + overtime pay (if Overtime selected)

The country additions/deductions are reported alongside and only change the
persisted net pay when `include_country_deductions` is enabled.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional, Set

from app.config import settings
from app.models.country import Country
from app.models.payroll import PayrollTypeName
from app.services.country_rules import (
    CountryBreakdown,
    CountryLike,
    STOCK_OPTIONS,
    UNION_DUES,
    get_country_rule,
    quantize_money,
)
from app.utils.error_handling import (
    InvalidAmountException,
    NoPayrollTypeSelectedException,
    ValidationException,
)


ZERO = Decimal("0")


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce an input amount to Decimal, rejecting negatives and junk."""
    if value is None or value == "":
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmountException(value, field=field_name, message=f"Invalid amount for {field_name}: {value}")
    if not amount.is_finite():
        raise InvalidAmountException(value, field=field_name)
    if amount < 0:
        raise InvalidAmountException(value, field=field_name)
    return amount


def parse_payroll_types(selected: Iterable[Any]) -> Set[PayrollTypeName]:
    """Normalise selected payroll types (names or enum members)."""
    result: Set[PayrollTypeName] = set()
    for item in selected or ():
        if isinstance(item, PayrollTypeName):
            result.add(item)
            continue
        text = str(item).strip().lower()
        match = next((t for t in PayrollTypeName if t.value.lower() == text), None)
        if match is None:
            raise ValidationException(
                message=f"Unknown payroll type: {item}",
                field="payroll_types",
            )
        result.add(match)
    return result


@dataclass
class PayrollCalculation:
    """Result of a payroll calculation."""
    country: Country
    currency_code: str
    selected_types: Set[PayrollTypeName]
    basic_salary: Decimal
    bonus: Decimal
    commission: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    stored_bonus: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    breakdown: CountryBreakdown
    additions: Dict[str, Decimal] = field(default_factory=dict)
    deductions: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_additions(self) -> Decimal:
        return self.breakdown.total_additions

    @property
    def total_deductions(self) -> Decimal:
        return self.breakdown.total_deductions

    @property
    def breakdown_net_pay(self) -> Decimal:
        return quantize_money(self.gross_pay + self.total_additions - self.total_deductions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country": self.country.value,
            "currency_code": self.currency_code,
            "payroll_types": sorted(t.value for t in self.selected_types),
            "basic_salary": self.basic_salary,
            "bonus": self.stored_bonus,
            "overtime_hours": self.overtime_hours,
            "overtime_rate": self.overtime_rate,
            "overtime_pay": self.overtime_pay,
            "gross_pay": self.gross_pay,
            "net_pay": self.net_pay,
            "additions": dict(self.additions),
            "deductions": dict(self.deductions),
            "total_additions": self.total_additions,
            "total_deductions": self.total_deductions,
            "breakdown_net_pay": self.breakdown_net_pay,
        }


class PayrollCalculator:
    """
    Payroll calculator for India, France and the USA.

    Pure: no I/O, no side effects.
    """

    def __init__(self, include_country_deductions: Optional[bool] = None):
        if include_country_deductions is None:
            include_country_deductions = settings.net_pay_includes_country_deductions
        self.include_country_deductions = include_country_deductions

    def calculate(
        self,
        country: CountryLike,
        basic_salary: Any,
        bonus: Any = ZERO,
        commission: Any = ZERO,
        overtime_hours: Any = ZERO,
        overtime_rate: Any = ZERO,
        selected_types: Iterable[Any] = (),
        stock_options: Any = ZERO,
        union_dues: Any = ZERO,
    ) -> PayrollCalculation:
        """
        Calculate pay for one entry.

        Raises:
            InvalidAmountException: any negative or non-numeric amount
            NoPayrollTypeSelectedException: empty selection
            UnknownCountryException: country outside the supported set
        """
        rule = get_country_rule(country)

        basic = to_decimal(basic_salary, "basic_salary")
        bonus_amount = to_decimal(bonus, "bonus")
        commission_amount = to_decimal(commission, "commission")
        hours = to_decimal(overtime_hours, "overtime_hours")
        rate = to_decimal(overtime_rate, "overtime_rate")
        supplied = {
            STOCK_OPTIONS: to_decimal(stock_options, "stock_options"),
            UNION_DUES: to_decimal(union_dues, "union_dues"),
        }

        types = parse_payroll_types(selected_types)
        if not types:
            raise NoPayrollTypeSelectedException()

        # Unselected inputs are zeroed
        if PayrollTypeName.BONUS not in types:
            bonus_amount = ZERO
        if PayrollTypeName.COMMISSION not in types:
            commission_amount = ZERO
        if PayrollTypeName.OVERTIME not in types:
            hours = ZERO
            rate = ZERO

        overtime_pay = quantize_money(hours * rate)
        stored_bonus = quantize_money(bonus_amount + commission_amount)
        gross_pay = quantize_money(basic + stored_bonus + overtime_pay)

        net_pay = basic
        if PayrollTypeName.BONUS in types or PayrollTypeName.COMMISSION in types:
            net_pay += stored_bonus
        if PayrollTypeName.OVERTIME in types:
            net_pay += overtime_pay

        breakdown = rule.breakdown(basic, supplied)
        if self.include_country_deductions:
            net_pay = net_pay + breakdown.total_additions - breakdown.total_deductions

        return PayrollCalculation(
            country=rule.country,
            currency_code=rule.currency_code,
            selected_types=types,
            basic_salary=quantize_money(basic),
            bonus=quantize_money(bonus_amount),
            commission=quantize_money(commission_amount),
            overtime_hours=quantize_money(hours),
            overtime_rate=quantize_money(rate),
            overtime_pay=overtime_pay,
            stored_bonus=stored_bonus,
            gross_pay=gross_pay,
            net_pay=quantize_money(net_pay),
            breakdown=breakdown,
            additions=breakdown.additions,
            deductions=breakdown.deductions,
        )


# ===========================================
# CONVENIENCE FUNCTIONS
# ===========================================

def calculate_payroll(country: CountryLike, basic_salary: Any, **kwargs) -> PayrollCalculation:
    """Calculate pay with the configured net pay policy."""
    return PayrollCalculator().calculate(country, basic_salary, **kwargs)


def calculate_breakdown(country: CountryLike, basic_salary: Any) -> CountryBreakdown:
    """Country additions/deductions for a stored basic salary."""
    return get_country_rule(country).breakdown(to_decimal(basic_salary, "basic_salary"))
