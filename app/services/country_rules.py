"""
Global Payroll Portal - Country Rule Table

Static, per-country configuration:
- currency
- ordered compliance profile fields
- payroll formula components (additions and deductions on basic salary)
- accepted pay period span in days

India (INR, monthly):
- Additions: HRA 40%, LTA 10%, Gratuity 4.807%
- Deductions: Provident Fund 12%, ESIC 0.75% capped at 150, Professional Tax 200

France (EUR, monthly):
- Additions: 13th month (basic / 12), Transport Allowance 50
- Deductions: Mutuelle 2.5%, Prévoyance 1.5%, Social Security 22.8%,
  Retirement 7.51%, Unemployment Insurance 5.7%

USA (USD, bi-weekly):
- Additions: Stock Options (supplied per entry, default 0)
- Deductions: Health 5%, Dental 1%, Vision 0.5%, City Tax 1%,
  Social Security 6.2%, Medicare 1.45%, 401k 6%, Federal Tax 22%,
  State Tax 5%, Union Dues (supplied per entry, default 0)
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

from app.models.country import Country, COUNTRY_IDS
from app.models.employee import EmployeeFrance, EmployeeIndia, EmployeeUSA
from app.utils.error_handling import UnknownCountryException


TWO_PLACES = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    """Round a money amount to 2 decimal places (ROUND_HALF_UP)."""
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class ComponentKind(str, Enum):
    ADDITION = "addition"
    DEDUCTION = "deduction"


@dataclass(frozen=True)
class FormulaComponent:
    """One line of a country payroll formula."""
    name: str
    kind: ComponentKind
    rate: Decimal = Decimal("0")
    fixed: Decimal = Decimal("0")
    cap: Optional[Decimal] = None
    # Supplied per payroll entry rather than derived from basic salary
    supplied: bool = False

    def amount(self, basic_salary: Decimal, supplied_amount: Optional[Decimal] = None) -> Decimal:
        """Amount for this component given a basic salary."""
        if self.supplied:
            return quantize_money(supplied_amount or Decimal("0"))
        value = basic_salary * self.rate + self.fixed
        if self.cap is not None:
            value = min(value, self.cap)
        return quantize_money(value)


@dataclass
class CountryBreakdown:
    """Country additions and deductions for one basic salary."""
    country: Country
    currency_code: str
    basic_salary: Decimal
    additions: Dict[str, Decimal] = field(default_factory=dict)
    deductions: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_additions(self) -> Decimal:
        return quantize_money(sum(self.additions.values(), Decimal("0")))

    @property
    def total_deductions(self) -> Decimal:
        return quantize_money(sum(self.deductions.values(), Decimal("0")))

    def to_dict(self) -> dict:
        return {
            "country": self.country.value,
            "currency_code": self.currency_code,
            "basic_salary": self.basic_salary,
            "additions": dict(self.additions),
            "deductions": dict(self.deductions),
            "total_additions": self.total_additions,
            "total_deductions": self.total_deductions,
        }


@dataclass(frozen=True)
class CountryRule:
    """Everything the portal needs to know about one country."""
    country: Country
    currency_code: str
    profile_model: Type
    profile_fields: Tuple[str, ...]
    components: Tuple[FormulaComponent, ...]
    # Inclusive bounds on (period_end - period_start) in days
    pay_period_days: Tuple[int, int]

    @property
    def country_id(self) -> int:
        return COUNTRY_IDS[self.country]

    def breakdown(
        self,
        basic_salary: Decimal,
        supplied: Optional[Mapping[str, Decimal]] = None,
    ) -> CountryBreakdown:
        supplied = supplied or {}
        result = CountryBreakdown(
            country=self.country,
            currency_code=self.currency_code,
            basic_salary=quantize_money(basic_salary),
        )
        for component in self.components:
            amount = component.amount(basic_salary, supplied.get(component.name))
            if component.kind == ComponentKind.ADDITION:
                result.additions[component.name] = amount
            else:
                result.deductions[component.name] = amount
        return result


def _add(name: str, rate: str = "0", fixed: str = "0", **kwargs) -> FormulaComponent:
    return FormulaComponent(name, ComponentKind.ADDITION, Decimal(rate), Decimal(fixed), **kwargs)


def _deduct(name: str, rate: str = "0", fixed: str = "0", **kwargs) -> FormulaComponent:
    return FormulaComponent(name, ComponentKind.DEDUCTION, Decimal(rate), Decimal(fixed), **kwargs)


# ===========================================
# COMPONENT NAMES SUPPLIED PER ENTRY
# ===========================================

STOCK_OPTIONS = "Stock Options"
UNION_DUES = "Union Dues"


COUNTRY_RULES: Dict[Country, CountryRule] = {
    Country.INDIA: CountryRule(
        country=Country.INDIA,
        currency_code="INR",
        profile_model=EmployeeIndia,
        profile_fields=("aadhar_number", "pan", "bank_account", "ifsc"),
        components=(
            _add("HRA", rate="0.40"),
            _add("LTA", rate="0.10"),
            _add("Gratuity", rate="0.04807"),
            _deduct("Provident Fund", rate="0.12"),
            _deduct("ESIC", rate="0.0075", cap=Decimal("150")),
            _deduct("Professional Tax", fixed="200"),
        ),
        pay_period_days=(25, 35),
    ),
    Country.FRANCE: CountryRule(
        country=Country.FRANCE,
        currency_code="EUR",
        profile_model=EmployeeFrance,
        profile_fields=("numero_securite_sociale", "bank_iban", "department_code"),
        components=(
            _add("13th Month Bonus", rate=str(Decimal(1) / Decimal(12))),
            _add("Transport Allowance", fixed="50"),
            _deduct("Mutuelle Santé", rate="0.025"),
            _deduct("Prévoyance", rate="0.015"),
            _deduct("Social Security", rate="0.228"),
            _deduct("Retirement", rate="0.0751"),
            _deduct("Unemployment Insurance", rate="0.057"),
        ),
        pay_period_days=(25, 35),
    ),
    Country.USA: CountryRule(
        country=Country.USA,
        currency_code="USD",
        profile_model=EmployeeUSA,
        profile_fields=("ssn", "bank_account", "routing_number"),
        components=(
            _add(STOCK_OPTIONS, supplied=True),
            _deduct("Health Insurance", rate="0.05"),
            _deduct("Dental Insurance", rate="0.01"),
            _deduct("Vision Insurance", rate="0.005"),
            _deduct("City Tax", rate="0.01"),
            _deduct("Social Security", rate="0.062"),
            _deduct("Medicare", rate="0.0145"),
            _deduct("401k", rate="0.06"),
            _deduct("Federal Tax", rate="0.22"),
            _deduct("State Tax", rate="0.05"),
            _deduct(UNION_DUES, supplied=True),
        ),
        pay_period_days=(10, 20),
    ),
}


# ===========================================
# LOOKUPS
# ===========================================

CountryLike = Union[Country, str, int, None]


def resolve_country(value: CountryLike) -> Country:
    """
    Parse a country from the enum, its name (case-insensitive) or its id.

    Raises:
        UnknownCountryException: for anything outside India, France, USA
    """
    if isinstance(value, Country):
        return value
    if isinstance(value, bool):
        raise UnknownCountryException(value)
    if isinstance(value, int):
        country = Country.from_id(value)
        if country is not None:
            return country
        raise UnknownCountryException(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return resolve_country(int(text))
        for country in Country:
            if country.value.lower() == text.lower():
                return country
    raise UnknownCountryException(value)


def get_country_rule(country: CountryLike) -> CountryRule:
    return COUNTRY_RULES[resolve_country(country)]


def profile_fields(country: CountryLike) -> List[str]:
    """Ordered profile field names for a country."""
    return list(get_country_rule(country).profile_fields)


def payroll_formula(country: CountryLike) -> Callable[..., CountryBreakdown]:
    """Return the formula (basic_salary -> CountryBreakdown) for a country."""
    return get_country_rule(country).breakdown


def currency_for(country: CountryLike) -> str:
    return get_country_rule(country).currency_code


def country_for_currency(currency_code: str) -> Optional[Country]:
    code = (currency_code or "").strip().upper()
    for rule in COUNTRY_RULES.values():
        if rule.currency_code == code:
            return rule.country
    return None


def accepts_pay_period(country: CountryLike, span_days: int) -> bool:
    """True if a period spanning span_days fits the country's pay cadence."""
    low, high = get_country_rule(country).pay_period_days
    return low <= span_days <= high
