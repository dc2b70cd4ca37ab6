"""
Global Payroll Portal - Country Rule Tests

Unit tests for the per-country rule table and payroll formulas.
"""

import pytest
from decimal import Decimal

from app.models.country import Country
from app.models.employee import EmployeeFrance, EmployeeIndia, EmployeeUSA
from app.services.country_rules import (
    STOCK_OPTIONS,
    UNION_DUES,
    accepts_pay_period,
    country_for_currency,
    currency_for,
    get_country_rule,
    payroll_formula,
    profile_fields,
    resolve_country,
)
from app.utils.error_handling import UnknownCountryException


class TestResolveCountry:
    """Parsing countries from names, ids and enum members."""

    @pytest.mark.parametrize("value,expected", [
        (Country.INDIA, Country.INDIA),
        ("India", Country.INDIA),
        ("france", Country.FRANCE),
        (" USA ", Country.USA),
        (1, Country.INDIA),
        (2, Country.FRANCE),
        ("3", Country.USA),
    ])
    def test_resolves_supported_values(self, value, expected):
        assert resolve_country(value) == expected

    @pytest.mark.parametrize("value", ["Germany", "", None, 0, 4, 99, True, 1.0])
    def test_rejects_unknown_values(self, value):
        with pytest.raises(UnknownCountryException) as exc_info:
            resolve_country(value)

        assert exc_info.value.status_code == 422


class TestRuleTable:
    """Static lookups."""

    def test_currencies(self):
        assert currency_for(Country.INDIA) == "INR"
        assert currency_for(Country.FRANCE) == "EUR"
        assert currency_for(Country.USA) == "USD"

    def test_country_ids_are_fixed(self):
        assert get_country_rule("India").country_id == 1
        assert get_country_rule("France").country_id == 2
        assert get_country_rule("USA").country_id == 3

    def test_country_for_currency(self):
        assert country_for_currency("eur") == Country.FRANCE
        assert country_for_currency("USD") == Country.USA
        assert country_for_currency("GBP") is None

    def test_profile_fields_are_ordered(self):
        assert profile_fields(Country.INDIA) == ["aadhar_number", "pan", "bank_account", "ifsc"]
        assert profile_fields(Country.FRANCE) == ["numero_securite_sociale", "bank_iban", "department_code"]
        assert profile_fields(Country.USA) == ["ssn", "bank_account", "routing_number"]

    def test_profile_models(self):
        assert get_country_rule(Country.INDIA).profile_model is EmployeeIndia
        assert get_country_rule(Country.FRANCE).profile_model is EmployeeFrance
        assert get_country_rule(Country.USA).profile_model is EmployeeUSA

    def test_every_profile_field_exists_on_its_model(self):
        for country in Country:
            rule = get_country_rule(country)
            for name in rule.profile_fields:
                assert hasattr(rule.profile_model, name)

    def test_unknown_country_lookup(self):
        with pytest.raises(UnknownCountryException):
            get_country_rule("Spain")


class TestPayPeriodCadence:
    """USA is bi-weekly; India and France are monthly."""

    def test_usa_accepts_biweekly_only(self):
        assert accepts_pay_period(Country.USA, 14)
        assert accepts_pay_period(Country.USA, 10)
        assert accepts_pay_period(Country.USA, 20)
        assert not accepts_pay_period(Country.USA, 30)
        assert not accepts_pay_period(Country.USA, 9)

    @pytest.mark.parametrize("country", [Country.INDIA, Country.FRANCE])
    def test_monthly_countries(self, country):
        assert accepts_pay_period(country, 30)
        assert accepts_pay_period(country, 25)
        assert accepts_pay_period(country, 35)
        assert not accepts_pay_period(country, 14)
        assert not accepts_pay_period(country, 36)


class TestIndiaFormula:
    """India: HRA, LTA, Gratuity; PF, ESIC (capped), Professional Tax."""

    def test_breakdown(self):
        breakdown = payroll_formula(Country.INDIA)(Decimal("50000"))

        assert breakdown.additions == {
            "HRA": Decimal("20000.00"),
            "LTA": Decimal("5000.00"),
            "Gratuity": Decimal("2403.50"),
        }
        assert breakdown.deductions["Provident Fund"] == Decimal("6000.00")
        assert breakdown.deductions["Professional Tax"] == Decimal("200.00")
        assert breakdown.total_additions == Decimal("27403.50")

    def test_esic_is_capped_at_150(self):
        breakdown = payroll_formula(Country.INDIA)(Decimal("50000"))

        # 0.75% of 50,000 = 375, capped
        assert breakdown.deductions["ESIC"] == Decimal("150.00")
        assert breakdown.total_deductions == Decimal("6350.00")

    def test_esic_below_cap(self):
        breakdown = payroll_formula(Country.INDIA)(Decimal("10000"))

        assert breakdown.deductions["ESIC"] == Decimal("75.00")


class TestFranceFormula:
    """France: 13th month and transport; five social contributions."""

    def test_breakdown(self):
        breakdown = payroll_formula(Country.FRANCE)(Decimal("36000"))

        assert breakdown.additions == {
            "13th Month Bonus": Decimal("3000.00"),
            "Transport Allowance": Decimal("50.00"),
        }
        assert breakdown.deductions == {
            "Mutuelle Santé": Decimal("900.00"),
            "Prévoyance": Decimal("540.00"),
            "Social Security": Decimal("8208.00"),
            "Retirement": Decimal("2703.60"),
            "Unemployment Insurance": Decimal("2052.00"),
        }
        assert breakdown.total_additions == Decimal("3050.00")
        assert breakdown.total_deductions == Decimal("14403.60")
        assert breakdown.currency_code == "EUR"


class TestUSAFormula:
    """USA: percentage deductions plus supplied stock options and union dues."""

    def test_breakdown_without_supplied_amounts(self):
        breakdown = payroll_formula(Country.USA)(Decimal("4000"))

        assert breakdown.additions == {STOCK_OPTIONS: Decimal("0.00")}
        assert breakdown.deductions["Federal Tax"] == Decimal("880.00")
        assert breakdown.deductions["Medicare"] == Decimal("58.00")
        assert breakdown.deductions[UNION_DUES] == Decimal("0.00")
        assert breakdown.total_deductions == Decimal("1926.00")

    def test_supplied_amounts(self):
        breakdown = payroll_formula(Country.USA)(
            Decimal("4000"),
            {STOCK_OPTIONS: Decimal("500"), UNION_DUES: Decimal("25.50")},
        )

        assert breakdown.total_additions == Decimal("500.00")
        assert breakdown.total_deductions == Decimal("1951.50")

    def test_to_dict(self):
        data = payroll_formula(Country.USA)(Decimal("4000")).to_dict()

        assert data["country"] == "USA"
        assert data["currency_code"] == "USD"
        assert data["basic_salary"] == Decimal("4000.00")
        assert data["total_deductions"] == Decimal("1926.00")


class TestComponentsNonNegative:

    @pytest.mark.parametrize("country", [Country.INDIA, Country.FRANCE, Country.USA])
    @pytest.mark.parametrize("basic", ["0", "0.01", "20000", "1000000"])
    def test_every_component_is_non_negative(self, country, basic):
        breakdown = payroll_formula(country)(Decimal(basic))

        for name, value in {**breakdown.additions, **breakdown.deductions}.items():
            assert value >= 0, name
        assert breakdown.total_additions >= 0
        assert breakdown.total_deductions >= 0
