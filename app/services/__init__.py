"""
Global Payroll Portal - Services Package

Business logic services.
"""

from app.services.auth_service import AuthService
from app.services.reference_service import ReferenceService
from app.services.employee_service import EmployeeService
from app.services.payroll_service import PayrollService
from app.services.ai_query_service import AIQueryService

# Country rules and calculation
from app.services.country_rules import COUNTRY_RULES, CountryRule, get_country_rule, resolve_country
from app.services.payroll_calculator import PayrollCalculator, PayrollCalculation
from app.services.access_gate import AccessGate, AdminIdentity

__all__ = [
    # Core Services
    "AuthService",
    "ReferenceService",
    "EmployeeService",
    "PayrollService",
    "AIQueryService",
    # Country rules and calculation
    "COUNTRY_RULES",
    "CountryRule",
    "get_country_rule",
    "resolve_country",
    "PayrollCalculator",
    "PayrollCalculation",
    "AccessGate",
    "AdminIdentity",
]
