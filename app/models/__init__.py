"""
Global Payroll Portal - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin
from app.models.country import Country, CountryRecord, Currency, COUNTRY_IDS
from app.models.user import User, AdminRole
from app.models.employee import Employee, EmployeeIndia, EmployeeFrance, EmployeeUSA
from app.models.payroll import (
    PayPeriod,
    PayrollType,
    PayrollTypeName,
    Payroll,
    payroll_payroll_types,
)

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "Country",
    "CountryRecord",
    "Currency",
    "COUNTRY_IDS",
    "User",
    "AdminRole",
    "Employee",
    "EmployeeIndia",
    "EmployeeFrance",
    "EmployeeUSA",
    "PayPeriod",
    "PayrollType",
    "PayrollTypeName",
    "Payroll",
    "payroll_payroll_types",
]
