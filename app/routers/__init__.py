"""
Global Payroll Portal - Routers Package

FastAPI route handlers.

Routers:
- auth: Login, sign-up, logout and the current admin
- reference: Countries, currencies, pay periods and payroll types
- employees: Employee records, country profiles and bulk upload
- payroll: Payroll entries, calculation preview, summary and export
- ai_query: Natural-language questions over employee and payroll data
"""

from app.routers import (
    auth,
    reference,
    employees,
    payroll,
    ai_query,
)

__all__ = [
    "auth",
    "reference",
    "employees",
    "payroll",
    "ai_query",
]
