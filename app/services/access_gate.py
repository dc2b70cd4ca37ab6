"""
Global Payroll Portal - Employee/Payroll Access Gate

Single choke point for every read and write on employees and payroll
entries. Checks, in order:

1. the caller is authenticated
2. the caller's role is a recognised admin role
3. the target record's country is within the role's scope
4. the operation's permission flag is set for the role
5. payroll create/update: the employee is active

Delete is allowed on inactive employees' entries (history cleanup) but only
for roles with can_delete_payroll.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from app.models.country import Country
from app.models.employee import Employee
from app.models.payroll import PayPeriod
from app.services.country_rules import accepts_pay_period
from app.utils.error_handling import (
    AuthenticationException,
    AuthorizationException,
    CrossCountryAccessDenied,
    InactiveEmployeeException,
    InsufficientPermissionsException,
)
from app.utils.permissions import (
    RolePermissions,
    allowed_country,
    get_country_restriction_message,
    get_role_permissions,
    is_management_role,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminIdentity:
    """The authenticated admin making a request."""
    id: int
    email: str
    role: str

    @property
    def policy(self) -> RolePermissions:
        return get_role_permissions(self.role)

    @property
    def allowed_country(self) -> Optional[Country]:
        return allowed_country(self.role)


class AccessGate:
    """Authorization checks for one identity."""

    def __init__(self, identity: Optional[AdminIdentity]):
        self.identity = self.ensure_authenticated(identity)

    @staticmethod
    def ensure_authenticated(identity: Optional[AdminIdentity]) -> AdminIdentity:
        if identity is None:
            raise AuthenticationException("Not authenticated")
        return identity

    @property
    def policy(self) -> RolePermissions:
        return self.identity.policy

    def ensure_management_role(self) -> None:
        if not is_management_role(self.identity.role):
            logger.warning(f"Access denied: unrecognised role '{self.identity.role}' for {self.identity.email}")
            raise AuthorizationException("Access denied. Management role required.")

    def ensure_country_access(self, country: Optional[Country]) -> None:
        self.ensure_management_role()
        if country is None or country not in self.policy.allowed_countries:
            logger.warning(
                f"Cross-country access denied: {self.identity.email} ({self.identity.role}) -> {country}"
            )
            raise CrossCountryAccessDenied(
                country.value if country else None,
                message=get_country_restriction_message(self.identity.role),
            )

    def ensure_permission(self, permission: str) -> None:
        self.ensure_management_role()
        if not getattr(self.policy, permission, False):
            logger.warning(f"Permission '{permission}' denied for {self.identity.email} ({self.identity.role})")
            raise InsufficientPermissionsException(permission, user_role=self.identity.role)

    def country_filter(self) -> Optional[Country]:
        """Country to scope list queries by; None for the global admin."""
        self.ensure_management_role()
        if self.policy.can_view_all_countries:
            return None
        return self.identity.allowed_country

    # ===========================================
    # EMPLOYEES
    # ===========================================

    def authorize_employee_read(self, employee: Employee) -> None:
        self.ensure_country_access(employee.country)

    def authorize_employee_write(self, employee: Employee) -> None:
        self.ensure_country_access(employee.country)

    def authorize_employee_country(self, country: Country) -> None:
        """Creating an employee, or moving one, into `country`."""
        self.ensure_country_access(country)

    def authorize_status_change(self, employee: Employee) -> None:
        self.ensure_permission("can_manage_employee_status")
        self.ensure_country_access(employee.country)

    # ===========================================
    # PAYROLL
    # ===========================================

    def authorize_payroll_read(self, employee: Employee) -> None:
        self.ensure_country_access(employee.country)

    def authorize_payroll_create(self, employee: Employee) -> None:
        self.ensure_permission("can_create_payroll")
        self.ensure_country_access(employee.country)
        if not employee.is_active:
            raise InactiveEmployeeException(employee.employee_id, operation="create")

    def authorize_payroll_update(self, employee: Employee) -> None:
        self.ensure_permission("can_edit_payroll")
        self.ensure_country_access(employee.country)
        if not employee.is_active:
            raise InactiveEmployeeException(employee.employee_id, operation="update")

    def authorize_payroll_delete(self, employee: Employee) -> None:
        self.ensure_permission("can_delete_payroll")
        self.ensure_country_access(employee.country)

    def authorize_query(self) -> None:
        """Natural-language query surface: any recognised admin role."""
        self.ensure_management_role()

    @staticmethod
    def filter_pay_periods(periods: Iterable[PayPeriod], country: Country) -> List[PayPeriod]:
        """Pay periods whose span fits the country's pay cadence."""
        return [p for p in periods if accepts_pay_period(country, p.span_days)]
