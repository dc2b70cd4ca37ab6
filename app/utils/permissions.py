"""
Global Payroll Portal - Permissions System

Role-based access for portal admins. This is the only place that maps a role
to a country scope and a permission set; everything else asks these helpers.

Permission Matrix:
==================

| Permission                    | Global Admin | India Admin | France Admin | USA Admin |
|-------------------------------|--------------|-------------|--------------|-----------|
| view_all_countries            | X            |             |              |           |
| create_payroll                | X            | X           | X            | X         |
| edit_payroll                  | X            | X           | X            | X         |
| delete_payroll                | X            |             |              |           |
| manage_employee_status        | X            | X           | X            | X         |

Country scope:
--------------
| Role          | Countries              |
|---------------|------------------------|
| admin         | India, France, USA     |
| india_admin   | India                  |
| france_admin  | France                 |
| us_admin      | USA                    |

A role string outside the table resolves to no countries and no permissions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, Tuple, Union

from app.models.country import Country
from app.models.user import AdminRole


# ===========================================
# PERMISSION ENUM
# ===========================================

class PortalPermission(str, Enum):
    """Permissions granted to portal admins."""

    VIEW_ALL_COUNTRIES = "view_all_countries"
    CREATE_PAYROLL = "create_payroll"
    EDIT_PAYROLL = "edit_payroll"
    DELETE_PAYROLL = "delete_payroll"
    MANAGE_EMPLOYEE_STATUS = "manage_employee_status"


# ===========================================
# ROLE MAPPINGS
# ===========================================

_COUNTRY_ADMIN_PERMISSIONS: Set[PortalPermission] = {
    PortalPermission.CREATE_PAYROLL,
    PortalPermission.EDIT_PAYROLL,
    PortalPermission.MANAGE_EMPLOYEE_STATUS,
}

ROLE_PERMISSIONS: Dict[AdminRole, Set[PortalPermission]] = {
    AdminRole.ADMIN: set(PortalPermission),
    AdminRole.INDIA_ADMIN: set(_COUNTRY_ADMIN_PERMISSIONS),
    AdminRole.FRANCE_ADMIN: set(_COUNTRY_ADMIN_PERMISSIONS),
    AdminRole.US_ADMIN: set(_COUNTRY_ADMIN_PERMISSIONS),
}

# None means unrestricted
ROLE_COUNTRY: Dict[AdminRole, Optional[Country]] = {
    AdminRole.ADMIN: None,
    AdminRole.INDIA_ADMIN: Country.INDIA,
    AdminRole.FRANCE_ADMIN: Country.FRANCE,
    AdminRole.US_ADMIN: Country.USA,
}

ROLE_DISPLAY_NAMES: Dict[AdminRole, str] = {
    AdminRole.ADMIN: "Global Admin",
    AdminRole.INDIA_ADMIN: "India Admin",
    AdminRole.FRANCE_ADMIN: "France Admin",
    AdminRole.US_ADMIN: "USA Admin",
}

COUNTRY_RESTRICTION_MESSAGES: Dict[Country, str] = {
    Country.INDIA: "You can only manage Indian employees and payroll",
    Country.FRANCE: "You can only manage French employees and payroll",
    Country.USA: "You can only manage US employees and payroll",
}


@dataclass(frozen=True)
class RolePermissions:
    """Resolved access policy for a role."""

    can_view_all_countries: bool
    allowed_countries: Tuple[Country, ...]
    can_create_payroll: bool
    can_edit_payroll: bool
    can_delete_payroll: bool
    can_manage_employee_status: bool

    def to_dict(self) -> dict:
        return {
            "can_view_all_countries": self.can_view_all_countries,
            "allowed_countries": [c.value for c in self.allowed_countries],
            "can_create_payroll": self.can_create_payroll,
            "can_edit_payroll": self.can_edit_payroll,
            "can_delete_payroll": self.can_delete_payroll,
            "can_manage_employee_status": self.can_manage_employee_status,
        }


NO_ACCESS = RolePermissions(
    can_view_all_countries=False,
    allowed_countries=(),
    can_create_payroll=False,
    can_edit_payroll=False,
    can_delete_payroll=False,
    can_manage_employee_status=False,
)


# ===========================================
# RESOLVER
# ===========================================

RoleLike = Union[AdminRole, str, None]


def parse_role(role: RoleLike) -> Optional[AdminRole]:
    """Return the AdminRole for a role value, or None if it is not one."""
    if isinstance(role, AdminRole):
        return role
    if not isinstance(role, str):
        return None
    try:
        return AdminRole(role.strip().lower())
    except ValueError:
        return None


def is_management_role(role: RoleLike) -> bool:
    """True for every recognised admin role."""
    return parse_role(role) is not None


def allowed_country(role: RoleLike) -> Optional[Country]:
    """
    Country a role is restricted to.

    Returns None for the global admin (unrestricted) and also for an
    unrecognised role; callers that need to tell those apart must check
    is_management_role first, or use get_role_permissions.
    """
    admin_role = parse_role(role)
    if admin_role is None:
        return None
    return ROLE_COUNTRY[admin_role]


def get_permissions(role: RoleLike) -> Set[PortalPermission]:
    """Get the permission set for a role."""
    admin_role = parse_role(role)
    if admin_role is None:
        return set()
    return set(ROLE_PERMISSIONS[admin_role])


def has_permission(role: RoleLike, permission: PortalPermission) -> bool:
    """Check if a role has a specific permission."""
    return permission in get_permissions(role)


def get_role_permissions(role: RoleLike) -> RolePermissions:
    """Resolve the full access policy for a role. Unknown roles get NO_ACCESS."""
    admin_role = parse_role(role)
    if admin_role is None:
        return NO_ACCESS

    permissions = ROLE_PERMISSIONS[admin_role]
    country = ROLE_COUNTRY[admin_role]
    return RolePermissions(
        can_view_all_countries=PortalPermission.VIEW_ALL_COUNTRIES in permissions,
        allowed_countries=tuple(Country) if country is None else (country,),
        can_create_payroll=PortalPermission.CREATE_PAYROLL in permissions,
        can_edit_payroll=PortalPermission.EDIT_PAYROLL in permissions,
        can_delete_payroll=PortalPermission.DELETE_PAYROLL in permissions,
        can_manage_employee_status=PortalPermission.MANAGE_EMPLOYEE_STATUS in permissions,
    )


def can_access_country(role: RoleLike, country: Optional[Country]) -> bool:
    """True if the role may act on records in the given country."""
    if country is None:
        return False
    return country in get_role_permissions(role).allowed_countries


def get_role_display_name(role: RoleLike) -> str:
    admin_role = parse_role(role)
    if admin_role is None:
        return "Unknown Role"
    return ROLE_DISPLAY_NAMES[admin_role]


def get_country_restriction_message(role: RoleLike) -> Optional[str]:
    """UI hint for country admins; None for the global admin."""
    country = allowed_country(role)
    if country is None:
        return None
    return COUNTRY_RESTRICTION_MESSAGES[country]
