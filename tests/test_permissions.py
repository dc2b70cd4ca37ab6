"""
Global Payroll Portal - Permission Tests

Unit tests for the role-access resolver.
"""

import pytest

from app.models.country import Country
from app.models.user import AdminRole
from app.utils.permissions import (
    NO_ACCESS,
    PortalPermission,
    allowed_country,
    can_access_country,
    get_country_restriction_message,
    get_permissions,
    get_role_display_name,
    get_role_permissions,
    has_permission,
    is_management_role,
    parse_role,
)


COUNTRY_ADMINS = [
    (AdminRole.INDIA_ADMIN, Country.INDIA),
    (AdminRole.FRANCE_ADMIN, Country.FRANCE),
    (AdminRole.US_ADMIN, Country.USA),
]


class TestRoleParsing:

    def test_parse_known_roles(self):
        assert parse_role("admin") == AdminRole.ADMIN
        assert parse_role(" India_Admin ") == AdminRole.INDIA_ADMIN
        assert parse_role(AdminRole.US_ADMIN) == AdminRole.US_ADMIN

    @pytest.mark.parametrize("role", ["employee", "superuser", "", None, 1])
    def test_unknown_roles(self, role):
        assert parse_role(role) is None
        assert not is_management_role(role)


class TestGlobalAdmin:
    """The global admin sees every country and may delete entries."""

    def test_policy(self):
        policy = get_role_permissions(AdminRole.ADMIN)

        assert policy.can_view_all_countries
        assert set(policy.allowed_countries) == set(Country)
        assert policy.can_create_payroll
        assert policy.can_edit_payroll
        assert policy.can_delete_payroll
        assert policy.can_manage_employee_status

    def test_unrestricted(self):
        assert allowed_country("admin") is None
        assert get_country_restriction_message("admin") is None
        for country in Country:
            assert can_access_country("admin", country)

    def test_has_every_permission(self):
        assert get_permissions("admin") == set(PortalPermission)


class TestCountryAdmins:
    """Country admins manage their own country only and cannot delete."""

    @pytest.mark.parametrize("role,country", COUNTRY_ADMINS)
    def test_policy(self, role, country):
        policy = get_role_permissions(role)

        assert not policy.can_view_all_countries
        assert policy.allowed_countries == (country,)
        assert policy.can_create_payroll
        assert policy.can_edit_payroll
        assert not policy.can_delete_payroll
        assert policy.can_manage_employee_status

    @pytest.mark.parametrize("role,country", COUNTRY_ADMINS)
    def test_country_scope(self, role, country):
        assert allowed_country(role) == country
        for other in Country:
            assert can_access_country(role, other) == (other == country)

    def test_cannot_delete(self):
        assert not has_permission("india_admin", PortalPermission.DELETE_PAYROLL)
        assert has_permission("india_admin", PortalPermission.EDIT_PAYROLL)

    def test_restriction_messages(self):
        assert get_country_restriction_message("india_admin") == "You can only manage Indian employees and payroll"
        assert get_country_restriction_message("france_admin") == "You can only manage French employees and payroll"
        assert get_country_restriction_message("us_admin") == "You can only manage US employees and payroll"


class TestUnknownRole:
    """Anything outside the role set resolves to no access."""

    def test_no_access(self):
        assert get_role_permissions("hr_manager") == NO_ACCESS
        assert get_permissions("hr_manager") == set()
        assert not can_access_country("hr_manager", Country.INDIA)

    def test_display_name(self):
        assert get_role_display_name("hr_manager") == "Unknown Role"
        assert get_role_display_name("us_admin") == "USA Admin"

    def test_no_country_is_never_accessible(self):
        assert not can_access_country("admin", None)


class TestPolicySerialization:

    def test_to_dict(self):
        data = get_role_permissions("france_admin").to_dict()

        assert data["allowed_countries"] == ["France"]
        assert data["can_delete_payroll"] is False
