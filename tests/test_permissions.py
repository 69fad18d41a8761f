"""Tests for role-based permission checks."""

from casa_client.core.permissions import (
    PERMISSION_REGISTRY,
    ROLE_PERMISSIONS,
    can_access_organization,
    get_role_permissions,
    has_permission,
)
from casa_client.schemas.auth import User


def _user(*roles, organization_id="9"):
    return User(id="1", email="user@example.com", roles=list(roles), organization_id=organization_id)


def test_administrator_has_every_permission():
    admin = _user("administrator")
    assert all(has_permission(admin, key) for key in PERMISSION_REGISTRY)
    assert has_permission(admin, "not_a_registered_permission")


def test_role_table():
    assert has_permission(_user("tenant_admin"), "manage_users")
    assert has_permission(_user("manager"), "view_analytics")
    assert not has_permission(_user("editor"), "view_analytics")
    assert has_permission(_user("viewer"), "view_submissions")
    assert not has_permission(_user("viewer"), "manage_forms")


def test_unknown_roles_and_missing_user_get_nothing():
    assert get_role_permissions("volunteer") == set()
    assert not has_permission(_user("volunteer"), "view_submissions")
    assert not has_permission(None, "view_submissions")


def test_role_table_only_references_registered_permissions():
    for permissions in ROLE_PERMISSIONS.values():
        assert permissions <= set(PERMISSION_REGISTRY)


def test_can_access_organization():
    assert can_access_organization(_user("viewer"), "9")
    assert not can_access_organization(_user("viewer"), "10")
    assert not can_access_organization(_user("viewer", organization_id=None), "9")
    assert can_access_organization(_user("administrator"), "10")
    assert not can_access_organization(None, "9")
