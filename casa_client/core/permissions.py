"""Permission registry and coarse role checks for UI gating.

These checks only decide what the client offers; the backend remains the
authority for every actual access decision.

Precedence: administrator > role table > deny
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from casa_client.schemas.auth import User


SUPER_ROLE = "administrator"


@dataclass(frozen=True)
class PermissionDef:
    """Permission definition with metadata."""
    key: str
    label: str
    description: str
    category: str


class PermissionCategory(str, Enum):
    """Permission categories for UI grouping."""
    TEAM = "Team"
    FORMS = "Forms"
    REPORTING = "Reporting"
    SETTINGS = "Settings"


# =============================================================================
# Permission Registry
# =============================================================================

PERMISSION_REGISTRY: dict[str, PermissionDef] = {
    "manage_users": PermissionDef(
        "manage_users", "Manage Users",
        "Invite, deactivate and re-role organization users", PermissionCategory.TEAM
    ),
    "manage_forms": PermissionDef(
        "manage_forms", "Manage Forms",
        "Create and edit intake and registration forms", PermissionCategory.FORMS
    ),
    "view_submissions": PermissionDef(
        "view_submissions", "View Submissions",
        "Read submitted form entries", PermissionCategory.FORMS
    ),
    "view_analytics": PermissionDef(
        "view_analytics", "View Analytics",
        "See organization dashboards and reports", PermissionCategory.REPORTING
    ),
    "manage_settings": PermissionDef(
        "manage_settings", "Manage Settings",
        "Change organization settings", PermissionCategory.SETTINGS
    ),
}


# =============================================================================
# Role Defaults
# =============================================================================

ROLE_PERMISSIONS: dict[str, set[str]] = {
    "tenant_admin": {"manage_users", "manage_forms", "view_analytics", "manage_settings"},
    "manager": {"manage_forms", "view_analytics", "view_submissions"},
    "editor": {"manage_forms", "view_submissions"},
    "viewer": {"view_submissions"},
}


# =============================================================================
# Helper Functions
# =============================================================================

def get_role_permissions(role: str) -> set[str]:
    """Get permissions for a role; unknown roles grant nothing."""
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(user: User | None, permission: str) -> bool:
    """Check a permission against the user's roles."""
    if user is None:
        return False
    if SUPER_ROLE in user.roles:
        return True
    return any(permission in get_role_permissions(role) for role in user.roles)


def can_access_organization(user: User | None, organization_id: str) -> bool:
    """Own organization, or any organization for administrators."""
    if user is None:
        return False
    if user.organization_id is not None and user.organization_id == organization_id:
        return True
    return SUPER_ROLE in user.roles
