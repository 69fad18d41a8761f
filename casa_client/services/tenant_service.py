"""Tenant and organization service.

Tenant administration goes through the legacy ``saas_*`` helpers, which
resolve to the casa namespace. Slug and domain helpers are pure.
"""

import re
from typing import Any
from urllib.parse import urlparse

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import (
    CASA_PREFIX,
    ApiClient,
    FileInput,
    ProgressCallback,
    fetch_collection,
    service_call,
)
from casa_client.utils.normalization import build_query

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50
RESERVED_SLUGS = frozenset({"admin", "api", "www", "mail", "ftp", "localhost", "app", "dashboard"})
DEFAULT_BASE_DOMAIN = "yourapp.com"

TENANT_KEYS = ("tenants",)
USER_KEYS = ("users",)
ORGANIZATION_KEYS = ("organizations",)


# ============================================================================
# Pure helpers
# ============================================================================

def validate_slug(slug: str) -> tuple[bool, str | None]:
    """Return ``(valid, error)`` for a proposed tenant slug."""
    if len(slug) < SLUG_MIN_LENGTH:
        return False, "Slug must be at least 3 characters long"
    if len(slug) > SLUG_MAX_LENGTH:
        return False, "Slug must be less than 50 characters long"
    if not SLUG_PATTERN.match(slug):
        return False, "Slug can only contain lowercase letters, numbers, and hyphens"
    if slug.startswith("-") or slug.endswith("-"):
        return False, "Slug cannot start or end with a hyphen"
    if slug.lower() in RESERVED_SLUGS:
        return False, "This slug is reserved and cannot be used"
    return True, None


def generate_domain(slug: str, base_domain: str = DEFAULT_BASE_DOMAIN) -> str:
    return f"{slug}.{base_domain}"


def parse_tenant_from_url(url: str) -> str | None:
    """Subdomain label of ``url`` when the host has three or more labels."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    parts = hostname.split(".")
    return parts[0] if len(parts) >= 3 else None


def get_default_settings() -> dict[str, Any]:
    return {
        "branding": {
            "primaryColor": "#3b82f6",
            "secondaryColor": "#64748b",
        },
        "features": {
            "maxForms": 10,
            "maxUsers": 5,
            "fileUploadEnabled": True,
            "maxFileSize": 10 * 1024 * 1024,
            "allowedFileTypes": ["jpg", "jpeg", "png", "gif", "pdf", "doc", "docx"],
        },
        "notifications": {
            "emailNotifications": True,
        },
    }


# ============================================================================
# Tenants
# ============================================================================

@service_call("Failed to fetch tenants")
async def get_tenants(client: ApiClient) -> ApiResponse:
    return await fetch_collection(client, "tenants", TENANT_KEYS)


@service_call("Failed to fetch tenant")
async def get_tenant(client: ApiClient, tenant_id: str) -> ApiResponse:
    return await client.saas_get(f"tenants/{tenant_id}")


@service_call("Failed to create tenant")
async def create_tenant(client: ApiClient, tenant_data: dict[str, Any]) -> ApiResponse:
    return await client.saas_post("tenants", tenant_data)


@service_call("Failed to update tenant")
async def update_tenant(client: ApiClient, tenant_id: str, updates: dict[str, Any]) -> ApiResponse:
    return await client.saas_put(f"tenants/{tenant_id}", updates)


@service_call("Failed to delete tenant")
async def delete_tenant(client: ApiClient, tenant_id: str) -> ApiResponse:
    return await client.saas_delete(f"tenants/{tenant_id}")


@service_call("Failed to update tenant settings")
async def update_tenant_settings(client: ApiClient, tenant_id: str, settings: dict[str, Any]) -> ApiResponse:
    return await client.saas_put(f"tenants/{tenant_id}/settings", settings)


@service_call("Failed to fetch tenant users")
async def get_tenant_users(client: ApiClient, tenant_id: str, page: int = 1, limit: int = 20) -> ApiResponse:
    return await fetch_collection(client, f"tenants/{tenant_id}/users", USER_KEYS, page=page, per_page=limit)


@service_call("Failed to invite user")
async def invite_user(
    client: ApiClient,
    tenant_id: str,
    email: str,
    role: str,
    display_name: str | None = None,
) -> ApiResponse:
    payload = {"email": email, "role": role}
    if display_name:
        payload["displayName"] = display_name
    return await client.saas_post(f"tenants/{tenant_id}/invite", payload)


@service_call("Failed to remove user")
async def remove_user(client: ApiClient, tenant_id: str, user_id: int) -> ApiResponse:
    return await client.saas_delete(f"tenants/{tenant_id}/users/{user_id}")


@service_call("Failed to update user role")
async def update_user_role(client: ApiClient, tenant_id: str, user_id: int, role: str) -> ApiResponse:
    return await client.saas_put(f"tenants/{tenant_id}/users/{user_id}/role", {"role": role})


@service_call("Failed to fetch dashboard stats")
async def get_dashboard_stats(client: ApiClient, tenant_id: str) -> ApiResponse:
    return await client.saas_get(f"tenants/{tenant_id}/dashboard-stats")


@service_call("Failed to fetch analytics")
async def get_tenant_analytics(
    client: ApiClient,
    tenant_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
) -> ApiResponse:
    params = build_query(start_date=start_date, end_date=end_date) if start_date and end_date else {}
    return await client.saas_get(f"tenants/{tenant_id}/analytics", params=params)


@service_call("Failed to suspend tenant")
async def suspend_tenant(client: ApiClient, tenant_id: str, reason: str | None = None) -> ApiResponse:
    return await client.saas_post(f"tenants/{tenant_id}/suspend", {"reason": reason})


@service_call("Failed to activate tenant")
async def activate_tenant(client: ApiClient, tenant_id: str) -> ApiResponse:
    return await client.saas_post(f"tenants/{tenant_id}/activate")


@service_call("Failed to check slug availability")
async def check_slug_availability(client: ApiClient, slug: str) -> ApiResponse:
    return await client.saas_get(f"tenants/check-slug/{slug}")


@service_call("Failed to fetch tenant")
async def get_tenant_by_slug(client: ApiClient, slug: str) -> ApiResponse:
    return await client.saas_get(f"tenants/by-slug/{slug}")


@service_call("Failed to upload logo")
async def upload_logo(
    client: ApiClient,
    tenant_id: str,
    logo: FileInput,
    on_progress: ProgressCallback | None = None,
) -> ApiResponse:
    return await client.upload_file(
        CASA_PREFIX + f"tenants/{tenant_id}/logo",
        logo,
        "logo",
        on_progress=on_progress,
    )


@service_call("Failed to fetch storage usage")
async def get_storage_usage(client: ApiClient, tenant_id: str) -> ApiResponse:
    return await client.saas_get(f"tenants/{tenant_id}/storage")


@service_call("Failed to export tenant data")
async def export_tenant_data(
    client: ApiClient,
    tenant_id: str,
    include_users: bool | None = None,
    include_forms: bool | None = None,
    include_submissions: bool | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> ApiResponse:
    options: dict[str, Any] = {
        "includeUsers": include_users,
        "includeForms": include_forms,
        "includeSubmissions": include_submissions,
    }
    options = {k: v for k, v in options.items() if v is not None}
    if start_date and end_date:
        options["dateRange"] = {"start": start_date, "end": end_date}
    return await client.saas_post(f"tenants/{tenant_id}/export", options)


# ============================================================================
# Organization settings
# ============================================================================

@service_call("Failed to fetch organizations")
async def get_organizations(client: ApiClient) -> ApiResponse:
    return await fetch_collection(client, "organizations", ORGANIZATION_KEYS)


@service_call("Failed to update organization settings")
async def update_organization_settings(client: ApiClient, update_data: dict[str, Any]) -> ApiResponse:
    return await client.casa_post("organizations/update", update_data)


@service_call("Failed to register organization")
async def register_organization(client: ApiClient, registration: dict[str, Any]) -> ApiResponse:
    """Self-service organization signup; no session is required."""
    return await client.casa_post("register-organization", registration, authenticate=False)
