"""Super-admin service - cross-tenant organization and user administration.

Every payload arrives wrapped in the WordPress envelope; one level is
stripped before results are validated.
"""

from typing import Any

from casa_client.schemas.common import ApiResponse
from casa_client.schemas.super_admin import (
    AssignUserData,
    CreateOrganizationData,
    OrganizationUser,
    SuperAdminDashboard,
    TenantOrganization,
)
from casa_client.services.api_client import ApiClient, service_call
from casa_client.utils.normalization import build_query, unwrap_envelope

DEFAULT_LOG_LIMIT = 100


def _as_list(data: Any) -> list[Any]:
    return data if isinstance(data, list) else []


@service_call("Failed to check super admin access")
async def is_super_admin(client: ApiClient) -> ApiResponse:
    """``data`` is True only when the dashboard flags the caller as super admin."""
    response = await client.casa_get("super-admin/dashboard")
    data = unwrap_envelope(response.data) if response.success else None
    flag = isinstance(data, dict) and data.get("is_super_admin") is True
    return ApiResponse.ok(flag, status_code=response.status_code)


@service_call("Failed to fetch dashboard")
async def get_dashboard(client: ApiClient) -> ApiResponse:
    response = await client.casa_get("super-admin/dashboard")
    if not response.success:
        return response
    dashboard = SuperAdminDashboard.model_validate(unwrap_envelope(response.data) or {})
    return ApiResponse.ok(dashboard, status_code=response.status_code)


@service_call("Failed to fetch organizations")
async def get_organizations(client: ApiClient) -> ApiResponse:
    response = await client.casa_get("super-admin/organizations")
    if not response.success:
        return response
    organizations = [
        TenantOrganization.model_validate(item)
        for item in _as_list(unwrap_envelope(response.data))
    ]
    return ApiResponse.ok(organizations, status_code=response.status_code)


@service_call("Failed to create organization")
async def create_organization(client: ApiClient, data: CreateOrganizationData) -> ApiResponse:
    response = await client.casa_post("super-admin/organizations", data.model_dump(exclude_none=True))
    if not response.success:
        return response
    return ApiResponse.ok(unwrap_envelope(response.data), status_code=response.status_code)


@service_call("Failed to update organization")
async def update_organization(client: ApiClient, organization_id: int, updates: dict[str, Any]) -> ApiResponse:
    response = await client.casa_put(f"super-admin/organizations/{organization_id}", updates)
    if not response.success:
        return response
    return ApiResponse.ok(unwrap_envelope(response.data), status_code=response.status_code)


@service_call("Failed to fetch organization users")
async def get_organization_users(client: ApiClient, organization_id: int) -> ApiResponse:
    response = await client.casa_get(f"super-admin/organizations/{organization_id}/users")
    if not response.success:
        return response
    users = [
        OrganizationUser.model_validate(item)
        for item in _as_list(unwrap_envelope(response.data))
    ]
    return ApiResponse.ok(users, status_code=response.status_code)


@service_call("Failed to assign user")
async def assign_user_to_organization(client: ApiClient, data: AssignUserData) -> ApiResponse:
    return await client.casa_post("super-admin/assign-user", data.model_dump(exclude_none=True))


@service_call("Failed to switch organization")
async def switch_organization(client: ApiClient, organization_id: int) -> ApiResponse:
    """Switch the administrator's working organization context."""
    response = await client.casa_post(f"super-admin/switch-org/{organization_id}")
    if not response.success:
        return response
    return ApiResponse.ok(unwrap_envelope(response.data), status_code=response.status_code)


@service_call("Failed to run setup")
async def run_full_setup(client: ApiClient) -> ApiResponse:
    return await client.casa_post("super-admin/full-setup")


@service_call("Failed to fetch security log")
async def get_security_log(client: ApiClient, limit: int = DEFAULT_LOG_LIMIT) -> ApiResponse:
    response = await client.casa_get("super-admin/security-log", params=build_query(limit=limit))
    if not response.success:
        return response
    return ApiResponse.ok(_as_list(unwrap_envelope(response.data)), status_code=response.status_code)


@service_call("Failed to fetch access log")
async def get_access_log(client: ApiClient, limit: int = DEFAULT_LOG_LIMIT) -> ApiResponse:
    response = await client.casa_get("super-admin/access-log", params=build_query(limit=limit))
    if not response.success:
        return response
    return ApiResponse.ok(_as_list(unwrap_envelope(response.data)), status_code=response.status_code)
