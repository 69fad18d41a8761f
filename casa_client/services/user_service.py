"""Organization user management."""

from typing import Any, Literal

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient, fetch_collection, service_call

USER_KEYS = ("users",)

UserStatusAction = Literal["activate", "deactivate"]


@service_call("Failed to load users")
async def list_users(client: ApiClient) -> ApiResponse:
    return await fetch_collection(client, "users", USER_KEYS)


@service_call("Failed to create user")
async def create_user(
    client: ApiClient,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    organization_id: str,
    casa_role: str = "volunteer",
) -> ApiResponse:
    return await client.casa_post(
        "users",
        {
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "casa_role": casa_role,
            "organization_id": organization_id,
        },
    )


@service_call("Failed to invite user")
async def invite_user(
    client: ApiClient,
    invite: dict[str, Any],
    organization_id: str | None = None,
    invited_by: str | None = None,
) -> ApiResponse:
    return await client.casa_post(
        "users/invite",
        {**invite, "organization_id": organization_id, "invited_by": invited_by or ""},
    )


@service_call("Failed to update user status")
async def set_user_status(
    client: ApiClient,
    user_id: str,
    action: UserStatusAction,
    organization_id: str | None = None,
) -> ApiResponse:
    if action not in ("activate", "deactivate"):
        raise ValueError(f"Unknown user status action: {action}")
    return await client.casa_post(f"users/{user_id}/{action}", {"organization_id": organization_id})


@service_call("Failed to change password")
async def change_password(
    client: ApiClient,
    user_id: str,
    new_password: str,
    organization_id: str | None = None,
) -> ApiResponse:
    return await client.casa_post(
        f"users/{user_id}/change-password",
        {"new_password": new_password, "organization_id": organization_id},
    )
