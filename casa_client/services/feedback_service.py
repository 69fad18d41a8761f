"""In-app feedback service."""

from typing import Any

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import (
    CASA_PREFIX,
    ApiClient,
    FileInput,
    fetch_collection,
    service_call,
)
from casa_client.utils.normalization import unwrap_envelope

FEEDBACK_KEYS = ("feedback", "items")


@service_call("Failed to submit feedback")
async def submit_feedback(client: ApiClient, feedback: dict[str, Any]) -> ApiResponse:
    """Submit feedback; ``attachments`` holds records returned by ``upload_attachment``."""
    return await client.casa_post("feedback", feedback)


@service_call("Failed to upload attachment")
async def upload_attachment(client: ApiClient, file: FileInput) -> ApiResponse:
    response = await client.upload_file(CASA_PREFIX + "feedback/upload", file)
    if not response.success:
        return response
    return ApiResponse.ok(unwrap_envelope(response.data), status_code=response.status_code)


@service_call("Failed to load feedback")
async def list_feedback(
    client: ApiClient,
    status: str | None = None,
    feedback_type: str | None = None,
) -> ApiResponse:
    return await fetch_collection(client, "feedback", FEEDBACK_KEYS, status=status, feedback_type=feedback_type)


@service_call("Failed to load feedback")
async def list_my_feedback(client: ApiClient) -> ApiResponse:
    return await fetch_collection(client, "feedback", FEEDBACK_KEYS, my_feedback=True)


@service_call("Failed to update status")
async def update_feedback_status(
    client: ApiClient,
    feedback_id: str,
    status: str,
    admin_notes: str | None = None,
) -> ApiResponse:
    return await client.casa_put(
        f"feedback/{feedback_id}/status",
        {"status": status, "admin_notes": admin_notes or ""},
    )


@service_call("Failed to delete feedback")
async def delete_feedback(client: ApiClient, feedback_id: str) -> ApiResponse:
    return await client.casa_delete(f"feedback/{feedback_id}")
