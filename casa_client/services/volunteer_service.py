"""Volunteer service.

Volunteer CRUD and workflow calls, plus the onboarding pipeline board:
    applied -> background_check -> training -> active
    (rejected from any stage)
Stage transitions are decided by the backend; the client only sends actions.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import ValidationError

from casa_client.core.stage_definitions import resolve_stage
from casa_client.schemas.common import ApiResponse
from casa_client.schemas.volunteer import (
    AccountApproval,
    Address,
    EmergencyContact,
    PipelineAction,
    PipelineActionResult,
    PipelineBoard,
    Volunteer,
)
from casa_client.services.api_client import (
    CASA_PREFIX,
    ApiClient,
    FileInput,
    fetch_collection,
    fetch_envelope,
    service_call,
)
from casa_client.utils.normalization import coerce_id, is_blank, unwrap_collection, unwrap_envelope

logger = logging.getLogger(__name__)

VOLUNTEER_KEYS = ("volunteers",)
CASE_KEYS = ("cases",)
CONTACT_LOG_KEYS = ("contact_logs", "logs")

BackgroundCheckStatus = Literal["pending", "approved", "denied", "expired"]
VolunteerReportType = Literal["activity", "performance", "training"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# Transformation
# ============================================================================

def _first(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First truthy value among snake_case and camelCase spellings."""
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return default


def transform_volunteer(raw: dict[str, Any]) -> Volunteer:
    """Map a backend volunteer record onto the camelCase view-model.

    ``address`` and ``emergency_contact`` are only built when their primary
    field is present; the raw status is kept even when it is not a known stage.
    """
    status = _first(raw, "volunteer_status", "volunteerStatus", default="applied")

    address = None
    if not is_blank(raw.get("address")):
        address = Address(
            street=raw["address"],
            city=raw.get("city") or "",
            state=raw.get("state") or "",
            zip_code=_first(raw, "zip_code", "zipCode", default=""),
        )

    emergency_contact = None
    if not is_blank(raw.get("emergency_contact_name")):
        emergency_contact = EmergencyContact(
            name=raw["emergency_contact_name"],
            relationship=raw.get("emergency_contact_relationship") or "",
            phone=raw.get("emergency_contact_phone") or "",
        )

    return Volunteer(
        id=str(raw.get("id")),
        user_id=coerce_id(raw.get("user_id")) if raw.get("user_id") else None,
        first_name=_first(raw, "first_name", "firstName", default=""),
        last_name=_first(raw, "last_name", "lastName", default=""),
        email=raw.get("email") or "",
        phone=raw.get("phone") or "",
        date_of_birth=_first(raw, "date_of_birth", "dateOfBirth"),
        address=address,
        emergency_contact=emergency_contact,
        background_check_status=raw.get("background_check_status") or "pending",
        background_check_date=raw.get("background_check_date"),
        training_status=raw.get("training_status") or "not_started",
        training_completed_date=raw.get("training_completion_date"),
        volunteer_status=str(status),
        is_active=status == "active",
        organization_id=str(_first(raw, "organization_id", "organizationId", default="")),
        application_date=raw.get("application_date"),
        approved_at=raw.get("approved_at"),
        approved_by=coerce_id(raw.get("approved_by")) if raw.get("approved_by") else None,
        rejected_at=raw.get("rejected_at"),
        rejection_reason=raw.get("rejection_reason"),
        created_at=_first(raw, "created_at", "createdAt", default=""),
        updated_at=_first(raw, "updated_at", "updatedAt", default=""),
    )


def group_by_pipeline(records: list[Any]) -> PipelineBoard:
    """Bucket volunteers by stage; unknown stages land in ``applied``.

    A record that cannot be mapped is logged and left off the board.
    """
    board = PipelineBoard()
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            volunteer = transform_volunteer(record)
        except ValidationError as exc:
            logger.warning(
                "Skipping volunteer %s (%d invalid fields)",
                record.get("id"),
                exc.error_count(),
            )
            continue
        board.bucket(resolve_stage(volunteer.volunteer_status)).append(volunteer)
    return board


# ============================================================================
# Pipeline
# ============================================================================

@service_call("Failed to fetch volunteers by pipeline")
async def get_volunteers_by_pipeline(client: ApiClient) -> ApiResponse:
    response = await client.casa_get("volunteers")
    if not response.success:
        return response

    records = unwrap_collection(response.data, VOLUNTEER_KEYS)
    board = group_by_pipeline(records)
    logger.debug("Pipeline board built from %d volunteers", board.total())
    return ApiResponse.ok(board, status_code=response.status_code)


@service_call("Failed to update pipeline status")
async def update_pipeline_status(
    client: ApiClient,
    volunteer_id: str,
    action: PipelineAction | str,
    notes: str | None = None,
    rejection_reason: str | None = None,
) -> ApiResponse:
    """Post a pipeline action; legality for the current stage is checked server-side."""
    action = PipelineAction(action)
    response = await client.casa_post(
        f"volunteers/{volunteer_id}/pipeline-action",
        {"action": action.value, "notes": notes, "rejection_reason": rejection_reason},
    )
    if not response.success:
        return response

    data = unwrap_envelope(response.data)
    if not isinstance(data, dict):
        data = {}
    result = PipelineActionResult(
        id=str(data.get("id", volunteer_id)),
        action=data.get("action") or action.value,
        old_status=data.get("old_status"),
        new_status=data.get("new_status"),
        user_created=data.get("user_created"),
        username=data.get("username"),
        temporary_password=data.get("temporary_password"),
        welcome_email_sent=data.get("welcome_email_sent"),
    )
    return ApiResponse.ok(result, status_code=response.status_code)


@service_call("Failed to approve volunteer")
async def approve_and_create_account(
    client: ApiClient,
    volunteer_id: str,
    notes: str | None = None,
) -> ApiResponse:
    response = await update_pipeline_status(client, volunteer_id, PipelineAction.APPROVE_VOLUNTEER, notes)
    if not response.success or response.data is None:
        return response

    result: PipelineActionResult = response.data
    approval = AccountApproval(
        id=result.id,
        username=result.username or "",
        temporary_password=result.temporary_password or "",
        welcome_email_sent=bool(result.welcome_email_sent),
    )
    return ApiResponse.ok(approval, status_code=response.status_code)


# ============================================================================
# CRUD
# ============================================================================

@service_call("Failed to fetch volunteers")
async def get_volunteers(
    client: ApiClient,
    is_active: bool | None = None,
    has_active_cases: bool | None = None,
    training_status: str | None = None,
    background_check_status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> ApiResponse:
    return await fetch_collection(
        client,
        "volunteers",
        VOLUNTEER_KEYS,
        is_active=is_active,
        has_active_cases=has_active_cases,
        training_status=training_status,
        background_check_status=background_check_status,
        page=page,
        per_page=limit,
    )


@service_call("Failed to fetch volunteer")
async def get_volunteer(client: ApiClient, volunteer_id: str) -> ApiResponse:
    return await fetch_envelope(client, f"volunteers/{volunteer_id}")


@service_call("Failed to create volunteer")
async def create_volunteer(client: ApiClient, volunteer_data: dict[str, Any]) -> ApiResponse:
    return await client.casa_post("volunteers", volunteer_data)


@service_call("Failed to update volunteer")
async def update_volunteer(client: ApiClient, volunteer_id: str, updates: dict[str, Any]) -> ApiResponse:
    return await client.casa_put(f"volunteers/{volunteer_id}", updates)


@service_call("Failed to delete volunteer")
async def delete_volunteer(client: ApiClient, volunteer_id: str) -> ApiResponse:
    return await client.casa_delete(f"volunteers/{volunteer_id}")


@service_call("Failed to activate volunteer")
async def activate_volunteer(client: ApiClient, volunteer_id: str) -> ApiResponse:
    return await client.casa_post(f"volunteers/{volunteer_id}/activate")


@service_call("Failed to deactivate volunteer")
async def deactivate_volunteer(
    client: ApiClient,
    volunteer_id: str,
    reason: str | None = None,
) -> ApiResponse:
    return await client.casa_post(
        f"volunteers/{volunteer_id}/deactivate",
        {"reason": reason, "deactivation_date": _now_iso()},
    )


@service_call("Failed to update training")
async def update_training(client: ApiClient, volunteer_id: str, training: dict[str, Any]) -> ApiResponse:
    return await client.casa_put(f"volunteers/{volunteer_id}/training", {"training": training})


@service_call("Failed to update background check")
async def update_background_check(
    client: ApiClient,
    volunteer_id: str,
    status: BackgroundCheckStatus,
    expiry_date: str | None = None,
    check_date: str | None = None,
    notes: str | None = None,
) -> ApiResponse:
    background_check = {
        "status": status,
        "expiryDate": expiry_date,
        "checkDate": check_date,
        "notes": notes,
    }
    return await client.casa_put(
        f"volunteers/{volunteer_id}/background-check",
        {"background_check": {k: v for k, v in background_check.items() if v is not None}},
    )


@service_call("Failed to fetch volunteer cases")
async def get_volunteer_cases(
    client: ApiClient,
    volunteer_id: str,
    include_inactive: bool = False,
) -> ApiResponse:
    return await fetch_collection(
        client,
        f"volunteers/{volunteer_id}/cases",
        CASE_KEYS,
        include_inactive=include_inactive,
    )


@service_call("Failed to fetch volunteer contact logs")
async def get_volunteer_contact_logs(
    client: ApiClient,
    volunteer_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> ApiResponse:
    return await fetch_collection(
        client,
        f"volunteers/{volunteer_id}/contact-logs",
        CONTACT_LOG_KEYS,
        page=page,
        per_page=limit,
        start_date=start_date,
        end_date=end_date,
    )


@service_call("Failed to update availability")
async def update_availability(
    client: ApiClient,
    volunteer_id: str,
    availability: dict[str, Any],
) -> ApiResponse:
    return await client.casa_put(
        f"volunteers/{volunteer_id}/availability",
        {"availability": availability},
    )


@service_call("Failed to fetch available volunteers")
async def get_available_volunteers(
    client: ApiClient,
    max_cases: int | None = None,
    training_active: bool | None = None,
    background_check_valid: bool | None = None,
    preferred_days: list[str] | None = None,
) -> ApiResponse:
    return await fetch_collection(
        client,
        "volunteers/available",
        VOLUNTEER_KEYS,
        max_cases=max_cases or None,
        training_active=training_active,
        background_check_valid=background_check_valid,
        preferred_days=preferred_days,
    )


@service_call("Failed to generate volunteer report")
async def generate_volunteer_report(
    client: ApiClient,
    volunteer_id: str,
    report_type: VolunteerReportType = "activity",
    start_date: str | None = None,
    end_date: str | None = None,
) -> ApiResponse:
    payload: dict[str, Any] = {"report_type": report_type}
    if start_date and end_date:
        payload["start_date"] = start_date
        payload["end_date"] = end_date
    return await client.casa_post(f"volunteers/{volunteer_id}/reports", payload)


@service_call("Failed to search volunteers")
async def search_volunteers(
    client: ApiClient,
    query: str,
    is_active: bool | None = None,
    training_status: str | None = None,
    background_check_status: str | None = None,
) -> ApiResponse:
    return await fetch_collection(
        client,
        "volunteers/search",
        VOLUNTEER_KEYS,
        q=query,
        is_active=is_active,
        training_status=training_status,
        background_check_status=background_check_status,
    )


@service_call("Failed to update volunteers")
async def bulk_update_volunteers(
    client: ApiClient,
    volunteer_ids: list[str],
    updates: dict[str, Any],
) -> ApiResponse:
    return await client.casa_post(
        "volunteers/bulk-update",
        {"volunteer_ids": volunteer_ids, "updates": updates},
    )


@service_call("Failed to send training reminder")
async def send_training_reminder(
    client: ApiClient,
    volunteer_id: str,
    message: str | None = None,
) -> ApiResponse:
    return await client.casa_post(f"volunteers/{volunteer_id}/training-reminder", {"message": message})


@service_call("Failed to send background check reminder")
async def send_background_check_reminder(
    client: ApiClient,
    volunteer_id: str,
    message: str | None = None,
) -> ApiResponse:
    return await client.casa_post(
        f"volunteers/{volunteer_id}/background-check-reminder",
        {"message": message},
    )


@service_call("Failed to fetch volunteer statistics")
async def get_volunteer_stats(client: ApiClient, volunteer_id: str) -> ApiResponse:
    return await fetch_envelope(client, f"volunteers/{volunteer_id}/stats")


@service_call("Failed to import volunteers")
async def import_volunteers(client: ApiClient, file: FileInput) -> ApiResponse:
    """Upload a CSV of volunteers; the backend reports imported rows and errors."""
    return await client.upload_file(CASA_PREFIX + "volunteers/import", file, "csv_file")


@service_call("Failed to export volunteers")
async def export_volunteers(
    client: ApiClient,
    is_active: bool | None = None,
    include_inactive: bool | None = None,
    training_status: str | None = None,
) -> ApiResponse:
    payload = {
        "is_active": is_active,
        "include_inactive": include_inactive,
        "training_status": training_status or None,
    }
    return await client.casa_post(
        "volunteers/export",
        {k: v for k, v in payload.items() if v is not None},
    )
