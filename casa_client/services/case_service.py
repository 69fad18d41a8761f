"""Case service - case CRUD, assignment, status workflow and reporting."""

from datetime import date, datetime, timezone
from typing import Any, Literal

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient, fetch_collection, fetch_envelope, service_call

CASE_COLLECTION_KEYS = ("cases",)
CONTACT_LOG_COLLECTION_KEYS = ("contact_logs", "logs")

ReportType = Literal["court", "monthly", "annual"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# Queries
# ============================================================================

@service_call("Failed to fetch cases")
async def get_cases(
    client: ApiClient,
    status: str | None = None,
    volunteer_id: str | None = None,
    priority: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> ApiResponse:
    """List cases for the current organization."""
    return await fetch_collection(
        client,
        "cases",
        CASE_COLLECTION_KEYS,
        status=status,
        volunteer_id=volunteer_id,
        priority=priority,
        page=page,
        per_page=limit,
    )


@service_call("Failed to fetch draft cases")
async def get_draft_cases(client: ApiClient) -> ApiResponse:
    return await fetch_collection(client, "cases", CASE_COLLECTION_KEYS, status="draft")


@service_call("Failed to fetch case")
async def get_case(client: ApiClient, case_id: str) -> ApiResponse:
    return await fetch_envelope(client, f"cases/{case_id}")


@service_call("Failed to fetch contact logs")
async def get_case_contact_logs(
    client: ApiClient,
    case_id: str,
    page: int = 1,
    limit: int = 20,
) -> ApiResponse:
    return await fetch_collection(
        client,
        f"cases/{case_id}/contact-logs",
        CONTACT_LOG_COLLECTION_KEYS,
        page=page,
        per_page=limit,
    )


@service_call("Failed to fetch case timeline")
async def get_case_timeline(client: ApiClient, case_id: str) -> ApiResponse:
    return await fetch_collection(client, f"cases/{case_id}/timeline", ("timeline", "events"))


@service_call("Failed to fetch volunteer cases")
async def get_cases_by_volunteer(
    client: ApiClient,
    volunteer_id: str,
    include_inactive: bool = False,
) -> ApiResponse:
    return await fetch_collection(
        client,
        "cases/by-volunteer",
        CASE_COLLECTION_KEYS,
        volunteer_id=volunteer_id,
        include_inactive=include_inactive,
    )


@service_call("Failed to search cases")
async def search_cases(
    client: ApiClient,
    query: str,
    case_type: str | None = None,
    status: str | None = None,
    priority: str | None = None,
) -> ApiResponse:
    return await fetch_collection(
        client,
        "cases/search",
        CASE_COLLECTION_KEYS,
        q=query,
        case_type=case_type,
        status=status,
        priority=priority,
    )


@service_call("Failed to fetch dashboard statistics")
async def get_dashboard_stats(client: ApiClient) -> ApiResponse:
    return await fetch_envelope(client, "dashboard-stats")


# ============================================================================
# Mutations
# ============================================================================

@service_call("Failed to create case")
async def create_case(client: ApiClient, case_data: dict[str, Any]) -> ApiResponse:
    """Create a case.

    Expected keys include child_first_name, child_last_name, child_dob,
    case_number and case_type; court, placement and assignment fields are
    optional and passed through untouched.
    """
    return await client.casa_post("cases", case_data)


@service_call("Failed to update case")
async def update_case(client: ApiClient, case_id: str, updates: dict[str, Any]) -> ApiResponse:
    return await client.casa_put(f"cases/{case_id}", updates)


@service_call("Failed to delete case")
async def delete_case(client: ApiClient, case_id: str) -> ApiResponse:
    return await client.casa_delete(f"cases/{case_id}")


@service_call("Failed to assign volunteer")
async def assign_volunteer(client: ApiClient, case_id: str, volunteer_id: str) -> ApiResponse:
    return await client.casa_post(
        f"cases/{case_id}/assign-volunteer",
        {"volunteer_id": volunteer_id, "assignment_date": date.today().isoformat()},
    )


@service_call("Failed to update case status")
async def update_case_status(
    client: ApiClient,
    case_id: str,
    status: str,
    notes: str | None = None,
) -> ApiResponse:
    return await client.casa_put(
        f"cases/{case_id}/status",
        {"status": status, "status_notes": notes, "status_date": _now_iso()},
    )


@service_call("Failed to generate case report")
async def generate_case_report(
    client: ApiClient,
    case_id: str,
    report_type: ReportType = "court",
    start_date: str | None = None,
    end_date: str | None = None,
) -> ApiResponse:
    payload: dict[str, Any] = {"report_type": report_type}
    if start_date and end_date:
        payload["start_date"] = start_date
        payload["end_date"] = end_date
    return await client.casa_post(f"cases/{case_id}/reports", payload)


@service_call("Failed to close case")
async def close_case(
    client: ApiClient,
    case_id: str,
    closure_reason: str,
    outcome: str,
    notes: str | None = None,
) -> ApiResponse:
    return await client.casa_post(
        f"cases/{case_id}/close",
        {
            "closure_reason": closure_reason,
            "outcome": outcome,
            "closure_notes": notes,
            "closure_date": _now_iso(),
        },
    )


@service_call("Failed to transfer case")
async def transfer_case(
    client: ApiClient,
    case_id: str,
    from_volunteer_id: str,
    to_volunteer_id: str,
    reason: str,
) -> ApiResponse:
    return await client.casa_post(
        f"cases/{case_id}/transfer",
        {
            "from_volunteer_id": from_volunteer_id,
            "to_volunteer_id": to_volunteer_id,
            "transfer_reason": reason,
            "transfer_date": _now_iso(),
        },
    )
