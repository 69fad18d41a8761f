"""Case sub-resources: contact logs, court hearings, home visits, court reports.

Records carry a denormalized ``case_number``. Some endpoints filter by the
numeric case id and others only by ``case_number``, so matching against a
case is done by string equality on the client.
"""

import logging
from typing import Any

from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient, fetch_collection, service_call

logger = logging.getLogger(__name__)

CONTACT_LOG_KEYS = ("contact_logs", "logs")
HEARING_KEYS = ("hearings", "court_hearings")
REPORT_KEYS = ("reports",)


def matches_case_number(record: Any, case_number: str) -> bool:
    return isinstance(record, dict) and str(record.get("case_number", "")) == str(case_number)


# ============================================================================
# Contact logs
# ============================================================================

@service_call("Failed to fetch contact logs")
async def list_contact_logs(
    client: ApiClient,
    case_id: str | None = None,
    limit: int | None = None,
) -> ApiResponse:
    return await fetch_collection(client, "contact-logs", CONTACT_LOG_KEYS, case_id=case_id, limit=limit)


@service_call("Failed to add contact log")
async def add_contact_log(client: ApiClient, contact_data: dict[str, Any]) -> ApiResponse:
    return await client.casa_post("contact-logs", contact_data)


# ============================================================================
# Court hearings
# ============================================================================

@service_call("Failed to fetch court hearings")
async def list_court_hearings(client: ApiClient, case_id: str | None = None) -> ApiResponse:
    return await fetch_collection(client, "court-hearings", HEARING_KEYS, case_id=case_id)


@service_call("Failed to schedule court hearing")
async def schedule_court_hearing(client: ApiClient, hearing_data: dict[str, Any]) -> ApiResponse:
    return await client.casa_post("court-hearings", hearing_data)


@service_call("Failed to fetch case hearings")
async def get_case_hearings(client: ApiClient, case_id: str, case_number: str) -> ApiResponse:
    """Hearings for one case from both the per-case and the global listing.

    Per-case entries come first; global entries are matched on
    ``case_number`` and de-duplicated by id.
    """
    per_case = await fetch_collection(client, "court-hearings", HEARING_KEYS, case_id=case_id)
    everything = await fetch_collection(client, "court-hearings", HEARING_KEYS)
    if not per_case.success and not everything.success:
        return per_case

    merged: list[Any] = list(per_case.data or [])
    seen = {str(h.get("id")) for h in merged if isinstance(h, dict) and h.get("id") is not None}
    for hearing in everything.data or []:
        if not matches_case_number(hearing, case_number):
            continue
        hearing_id = hearing.get("id")
        if hearing_id is not None and str(hearing_id) in seen:
            continue
        if hearing_id is not None:
            seen.add(str(hearing_id))
        merged.append(hearing)

    logger.debug("Merged %d hearings for case %s", len(merged), case_id)
    return ApiResponse.ok(merged)


# ============================================================================
# Reports
# ============================================================================

@service_call("Failed to fetch home visit reports")
async def list_home_visit_reports(client: ApiClient, case_id: str | None = None) -> ApiResponse:
    return await fetch_collection(client, "home-visit-reports", REPORT_KEYS, case_id=case_id)


@service_call("Failed to create home visit report")
async def create_home_visit_report(client: ApiClient, report_data: dict[str, Any]) -> ApiResponse:
    return await client.casa_post("home-visit-reports", report_data)


@service_call("Failed to fetch court reports")
async def list_court_reports(client: ApiClient, case_id: str | None = None) -> ApiResponse:
    return await fetch_collection(client, "court-reports", REPORT_KEYS, case_id=case_id)


@service_call("Failed to create court report")
async def create_court_report(client: ApiClient, report_data: dict[str, Any]) -> ApiResponse:
    return await client.casa_post("court-reports", report_data)
