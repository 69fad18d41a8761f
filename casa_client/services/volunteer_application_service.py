"""Public volunteer application service.

Used by the unauthenticated application form, so no session credentials are
sent and a 401 here never resets the caller's session.
"""

from typing import Any

from casa_client.core.config import settings
from casa_client.schemas.common import ApiResponse
from casa_client.schemas.volunteer import ApplicationSubmission, VolunteerApplication
from casa_client.services.api_client import UNEXPECTED_ERROR_MESSAGE, ApiClient, service_call

RATE_LIMITED_MESSAGE = "Too many submission attempts. Please try again later."
TOO_MANY_REQUESTS_REASON = "Too Many Requests"


def _public_error(response: ApiResponse) -> ApiResponse:
    # A server-supplied message wins; otherwise 429 gets a friendlier text
    if response.status_code == 429 and response.error in (None, TOO_MANY_REQUESTS_REASON, UNEXPECTED_ERROR_MESSAGE):
        return ApiResponse.fail(RATE_LIMITED_MESSAGE, status_code=429)
    return response


def _body_message(data: Any, default: str) -> str:
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return default


def build_application_payload(organization_slug: str, application: VolunteerApplication) -> dict[str, Any]:
    """Snake_case body expected by the PHP handler."""
    payload = application.model_dump(by_alias=False)
    payload["organization_slug"] = organization_slug
    return payload


@service_call("Failed to get organization info")
async def get_organization_public_info(client: ApiClient, slug: str) -> ApiResponse:
    response = await client.casa_get(
        f"organizations/{slug}/public",
        authenticate=False,
        timeout=settings.PUBLIC_REQUEST_TIMEOUT_SECONDS,
    )
    if not response.success:
        return _public_error(response)

    body = response.data
    if isinstance(body, dict) and body.get("success"):
        return ApiResponse.ok(body.get("data"), status_code=response.status_code)
    return ApiResponse.fail(
        _body_message(body, "Failed to get organization info"),
        status_code=response.status_code,
    )


@service_call("Failed to submit application")
async def submit_application(
    client: ApiClient,
    organization_slug: str,
    application: VolunteerApplication,
) -> ApiResponse:
    response = await client.casa_post(
        "volunteer-applications",
        build_application_payload(organization_slug, application),
        authenticate=False,
    )
    if not response.success:
        return _public_error(response)

    body = response.data
    if isinstance(body, dict) and body.get("success"):
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        submission = ApplicationSubmission(
            success=True,
            reference_number=data.get("reference_number"),
            message=data.get("message"),
        )
        return ApiResponse.ok(submission, status_code=response.status_code)
    return ApiResponse.fail(
        _body_message(body, "Failed to submit application"),
        status_code=response.status_code,
    )
