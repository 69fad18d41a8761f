"""Tests for the public volunteer application endpoints."""

import json

import httpx
import pytest

from casa_client.core.session_store import TOKEN_COOKIE
from casa_client.schemas.volunteer import VolunteerApplication
from casa_client.services import volunteer_application_service
from casa_client.services.volunteer_application_service import RATE_LIMITED_MESSAGE


def _application() -> VolunteerApplication:
    return VolunteerApplication(
        first_name="Kim",
        last_name="Lee",
        email="kim@example.com",
        phone="555-0101",
        date_of_birth="1990-04-01",
        address="1 Elm St",
        city="Springfield",
        state="IL",
        zip_code="62701",
        emergency_contact_name="Pat Lee",
        emergency_contact_phone="555-0102",
        emergency_contact_relationship="Spouse",
        reference1_name="A",
        reference1_phone="1",
        reference1_relationship="Friend",
        reference2_name="B",
        reference2_phone="2",
        reference2_relationship="Coworker",
        background_check_consent=True,
        liability_waiver=True,
        confidentiality_agreement=True,
    )


@pytest.mark.asyncio
async def test_submit_application_sends_snake_case_without_credentials(store, make_client):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            201,
            json={"success": True, "data": {"reference_number": "APP-0042", "message": "Thanks"}},
        )

    store.set(TOKEN_COOKIE, "token-123")
    response = await volunteer_application_service.submit_application(
        make_client(handler), "riverside", _application()
    )

    assert seen["auth"] is None
    assert seen["body"]["organization_slug"] == "riverside"
    assert seen["body"]["first_name"] == "Kim"
    assert seen["body"]["background_check_consent"] is True
    assert response.data.reference_number == "APP-0042"


@pytest.mark.asyncio
async def test_rate_limited_submission_gets_friendly_message(make_client):
    response = await volunteer_application_service.submit_application(
        make_client(lambda request: httpx.Response(429)), "riverside", _application()
    )

    assert response.success is False
    assert response.status_code == 429
    assert response.error == RATE_LIMITED_MESSAGE


@pytest.mark.asyncio
async def test_rate_limit_keeps_server_message(make_client):
    response = await volunteer_application_service.submit_application(
        make_client(lambda request: httpx.Response(429, json={"message": "Wait 10 minutes"})),
        "riverside",
        _application(),
    )

    assert response.error == "Wait 10 minutes"


@pytest.mark.asyncio
async def test_organization_public_info_requires_success_flag(make_client):
    ok = await volunteer_application_service.get_organization_public_info(
        make_client(lambda request: httpx.Response(200, json={"success": True, "data": {"name": "Riverside"}})),
        "riverside",
    )
    missing = await volunteer_application_service.get_organization_public_info(
        make_client(lambda request: httpx.Response(200, json={"success": False, "message": "Not accepting"})),
        "riverside",
    )

    assert ok.data == {"name": "Riverside"}
    assert missing.success is False
    assert missing.error == "Not accepting"
