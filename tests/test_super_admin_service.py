"""Tests for super-admin calls."""

import json

import httpx
import pytest

from casa_client.schemas.super_admin import AssignUserData
from casa_client.services import super_admin_service


DASHBOARD = {
    "success": True,
    "data": {
        "is_super_admin": True,
        "organizations": [{"id": 1, "name": "Riverside", "slug": "riverside", "cases_count": 4}],
        "totals": {"organizations": 1, "cases": 4, "volunteers": 2, "users": 3},
    },
}


@pytest.mark.asyncio
async def test_is_super_admin_reads_dashboard_flag(make_client):
    response = await super_admin_service.is_super_admin(
        make_client(lambda request: httpx.Response(200, json=DASHBOARD))
    )

    assert response.success is True
    assert response.data is True


@pytest.mark.asyncio
async def test_is_super_admin_is_false_on_forbidden(make_client):
    response = await super_admin_service.is_super_admin(
        make_client(lambda request: httpx.Response(403, json={"message": "Forbidden"}))
    )

    assert response.success is True
    assert response.data is False


@pytest.mark.asyncio
async def test_dashboard_is_typed(make_client):
    response = await super_admin_service.get_dashboard(
        make_client(lambda request: httpx.Response(200, json=DASHBOARD))
    )

    assert response.data.totals.cases == 4
    assert response.data.organizations[0].slug == "riverside"


@pytest.mark.asyncio
async def test_assign_user_payload(make_client):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    data = AssignUserData(email="sam@example.com", organization_id=1, casa_role="supervisor")
    await super_admin_service.assign_user_to_organization(make_client(handler), data)

    assert seen["path"] == "/wp-json/casa/v1/super-admin/assign-user"
    assert seen["body"] == {"email": "sam@example.com", "organization_id": 1, "casa_role": "supervisor"}


@pytest.mark.asyncio
async def test_security_log_defaults_to_empty_list(make_client):
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"data": {"unexpected": True}})

    response = await super_admin_service.get_security_log(make_client(handler))

    assert seen["params"] == {"limit": "100"}
    assert response.data == []
