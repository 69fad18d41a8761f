"""Tests for tenant slug helpers and organization calls."""

import httpx
import pytest

from casa_client.services import tenant_service
from casa_client.services.tenant_service import generate_domain, parse_tenant_from_url, validate_slug


@pytest.mark.parametrize(
    "slug, error",
    [
        ("ab", "Slug must be at least 3 characters long"),
        ("a" * 51, "Slug must be less than 50 characters long"),
        ("River_Side", "Slug can only contain lowercase letters, numbers, and hyphens"),
        ("-riverside", "Slug cannot start or end with a hyphen"),
        ("riverside-", "Slug cannot start or end with a hyphen"),
        ("admin", "This slug is reserved and cannot be used"),
    ],
)
def test_validate_slug_rejections(slug, error):
    assert validate_slug(slug) == (False, error)


def test_validate_slug_accepts_valid_slug():
    assert validate_slug("riverside-casa-2") == (True, None)


def test_generate_domain():
    assert generate_domain("riverside") == "riverside.yourapp.com"
    assert generate_domain("riverside", "casa.org") == "riverside.casa.org"


def test_parse_tenant_from_url():
    assert parse_tenant_from_url("https://riverside.casa.org/dashboard") == "riverside"
    assert parse_tenant_from_url("https://casa.org") is None
    assert parse_tenant_from_url("not a url") is None


def test_default_settings_are_fresh_copies():
    first = tenant_service.get_default_settings()
    first["features"]["maxUsers"] = 99

    assert tenant_service.get_default_settings()["features"]["maxUsers"] == 5


@pytest.mark.asyncio
async def test_get_organizations_normalizes_collection(make_client):
    def handler(request):
        assert request.url.path == "/wp-json/casa/v1/organizations"
        return httpx.Response(200, json={"data": {"organizations": [{"id": 1}]}})

    response = await tenant_service.get_organizations(make_client(handler))

    assert response.data == [{"id": 1}]


@pytest.mark.asyncio
async def test_register_organization_is_public(store, navigation, make_client):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(401, json={"message": "Registration closed"})

    store.set("auth_token", "token-123")
    response = await tenant_service.register_organization(make_client(handler), {"name": "Riverside"})

    assert response.error == "Registration closed"
    assert seen["auth"] is None
    assert navigation.routes == []


@pytest.mark.asyncio
async def test_tenant_users_paging_params(make_client):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"users": []})

    await tenant_service.get_tenant_users(make_client(handler), "4", page=2, limit=50)

    assert seen["path"] == "/wp-json/casa/v1/tenants/4/users"
    assert seen["params"] == {"page": "2", "per_page": "50"}


@pytest.mark.parametrize(
    "fetch, path, key",
    [
        (lambda client: tenant_service.get_tenants(client), "/wp-json/casa/v1/tenants", "tenants"),
        (lambda client: tenant_service.get_tenant_users(client, "4"), "/wp-json/casa/v1/tenants/4/users", "users"),
    ],
    ids=["tenants", "tenant_users"],
)
@pytest.mark.parametrize(
    "shape",
    [
        lambda items, key: items,
        lambda items, key: {"data": items},
        lambda items, key: {"success": True, "data": {"data": items}},
        lambda items, key: {key: items},
        lambda items, key: {"data": {key: items}},
    ],
    ids=["bare", "data", "nested_data", "named", "nested_named"],
)
@pytest.mark.asyncio
async def test_tenant_lists_unwrap_every_envelope(make_client, fetch, path, key, shape):
    items = [{"id": 1}]

    def handler(request):
        assert request.url.path == path
        return httpx.Response(200, json=shape(items, key))

    response = await fetch(make_client(handler))

    assert response.success is True
    assert response.data == [{"id": 1}]


@pytest.mark.asyncio
async def test_tenant_list_with_unexpected_shape_is_empty(make_client):
    def handler(request):
        return httpx.Response(200, json={"data": {"total": 3}})

    response = await tenant_service.get_tenants(make_client(handler))

    assert response.success is True
    assert response.data == []
