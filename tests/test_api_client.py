"""Tests for the HTTP client adapter."""

import base64
import json

import httpx
import pytest

from casa_client.core.config import settings
from casa_client.core.session_store import (
    ORGANIZATION_COOKIE,
    REFRESH_TOKEN_COOKIE,
    TENANT_COOKIE,
    TOKEN_COOKIE,
    UNAUTHORIZED_CLEAR_COOKIES,
    USER_COOKIE,
)
from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import (
    NO_RESPONSE_MESSAGE,
    UPLOAD_CHUNK_SIZE,
    forms_authorization,
    _progress_stream,
    service_call,
)


def _seed_session(store):
    store.set(TOKEN_COOKIE, "token-123")
    store.set(USER_COOKIE, '{"id": "1", "email": "jane@example.com"}')
    store.set(ORGANIZATION_COOKIE, '{"id": "9", "name": "Org", "slug": "org"}')
    store.set(TENANT_COOKIE, "9")
    store.set(REFRESH_TOKEN_COOKIE, "refresh-123")


@pytest.mark.asyncio
async def test_bearer_token_is_reread_on_every_request(store, make_client):
    seen = []

    def handler(request):
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"ok": True})

    client = make_client(handler)
    store.set(TOKEN_COOKIE, "first")
    await client.casa_get("cases")
    store.set(TOKEN_COOKIE, "second")
    await client.casa_get("cases")
    store.clear(TOKEN_COOKIE)
    await client.casa_get("cases")

    assert seen == ["Bearer first", "Bearer second", None]


@pytest.mark.asyncio
async def test_namespace_helpers_prefix_paths(make_client):
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json={})

    client = make_client(handler)
    await client.wp_post("jwt-auth/v1/token", {})
    await client.frm_get("forms/25/fields")
    await client.casa_put("/cases/1", {})
    await client.saas_delete("tenants/3")

    assert paths == [
        "/wp-json/jwt-auth/v1/token",
        "/wp-json/frm/v2/forms/25/fields",
        "/wp-json/casa/v1/cases/1",
        "/wp-json/casa/v1/tenants/3",
    ]


@pytest.mark.asyncio
async def test_forms_namespace_uses_basic_auth_over_bearer(store, make_client):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json=[])

    store.set(TOKEN_COOKIE, "token-123")
    client = make_client(handler)
    await client.frm_get("forms/25/fields")

    assert seen["auth"] == forms_authorization(settings.FORMS_API_KEY)
    scheme, encoded = seen["auth"].split(" ", 1)
    assert scheme == "Basic"
    assert base64.b64decode(encoded).decode() == f"{settings.FORMS_API_KEY}:x"


@pytest.mark.asyncio
async def test_unauthorized_clears_session_and_navigates_once_per_call(store, navigation, make_client):
    def handler(request):
        return httpx.Response(401, json={"message": "Expired token"})

    _seed_session(store)
    client = make_client(handler)

    response = await client.casa_get("cases")

    assert response.success is False
    assert response.status_code == 401
    assert response.error == "Expired token"
    for name in UNAUTHORIZED_CLEAR_COOKIES:
        assert store.get(name) is None
    assert store.get(REFRESH_TOKEN_COOKIE) == "refresh-123"
    assert navigation.routes == [settings.LOGIN_ROUTE]

    await client.casa_get("volunteers")
    assert navigation.routes == [settings.LOGIN_ROUTE, settings.LOGIN_ROUTE]


@pytest.mark.asyncio
async def test_public_request_skips_credentials_and_session_reset(store, navigation, make_client):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(401, json={"message": "nope"})

    _seed_session(store)
    client = make_client(handler)
    response = await client.casa_post("volunteer-applications", {}, authenticate=False)

    assert response.status_code == 401
    assert seen["auth"] is None
    assert store.get(TOKEN_COOKIE) == "token-123"
    assert navigation.routes == []


@pytest.mark.asyncio
async def test_failing_navigation_handler_does_not_escape(store, make_client):
    from casa_client.services.api_client import ApiClient

    def handler(request):
        return httpx.Response(401)

    def broken(route):
        raise RuntimeError("router gone")

    client = ApiClient(store, base_url="http://testserver", navigate=broken, transport=httpx.MockTransport(handler))
    response = await client.get("/wp-json/casa/v1/cases")

    assert response.success is False
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_error_message_stringifies_object_message(make_client):
    def handler(request):
        return httpx.Response(422, json={"message": {"email": "invalid"}})

    response = await make_client(handler).casa_post("users", {})

    assert response.error == json.dumps({"email": "invalid"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_error_message_falls_back_to_reason_phrase(make_client):
    def handler(request):
        return httpx.Response(500, text="<html>fatal</html>")

    response = await make_client(handler).casa_get("cases")

    assert response.error == "Internal Server Error"
    assert response.status_code == 500


@pytest.mark.asyncio
async def test_network_error_has_no_status_code(make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    response = await make_client(handler).casa_get("cases")

    assert response.success is False
    assert response.error == NO_RESPONSE_MESSAGE
    assert response.status_code is None


@pytest.mark.asyncio
async def test_non_json_success_body_is_returned_as_text(make_client):
    def handler(request):
        return httpx.Response(200, text="id,name\n1,Jane\n", headers={"Content-Type": "text/csv"})

    response = await make_client(handler).casa_get("audit-logs/export")

    assert response.success is True
    assert response.data == "id,name\n1,Jane\n"


@pytest.mark.asyncio
async def test_empty_success_body_is_none(make_client):
    def handler(request):
        return httpx.Response(204)

    response = await make_client(handler).casa_delete("cases/1")

    assert response.success is True
    assert response.data is None
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_upload_reports_progress_and_sends_multipart(store, make_client):
    seen = {}

    def handler(request):
        seen["content_type"] = request.headers["Content-Type"]
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = request.content
        return httpx.Response(201, json={"data": {"id": 55}})

    store.set(TOKEN_COOKIE, "token-123")
    progress = []
    payload = b"x" * (UPLOAD_CHUNK_SIZE * 3 + 100)

    response = await make_client(handler).upload_file(
        "/wp-json/casa/v1/documents/upload",
        ("court-order.pdf", payload, "application/pdf"),
        on_progress=progress.append,
        fields={"case_id": "12"},
    )

    assert response.success is True
    assert response.data == {"data": {"id": 55}}
    assert seen["content_type"].startswith("multipart/form-data; boundary=")
    assert seen["auth"] == "Bearer token-123"
    assert b'filename="court-order.pdf"' in seen["body"]
    assert b'name="case_id"' in seen["body"]
    assert progress[0] == 0
    assert progress[-1] == 100
    assert progress == sorted(progress)
    assert all(0 <= value <= 100 for value in progress)


@pytest.mark.asyncio
async def test_empty_upload_still_reports_start_and_completion():
    progress = []

    chunks = [chunk async for chunk in _progress_stream(b"", progress.append)]

    assert chunks == []
    assert progress == [0, 100]


@pytest.mark.asyncio
async def test_upload_from_path_uses_file_name(tmp_path, make_client):
    seen = {}

    def handler(request):
        seen["body"] = request.content
        return httpx.Response(200, json={"imported": 2})

    csv_file = tmp_path / "volunteers.csv"
    csv_file.write_text("first_name,last_name\nJane,Doe\n")

    response = await make_client(handler).upload_file(
        "/wp-json/casa/v1/volunteers/import",
        csv_file,
        "csv_file",
    )

    assert response.data == {"imported": 2}
    assert b'name="csv_file"; filename="volunteers.csv"' in seen["body"]
    assert b"Jane,Doe" in seen["body"]


@pytest.mark.asyncio
async def test_upload_missing_file_fails_without_request(tmp_path, make_client):
    def handler(request):
        raise AssertionError("no request expected")

    response = await make_client(handler).upload_file("/wp-json/casa/v1/documents", tmp_path / "missing.pdf")

    assert response.success is False
    assert response.status_code is None


@pytest.mark.asyncio
async def test_fetch_bytes_sends_credentials_only_to_backend(store, make_client):
    seen = []

    def handler(request):
        seen.append((request.url.host, request.headers.get("Authorization")))
        return httpx.Response(200, content=b"%PDF-1.7")

    store.set(TOKEN_COOKIE, "token-123")
    client = make_client(handler)

    internal = await client.fetch_bytes("/wp-content/uploads/order.pdf")
    external = await client.fetch_bytes("https://cdn.example.com/order.pdf")

    assert internal.data == b"%PDF-1.7"
    assert external.data == b"%PDF-1.7"
    assert seen == [("testserver", "Bearer token-123"), ("cdn.example.com", None)]


@pytest.mark.asyncio
async def test_tenant_context_and_health_check(store, make_client):
    def handler(request):
        assert request.url.path == "/wp-json/wp/v2/"
        return httpx.Response(200, json={"name": "CASA"})

    client = make_client(handler)
    client.set_tenant("42")

    assert client.get_current_tenant() == "42"
    assert store.get(TENANT_COOKIE) == "42"
    assert await client.health_check() is True


@pytest.mark.asyncio
async def test_service_call_converts_exceptions_and_fills_missing_errors():
    @service_call("Failed to do the thing")
    async def explode():
        raise RuntimeError("boom")

    @service_call("Failed to do the thing")
    async def quiet_failure():
        return ApiResponse(success=False)

    @service_call("Failed to do the thing")
    async def blank_exception():
        raise RuntimeError()

    assert (await explode()).error == "boom"
    assert (await quiet_failure()).error == "Failed to do the thing"
    assert (await blank_exception()).error == "Failed to do the thing"
