"""Tests for volunteer transformation and the pipeline board."""

import json

import httpx
import pytest

from casa_client.schemas.volunteer import PipelineAction
from casa_client.services import volunteer_service
from casa_client.services.volunteer_service import group_by_pipeline, transform_volunteer


def test_transform_volunteer_exposes_camel_case_fields():
    volunteer = transform_volunteer(
        {
            "id": 3,
            "first_name": "Ana",
            "last_name": "Lopez",
            "background_check_status": "approved",
            "volunteer_status": "active",
        }
    )

    view = volunteer.to_view()
    assert view["firstName"] == "Ana"
    assert view["lastName"] == "Lopez"
    assert view["backgroundCheckStatus"] == "approved"
    assert view["isActive"] is True
    assert "address" not in view
    assert "emergencyContact" not in view


def test_transform_volunteer_omits_nested_parts_for_blank_primary_fields():
    volunteer = transform_volunteer(
        {
            "id": "4",
            "address": "   ",
            "city": "Springfield",
            "emergency_contact_name": "",
            "emergency_contact_phone": "555-0100",
        }
    )

    assert volunteer.address is None
    assert volunteer.emergency_contact is None


def test_transform_volunteer_builds_address_and_emergency_contact():
    volunteer = transform_volunteer(
        {
            "id": "5",
            "address": "12 Oak St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "emergency_contact_name": "Luis Lopez",
            "emergency_contact_relationship": "Brother",
            "emergency_contact_phone": "555-0100",
        }
    )

    view = volunteer.to_view()
    assert view["address"] == {"street": "12 Oak St", "city": "Springfield", "state": "IL", "zipCode": "62701"}
    assert view["emergencyContact"]["name"] == "Luis Lopez"


def test_unknown_status_lands_in_applied_bucket():
    board = group_by_pipeline([{"id": 1, "volunteer_status": "unknown_value"}, "garbage"])

    assert [v.id for v in board.applied] == ["1"]
    assert board.applied[0].volunteer_status == "unknown_value"
    assert board.total() == 1


def test_group_by_pipeline_skips_unmappable_record():
    board = group_by_pipeline(
        [
            {"id": 1, "volunteer_status": "training"},
            {"id": 2, "volunteer_status": "active", "address": "1 Elm", "city": ["Springfield"]},
        ]
    )

    assert [v.id for v in board.training] == ["1"]
    assert board.active == []
    assert board.total() == 1


@pytest.mark.asyncio
async def test_pipeline_accepts_numeric_zip_code(make_client):
    def handler(request):
        return httpx.Response(
            200,
            json={
                "volunteers": [
                    {"id": 1, "volunteer_status": "training"},
                    {"id": 2, "volunteer_status": "active", "address": "1 Elm", "zip_code": 62701},
                ]
            },
        )

    response = await volunteer_service.get_volunteers_by_pipeline(make_client(handler))

    assert response.success is True
    board = response.data
    assert len(board.training) == 1
    assert len(board.active) == 1
    assert board.active[0].address.zip_code == "62701"


@pytest.mark.asyncio
async def test_pipeline_scenario_training_bucket(make_client):
    def handler(request):
        assert request.url.path == "/wp-json/casa/v1/volunteers"
        return httpx.Response(
            200,
            json={"data": {"volunteers": [{"id": 7, "volunteer_status": "training", "first_name": "Kim"}]}},
        )

    response = await volunteer_service.get_volunteers_by_pipeline(make_client(handler))

    assert response.success is True
    board = response.data
    assert len(board.training) == 1
    assert board.training[0].id == "7"
    assert board.applied == []


@pytest.mark.asyncio
async def test_pipeline_tolerates_malformed_payload(make_client):
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    response = await volunteer_service.get_volunteers_by_pipeline(make_client(handler))

    assert response.success is True
    assert response.data.total() == 0


@pytest.mark.asyncio
async def test_update_pipeline_status_posts_action(make_client):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"success": True, "data": {"id": 7, "old_status": "applied", "new_status": "background_check"}},
        )

    response = await volunteer_service.update_pipeline_status(
        make_client(handler), "7", "start_background_check", notes="Docs received"
    )

    assert seen["path"] == "/wp-json/casa/v1/volunteers/7/pipeline-action"
    assert seen["body"] == {"action": "start_background_check", "notes": "Docs received", "rejection_reason": None}
    assert response.data.new_status == "background_check"
    assert response.data.action == PipelineAction.START_BACKGROUND_CHECK.value


@pytest.mark.asyncio
async def test_update_pipeline_status_rejects_unknown_action_without_request(make_client):
    def handler(request):
        raise AssertionError("no request expected")

    response = await volunteer_service.update_pipeline_status(make_client(handler), "7", "promote")

    assert response.success is False
    assert "promote" in response.error


@pytest.mark.asyncio
async def test_approve_and_create_account_returns_credentials(make_client):
    def handler(request):
        assert json.loads(request.content)["action"] == "approve_volunteer"
        return httpx.Response(
            200,
            json={
                "data": {
                    "id": 7,
                    "user_created": True,
                    "username": "kim.lee",
                    "temporary_password": "Temp#123",
                    "welcome_email_sent": True,
                }
            },
        )

    response = await volunteer_service.approve_and_create_account(make_client(handler), "7")

    assert response.success is True
    assert response.data.username == "kim.lee"
    assert response.data.temporary_password == "Temp#123"
    assert response.data.welcome_email_sent is True


@pytest.mark.asyncio
async def test_import_volunteers_uploads_csv_field(make_client):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, json={"imported": 1})

    response = await volunteer_service.import_volunteers(
        make_client(handler), ("volunteers.csv", b"first_name\nKim\n", "text/csv")
    )

    assert response.success is True
    assert seen["path"] == "/wp-json/casa/v1/volunteers/import"
    assert b'name="csv_file"' in seen["body"]
