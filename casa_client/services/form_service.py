"""Formidable Forms integration.

Logical form fields are remapped to the plugin's numeric field ids before
submission. Plugin writes are a secondary, best-effort copy of data the casa
namespace already stores, so ``submit_form_with_fallback`` never fails.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from casa_client.core.config import settings
from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Form submitted (WordPress fallback)"


@dataclass(frozen=True)
class FormDefinition:
    form_id: int
    fields: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldMeta:
    type: str
    expects_array: bool


FORMIDABLE_FORMS: dict[str, FormDefinition] = {
    "USER_REGISTRATION": FormDefinition(
        form_id=26,
        fields={
            "first_name": 46,
            "last_name": 47,
            "email": 48,
            "password": 49,
            "confirm_password": 50,
            "phone": 51,
            "organization": 52,
            "role": 53,
        },
    ),
    "ORGANIZATION_REGISTRATION": FormDefinition(
        form_id=27,
        fields={
            "organization_name": 55,
            "organization_slug": 56,
            "contact_email": 66,
            "phone": 62,
            "address": 58,
            "website": 64,
            "director_name": 65,
            "director_title": 65,
        },
    ),
    "VOLUNTEER_REGISTRATION": FormDefinition(
        form_id=28,
        fields={
            "first_name": 69,
            "last_name": 70,
            "email": 71,
            "phone": 72,
            "date_of_birth": 73,
            "address": 74,
            "city": 75,
            "state": 76,
            "zip_code": 77,
            "emergency_contact_name": 78,
            "emergency_contact_phone": 79,
            "emergency_contact_relationship": 80,
            "employer": 81,
            "occupation": 82,
            "education_level": 83,
            "languages_spoken": 84,
            "previous_volunteer_experience": 85,
            "preferred_schedule": 86,
            "max_cases": 87,
            "availability_notes": 88,
            "reference1_name": 89,
            "reference1_phone": 90,
            "reference1_relationship": 91,
            "reference2_name": 92,
            "reference2_phone": 93,
            "reference2_relationship": 94,
            "age_preference": 95,
            "gender_preference": 96,
            "special_needs_experience": 97,
            "transportation_available": 98,
            "background_check_consent": 99,
            "liability_waiver": 100,
            "confidentiality_agreement": 101,
        },
    ),
    "CASE_INTAKE": FormDefinition(
        form_id=25,
        fields={
            "child_first_name": 24,
            "child_last_name": 25,
            "child_dob": 26,
            "child_gender": 27,
            "child_ethnicity": 28,
            "case_number": 29,
            "case_type": 30,
            "case_priority": 31,
            "referral_date": 32,
            "case_summary": 33,
            "court_jurisdiction": 34,
            "assigned_judge": 35,
            "courtroom": 36,
            "current_placement": 37,
            "placement_date": 38,
            "placement_contact_person": 39,
            "placement_phone": 40,
            "placement_address": 41,
            "assigned_volunteer": 42,
            "assignment_date": 43,
            "case_goals": 44,
        },
    ),
    "CASE_EDIT": FormDefinition(
        form_id=33,
        fields={
            "case_id": 146,
            "case_number": 146,
            "child_first_name": 147,
            "child_last_name": 148,
            "child_dob": 149,
            "child_gender": 147,
            "child_ethnicity": 147,
            "case_type": 146,
            "case_priority": 146,
            "case_status": 151,
            "case_summary": 152,
            "court_jurisdiction": 146,
            "assigned_judge": 146,
            "courtroom": 146,
            "current_placement": 146,
            "placement_date": 146,
            "placement_contact_person": 146,
            "placement_phone": 146,
            "placement_address": 146,
            "assigned_volunteer": 150,
            "assignment_date": 146,
            "case_goals": 152,
            "next_hearing_date": 146,
            "next_hearing_type": 146,
        },
    ),
    "CONTACT_LOG": FormDefinition(
        form_id=32,
        fields={
            "case_id": 135,
            "contact_date": 137,
            "contact_type": 136,
            "contact_person": 138,
            "contact_method": 141,
            "contact_summary": 142,
            "follow_up_required": 143,
            "follow_up_date": 144,
            "follow_up_notes": 142,
        },
    ),
    "HOME_VISIT_REPORT": FormDefinition(
        form_id=30,
        fields={
            "case_id": 109,
            "visit_date": 110,
            "visit_type": 112,
            "child_present": 114,
            "child_condition": 116,
            "placement_condition": 115,
            "safety_assessment": 115,
            "concerns_identified": 119,
            "recommendations": 120,
            "next_visit_date": 122,
            "volunteer_notes": 117,
        },
    ),
    "DOCUMENT_UPLOAD": FormDefinition(
        form_id=31,
        fields={
            "case_id": 124,
            "document_type": 126,
            "document_title": 125,
            "document_file": 127,
            "document_description": 130,
            "upload_date": 128,
        },
    ),
}


# ============================================================================
# Field metadata cache
# ============================================================================

# form_id -> (fetched_at, {field_id: FieldMeta})
_fields_cache: dict[int, tuple[float, dict[str, FieldMeta]]] = {}


def clear_fields_cache() -> None:
    _fields_cache.clear()


def get_form_definition(form_key: str) -> FormDefinition:
    definition = FORMIDABLE_FORMS.get(form_key)
    if definition is None:
        raise ValueError(f"Unknown form key: {form_key}")
    return definition


def _parse_field_meta(raw: Any) -> dict[str, FieldMeta]:
    if isinstance(raw, dict):
        raw = list(raw.values())
    if not isinstance(raw, list):
        return {}

    meta: dict[str, FieldMeta] = {}
    for item in raw:
        if not isinstance(item, dict) or item.get("id") is None:
            continue
        field_type = str(item.get("type") or "").lower()
        config = item.get("config") if isinstance(item.get("config"), dict) else {}
        multiple = str(item.get("multiple")) == "1" or str(config.get("multiple")) == "1"
        meta[str(item["id"])] = FieldMeta(
            type=field_type,
            expects_array=field_type == "checkbox" or (field_type == "select" and multiple),
        )
    return meta


def _cache_fresh(fetched_at: float) -> bool:
    ttl = settings.FORM_FIELDS_CACHE_TTL_SECONDS
    return ttl is None or time.monotonic() - fetched_at < ttl


async def ensure_fields_meta(client: ApiClient, form_id: int) -> dict[str, FieldMeta]:
    """Field metadata for a form, fetched once and cached.

    A failed fetch caches an empty map so submission proceeds best-effort.
    """
    cached = _fields_cache.get(form_id)
    if cached is not None and _cache_fresh(cached[0]):
        return cached[1]

    meta: dict[str, FieldMeta] = {}
    try:
        response = await client.frm_get(f"forms/{form_id}/fields")
        if response.success:
            meta = _parse_field_meta(response.data)
        else:
            logger.warning("Could not load fields for form %s: %s", form_id, response.error)
    except Exception:
        logger.warning("Could not load fields for form %s", form_id, exc_info=True)

    _fields_cache[form_id] = (time.monotonic(), meta)
    return meta


# ============================================================================
# Coercion
# ============================================================================

def coerce_value(value: Any, expects_array: bool) -> Any:
    if expects_array:
        if isinstance(value, bool):
            return ["1"] if value else []
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            if "," in value:
                return [part.strip() for part in value.split(",") if part.strip()]
            return [value]
        return [str(value)]

    if isinstance(value, bool):
        return "1" if value else ""
    return value


def to_item_meta(
    definition: FormDefinition,
    data: dict[str, Any],
    fields_meta: dict[str, FieldMeta] | None = None,
) -> dict[str, Any]:
    """Remap logical field names to plugin field ids, dropping empty values."""
    fields_meta = fields_meta or {}
    item_meta: dict[str, Any] = {}
    for name, field_id in definition.fields.items():
        value = data.get(name)
        if value is None or value == "":
            continue
        key = str(field_id)
        meta = fields_meta.get(key)
        item_meta[key] = coerce_value(value, bool(meta and meta.expects_array))
    return item_meta


# ============================================================================
# Plugin operations
# ============================================================================

async def submit_form(client: ApiClient, form_key: str, data: dict[str, Any]) -> ApiResponse:
    """Create a plugin entry. Raises ValueError for an unknown form key."""
    definition = get_form_definition(form_key)
    fields_meta = await ensure_fields_meta(client, definition.form_id)
    return await client.frm_post(
        "entries",
        {"form_id": definition.form_id, "item_meta": to_item_meta(definition, data, fields_meta)},
    )


async def get_form_data(client: ApiClient, form_key: str, entry_id: str | None = None) -> ApiResponse:
    definition = get_form_definition(form_key)
    if entry_id:
        return await client.frm_get(f"entries/{entry_id}")
    return await client.frm_get(f"forms/{definition.form_id}/entries")


async def update_form_entry(
    client: ApiClient,
    form_key: str,
    entry_id: str,
    data: dict[str, Any],
) -> ApiResponse:
    definition = get_form_definition(form_key)
    cached = _fields_cache.get(definition.form_id)
    fields_meta = cached[1] if cached else {}
    return await client.frm_put(
        f"entries/{entry_id}",
        {"form_id": definition.form_id, "item_meta": to_item_meta(definition, data, fields_meta)},
    )


async def submit_form_with_fallback(client: ApiClient, form_key: str, data: dict[str, Any]) -> ApiResponse:
    """Submit to the plugin; any failure is reported as a fallback success."""
    try:
        response = await submit_form(client, form_key, data)
    except Exception:
        logger.warning("Form submission for %s failed, using fallback", form_key, exc_info=True)
    else:
        if response.success:
            return response
        logger.warning("Form submission for %s rejected: %s", form_key, response.error)

    return ApiResponse(success=True, data={"message": FALLBACK_MESSAGE}, fallback=True)
