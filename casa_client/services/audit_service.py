"""Audit log service - tenant and super-admin views, CSV export."""

import logging
import re
from datetime import date
from pathlib import Path

from casa_client.schemas.audit import AuditLogFilters, AuditLogPage
from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient, service_call
from casa_client.utils.normalization import build_query, unwrap_envelope

logger = logging.getLogger(__name__)

AUDIT_ACTION_TYPES = {
    "auth": "Authentication",
    "case": "Cases",
    "volunteer": "Volunteers",
    "document": "Documents",
    "contact_log": "Contact Logs",
    "court_hearing": "Court Hearings",
    "task": "Tasks",
    "user": "Users",
    "settings": "Settings",
    "tenant": "Tenants",
    "security": "Security",
}

AUDIT_SEVERITY_COLORS = {
    "info": "blue",
    "warning": "yellow",
    "critical": "red",
}

AUDIT_STATUS_COLORS = {
    "success": "green",
    "failure": "red",
    "denied": "orange",
}

DEFAULT_COLOR = "gray"


def _query(filters: AuditLogFilters | None) -> dict[str, str]:
    if filters is None:
        return {}
    return build_query(**filters.model_dump())


async def _fetch_page(client: ApiClient, endpoint: str, filters: AuditLogFilters | None) -> ApiResponse:
    response = await client.casa_get(endpoint, params=_query(filters))
    if not response.success:
        return response

    body = response.data
    page = body.get("data") if isinstance(body, dict) else None
    if not isinstance(page, dict):
        return ApiResponse.fail("Failed to fetch audit logs", status_code=response.status_code)
    return ApiResponse.ok(AuditLogPage.model_validate(page), status_code=response.status_code)


async def _fetch_csv(client: ApiClient, endpoint: str, filters: AuditLogFilters | None) -> ApiResponse:
    response = await client.casa_get(endpoint, params=_query(filters))
    if not response.success:
        return response

    content = unwrap_envelope(response.data)
    if isinstance(content, str) and content:
        return ApiResponse.ok(content, status_code=response.status_code)
    return ApiResponse.fail("Failed to export audit logs", status_code=response.status_code)


@service_call("Failed to fetch audit logs")
async def get_tenant_logs(client: ApiClient, filters: AuditLogFilters | None = None) -> ApiResponse:
    """Audit logs of the caller's organization."""
    return await _fetch_page(client, "audit-logs", filters)


@service_call("Failed to fetch audit logs")
async def get_super_admin_logs(client: ApiClient, filters: AuditLogFilters | None = None) -> ApiResponse:
    """Audit logs across all organizations."""
    return await _fetch_page(client, "super-admin/audit-logs", filters)


@service_call("Failed to export audit logs")
async def export_tenant_logs(client: ApiClient, filters: AuditLogFilters | None = None) -> ApiResponse:
    return await _fetch_csv(client, "audit-logs/export", filters)


@service_call("Failed to export audit logs")
async def export_super_admin_logs(client: ApiClient, filters: AuditLogFilters | None = None) -> ApiResponse:
    return await _fetch_csv(client, "super-admin/audit-logs/export", filters)


def write_csv(content: str, directory: str | Path = ".", filename: str | None = None) -> Path:
    """Write exported CSV to disk, named ``audit_logs_<YYYY-MM-DD>.csv`` by default."""
    target = Path(directory) / (filename or f"audit_logs_{date.today().isoformat()}.csv")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    logger.info("Wrote audit log export to %s", target)
    return target


# ============================================================================
# Display helpers
# ============================================================================

def _title_words(value: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), value.replace("_", " "))


def format_action_type(action_type: str) -> str:
    return AUDIT_ACTION_TYPES.get(action_type) or _title_words(action_type)


def format_action(action: str) -> str:
    return _title_words(action)


def get_severity_color(severity: str) -> str:
    return AUDIT_SEVERITY_COLORS.get(severity, DEFAULT_COLOR)


def get_status_color(status: str) -> str:
    return AUDIT_STATUS_COLORS.get(status, DEFAULT_COLOR)
