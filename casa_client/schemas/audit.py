"""Audit log schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class AuditLogEntry(BaseModel):
    id: int
    organization_id: int | None = None
    organization_name: str | None = None
    user_id: int | None = None
    user_email: str = ""
    user_role: str = ""
    action_type: str
    action: str
    resource_type: str | None = None
    resource_id: int | None = None
    resource_identifier: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    ip_address: str = ""
    user_agent: str | None = None
    request_uri: str | None = None
    status: Literal["success", "failure", "denied"] = "success"
    severity: Literal["info", "warning", "critical"] = "info"
    created_at: str = ""


class AuditLogPage(BaseModel):
    logs: list[AuditLogEntry] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 20
    total_pages: int = 0


class AuditLogFilters(BaseModel):
    """Query filters; unset values are not sent."""
    action_type: str | None = None
    user_id: int | None = None
    resource_type: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    severity: str | None = None
    status: str | None = None
    organization_id: int | str | None = None
    search: str | None = None
    page: int | None = None
    per_page: int | None = None
