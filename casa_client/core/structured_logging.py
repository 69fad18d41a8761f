"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    org_id: str | None = None,
    method: str | None = None,
    path: str | None = None,
    status_code: int | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    Only identifiers and request coordinates are accepted; tokens, payloads
    and response bodies never go into log records.
    """
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if org_id:
        context["org_id"] = org_id
    if method:
        context["method"] = method
    if path:
        context["path"] = path
    if status_code is not None:
        context["status_code"] = status_code
    return context
