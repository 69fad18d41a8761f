"""Normalization of inconsistent backend payload shapes.

The WordPress endpoints answer list requests in several shapes:

    [...]                                   bare array
    {"data": [...]}                         single envelope
    {"cases": [...]} / {"data": {"cases": [...]}}
    {"data": {"data": [...]}}               plugin envelope inside REST envelope

Callers must never crash on any of them, so every list read goes through
``unwrap_collection``.
"""

from collections.abc import Iterable
from typing import Any


def unwrap_collection(raw: Any, keys: Iterable[str] = ()) -> list[Any]:
    """Return the list carried by ``raw``, or ``[]`` if there is none.

    Precedence (first match wins):
    1. ``raw`` is already a list
    2. ``raw["data"]`` is a list
    3. a named collection key, on ``raw`` and then on ``raw["data"]``
    4. ``raw["data"]["data"]`` is a list
    """
    if isinstance(raw, list):
        return raw
    if not isinstance(raw, dict):
        return []

    data = raw.get("data")
    if isinstance(data, list):
        return data

    for key in keys:
        value = raw.get(key)
        if isinstance(value, list):
            return value
        if isinstance(data, dict) and isinstance(data.get(key), list):
            return data[key]

    if isinstance(data, dict) and isinstance(data.get("data"), list):
        return data["data"]

    return []


def unwrap_envelope(raw: Any) -> Any:
    """Strip one ``{"data": ...}`` envelope if present."""
    if isinstance(raw, dict):
        data = raw.get("data")
        if isinstance(data, (dict, list)):
            return data
    return raw


def coerce_id(value: Any) -> str | None:
    """Backend ids arrive as ints or strings; the client uses strings."""
    if value is None or value == "":
        return None
    return str(value)


def build_query(**params: Any) -> dict[str, str]:
    """Build query params, dropping unset values.

    Booleans are sent as ``true``/``false`` and sequences comma-joined, which
    is what the PHP handlers parse.
    """
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            query[key] = ",".join(str(v) for v in value)
        else:
            query[key] = str(value)
    return query


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
