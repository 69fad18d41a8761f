"""Client-side session storage.

The backend session lives in a handful of cookies. Services never touch a
global cookie jar; they read and write through a ``SessionStore`` handed to
the ``ApiClient``, which keeps 401 handling and login testable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol


TOKEN_COOKIE = "auth_token"
USER_COOKIE = "user_data"
ORGANIZATION_COOKIE = "organization_id"  # holds the serialized organization
REFRESH_TOKEN_COOKIE = "refresh_token"
TENANT_COOKIE = "tenant_id"

# Removed by the client whenever the backend answers 401
UNAUTHORIZED_CLEAR_COOKIES = (
    TOKEN_COOKIE,
    USER_COOKIE,
    ORGANIZATION_COOKIE,
    TENANT_COOKIE,
)

# Removed on logout / failed refresh
AUTH_COOKIES = (
    TOKEN_COOKIE,
    USER_COOKIE,
    ORGANIZATION_COOKIE,
    REFRESH_TOKEN_COOKIE,
)


class SessionStore(Protocol):
    """Minimal cookie-like key/value store."""

    def get(self, name: str) -> str | None: ...

    def set(
        self,
        name: str,
        value: str,
        *,
        expires_days: int | None = None,
        secure: bool = False,
    ) -> None: ...

    def clear(self, *names: str) -> None: ...


@dataclass
class _Entry:
    value: str
    expires_at: datetime | None
    secure: bool


class InMemorySessionStore:
    """Process-local store with cookie expiry semantics."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def get(self, name: str) -> str | None:
        entry = self._entries.get(name)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= _now():
            del self._entries[name]
            return None
        return entry.value

    def set(
        self,
        name: str,
        value: str,
        *,
        expires_days: int | None = None,
        secure: bool = False,
    ) -> None:
        expires_at = None
        if expires_days is not None:
            expires_at = _now() + timedelta(days=expires_days)
        self._entries[name] = _Entry(value=value, expires_at=expires_at, secure=secure)

    def clear(self, *names: str) -> None:
        for name in names:
            self._entries.pop(name, None)

    def is_secure(self, name: str) -> bool:
        entry = self._entries.get(name)
        return bool(entry and entry.secure)

    def expires_at(self, name: str) -> datetime | None:
        entry = self._entries.get(name)
        return entry.expires_at if entry else None

    def names(self) -> list[str]:
        return [name for name in list(self._entries) if self.get(name) is not None]


def _now() -> datetime:
    return datetime.now(timezone.utc)
