"""Async client library for the CASA volunteer coordination backend."""

from casa_client.core.session_store import InMemorySessionStore, SessionStore
from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient

__all__ = ["ApiClient", "ApiResponse", "InMemorySessionStore", "SessionStore"]
