"""
Test configuration and fixtures.

Provides:
- In-memory session store
- Recorder for login-route navigations
- ApiClient factory on top of httpx.MockTransport (no network)
"""
from typing import Callable

import httpx
import pytest

from casa_client.core.session_store import InMemorySessionStore
from casa_client.services import form_service
from casa_client.services.api_client import ApiClient

BASE_URL = "http://testserver"


class NavigationRecorder:
    """Stands in for the browser router."""

    def __init__(self) -> None:
        self.routes: list[str] = []

    def __call__(self, route: str) -> None:
        self.routes.append(route)


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def navigation() -> NavigationRecorder:
    return NavigationRecorder()


@pytest.fixture
def make_client(store, navigation) -> Callable[..., ApiClient]:
    """Build a client whose transport is the given request handler."""

    def factory(handler) -> ApiClient:
        return ApiClient(
            store,
            base_url=BASE_URL,
            navigate=navigation,
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture(autouse=True)
def reset_form_fields_cache():
    form_service.clear_fields_cache()
    yield
    form_service.clear_fields_cache()
