"""HTTP client adapter for the WordPress REST backend.

Single point of outbound HTTP:
- Bearer token injection, re-read from the session store on every request
- Basic auth for the Formidable Forms namespace (static API key)
- 401 handling: clear session cookies and navigate to the login route
- Every outcome normalized into ``ApiResponse``; nothing is raised to callers
"""

from __future__ import annotations

import base64
import functools
import json
import logging
import mimetypes
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import IO, Any, ParamSpec, Union

import httpx

from casa_client.core.config import settings
from casa_client.core.session_store import (
    TENANT_COOKIE,
    TOKEN_COOKIE,
    UNAUTHORIZED_CLEAR_COOKIES,
    SessionStore,
)
from casa_client.core.structured_logging import build_log_context
from casa_client.schemas.common import ApiResponse
from casa_client.utils.normalization import build_query, unwrap_collection, unwrap_envelope

logger = logging.getLogger(__name__)

WP_PREFIX = "/wp-json/"
FORMS_PREFIX = "/wp-json/frm/v2/"
CASA_PREFIX = "/wp-json/casa/v1/"
FORMS_PATH_MARKER = "/frm/v2/"

NO_RESPONSE_MESSAGE = "No response from server. Please check your connection."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

UPLOAD_CHUNK_SIZE = 64 * 1024

Navigator = Callable[[str], None]
ProgressCallback = Callable[[int], None]
FileInput = Union[str, Path, bytes, IO[bytes], tuple]

P = ParamSpec("P")


def forms_authorization(api_key: str) -> str:
    """Basic auth header value for the forms plugin (key as user, "x" as password)."""
    token = base64.b64encode(f"{api_key}:x".encode()).decode("ascii")
    return f"Basic {token}"


def extract_error_message(response: httpx.Response) -> str:
    """Pick the most useful message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    message = body.get("message") if isinstance(body, dict) else None
    if isinstance(message, str):
        return message
    if isinstance(message, (dict, list)):
        try:
            return json.dumps(message)
        except (TypeError, ValueError):
            pass
    return response.reason_phrase or UNEXPECTED_ERROR_MESSAGE


def _log_navigation(route: str) -> None:
    logger.warning("Session expired; login required at %s", route)


class ApiClient:
    """Async REST client bound to one session store.

    ``navigate`` is called with the login route whenever the backend answers
    401; in a browser shell it performs the redirect, elsewhere it can raise
    a re-login prompt.
    """

    def __init__(
        self,
        session: SessionStore,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        navigate: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._navigate = navigate or _log_navigation
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Core request
    # ------------------------------------------------------------------

    def _auth_headers(self, path: str) -> dict[str, str]:
        headers: dict[str, str] = {}
        token = self.session.get(TOKEN_COOKIE)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if FORMS_PATH_MARKER in path:
            headers["Authorization"] = forms_authorization(settings.FORMS_API_KEY)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        authenticate: bool = True,
        raw: bool = False,
        timeout: float | None = None,
    ) -> ApiResponse:
        """Send a request and normalize the outcome.

        ``authenticate=False`` sends no credentials and skips the 401 session
        reset (public endpoints). ``raw=True`` returns the body bytes and
        ``timeout`` overrides the client-wide timeout for this call.
        """
        request_headers = self._auth_headers(path) if authenticate else {}
        if headers:
            request_headers.update(headers)

        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                data=data,
                files=files,
                headers=request_headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.RequestError as exc:
            return self._failure(method, path, NO_RESPONSE_MESSAGE, exc=exc)
        except Exception as exc:
            return self._failure(method, path, str(exc) or UNEXPECTED_ERROR_MESSAGE, exc=exc)

        return self._handle_response(method, path, response, authenticate=authenticate, raw=raw)

    def _handle_response(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        *,
        authenticate: bool,
        raw: bool = False,
    ) -> ApiResponse:
        if response.is_error:
            if response.status_code == 401 and authenticate:
                self._handle_unauthorized()
            return self._failure(
                method,
                path,
                extract_error_message(response),
                status_code=response.status_code,
            )

        if raw:
            return ApiResponse.ok(response.content, status_code=response.status_code)
        return ApiResponse.ok(_parse_body(response), status_code=response.status_code)

    def _handle_unauthorized(self) -> None:
        self.session.clear(*UNAUTHORIZED_CLEAR_COOKIES)
        try:
            self._navigate(settings.LOGIN_ROUTE)
        except Exception:
            logger.exception("Login navigation handler failed")

    def _failure(
        self,
        method: str,
        path: str,
        message: str,
        *,
        status_code: int | None = None,
        exc: BaseException | None = None,
    ) -> ApiResponse:
        logger.warning(
            "API request failed: %s",
            message,
            exc_info=exc,
            extra=build_log_context(
                org_id=self.session.get(TENANT_COOKIE),
                method=method,
                path=path,
                status_code=status_code,
            ),
        )
        return ApiResponse.fail(message, status_code=status_code)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.request("PUT", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> ApiResponse:
        return await self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------
    # Uploads / downloads
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        path: str,
        file: FileInput,
        field_name: str = "file",
        *,
        on_progress: ProgressCallback | None = None,
        fields: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """POST a file as multipart form data.

        The multipart boundary header comes from the transport. With
        ``on_progress`` the body is streamed in chunks and the callback gets
        the percentage sent (0-100).
        """
        try:
            upload = _file_part(file)
        except OSError as exc:
            return self._failure("POST", path, str(exc) or UNEXPECTED_ERROR_MESSAGE, exc=exc)

        try:
            request = self._http.build_request(
                "POST",
                path,
                files={field_name: upload},
                data=fields,
                headers=self._auth_headers(path),
            )
            if on_progress is not None:
                body = await request.aread()
                request = httpx.Request(
                    "POST",
                    request.url,
                    headers=request.headers,
                    content=_progress_stream(body, on_progress),
                )
            response = await self._http.send(request)
        except httpx.RequestError as exc:
            return self._failure("POST", path, NO_RESPONSE_MESSAGE, exc=exc)
        except Exception as exc:
            return self._failure("POST", path, str(exc) or UNEXPECTED_ERROR_MESSAGE, exc=exc)

        return self._handle_response("POST", path, response, authenticate=True)

    async def fetch_bytes(self, url: str) -> ApiResponse:
        """Download a file body; credentials go only to the backend host."""
        return await self.request("GET", url, raw=True, authenticate=self._is_backend_url(url))

    def _is_backend_url(self, url: str) -> bool:
        if "://" not in url:
            return True
        return url.startswith(self.base_url + "/") or url == self.base_url

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    async def wp_get(self, endpoint: str, **kwargs: Any) -> ApiResponse:
        return await self.get(_join(WP_PREFIX, endpoint), **kwargs)

    async def wp_post(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.post(_join(WP_PREFIX, endpoint), json, **kwargs)

    async def wp_put(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.put(_join(WP_PREFIX, endpoint), json, **kwargs)

    async def wp_delete(self, endpoint: str, **kwargs: Any) -> ApiResponse:
        return await self.delete(_join(WP_PREFIX, endpoint), **kwargs)

    async def frm_get(self, endpoint: str, **kwargs: Any) -> ApiResponse:
        return await self.get(_join(FORMS_PREFIX, endpoint), **kwargs)

    async def frm_post(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.post(_join(FORMS_PREFIX, endpoint), json, **kwargs)

    async def frm_put(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.put(_join(FORMS_PREFIX, endpoint), json, **kwargs)

    async def casa_get(self, endpoint: str, **kwargs: Any) -> ApiResponse:
        return await self.get(_join(CASA_PREFIX, endpoint), **kwargs)

    async def casa_post(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.post(_join(CASA_PREFIX, endpoint), json, **kwargs)

    async def casa_put(self, endpoint: str, json: Any = None, **kwargs: Any) -> ApiResponse:
        return await self.put(_join(CASA_PREFIX, endpoint), json, **kwargs)

    async def casa_delete(self, endpoint: str, **kwargs: Any) -> ApiResponse:
        return await self.delete(_join(CASA_PREFIX, endpoint), **kwargs)

    # Legacy SaaS names, kept for older callers
    saas_get = casa_get
    saas_post = casa_post
    saas_put = casa_put
    saas_delete = casa_delete

    # ------------------------------------------------------------------
    # Tenant context
    # ------------------------------------------------------------------

    def set_tenant(self, tenant_id: str) -> None:
        self.session.set(
            TENANT_COOKIE,
            tenant_id,
            expires_days=settings.SESSION_COOKIE_DAYS,
            secure=settings.cookie_secure,
        )

    def get_current_tenant(self) -> str | None:
        return self.session.get(TENANT_COOKIE)

    async def health_check(self) -> bool:
        response = await self.wp_get("wp/v2/")
        return response.success


def service_call(
    fallback_error: str,
) -> Callable[[Callable[P, Awaitable[ApiResponse]]], Callable[P, Awaitable[ApiResponse]]]:
    """Wrap a service operation so it always resolves to an ApiResponse.

    Unexpected exceptions are logged and reported as failures; failures that
    carry no message get ``fallback_error``.
    """

    def decorator(fn: Callable[P, Awaitable[ApiResponse]]) -> Callable[P, Awaitable[ApiResponse]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ApiResponse:
            try:
                result = await fn(*args, **kwargs)
            except Exception as exc:
                logger.exception("%s failed", fn.__qualname__)
                return ApiResponse.fail(str(exc) or fallback_error)
            if not result.success and not result.error:
                result.error = fallback_error
            return result

        return wrapper

    return decorator


async def fetch_collection(
    client: ApiClient,
    endpoint: str,
    keys: tuple[str, ...] = (),
    **params: Any,
) -> ApiResponse:
    """GET a list from the casa namespace, tolerating every envelope shape."""
    response = await client.casa_get(endpoint, params=build_query(**params))
    if not response.success:
        return response
    return ApiResponse.ok(unwrap_collection(response.data, keys), status_code=response.status_code)


async def fetch_envelope(client: ApiClient, endpoint: str, **params: Any) -> ApiResponse:
    """GET a single record from the casa namespace with one envelope stripped."""
    response = await client.casa_get(endpoint, params=build_query(**params))
    if not response.success:
        return response
    return ApiResponse.ok(unwrap_envelope(response.data), status_code=response.status_code)


def _join(prefix: str, endpoint: str) -> str:
    return prefix + endpoint.lstrip("/")


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _file_part(file: FileInput) -> Any:
    if isinstance(file, tuple):
        return file
    if isinstance(file, (str, Path)):
        path = Path(file)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return (path.name, path.read_bytes(), content_type)
    if isinstance(file, bytes):
        return ("upload.bin", file, "application/octet-stream")
    name = Path(getattr(file, "name", "upload.bin")).name
    return (name, file)


async def _progress_stream(body: bytes, on_progress: ProgressCallback) -> AsyncIterator[bytes]:
    total = len(body)
    on_progress(0)
    if total == 0:
        on_progress(100)
        return
    sent = 0
    for start in range(0, total, UPLOAD_CHUNK_SIZE):
        chunk = body[start : start + UPLOAD_CHUNK_SIZE]
        sent += len(chunk)
        yield chunk
        on_progress(round(sent * 100 / total))
