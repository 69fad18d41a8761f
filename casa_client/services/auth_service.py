"""Authentication service - JWT login, session persistence, refresh, permissions.

Session lifecycle:
    anonymous -> authenticating -> authenticated
    authenticated -> refreshing -> authenticated | invalid
    any -> anonymous (logout)

The session itself lives in the client's ``SessionStore``; this module only
reads and writes it.
"""

import json
import logging
import weakref
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import jwt

from casa_client.core import permissions
from casa_client.core.config import settings
from casa_client.core.session_store import (
    AUTH_COOKIES,
    ORGANIZATION_COOKIE,
    REFRESH_TOKEN_COOKIE,
    TENANT_COOKIE,
    TOKEN_COOKIE,
    USER_COOKIE,
)
from casa_client.schemas.auth import (
    AuthLoginResponse,
    JWTIssueResponse,
    LoginCredentials,
    Organization,
    OrganizationSettings,
    RegisterCredentials,
    Session,
    TwoFactorChallenge,
    User,
)
from casa_client.schemas.common import ApiResponse
from casa_client.services.api_client import ApiClient, service_call
from casa_client.utils.normalization import coerce_id, unwrap_collection, unwrap_envelope

logger = logging.getLogger(__name__)

JWT_TOKEN_ENDPOINT = "jwt-auth/v1/token"
ORGANIZATION_KEYS = ("organizations",)
DEFAULT_ROLES = ["volunteer"]

NO_ORGANIZATION_ASSIGNED_MESSAGE = (
    "You are not assigned to any organization. Please contact your administrator."
)
NO_ORGANIZATION_FOUND_MESSAGE = (
    "No organization found for user. Please contact your administrator."
)


class AuthState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    INVALID = "invalid"


class AuthError(Exception):
    """Login could not complete after a token was issued."""


class NoOrganizationError(AuthError):
    """The user is not attached to any organization; not retried."""


# ============================================================================
# State tracking
# ============================================================================

# Transient states per client; authenticated/anonymous are derived from the store
_pending_states: "weakref.WeakKeyDictionary[ApiClient, AuthState]" = weakref.WeakKeyDictionary()


def _set_state(client: ApiClient, state: AuthState) -> None:
    previous = get_auth_state(client)
    if state in (AuthState.AUTHENTICATING, AuthState.REFRESHING, AuthState.INVALID):
        _pending_states[client] = state
    else:
        _pending_states.pop(client, None)
    if previous != state:
        logger.debug("Auth state %s -> %s", previous.value, state.value)


def get_auth_state(client: ApiClient) -> AuthState:
    pending = _pending_states.get(client)
    if pending is not None:
        return pending
    return AuthState.AUTHENTICATED if is_authenticated(client) else AuthState.ANONYMOUS


# ============================================================================
# Session accessors
# ============================================================================

def get_token(client: ApiClient) -> str | None:
    return client.session.get(TOKEN_COOKIE)


def get_refresh_token(client: ApiClient) -> str | None:
    return client.session.get(REFRESH_TOKEN_COOKIE)


def get_current_user(client: ApiClient) -> User | None:
    raw = client.session.get(USER_COOKIE)
    if not raw:
        return None
    try:
        return User.model_validate_json(raw)
    except ValueError:
        logger.warning("Stored user data is malformed")
        return None


def get_current_organization(client: ApiClient) -> Organization | None:
    raw = client.session.get(ORGANIZATION_COOKIE)
    if not raw:
        return None
    try:
        return Organization.model_validate_json(raw)
    except ValueError:
        logger.warning("Stored organization data is malformed")
        return None


def get_session(client: ApiClient) -> Session | None:
    token = get_token(client)
    user = get_current_user(client)
    if not token or user is None:
        return None
    return Session(
        token=token,
        refresh_token=get_refresh_token(client),
        user=user,
        organization=get_current_organization(client),
    )


def is_authenticated(client: ApiClient) -> bool:
    return bool(get_token(client)) and get_current_user(client) is not None


def has_permission(client: ApiClient, permission: str) -> bool:
    return permissions.has_permission(get_current_user(client), permission)


def can_access_organization(client: ApiClient, organization_id: str) -> bool:
    return permissions.can_access_organization(get_current_user(client), organization_id)


def persist_session(
    client: ApiClient,
    token: str,
    user: User,
    organization: Organization | None,
    refresh_token: str | None = None,
) -> None:
    """Write the session cookies with the configured expiry and secure flag."""
    options = {"expires_days": settings.SESSION_COOKIE_DAYS, "secure": settings.cookie_secure}
    client.session.set(TOKEN_COOKIE, token, **options)
    client.session.set(USER_COOKIE, user.model_dump_json(by_alias=True), **options)
    if organization is not None:
        client.session.set(ORGANIZATION_COOKIE, organization.model_dump_json(by_alias=True), **options)
        client.set_tenant(organization.id)
    if refresh_token:
        client.session.set(REFRESH_TOKEN_COOKIE, refresh_token, **options)


def clear_session(client: ApiClient) -> None:
    client.session.clear(*AUTH_COOKIES, TENANT_COOKIE)


# ============================================================================
# Record mapping
# ============================================================================

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _pick(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _split_display_name(display_name: str | None) -> tuple[str | None, str | None]:
    parts = (display_name or "").split()
    first = parts[0] if parts else None
    last = parts[1] if len(parts) > 1 else None
    return first, last


def user_from_record(
    record: dict[str, Any],
    *,
    fallback_id: str | None = None,
    fallback_email: str = "",
    display_name: str | None = None,
    nicename: str | None = None,
) -> User:
    """Build a User from a backend profile record (camelCase or snake_case)."""
    display_first, display_last = _split_display_name(display_name)
    roles = record.get("roles")
    organization_id = _pick(record, "organizationId", "organization_id")
    is_active = _pick(record, "isActive", "is_active")
    now = _now_iso()

    return User(
        id=coerce_id(record.get("id")) or fallback_id or fallback_email,
        email=_pick(record, "email") or fallback_email,
        first_name=_pick(record, "firstName", "first_name") or display_first or nicename or "User",
        last_name=_pick(record, "lastName", "last_name") or display_last or "",
        roles=list(roles) if isinstance(roles, list) and roles else list(DEFAULT_ROLES),
        organization_id=coerce_id(organization_id),
        is_active=bool(is_active) if is_active is not None else True,
        last_login=_pick(record, "lastLogin", "last_login") or now,
        created_at=_pick(record, "createdAt", "created_at") or now,
        updated_at=_pick(record, "updatedAt", "updated_at") or now,
    )


def _parse_org_settings(raw: Any) -> OrganizationSettings:
    if isinstance(raw, str) and raw.strip():
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Organization settings are not valid JSON; using defaults")
            raw = None
    if isinstance(raw, dict):
        return OrganizationSettings.model_validate(raw)
    return OrganizationSettings()


def organization_from_record(record: dict[str, Any]) -> Organization:
    now = _now_iso()
    return Organization(
        id=str(record["id"]),
        name=record.get("name") or "",
        slug=record.get("slug") or "",
        domain=record.get("domain") or "casa-backend.local",
        status=record.get("status") or "active",
        settings=_parse_org_settings(record.get("settings")),
        created_at=_pick(record, "created_at", "createdAt") or now,
        updated_at=_pick(record, "updated_at", "updatedAt") or now,
    )


def default_organization(slug: str | None = None) -> Organization:
    slug = slug or settings.DEFAULT_ORGANIZATION_SLUG
    name = "Default Organization" if slug == "default" else slug.replace("-", " ").title()
    now = _now_iso()
    return Organization(id=slug, name=name, slug=slug, created_at=now, updated_at=now)


def select_organization(records: list[Any], user: User) -> Organization:
    """The user's own organization when listed, otherwise the first one."""
    candidates = [r for r in records if isinstance(r, dict) and r.get("id") is not None]
    if not candidates:
        raise NoOrganizationError(NO_ORGANIZATION_FOUND_MESSAGE)
    for record in candidates:
        if user.organization_id is not None and str(record["id"]) == user.organization_id:
            return organization_from_record(record)
    return organization_from_record(candidates[0])


def read_token_claims(token: str) -> dict[str, Any]:
    """Decode JWT claims without verifying the signature (display data only)."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        logger.warning("Issued token is not a decodable JWT")
        return {}
    return claims if isinstance(claims, dict) else {}


def degraded_session(issued: JWTIssueResponse, credentials: LoginCredentials) -> tuple[User, Organization]:
    """Minimal user/organization from token claims when the backend is unreachable."""
    claims = read_token_claims(issued.token)
    claimed_user = (claims.get("data") or {}).get("user") or {}
    organization = default_organization(credentials.organization_slug)
    user = user_from_record(
        {"organizationId": organization.id},
        fallback_id=coerce_id(claimed_user.get("id")) or coerce_id(claims.get("sub")),
        fallback_email=issued.user_email or credentials.email,
        display_name=issued.user_display_name,
        nicename=issued.user_nicename,
    )
    return user, organization


# ============================================================================
# Login
# ============================================================================

def login_usernames(credentials: LoginCredentials) -> list[str]:
    """Usernames tried for JWT issuance, in order."""
    usernames = [credentials.email]
    local_part = credentials.email.split("@", 1)[0]
    if local_part and local_part not in usernames:
        usernames.append(local_part)
    if credentials.organization_slug and credentials.organization_slug not in usernames:
        usernames.append(credentials.organization_slug)
    return usernames


def _issued_token(data: Any) -> JWTIssueResponse | None:
    for payload in (data, unwrap_envelope(data)):
        if isinstance(payload, dict) and payload.get("token"):
            return JWTIssueResponse.model_validate(payload)
    return None


async def issue_token(client: ApiClient, credentials: LoginCredentials) -> ApiResponse:
    """Try each candidate username; the first failure is the one reported."""
    first_failure: ApiResponse | None = None
    for username in login_usernames(credentials):
        response = await client.wp_post(
            JWT_TOKEN_ENDPOINT,
            {"username": username, "password": credentials.password},
            authenticate=False,
        )
        issued = _issued_token(response.data) if response.success else None
        if issued is not None:
            return ApiResponse.ok(issued, status_code=response.status_code)
        if first_failure is None:
            first_failure = response if not response.success else ApiResponse.fail(
                "Login failed", status_code=response.status_code
            )
        logger.debug("JWT issuance failed for a candidate username (%s)", response.status_code)
    return first_failure or ApiResponse.fail("Login failed")


def _profile_unassigned(response: ApiResponse) -> bool:
    error = response.error or ""
    return response.status_code == 400 or "not assigned" in error


async def establish_session(
    client: ApiClient,
    credentials: LoginCredentials,
    issued: JWTIssueResponse,
) -> AuthLoginResponse:
    """Resolve profile and organization for a freshly issued token."""
    # Later calls need the token on the wire
    client.session.set(
        TOKEN_COOKIE,
        issued.token,
        expires_days=settings.SESSION_COOKIE_DAYS,
        secure=settings.cookie_secure,
    )

    profile = await client.casa_get("user/profile")
    if not profile.success and _profile_unassigned(profile):
        raise NoOrganizationError(NO_ORGANIZATION_ASSIGNED_MESSAGE)

    organizations = await client.casa_get("organizations")

    if (
        not profile.success
        and not organizations.success
        and profile.status_code is None
        and organizations.status_code is None
    ):
        logger.warning("Profile and organization lookups unreachable; using degraded session")
        user, organization = degraded_session(issued, credentials)
    else:
        if not profile.success:
            raise AuthError(profile.error or "Failed to load user profile")
        record = unwrap_envelope(profile.data)
        user = user_from_record(
            record if isinstance(record, dict) else {},
            fallback_email=issued.user_email or credentials.email,
            display_name=issued.user_display_name,
            nicename=issued.user_nicename,
        )
        records: list[Any] = []
        if organizations.success:
            records = unwrap_collection(organizations.data, ORGANIZATION_KEYS)
            single = unwrap_envelope(organizations.data)
            if not records and isinstance(single, dict) and single.get("id") is not None:
                records = [single]
        organization = select_organization(records, user)

    persist_session(client, issued.token, user, organization, issued.refresh_token)
    return AuthLoginResponse(user=user, organization=organization, token=issued.token)


@service_call("Login failed")
async def login(client: ApiClient, credentials: LoginCredentials) -> ApiResponse:
    """Log in with email/password; ``data`` is an AuthLoginResponse."""
    _set_state(client, AuthState.AUTHENTICATING)
    token_response = await issue_token(client, credentials)
    if not token_response.success:
        _set_state(client, AuthState.ANONYMOUS)
        return token_response

    try:
        result = await establish_session(client, credentials, token_response.data)
    except Exception as exc:
        clear_session(client)
        _set_state(client, AuthState.ANONYMOUS)
        logger.warning("Login aborted after token issuance: %s", exc)
        return ApiResponse.fail(str(exc) or "Login failed")

    _set_state(client, AuthState.AUTHENTICATED)
    return ApiResponse.ok(result, status_code=token_response.status_code)


# ============================================================================
# Two-factor
# ============================================================================

def _body_message(data: Any) -> str | None:
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return None


@service_call("Login failed")
async def begin_two_factor_login(client: ApiClient, credentials: LoginCredentials) -> ApiResponse:
    """Start an emailed-code login; ``data`` is a TwoFactorChallenge."""
    response = await client.casa_post(
        "auth/login",
        {
            "username": credentials.email,
            "password": credentials.password,
            "organization_slug": credentials.organization_slug or settings.DEFAULT_ORGANIZATION_SLUG,
        },
        authenticate=False,
    )
    if not response.success:
        return response

    body = response.data if isinstance(response.data, dict) else {}
    if not body.get("requires_2fa"):
        return ApiResponse.fail("Two-factor login is not available for this account")
    payload = unwrap_envelope(body)
    challenge = TwoFactorChallenge(
        temp_token=payload.get("temp_token") or "",
        email=payload.get("email") or credentials.email,
        organization_slug=payload.get("organization_slug") or credentials.organization_slug,
    )
    return ApiResponse.ok(challenge, status_code=response.status_code)


@service_call("Verification failed")
async def verify_2fa(
    client: ApiClient,
    temp_token: str,
    code: str,
    organization_slug: str | None = None,
) -> ApiResponse:
    response = await client.casa_post(
        "auth/verify-2fa",
        {
            "temp_token": temp_token,
            "code": code,
            "organization_slug": organization_slug or settings.DEFAULT_ORGANIZATION_SLUG,
        },
        authenticate=False,
    )
    if not response.success or not response.data:
        return ApiResponse.fail(
            _body_message(response.data) or response.error or "Verification failed",
            status_code=response.status_code,
        )

    payload = unwrap_envelope(response.data)
    user_record = payload.get("user") if isinstance(payload, dict) else None
    token = payload.get("token") if isinstance(payload, dict) else None
    if not isinstance(user_record, dict) or not token:
        return ApiResponse.fail("Verification failed", status_code=response.status_code)

    org_record = payload.get("organization")
    if isinstance(org_record, dict) and org_record.get("id") is not None:
        organization = organization_from_record(org_record)
    else:
        organization = default_organization()
    user = user_from_record({**user_record, "organizationId": organization.id})

    persist_session(client, token, user, organization, payload.get("refresh_token"))
    _set_state(client, AuthState.AUTHENTICATED)
    return ApiResponse.ok(
        AuthLoginResponse(user=user, organization=organization, token=token),
        status_code=response.status_code,
    )


@service_call("Failed to resend code")
async def resend_2fa_code(client: ApiClient, temp_token: str) -> ApiResponse:
    response = await client.casa_post("auth/resend-2fa", {"temp_token": temp_token}, authenticate=False)
    if not response.success or not response.data:
        return ApiResponse.fail(
            _body_message(response.data) or response.error or "Failed to resend code",
            status_code=response.status_code,
        )

    payload = unwrap_envelope(response.data)
    challenge = TwoFactorChallenge(
        temp_token=payload.get("temp_token") or temp_token,
        email=payload.get("email") or "",
    )
    return ApiResponse.ok(challenge, status_code=response.status_code)


# ============================================================================
# Account lifecycle
# ============================================================================

@service_call("Registration failed")
async def register(client: ApiClient, credentials: RegisterCredentials) -> ApiResponse:
    return await client.casa_post("register", credentials.model_dump(exclude_none=True), authenticate=False)


async def logout(client: ApiClient) -> ApiResponse:
    """Invalidate the token server-side; local session is cleared regardless."""
    try:
        response = await client.wp_post("jwt-auth/v1/logout")
        if not response.success:
            logger.info("Server-side logout failed: %s", response.error)
    except Exception:
        logger.exception("Server-side logout failed")
    finally:
        clear_session(client)
        _set_state(client, AuthState.ANONYMOUS)
    return ApiResponse.ok(None)


@service_call("Token refresh failed")
async def refresh_token(client: ApiClient) -> ApiResponse:
    current_refresh = get_refresh_token(client)
    if not current_refresh:
        return ApiResponse.fail("No refresh token available")

    _set_state(client, AuthState.REFRESHING)
    response = await client.wp_post("jwt-auth/v1/token/refresh", {"refresh_token": current_refresh})
    payload = unwrap_envelope(response.data) if response.success else None
    token = payload.get("token") if isinstance(payload, dict) else None

    user = None
    if token:
        user_record = payload.get("user")
        if isinstance(user_record, dict):
            user = user_from_record(user_record)
        else:
            user = get_current_user(client)

    if not token or user is None:
        clear_session(client)
        _set_state(client, AuthState.INVALID)
        return ApiResponse.fail(response.error or "Token refresh failed", status_code=response.status_code)

    persist_session(
        client,
        token,
        user,
        get_current_organization(client),
        payload.get("refresh_token") or current_refresh,
    )
    _set_state(client, AuthState.AUTHENTICATED)
    return ApiResponse.ok({"token": token, "user": user}, status_code=response.status_code)


@service_call("Token validation failed")
async def validate_token(client: ApiClient) -> ApiResponse:
    """Check the stored session; ``data`` is the Session when usable.

    Local session data is trusted in development, and whenever the validate
    endpoint fails but both user and organization are stored.
    """
    session = get_session(client)
    if session is None:
        return ApiResponse.fail("No token or user found")

    if settings.is_development and session.organization is not None:
        return ApiResponse.ok(session)

    response = await client.wp_post("jwt-auth/v1/token/validate")
    if response.success:
        return ApiResponse.ok(session, status_code=response.status_code)

    if session.organization is not None:
        logger.warning("Token validation failed; continuing with stored session")
        return ApiResponse.ok(session, status_code=response.status_code)

    clear_session(client)
    _set_state(client, AuthState.INVALID)
    return ApiResponse.fail("Token validation failed", status_code=response.status_code)


@service_call("Failed to switch organization")
async def switch_organization(client: ApiClient, organization_id: str) -> ApiResponse:
    response = await client.casa_post("switch-organization", {"organization_id": organization_id})
    if not response.success:
        return response

    payload = unwrap_envelope(response.data)
    record = payload.get("organization") if isinstance(payload, dict) else None
    if not isinstance(record, dict) or record.get("id") is None:
        return ApiResponse.fail("Failed to switch organization", status_code=response.status_code)

    organization = organization_from_record(record)
    client.session.set(
        ORGANIZATION_COOKIE,
        organization.model_dump_json(by_alias=True),
        expires_days=settings.SESSION_COOKIE_DAYS,
        secure=settings.cookie_secure,
    )
    client.set_tenant(organization.id)
    return ApiResponse.ok(organization, status_code=response.status_code)


@service_call("Password reset request failed")
async def request_password_reset(client: ApiClient, email: str) -> ApiResponse:
    return await client.saas_post("password-reset", {"email": email}, authenticate=False)


@service_call("Password reset failed")
async def reset_password(client: ApiClient, token: str, new_password: str) -> ApiResponse:
    return await client.saas_post(
        "password-reset/confirm",
        {"token": token, "password": new_password},
        authenticate=False,
    )


@service_call("Profile update failed")
async def update_profile(client: ApiClient, updates: dict[str, Any]) -> ApiResponse:
    response = await client.saas_post("profile/update", updates)
    if not response.success:
        return response

    payload = unwrap_envelope(response.data)
    record = payload.get("user") if isinstance(payload, dict) else None
    if not isinstance(record, dict):
        return ApiResponse.fail("Profile update failed", status_code=response.status_code)

    current = get_current_user(client)
    user = user_from_record(
        record,
        fallback_id=current.id if current else None,
        fallback_email=current.email if current else "",
    )
    client.session.set(
        USER_COOKIE,
        user.model_dump_json(by_alias=True),
        expires_days=settings.SESSION_COOKIE_DAYS,
        secure=settings.cookie_secure,
    )
    return ApiResponse.ok(user, status_code=response.status_code)
