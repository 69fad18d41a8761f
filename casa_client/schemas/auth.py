"""Authentication and session schemas."""

from pydantic import BaseModel, Field

from casa_client.schemas.common import CamelModel


class OrganizationSettings(CamelModel):
    """Per-organization behavior flags."""
    allow_volunteer_self_registration: bool = True
    require_background_check: bool = True
    max_cases_per_volunteer: int = 5


class Organization(CamelModel):
    id: str
    name: str
    slug: str
    domain: str = "casa-backend.local"
    status: str = "active"
    settings: OrganizationSettings = Field(default_factory=OrganizationSettings)
    created_at: str | None = None
    updated_at: str | None = None


class User(CamelModel):
    """Authenticated user. Roles drive UI permission checks only."""
    id: str
    email: str
    first_name: str = "User"
    last_name: str = ""
    roles: list[str] = Field(default_factory=list)
    organization_id: str | None = None
    is_active: bool = True
    last_login: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Session(BaseModel):
    """Session as persisted in the store."""
    token: str
    refresh_token: str | None = None
    user: User
    organization: Organization | None = None


class LoginCredentials(BaseModel):
    email: str
    password: str
    organization_slug: str | None = None


class RegisterCredentials(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    organization_slug: str | None = None
    role: str | None = None


class AuthLoginResponse(BaseModel):
    user: User
    organization: Organization
    token: str


class TwoFactorChallenge(CamelModel):
    """Pending second factor; resubmit ``temp_token`` with the emailed code."""
    temp_token: str
    email: str
    organization_slug: str | None = None


class JWTIssueResponse(BaseModel):
    """Payload of the jwt-auth token endpoint."""
    token: str
    user_email: str | None = None
    user_nicename: str | None = None
    user_display_name: str | None = None
    refresh_token: str | None = None
