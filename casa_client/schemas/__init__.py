"""Pydantic schemas for backend payloads and client view-models."""

from casa_client.schemas.auth import (
    AuthLoginResponse,
    LoginCredentials,
    Organization,
    OrganizationSettings,
    RegisterCredentials,
    Session,
    TwoFactorChallenge,
    User,
)
from casa_client.schemas.common import ApiResponse
from casa_client.schemas.volunteer import (
    PipelineAction,
    PipelineActionResult,
    PipelineBoard,
    Volunteer,
    VolunteerApplication,
    VolunteerStatus,
)
