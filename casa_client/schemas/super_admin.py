"""Cross-tenant administration schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OrganizationSettingsPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allow_volunteer_self_registration: bool | None = Field(
        default=None, alias="allowVolunteerSelfRegistration"
    )
    require_background_check: bool | None = Field(default=None, alias="requireBackgroundCheck")
    max_cases_per_volunteer: int | None = Field(default=None, alias="maxCasesPerVolunteer")


class TenantOrganization(BaseModel):
    """Organization as listed on the super-admin dashboard."""
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    slug: str
    domain: str | None = None
    status: str = "active"
    contact_email: str | None = None
    phone: str | None = None
    address: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    cases_count: int | None = None
    volunteers_count: int | None = None
    users_count: int | None = None


class DashboardTotals(BaseModel):
    organizations: int = 0
    cases: int = 0
    volunteers: int = 0
    users: int = 0


class SuperAdminDashboard(BaseModel):
    organizations: list[TenantOrganization] = Field(default_factory=list)
    totals: DashboardTotals = Field(default_factory=DashboardTotals)
    is_super_admin: bool = False


class OrganizationUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    user_id: int
    organization_id: int
    email: str
    display_name: str = ""
    casa_role: str = ""
    status: str = ""
    created_at: str | None = None


class CreateOrganizationData(BaseModel):
    name: str
    slug: str | None = None
    contact_email: str | None = None
    phone: str | None = None
    address: str | None = None


class AssignUserData(BaseModel):
    user_id: int | None = None
    email: str | None = None
    organization_id: int
    casa_role: Literal["admin", "supervisor", "volunteer"]
