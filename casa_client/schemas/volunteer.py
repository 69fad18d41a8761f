"""Volunteer view-models and pipeline schemas."""

from enum import Enum

from pydantic import Field

from casa_client.schemas.common import CamelModel


class VolunteerStatus(str, Enum):
    """Onboarding pipeline stage."""

    APPLIED = "applied"
    BACKGROUND_CHECK = "background_check"
    TRAINING = "training"
    ACTIVE = "active"
    REJECTED = "rejected"


class PipelineAction(str, Enum):
    """Actions accepted by the pipeline-action endpoint.

    Legality for the volunteer's current stage is decided server-side.
    """

    START_BACKGROUND_CHECK = "start_background_check"
    APPROVE_BACKGROUND_CHECK = "approve_background_check"
    FAIL_BACKGROUND_CHECK = "fail_background_check"
    COMPLETE_TRAINING = "complete_training"
    APPROVE_VOLUNTEER = "approve_volunteer"
    REJECT_APPLICATION = "reject_application"


class Address(CamelModel):
    street: str
    city: str = ""
    state: str = ""
    zip_code: str = ""


class EmergencyContact(CamelModel):
    name: str
    relationship: str = ""
    phone: str = ""


class Volunteer(CamelModel):
    id: str
    user_id: str | None = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: str | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    background_check_status: str = "pending"
    background_check_date: str | None = None
    training_status: str = "not_started"
    training_completed_date: str | None = None
    # Kept verbatim, even when it is not a known stage
    volunteer_status: str = VolunteerStatus.APPLIED.value
    is_active: bool = False
    organization_id: str = ""
    application_date: str | None = None
    approved_at: str | None = None
    approved_by: str | None = None
    rejected_at: str | None = None
    rejection_reason: str | None = None
    created_at: str = ""
    updated_at: str = ""


class PipelineBoard(CamelModel):
    """Volunteers grouped into the five board columns."""
    applied: list[Volunteer] = Field(default_factory=list)
    background_check: list[Volunteer] = Field(default_factory=list)
    training: list[Volunteer] = Field(default_factory=list)
    active: list[Volunteer] = Field(default_factory=list)
    rejected: list[Volunteer] = Field(default_factory=list)

    def bucket(self, status: str) -> list[Volunteer]:
        return getattr(self, status)

    def total(self) -> int:
        return sum(len(self.bucket(status.value)) for status in VolunteerStatus)


class PipelineActionResult(CamelModel):
    id: str
    action: str
    old_status: str | None = None
    new_status: str | None = None
    user_created: bool | None = None
    username: str | None = None
    temporary_password: str | None = None
    welcome_email_sent: bool | None = None


class AccountApproval(CamelModel):
    id: str
    username: str = ""
    temporary_password: str = ""
    welcome_email_sent: bool = False


class VolunteerApplication(CamelModel):
    """Public application form, submitted without a session."""
    first_name: str
    last_name: str
    email: str
    phone: str
    date_of_birth: str
    address: str
    city: str
    state: str
    zip_code: str
    emergency_contact_name: str
    emergency_contact_phone: str
    emergency_contact_relationship: str
    employer: str = ""
    occupation: str = ""
    education_level: str = ""
    languages_spoken: str = ""
    previous_volunteer_experience: str = ""
    preferred_schedule: str = ""
    max_cases: int | None = None
    availability_notes: str = ""
    reference1_name: str
    reference1_phone: str
    reference1_relationship: str
    reference2_name: str
    reference2_phone: str
    reference2_relationship: str
    age_preference: str = ""
    gender_preference: str = ""
    special_needs_experience: bool = False
    transportation_available: bool = False
    background_check_consent: bool
    liability_waiver: bool
    confidentiality_agreement: bool


class ApplicationSubmission(CamelModel):
    success: bool = True
    reference_number: str | None = None
    message: str | None = None
