"""
Employment Applications Schemas

Pydantic models for the canonical application record and the API
request/response envelopes.

The record models are the structural validation layer: constructing an
``ApplicationRecord`` fails if a required field is missing or empty, or if
an enum field holds an unknown value. Cross-field business rules are not
checked here.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# Re-use enums from models (they work with Pydantic too!)
from intake.modules.employment_applications.models import (
    AccountType,
    ApplicationStatus,
    EmploymentType,
    GovernmentIdType,
    PreferredContact,
)


class RecordSection(BaseModel):
    """Base for record sections: trims whitespace from every string field."""

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)


# ============================================
# Section 1: Personal Information
# ============================================


class Address(RecordSection):
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)


class GovernmentId(RecordSection):
    type: GovernmentIdType
    number: str = Field(..., min_length=1, max_length=100)
    expiration: date


class IdDocuments(RecordSection):
    """Blob references for the uploaded ID scans."""

    front: str | None = None
    back: str | None = None


class PersonalInfo(RecordSection):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    middle_name: str = Field("", max_length=100)
    date_of_birth: date
    address: Address
    phone: str = Field(..., min_length=1, max_length=30)
    email: EmailStr
    work_authorized: bool = False
    preferred_contact: PreferredContact | None = None
    ssn: str = Field("", max_length=20)
    government_id: GovernmentId
    id_documents: IdDocuments = Field(default_factory=IdDocuments)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


# ============================================
# Section 2: Position Details
# ============================================


class BankDetails(RecordSection):
    bank_name: str = Field(..., min_length=1, max_length=200)
    account_type: AccountType
    account_holder_name: str = Field(..., min_length=1, max_length=200)
    routing_number: str = Field(..., min_length=1, max_length=34)
    account_number: str = Field(..., min_length=1, max_length=34)
    direct_deposit_consent: bool = False


class PositionDetails(RecordSection):
    position_applied: str = Field("", max_length=200)
    employment_type: EmploymentType | None = None
    expected_salary: str = Field("", max_length=100)
    available_start_date: date | None = None
    preferred_work_schedule: str = Field("", max_length=200)
    willing_to_overtime_travel: bool = False
    bank_details: BankDetails


# ============================================
# Section 3: Education
# ============================================


class HighSchool(RecordSection):
    name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)


class College(RecordSection):
    name: str = Field("", max_length=200)
    location: str = Field("", max_length=200)
    degree: str = Field("", max_length=200)


class Education(RecordSection):
    high_school: HighSchool
    college: College = Field(default_factory=College)
    licenses: str = Field("", max_length=2000)


# ============================================
# Section 4: Employment History
# ============================================


class EmploymentHistoryEntry(RecordSection):
    company: str = Field(..., min_length=1, max_length=200)
    address: str = Field("", max_length=300)
    job_title: str = Field("", max_length=200)
    supervisor_name: str = Field("", max_length=200)
    date_from: date | None = None
    date_to: date | None = None
    responsibilities: str = Field("", max_length=2000)


# ============================================
# Sections 5-6: Documents, Consents, Signature
# ============================================


class Documents(RecordSection):
    resume: str | None = None
    resume_uploaded_at: datetime | None = None


class Consents(RecordSection):
    identity_verification: bool
    bank_details_verification: bool
    consented_at: datetime


class Signature(RecordSection):
    applicant_name: str = Field(..., min_length=1, max_length=200)
    signed_date: date


# ============================================
# Application Record
# ============================================


class ApplicationRecord(RecordSection):
    """The canonical employment application."""

    application_id: str = Field(..., min_length=1, max_length=64)
    personal_info: PersonalInfo
    position_details: PositionDetails
    education: Education
    employment_history: list[EmploymentHistoryEntry] = Field(default_factory=list)
    documents: Documents = Field(default_factory=Documents)
    consents: Consents
    signature: Signature

    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    submitted_at: datetime
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str = ""
    rejection_reason: str = ""


# ============================================
# Request Schemas
# ============================================


class StatusUpdateRequest(BaseModel):
    """Request body for PATCH /applications/{application_id}/status."""

    # Plain string: unknown values are rejected by the lifecycle with INVALID_STATUS
    status: str = Field(..., min_length=1, max_length=50)
    reviewed_by: str | None = Field(None, max_length=255)
    review_notes: str | None = Field(None, max_length=5000)
    rejection_reason: str | None = Field(None, max_length=2000)


# ============================================
# Response Schemas
# ============================================


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope, returned under the ``detail`` key."""

    success: bool = False
    error: str
    message: str
    fields: list[FieldError] | None = None


class SubmissionSummary(BaseModel):
    application_id: str
    first_name: str
    last_name: str
    email: str
    position_applied: str
    submitted_at: datetime


class SubmitApplicationResponse(BaseModel):
    success: bool = True
    message: str = "Application submitted successfully!"
    application_id: str
    data: SubmissionSummary


class ApplicationResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: ApplicationRecord


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    success: bool = True
    count: int = Field(..., ge=0, description="Records in this page")
    total: int = Field(..., ge=0, description="Records matching the filter")
    page: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)
    data: list[ApplicationRecord]


class ApplicationCollectionResponse(BaseModel):
    """Unpaginated list (search and recent)."""

    success: bool = True
    count: int = Field(..., ge=0)
    data: list[ApplicationRecord]


class ApplicationStats(BaseModel):
    total: int = Field(..., ge=0)
    submitted: int = Field(..., ge=0)
    under_review: int = Field(..., ge=0)
    approved: int = Field(..., ge=0)
    rejected: int = Field(..., ge=0)


class ApplicationStatsResponse(BaseModel):
    success: bool = True
    data: ApplicationStats


class DeleteApplicationResponse(BaseModel):
    success: bool = True
    message: str = "Application deleted successfully"
    application_id: str
