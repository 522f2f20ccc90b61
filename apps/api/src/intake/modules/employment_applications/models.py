"""
Employment Applications Models

Enums shared by the record schema and the ORM, plus the database table
holding submitted applications. Each record section is stored as a JSON
document; ``email`` and ``status`` are promoted to indexed columns for the
dashboard lookups.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from intake.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Review status of an application."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    REJECTED = "rejected"


class PreferredContact(str, enum.Enum):
    PHONE = "phone"
    EMAIL = "email"


class GovernmentIdType(str, enum.Enum):
    DRIVERS_LICENSE = "drivers-license"
    STATE_ID = "state-id"
    PASSPORT = "passport"
    OTHER = "other"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    TEMPORARY = "temporary"


class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVINGS = "savings"


class EmploymentApplication(Base):
    """
    A submitted employment application.

    Sensitive values (SSN, routing and account numbers) are stored verbatim
    inside ``personal_info`` / ``position_details``; encryption at rest is the
    database's concern. Never return a row directly, project it through
    ``projection.to_secure_view`` first.
    """

    __tablename__ = "employment_applications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    # Lookup columns (copied from personal_info at creation)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Record sections
    personal_info: Mapped[dict] = mapped_column(JSON, nullable=False)
    position_details: Mapped[dict] = mapped_column(JSON, nullable=False)
    education: Mapped[dict] = mapped_column(JSON, nullable=False)
    employment_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    documents: Mapped[dict] = mapped_column(JSON, nullable=False)
    consents: Mapped[dict] = mapped_column(JSON, nullable=False)
    signature: Mapped[dict] = mapped_column(JSON, nullable=False)

    # Review tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="employment_application_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=ApplicationStatus.SUBMITTED,
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rejection_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_employment_applications_application_id", "application_id"),
        Index("ix_employment_applications_email", "email"),
        Index("ix_employment_applications_status", "status"),
        Index("ix_employment_applications_submitted_at", "submitted_at"),
    )
