"""
Employment Applications Repository

Database operations for employment applications. Only data access lives
here; validation, lifecycle rules and projection belong to the service.

Design Principles:
- All queries are parameterized
- One commit per write, rolled back on failure (a record is written whole or not at all)
- Newest submissions first for every listing
"""

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from intake.modules.employment_applications.exceptions import DuplicateIdError
from intake.modules.employment_applications.models import (
    ApplicationStatus,
    EmploymentApplication,
)
from intake.modules.employment_applications.schemas import ApplicationRecord

UNIQUE_VIOLATION = "23505"


def _is_application_id_conflict(error: IntegrityError) -> bool:
    """True when ``error`` is a unique violation on ``application_id``."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None and sqlstate != UNIQUE_VIOLATION:
        return False
    message = str(orig).lower()
    return "application_id" in message and ("unique" in message or "duplicate" in message)


def to_model(record: ApplicationRecord) -> EmploymentApplication:
    """Build an (unsaved) row from a canonical record."""
    data = record.model_dump(mode="json")

    return EmploymentApplication(
        application_id=record.application_id,
        email=record.personal_info.email,
        personal_info=data["personal_info"],
        position_details=data["position_details"],
        education=data["education"],
        employment_history=data["employment_history"],
        documents=data["documents"],
        consents=data["consents"],
        signature=data["signature"],
        status=record.status,
        submitted_at=record.submitted_at,
        reviewed_by=record.reviewed_by,
        reviewed_at=record.reviewed_at,
        review_notes=record.review_notes,
        rejection_reason=record.rejection_reason,
    )


async def create(db: AsyncSession, record: ApplicationRecord) -> EmploymentApplication:
    """
    Insert a new application.

    Nothing runs after the commit, so any error raised here means the row
    was not stored.

    Raises:
        DuplicateIdError: If ``record.application_id`` is already taken
        IntegrityError: On any other constraint violation
    """
    new_application = to_model(record)

    db.add(new_application)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if _is_application_id_conflict(e):
            raise DuplicateIdError(record.application_id) from e
        raise
    except Exception:
        await db.rollback()
        raise

    return new_application


async def get_by_application_id(
    db: AsyncSession, application_id: str
) -> EmploymentApplication | None:
    """Get application by its public application ID."""
    result = await db.execute(
        select(EmploymentApplication).where(
            EmploymentApplication.application_id == application_id
        )
    )
    return result.scalar_one_or_none()


async def list_applications(
    db: AsyncSession,
    status: ApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[EmploymentApplication], int]:
    """
    List applications, newest first, with optional status filter.

    Returns:
        (page of applications, total matching the filter)
    """
    query = select(EmploymentApplication)
    count_query = select(func.count()).select_from(EmploymentApplication)

    if status:
        query = query.where(EmploymentApplication.status == status)
        count_query = count_query.where(EmploymentApplication.status == status)

    total = (await db.execute(count_query)).scalar_one()

    query = query.order_by(EmploymentApplication.submitted_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)

    return list(result.scalars().all()), total


async def get_by_email(db: AsyncSession, email: str) -> list[EmploymentApplication]:
    """All applications submitted with ``email`` (stored lowercased)."""
    result = await db.execute(
        select(EmploymentApplication)
        .where(EmploymentApplication.email == email)
        .order_by(EmploymentApplication.submitted_at.desc())
    )
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession) -> dict[ApplicationStatus, int]:
    """Number of applications in each status (zero for unused statuses)."""
    columns = [
        func.count(case((EmploymentApplication.status == status, 1))).label(status.name)
        for status in ApplicationStatus
    ]
    row = (await db.execute(select(*columns))).one()

    return {status: getattr(row, status.name) or 0 for status in ApplicationStatus}


async def get_recent(db: AsyncSession, limit: int) -> list[EmploymentApplication]:
    result = await db.execute(
        select(EmploymentApplication)
        .order_by(EmploymentApplication.submitted_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def save(db: AsyncSession, application: EmploymentApplication) -> EmploymentApplication:
    """Commit changes made to a loaded application."""
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(application)

    return application


async def delete(db: AsyncSession, application: EmploymentApplication) -> None:
    try:
        await db.delete(application)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
