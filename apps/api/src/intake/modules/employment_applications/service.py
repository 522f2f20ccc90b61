"""
Employment Applications Service Layer

Business logic for employment applications. Orchestrates the normalizer,
the status lifecycle, the repository, blob storage and operator
notifications.

This module implements:
1. Submission Flow:
   - Store uploaded documents (ID front/back, resume)
   - Normalize and validate the raw form into a canonical record
   - Persist it, regenerating the application ID once on collision
   - Release stored uploads if anything fails
   - Schedule the operator notification

2. Review Flow:
   - Status transitions through the lifecycle state machine
   - Review metadata stamping and status-change notification

3. Dashboard Queries:
   - Paginated listing with status filter, search by email, stats, recent

Security considerations:
- Every record returned passes through the secure projection
- SSNs, bank numbers and raw form payloads are never logged
- Notifications run after the response and never fail a request
"""

import contextlib
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.config import settings
from intake.core.storage import BlobTooLargeError, LocalBlobStore
from intake.core.telegram import TelegramClient
from intake.modules.employment_applications import repository
from intake.modules.employment_applications.exceptions import (
    ApplicationNotFoundError,
    DuplicateIdError,
    StoreError,
    ValidationError,
)
from intake.modules.employment_applications.lifecycle import parse_status, transition
from intake.modules.employment_applications.models import ApplicationStatus, EmploymentApplication
from intake.modules.employment_applications.normalizer import (
    UploadedDocuments,
    generate_application_id,
    normalize_submission,
)
from intake.modules.employment_applications.notifications import (
    notify_new_application,
    notify_status_change,
)
from intake.modules.employment_applications.projection import record_from_model, to_secure_view
from intake.modules.employment_applications.schemas import (
    ApplicationCollectionResponse,
    ApplicationListResponse,
    ApplicationRecord,
    ApplicationResponse,
    ApplicationStats,
    ApplicationStatsResponse,
    DeleteApplicationResponse,
    StatusUpdateRequest,
    SubmissionSummary,
    SubmitApplicationResponse,
)

logger = logging.getLogger(__name__)

# Constants
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_RECENT_LIMIT = 5
MAX_RECENT_LIMIT = 50

# (form field, UploadedDocuments attribute, record field reported on error)
UPLOAD_FIELDS = (
    ("idFront", "id_front", "personal_info.id_documents.front"),
    ("idBack", "id_back", "personal_info.id_documents.back"),
    ("resume", "resume", "documents.resume"),
)


@dataclass(frozen=True)
class IncomingUpload:
    """A file received with the submission form."""

    filename: str | None
    content: bytes


@contextlib.contextmanager
def _store_errors(operation: str):
    """Turn database failures into ``StoreError``."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error while trying to {operation}: {e}")
        raise StoreError(operation) from e


def _secure(application: EmploymentApplication) -> ApplicationRecord:
    return to_secure_view(record_from_model(application))


async def _release_blobs(blob_store: LocalBlobStore, references: list[str]) -> None:
    """Delete stored uploads. Failures are logged, never raised."""
    for reference in references:
        try:
            await blob_store.delete(reference)
        except OSError as e:
            logger.error(f"Failed to delete blob {reference}: {e}")


async def _store_uploads(
    blob_store: LocalBlobStore,
    uploads: Mapping[str, IncomingUpload | None],
) -> UploadedDocuments:
    """
    Save every non-empty upload and return the blob references.

    Raises:
        ValidationError: If a file is larger than the upload limit
        StoreError: If a file cannot be written
    """
    references: dict[str, str] = {}

    for form_field, attribute, record_field in UPLOAD_FIELDS:
        upload = uploads.get(form_field)
        if upload is None or not upload.content:
            continue

        try:
            references[attribute] = await blob_store.save(
                form_field, upload.filename, upload.content
            )
        except BlobTooLargeError as e:
            await _release_blobs(blob_store, list(references.values()))
            raise ValidationError(
                {record_field: f"file is larger than the {e.max_bytes} byte limit"}
            ) from e
        except OSError as e:
            logger.error(f"Failed to store {form_field} upload: {e}")
            await _release_blobs(blob_store, list(references.values()))
            raise StoreError("store the uploaded documents") from e

    return UploadedDocuments(**references)


async def _create_with_retry(db: AsyncSession, record: ApplicationRecord) -> ApplicationRecord:
    """
    Persist ``record``; on an application ID collision regenerate the ID once.

    Returns:
        The record as stored (its ID may differ from the input's)

    Raises:
        DuplicateIdError: If the regenerated ID collides too
        StoreError: On any other database failure
    """
    try:
        with _store_errors("save the application"):
            await repository.create(db, record)
        return record
    except DuplicateIdError:
        new_id = generate_application_id(settings.application_id_prefix)
        logger.warning(f"Application ID {record.application_id} already taken, using {new_id}")

    record = record.model_copy(update={"application_id": new_id})
    try:
        with _store_errors("save the application"):
            await repository.create(db, record)
    except DuplicateIdError:
        logger.error(f"Regenerated application ID {new_id} collided as well")
        raise

    return record


async def _get_or_404(db: AsyncSession, application_id: str) -> EmploymentApplication:
    with _store_errors("load the application"):
        application = await repository.get_by_application_id(db, application_id)

    if not application:
        raise ApplicationNotFoundError(application_id)

    return application


async def submit_application(
    db: AsyncSession,
    form: Mapping[str, Any],
    uploads: Mapping[str, IncomingUpload | None],
    *,
    blob_store: LocalBlobStore,
    messaging_client: TelegramClient,
    background_tasks: BackgroundTasks,
) -> SubmitApplicationResponse:
    """
    Submit a new employment application.

    1. Stores the uploaded documents
    2. Normalizes the form into a canonical record (status "submitted")
    3. Persists it (one ID regeneration on collision)
    4. Schedules the operator notification

    If any step before the commit fails, the stored uploads are deleted.

    Args:
        db: Database session
        form: Raw form fields
        uploads: Files keyed by form field (idFront, idBack, resume)
        blob_store: Where uploads are kept
        messaging_client: Operator channel
        background_tasks: Request background tasks (notifications)

    Returns:
        SubmitApplicationResponse with the new application ID

    Raises:
        ValidationError: If required fields are missing or invalid
        DuplicateIdError: If no unique application ID could be assigned
        StoreError: If the database or blob store fails
    """
    documents = await _store_uploads(blob_store, uploads)

    try:
        record = normalize_submission(
            form, documents, id_prefix=settings.application_id_prefix
        )
        record = await _create_with_retry(db, record)
    except Exception:
        await _release_blobs(blob_store, documents.references())
        raise

    logger.info(f"Created application {record.application_id}")

    background_tasks.add_task(
        notify_new_application,
        messaging_client,
        blob_store,
        to_secure_view(record),
        settings.telegram_send_summary,
    )

    info = record.personal_info
    return SubmitApplicationResponse(
        application_id=record.application_id,
        data=SubmissionSummary(
            application_id=record.application_id,
            first_name=info.first_name,
            last_name=info.last_name,
            email=info.email,
            position_applied=record.position_details.position_applied,
            submitted_at=record.submitted_at,
        ),
    )


async def get_application(db: AsyncSession, application_id: str) -> ApplicationResponse:
    """
    Get a single application (secure view).

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    application = await _get_or_404(db, application_id)
    return ApplicationResponse(data=_secure(application))


async def list_applications(
    db: AsyncSession,
    status: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ApplicationListResponse:
    """
    List applications, newest first, optionally filtered by status.

    ``page`` is 1-based; ``limit`` is clamped to 1..100.

    Raises:
        InvalidStatusError: If ``status`` is not a recognised value
    """
    status_filter = parse_status(status) if status else None
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    with _store_errors("list applications"):
        applications, total = await repository.list_applications(
            db, status=status_filter, skip=(page - 1) * limit, limit=limit
        )

    return ApplicationListResponse(
        count=len(applications),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        data=[_secure(application) for application in applications],
    )


async def update_status(
    db: AsyncSession,
    application_id: str,
    data: StatusUpdateRequest,
    *,
    messaging_client: TelegramClient,
    background_tasks: BackgroundTasks,
) -> ApplicationResponse:
    """
    Move an application through the review lifecycle.

    The operator notification is scheduled only after the change is
    committed; its failure never undoes the change.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        InvalidStatusError: If the requested status is unknown
        IllegalTransitionError: If the move is not allowed
    """
    application = await _get_or_404(db, application_id)

    previous = transition(
        application,
        data.status,
        reviewer=data.reviewed_by,
        notes=data.review_notes,
        rejection_reason=data.rejection_reason,
        allow_terminal_override=not settings.strict_terminal_statuses,
    )

    with _store_errors("update the application status"):
        application = await repository.save(db, application)

    logger.info(
        f"Application {application_id} moved from {previous.value} "
        f"to {ApplicationStatus(application.status).value}"
    )

    background_tasks.add_task(
        notify_status_change,
        messaging_client,
        application_id,
        application.status,
        application.review_notes,
    )

    return ApplicationResponse(
        message="Application status updated successfully",
        data=_secure(application),
    )


async def delete_application(
    db: AsyncSession,
    application_id: str,
    *,
    blob_store: LocalBlobStore,
) -> DeleteApplicationResponse:
    """
    Delete an application and the documents it owns.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    application = await _get_or_404(db, application_id)

    record = record_from_model(application)
    references = [
        reference
        for reference in (
            record.personal_info.id_documents.front,
            record.personal_info.id_documents.back,
            record.documents.resume,
        )
        if reference
    ]

    with _store_errors("delete the application"):
        await repository.delete(db, application)

    await _release_blobs(blob_store, references)
    logger.info(f"Deleted application {application_id} and {len(references)} document(s)")

    return DeleteApplicationResponse(application_id=application_id)


async def search_by_email(db: AsyncSession, email: str) -> ApplicationCollectionResponse:
    """
    Find every application submitted with ``email`` (case-insensitive).

    Raises:
        ValidationError: If ``email`` is blank
    """
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError({"email": "field required"})

    with _store_errors("search applications"):
        applications = await repository.get_by_email(db, email)

    return ApplicationCollectionResponse(
        count=len(applications),
        data=[_secure(application) for application in applications],
    )


async def get_stats(db: AsyncSession) -> ApplicationStatsResponse:
    """Application counts, overall and per status."""
    with _store_errors("count applications"):
        counts = await repository.count_by_status(db)

    return ApplicationStatsResponse(
        data=ApplicationStats(
            total=sum(counts.values()),
            submitted=counts.get(ApplicationStatus.SUBMITTED, 0),
            under_review=counts.get(ApplicationStatus.UNDER_REVIEW, 0),
            approved=counts.get(ApplicationStatus.APPROVED, 0),
            rejected=counts.get(ApplicationStatus.REJECTED, 0),
        )
    )


async def list_recent(
    db: AsyncSession, limit: int = DEFAULT_RECENT_LIMIT
) -> ApplicationCollectionResponse:
    """The most recent submissions; ``limit`` is clamped to 1..50."""
    limit = min(max(limit, 1), MAX_RECENT_LIMIT)

    with _store_errors("list recent applications"):
        applications = await repository.get_recent(db, limit)

    return ApplicationCollectionResponse(
        count=len(applications),
        data=[_secure(application) for application in applications],
    )
