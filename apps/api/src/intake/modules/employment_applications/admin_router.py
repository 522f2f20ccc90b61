"""
Employment Applications Dashboard Router

Endpoints used by the review dashboard. Every record returned is the secure
view (SSN and bank numbers masked).

Endpoints:
- GET /applications - List applications (status filter, page/limit)
- GET /applications/search/email - Applications submitted with an email
- GET /applications/stats/all - Counts per status
- GET /applications/recent/list - Most recent submissions
- GET /applications/{application_id} - Application detail
- PATCH /applications/{application_id}/status - Change review status
- DELETE /applications/{application_id} - Delete application and its documents
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.database import get_db
from intake.core.storage import LocalBlobStore, get_blob_store
from intake.core.telegram import TelegramClient, get_messaging_client
from intake.modules.employment_applications import service
from intake.modules.employment_applications.exceptions import (
    ApplicationServiceError,
    internal_error,
    to_http_exception,
)
from intake.modules.employment_applications.schemas import (
    ApplicationCollectionResponse,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatsResponse,
    DeleteApplicationResponse,
    ErrorResponse,
    StatusUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: ApplicationServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    if e.status_code >= 500:
        logger.error(f"Application service error: {e.message}")
    raise to_http_exception(e) from e


def _handle_unexpected_error(action: str, e: Exception) -> None:
    logger.exception(f"Error {action}: {e}")
    raise internal_error() from e


# ============================================
# Collection Endpoints
# ============================================


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
Get a paginated list of applications, newest first.

**Filters:**
- `status`: submitted, under-review, approved or rejected

**Pagination:**
- `page`: 1-based page number. Default: 1
- `limit`: Records per page (1-100). Default: 10
""",
    responses={400: {"description": "Unknown status filter", "model": ErrorResponse}},
)
async def list_applications(
    status: str | None = Query(None, description="Filter by application status"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Records per page"),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    try:
        result = await service.list_applications(db, status=status, page=page, limit=limit)
        logger.info(f"Listed applications: total={result.total}, returned={result.count}")
        return result
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error("listing applications", e)


@router.get(
    "/search/email",
    response_model=ApplicationCollectionResponse,
    summary="Search Applications by Email",
)
async def search_by_email(
    email: str = Query(..., min_length=1, max_length=255, description="Applicant email"),
    db: AsyncSession = Depends(get_db),
) -> ApplicationCollectionResponse:
    """Email matching is case-insensitive."""
    try:
        return await service.search_by_email(db, email)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error("searching applications", e)


@router.get(
    "/stats/all",
    response_model=ApplicationStatsResponse,
    summary="Application Statistics",
)
async def get_stats(db: AsyncSession = Depends(get_db)) -> ApplicationStatsResponse:
    try:
        return await service.get_stats(db)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error("counting applications", e)


@router.get(
    "/recent/list",
    response_model=ApplicationCollectionResponse,
    summary="Recent Applications",
)
async def list_recent(
    limit: int = Query(5, ge=1, le=50, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db),
) -> ApplicationCollectionResponse:
    try:
        return await service.list_recent(db, limit)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error("listing recent applications", e)


# ============================================
# Single Application Endpoints
# ============================================


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application Detail",
    responses={404: {"description": "Application not found", "model": ErrorResponse}},
)
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    try:
        return await service.get_application(db, application_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error(f"loading application {application_id}", e)


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update Application Status",
    description="""
Move an application through the review lifecycle.

**Allowed transitions:**
- submitted → under-review, approved, rejected
- under-review → approved, rejected
- approved and rejected are final

`rejection_reason` is kept only when the new status is `rejected`.
The operator channel is notified after the change is saved.
""",
    responses={
        400: {"description": "Unknown status", "model": ErrorResponse},
        404: {"description": "Application not found", "model": ErrorResponse},
        409: {"description": "Transition not allowed", "model": ErrorResponse},
    },
)
async def update_status(
    application_id: str,
    data: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    messaging_client: TelegramClient = Depends(get_messaging_client),
) -> ApplicationResponse:
    try:
        return await service.update_status(
            db,
            application_id,
            data,
            messaging_client=messaging_client,
            background_tasks=background_tasks,
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error(f"updating status of {application_id}", e)


@router.delete(
    "/{application_id}",
    response_model=DeleteApplicationResponse,
    summary="Delete Application",
    responses={404: {"description": "Application not found", "model": ErrorResponse}},
)
async def delete_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> DeleteApplicationResponse:
    """Deletes the record and every uploaded document it references."""
    try:
        return await service.delete_application(db, application_id, blob_store=blob_store)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        _handle_unexpected_error(f"deleting application {application_id}", e)
