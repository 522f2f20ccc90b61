"""
Employment Applications Router

Public intake endpoint. No authentication: applicants submit the form
before any account exists.

Endpoints:
- POST /applications - Submit a new employment application

Security:
- Rate limited per client IP (Redis sliding window, in-memory fallback)
- Upload size limit enforced by the blob store
- The response carries only a summary; sensitive fields are never echoed
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from intake.core.config import settings
from intake.core.database import get_db
from intake.core.rate_limit import limit_submissions
from intake.core.storage import LocalBlobStore, get_blob_store
from intake.core.telegram import TelegramClient, get_messaging_client
from intake.modules.employment_applications import service
from intake.modules.employment_applications.exceptions import (
    ApplicationServiceError,
    ValidationError,
    internal_error,
    to_http_exception,
)
from intake.modules.employment_applications.schemas import (
    ErrorResponse,
    SubmitApplicationResponse,
)
from intake.modules.employment_applications.service import IncomingUpload

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_FORM_FIELDS = ("idFront", "idBack", "resume")


async def _read_submission(request: Request) -> tuple[dict, dict[str, IncomingUpload]]:
    """
    Split the request body into text fields and uploaded files.

    Multipart and urlencoded forms are the normal path; a JSON object body
    is accepted too (no files in that case).
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            raise ValidationError({"body": "malformed JSON"}) from e
        if not isinstance(body, dict):
            raise ValidationError({"body": "expected a JSON object"})
        body = {key: value for key, value in body.items() if key not in UPLOAD_FORM_FIELDS}
        return body, {}

    form = await request.form()
    fields: dict = {}
    uploads: dict[str, IncomingUpload] = {}

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key in UPLOAD_FORM_FIELDS and key not in uploads:
                # At most one byte past the limit
                content = await value.read(settings.max_upload_bytes + 1)
                uploads[key] = IncomingUpload(filename=value.filename, content=content)
            await value.close()
        elif key not in UPLOAD_FORM_FIELDS:
            fields[key] = value

    return fields, uploads


@router.post(
    "",
    response_model=SubmitApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Employment Application",
    description="""
Submit a new employment application as a multipart form.

**Files** (optional): `idFront`, `idBack`, `resume`.

**Booleans** are sent as `"yes"`/`"true"`; anything else counts as false.
**Dates** may be `YYYY-MM-DD`, a full ISO timestamp or `MM/DD/YYYY`.
`employmentHistory` is a JSON-encoded array of `{company, jobTitle, ...}`.

The operator channel is notified after the response is sent.
""",
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        429: {"description": "Too many submissions from this client"},
        500: {"description": "Could not store the application", "model": ErrorResponse},
    },
    dependencies=[Depends(limit_submissions)],
)
async def submit_application(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store),
    messaging_client: TelegramClient = Depends(get_messaging_client),
) -> SubmitApplicationResponse:
    """
    Submit a new employment application.

    Raises:
        HTTPException 400: If required fields are missing or invalid
        HTTPException 500: If the application could not be stored
    """
    try:
        form, uploads = await _read_submission(request)
        response = await service.submit_application(
            db,
            form,
            uploads,
            blob_store=blob_store,
            messaging_client=messaging_client,
            background_tasks=background_tasks,
        )

        logger.info(f"Application submitted successfully: id={response.application_id}")

        return response

    except ValidationError as e:
        logger.warning(f"Submission rejected: {e.message}")
        raise to_http_exception(e) from e
    except ApplicationServiceError as e:
        logger.error(f"Application service error: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise internal_error() from e
