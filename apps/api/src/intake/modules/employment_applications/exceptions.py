"""
Employment Applications Errors

Every caller-facing failure is an ``ApplicationServiceError`` carrying a
machine-readable ``error_code`` and the HTTP status the routers answer with.
"""

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ApplicationServiceError):
    """Raised when submitted input is missing or malformed.

    ``fields`` maps each offending field (dotted path in the canonical
    record, e.g. ``personal_info.email``) to a human-readable reason.
    """

    def __init__(self, fields: dict[str, str]):
        self.fields = fields
        names = ", ".join(fields)
        super().__init__(
            message=f"Missing or invalid fields: {names}",
            error_code="VALIDATION_ERROR",
            status_code=400,
        )


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: str | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class DuplicateIdError(ApplicationServiceError):
    """Raised when a generated application ID collides with a stored one."""

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(
            message="Could not assign a unique application ID. Please try again.",
            error_code="DUPLICATE_APPLICATION_ID",
            status_code=500,
        )


class InvalidStatusError(ApplicationServiceError):
    """Raised when a requested status is not a recognised value."""

    def __init__(self, status: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid status '{status}'. Allowed: {', '.join(allowed)}",
            error_code="INVALID_STATUS",
            status_code=400,
        )


class IllegalTransitionError(ApplicationServiceError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, current_status: str, new_status: str, allowed: list[str]):
        self.current_status = current_status
        self.new_status = new_status
        allowed_text = ", ".join(allowed) if allowed else "none (terminal status)"
        super().__init__(
            message=(
                f"Cannot move application from '{current_status}' to '{new_status}'. "
                f"Allowed: {allowed_text}"
            ),
            error_code="ILLEGAL_STATUS_TRANSITION",
            status_code=409,
        )


class StoreError(ApplicationServiceError):
    """Raised when the database fails. Not retried."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Failed to {operation}. Please try again later.",
            error_code="STORE_ERROR",
            status_code=500,
        )


class NotificationError(ApplicationServiceError):
    """Raised inside the notification path when the operator channel fails.

    Never reaches a caller: notifications catch and log it.
    """

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="NOTIFICATION_FAILED",
            status_code=502,
        )


def to_http_exception(e: ApplicationServiceError) -> HTTPException:
    """Render a service error as the API failure envelope."""
    detail = {
        "success": False,
        "error": e.error_code,
        "message": e.message,
    }
    if isinstance(e, ValidationError):
        detail["fields"] = [
            {"field": field, "message": message} for field, message in e.fields.items()
        ]
    return HTTPException(status_code=e.status_code, detail=detail)


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "success": False,
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def _request_field(loc: tuple) -> str:
    # Drop the request source in front of the field path
    parts = loc[1:] if len(loc) > 1 and loc[0] in ("body", "query", "path", "header") else loc
    return ".".join(str(part) for part in parts)


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI request validation failures as a ``VALIDATION_ERROR`` envelope."""
    fields: dict[str, str] = {}
    for error in exc.errors():
        fields.setdefault(_request_field(tuple(error["loc"])), error["msg"])

    http_exc = to_http_exception(ValidationError(fields))
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})
