"""
Employment Applications Status Lifecycle

The review state machine. ``transition`` is the only code path that changes
an application's status; it works on anything exposing the review
attributes (the ORM row or an ``ApplicationRecord``).
"""

from datetime import UTC, datetime
from typing import Any

from intake.modules.employment_applications.exceptions import (
    IllegalTransitionError,
    InvalidStatusError,
)
from intake.modules.employment_applications.models import ApplicationStatus

VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: {
        ApplicationStatus.UNDER_REVIEW,  # Reviewer picked it up
        ApplicationStatus.APPROVED,  # Fast-track approval
        ApplicationStatus.REJECTED,  # Fast-track rejection
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    # Terminal states
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in VALID_STATUS_TRANSITIONS.items() if not targets
)


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus:
    """
    Resolve a requested status.

    Raises:
        InvalidStatusError: If ``value`` is not one of the recognised statuses
    """
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidStatusError(str(value), [s.value for s in ApplicationStatus]) from None


def allowed_transitions(
    current: ApplicationStatus, allow_terminal_override: bool = False
) -> set[ApplicationStatus]:
    if allow_terminal_override and current in TERMINAL_STATUSES:
        return set(ApplicationStatus)
    return VALID_STATUS_TRANSITIONS.get(current, set())


def transition(
    application: Any,
    new_status: str | ApplicationStatus,
    *,
    reviewer: str | None = None,
    notes: str | None = None,
    rejection_reason: str | None = None,
    allow_terminal_override: bool = False,
    now: datetime | None = None,
) -> ApplicationStatus:
    """
    Move an application to ``new_status`` and stamp the review metadata.

    Args:
        application: Object with ``status``, ``reviewed_by``, ``reviewed_at``,
            ``review_notes`` and ``rejection_reason`` attributes
        new_status: Requested status value
        reviewer: Who made the change
        notes: Free-text review notes
        rejection_reason: Kept only when moving to "rejected"
        allow_terminal_override: Let approved/rejected applications be
            re-reviewed (STRICT_TERMINAL_STATUSES=false)
        now: Review time (defaults to the current UTC time)

    Returns:
        The status the application had before the change

    Raises:
        InvalidStatusError: If ``new_status`` is not a recognised value
        IllegalTransitionError: If the move is not allowed from the current status
    """
    target = parse_status(new_status)
    current = ApplicationStatus(application.status)

    allowed = allowed_transitions(current, allow_terminal_override)
    if target not in allowed:
        raise IllegalTransitionError(
            current.value, target.value, sorted(s.value for s in allowed)
        )

    application.status = target
    application.reviewed_by = reviewer
    application.review_notes = notes or ""
    application.reviewed_at = now or datetime.now(UTC)
    application.rejection_reason = (
        (rejection_reason or "") if target == ApplicationStatus.REJECTED else ""
    )

    return current
