"""
Employment Applications Shared Helpers

Small display helpers used by the service and the operator notifications.
"""

from intake.modules.employment_applications.models import ApplicationStatus
from intake.modules.employment_applications.schemas import ApplicationRecord

STATUS_EMOJIS: dict[ApplicationStatus, str] = {
    ApplicationStatus.SUBMITTED: "📝",
    ApplicationStatus.UNDER_REVIEW: "⏳",
    ApplicationStatus.APPROVED: "✅",
    ApplicationStatus.REJECTED: "❌",
}
UNKNOWN_STATUS_EMOJI = "❓"


def full_name(record: ApplicationRecord) -> str:
    """Applicant's "<first> <last>" name."""
    info = record.personal_info
    return f"{info.first_name} {info.last_name}"


def status_emoji(status: ApplicationStatus | str) -> str:
    try:
        return STATUS_EMOJIS[ApplicationStatus(status)]
    except ValueError:
        return UNKNOWN_STATUS_EMOJI
