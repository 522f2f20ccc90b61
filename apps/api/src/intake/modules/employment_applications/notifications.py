"""
Employment Applications Operator Notifications

Messages sent to the operator Telegram chat when an application arrives or
changes status. Every record is passed through the secure projection before
it is rendered, so SSNs and bank numbers never leave the service unmasked.

Notifications are best-effort: the public ``notify_*`` coroutines never
raise. They run as FastAPI background tasks after the response is sent.
"""

import logging
from html import escape

from intake.core.storage import LocalBlobStore
from intake.core.telegram import TelegramClient, TelegramError
from intake.modules.employment_applications.exceptions import NotificationError
from intake.modules.employment_applications.helpers import full_name, status_emoji
from intake.modules.employment_applications.models import ApplicationStatus
from intake.modules.employment_applications.projection import to_secure_view
from intake.modules.employment_applications.schemas import ApplicationRecord

logger = logging.getLogger(__name__)

RULE = "─" * 40
NOT_PROVIDED = "N/A"


def _safe(value) -> str:
    if value is None or value == "":
        return NOT_PROVIDED
    return escape(str(value))


def _agreed(value: bool) -> str:
    return "AGREED" if value else "NOT AGREED"


def build_new_application_alert(record: ApplicationRecord) -> str:
    """Short HTML alert for a new submission."""
    record = to_secure_view(record)
    info = record.personal_info

    return (
        "🔔 <b>NEW APPLICATION RECEIVED</b> 🔔\n\n"
        f"<b>Applicant:</b> {_safe(full_name(record))}\n"
        f"<b>Email:</b> {_safe(info.email)}\n"
        f"<b>Phone:</b> {_safe(info.phone)}\n"
        f"<b>Position:</b> {_safe(record.position_details.position_applied)}\n"
        f"<b>Application ID:</b> <code>{_safe(record.application_id)}</code>\n\n"
        "📋 <b>View full details in the review dashboard</b>\n"
        f"⏱️ {record.submitted_at:%Y-%m-%d %H:%M} UTC\n"
    )


def build_application_summary(record: ApplicationRecord) -> str:
    """
    Full HTML summary of an application, section by section.

    Sensitive numbers appear masked. Long summaries are chunked by the
    Telegram client.
    """
    record = to_secure_view(record)
    info = record.personal_info
    address = info.address
    position = record.position_details
    bank = position.bank_details
    education = record.education

    lines = [
        "📄 <b>EMPLOYMENT APPLICATION</b>",
        f"<b>ID:</b> <code>{_safe(record.application_id)}</code>",
        f"<b>Submitted:</b> {record.submitted_at:%Y-%m-%d %H:%M} UTC",
        "",
        "👤 <b>SECTION 1: PERSONAL INFORMATION</b>",
        RULE,
        f"Name: {_safe(' '.join(filter(None, [info.first_name, info.middle_name, info.last_name])))}",
        f"Date of Birth: {info.date_of_birth.isoformat()}",
        f"Address: {_safe(address.street)}, {_safe(address.city)}, "
        f"{_safe(address.state)} {_safe(address.zip_code)}",
        f"Phone: {_safe(info.phone)}",
        f"Email: {_safe(info.email)}",
        f"Authorized to work: {'YES' if info.work_authorized else 'NO'}",
        f"Preferred contact: {_safe(info.preferred_contact and info.preferred_contact.value)}",
        f"SSN: {_safe(info.ssn)}",
        f"Government ID: {_safe(info.government_id.type.value)} "
        f"(expires {info.government_id.expiration.isoformat()})",
        "",
        "💼 <b>SECTION 2: POSITION DETAILS</b>",
        RULE,
        f"Position: {_safe(position.position_applied)}",
        f"Employment type: {_safe(position.employment_type and position.employment_type.value)}",
        f"Expected salary: {_safe(position.expected_salary)}",
        f"Start date: {_safe(position.available_start_date)}",
        f"Work schedule: {_safe(position.preferred_work_schedule)}",
        f"Overtime/travel: {'YES' if position.willing_to_overtime_travel else 'NO'}",
        "",
        "🏦 <b>BANK ACCOUNT DETAILS</b>",
        RULE,
        f"Bank: {_safe(bank.bank_name)}",
        f"Account type: {bank.account_type.value.upper()}",
        f"Account holder: {_safe(bank.account_holder_name)}",
        f"Routing number: {_safe(bank.routing_number)}",
        f"Account number: {_safe(bank.account_number)}",
        f"Direct deposit consent: {_agreed(bank.direct_deposit_consent)}",
        "",
        "🎓 <b>SECTION 3: EDUCATION</b>",
        RULE,
        f"High school: {_safe(education.high_school.name)} ({_safe(education.high_school.location)})",
        f"College: {_safe(education.college.name)}",
    ]
    if education.college.degree:
        lines.append(f"Degree: {_safe(education.college.degree)}")
    if education.licenses:
        lines.append(f"Licenses: {_safe(education.licenses)}")

    lines += ["", "📊 <b>SECTION 4: EMPLOYMENT HISTORY</b>", RULE]
    if record.employment_history:
        for number, entry in enumerate(record.employment_history, start=1):
            lines.append(f"{number}. {_safe(entry.company)} - {_safe(entry.job_title)}")
            if entry.date_from:
                lines.append(f"   Period: {entry.date_from} to {_safe(entry.date_to)}")
            if entry.supervisor_name:
                lines.append(f"   Supervisor: {_safe(entry.supervisor_name)}")
    else:
        lines.append("No employment history provided.")

    documents = record.documents
    id_docs = info.id_documents
    lines += [
        "",
        "📎 <b>SECTION 5: DOCUMENTS</b>",
        RULE,
        f"ID front: {'uploaded' if id_docs.front else 'missing'}",
        f"ID back: {'uploaded' if id_docs.back else 'missing'}",
        f"Resume: {'uploaded' if documents.resume else 'missing'}",
        "",
        "✍️ <b>SECTION 6: SIGNATURE &amp; CONSENT</b>",
        RULE,
        f"Signature: {_safe(record.signature.applicant_name)}",
        f"Signed: {record.signature.signed_date.isoformat()}",
        f"Identity verification consent: {_agreed(record.consents.identity_verification)}",
        f"Bank details consent: {_agreed(record.consents.bank_details_verification)}",
    ]
    return "\n".join(lines)


def build_document_caption(record: ApplicationRecord) -> str:
    record = to_secure_view(record)
    return (
        "✅ <b>NEW APPLICATION SUBMITTED</b>\n\n"
        f"📌 ID: {_safe(record.application_id)}\n"
        f"👤 Name: {_safe(full_name(record))}\n"
        f"💼 Position: {_safe(record.position_details.position_applied)}\n"
        f"📧 Email: {_safe(record.personal_info.email)}"
    )


def build_status_update_message(
    application_id: str,
    status: ApplicationStatus,
    review_notes: str | None = None,
) -> str:
    return (
        f"{status_emoji(status)} <b>APPLICATION STATUS UPDATE</b>\n\n"
        f"📌 ID: {_safe(application_id)}\n"
        f"📊 Status: {ApplicationStatus(status).value.upper()}\n"
        f"📝 Notes: {_safe(review_notes or 'None')}"
    )


async def _deliver_new_application(
    client: TelegramClient,
    blob_store: LocalBlobStore,
    record: ApplicationRecord,
    send_summary: bool,
) -> None:
    try:
        await client.send_message(build_new_application_alert(record))
        if send_summary:
            await client.send_message(build_application_summary(record))
        if record.documents.resume:
            await client.send_document(
                blob_store.path_for(record.documents.resume),
                caption=build_document_caption(record),
            )
    except (TelegramError, OSError) as e:
        raise NotificationError(
            f"New application notification failed for {record.application_id}: {e}"
        ) from e


async def notify_new_application(
    client: TelegramClient,
    blob_store: LocalBlobStore,
    record: ApplicationRecord,
    send_summary: bool = True,
) -> bool:
    """
    Tell the operator chat about a new submission.

    Sends the alert, optionally the full (masked) summary, and the resume
    file when one was uploaded.

    Returns:
        True if everything was delivered, False otherwise (failure is logged)
    """
    try:
        await _deliver_new_application(client, blob_store, record, send_summary)
    except NotificationError as e:
        logger.error(e.message, exc_info=True)
        return False

    logger.info(f"Operator notified of application {record.application_id}")
    return True


async def _deliver_status_change(
    client: TelegramClient,
    application_id: str,
    status: ApplicationStatus,
    review_notes: str | None,
) -> None:
    try:
        await client.send_message(build_status_update_message(application_id, status, review_notes))
    except TelegramError as e:
        raise NotificationError(
            f"Status update notification failed for {application_id}: {e}"
        ) from e


async def notify_status_change(
    client: TelegramClient,
    application_id: str,
    status: ApplicationStatus,
    review_notes: str | None = None,
) -> bool:
    """Tell the operator chat about a status change. Never raises."""
    try:
        await _deliver_status_change(client, application_id, status, review_notes)
    except NotificationError as e:
        logger.error(e.message, exc_info=True)
        return False

    logger.info(f"Operator notified of status change for {application_id}")
    return True
