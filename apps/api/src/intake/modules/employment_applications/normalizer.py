"""
Submission Normalizer

Turns the raw intake form (multipart fields, all strings) into a canonical
``ApplicationRecord``.

Normalization rules:
- Boolean fields arrive as "yes"/"no" or "true"/"false". "yes" and "true"
  (any case) mean True; every other value, including a missing one, means
  False.
- Date fields are parsed from ISO dates, ISO timestamps or MM/DD/YYYY.
  An unparseable optional date is dropped; an unparseable required date is
  a validation failure.
- Employment history entries without a company are discarded.
- Enum fields are matched case-insensitively.

All problems found are reported together in one ``ValidationError``.
"""

import json
import logging
import re
import secrets
import string
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from intake.modules.employment_applications.exceptions import ValidationError
from intake.modules.employment_applications.schemas import ApplicationRecord

logger = logging.getLogger(__name__)

TRUTHY_VALUES = frozenset({"yes", "true"})
DATE_FORMATS = ("%m/%d/%Y",)

ID_SUFFIX_LENGTH = 9
ID_ALPHABET = string.ascii_uppercase + string.digits
APPLICATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+-\d{13,}-[A-Z0-9]{9}$")


@dataclass(frozen=True)
class UploadedDocuments:
    """Blob references for the files that came with a submission."""

    id_front: str | None = None
    id_back: str | None = None
    resume: str | None = None

    def references(self) -> list[str]:
        return [ref for ref in (self.id_front, self.id_back, self.resume) if ref]


def parse_bool(value: Any) -> bool:
    """Lenient form boolean: only "yes"/"true" (or a real True) are True."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def parse_date(value: Any) -> date | None:
    """Parse a form date. Returns None for blank or unparseable input."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Don't log the value itself - it may be a date of birth
    logger.warning("Unparseable date value ignored")
    return None


def generate_application_id(prefix: str, now_ms: int | None = None) -> str:
    """Build ``<prefix>-<epoch ms>-<9 random uppercase alphanumerics>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{prefix}-{now_ms}-{suffix}"


def _text(form: Mapping[str, Any], *keys: str) -> str:
    """First present value among ``keys`` as a trimmed string ("" if none)."""
    for key in keys:
        value = form.get(key)
        if value is not None:
            return str(value).strip()
    return ""


def _choice(form: Mapping[str, Any], key: str) -> str:
    return _text(form, key).lower()


def normalize_employment_history(raw: Any) -> list[dict]:
    """
    Normalize employment history entries.

    Accepts a list of mappings or a JSON-encoded array (multipart forms send
    it as a string). Entries with an empty company are dropped; missing
    optional sub-fields default to "" (text) or None (dates).

    Raises:
        ValidationError: If ``raw`` is a string that is not a JSON array
    """
    if raw is None or raw == "":
        return []

    entries = raw
    if isinstance(raw, str):
        try:
            entries = json.loads(raw)
        except ValueError as e:
            raise ValidationError({"employment_history": "must be a JSON array"}) from e

    if not isinstance(entries, list):
        raise ValidationError({"employment_history": "must be a JSON array"})

    normalized = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        company = _text(entry, "company")
        if not company:
            continue
        normalized.append(
            {
                "company": company,
                "address": _text(entry, "address"),
                "job_title": _text(entry, "jobTitle"),
                "supervisor_name": _text(entry, "supervisorName"),
                "date_from": parse_date(entry.get("dateFrom")),
                "date_to": parse_date(entry.get("dateTo")),
                "responsibilities": _text(entry, "responsibilities"),
            }
        )
    return normalized


def normalize_submission(
    form: Mapping[str, Any],
    documents: UploadedDocuments | None = None,
    *,
    id_prefix: str,
    now: datetime | None = None,
) -> ApplicationRecord:
    """
    Build a canonical record from raw intake form fields.

    Args:
        form: Raw form fields keyed by the intake form's names (firstName, dob, ...)
        documents: Blob references of files uploaded with the form
        id_prefix: Prefix for the generated application ID
        now: Submission time (defaults to the current UTC time)

    Returns:
        A validated ApplicationRecord with status "submitted"

    Raises:
        ValidationError: Naming every missing or invalid field
    """
    documents = documents or UploadedDocuments()
    now = now or datetime.now(UTC)
    errors: dict[str, str] = {}

    def required_date(field: str, *keys: str) -> date | None:
        raw = _text(form, *keys)
        parsed = parse_date(raw)
        if parsed is None:
            errors[field] = "field required" if not raw else "invalid date"
        return parsed

    date_of_birth = required_date("personal_info.date_of_birth", "dob", "dateOfBirth")
    id_expiration = required_date("personal_info.government_id.expiration", "idExpiration")
    signed_date = required_date("signature.signed_date", "signatureDate")

    try:
        employment_history = normalize_employment_history(form.get("employmentHistory"))
    except ValidationError as e:
        errors.update(e.fields)
        employment_history = []

    candidate = {
        "application_id": generate_application_id(id_prefix, int(now.timestamp() * 1000)),
        "personal_info": {
            "first_name": _text(form, "firstName"),
            "last_name": _text(form, "lastName"),
            "middle_name": _text(form, "middleName"),
            "date_of_birth": date_of_birth,
            "address": {
                "street": _text(form, "street"),
                "city": _text(form, "city"),
                "state": _text(form, "state"),
                "zip_code": _text(form, "zipCode"),
            },
            "phone": _text(form, "phone"),
            "email": _text(form, "email").lower(),
            "work_authorized": parse_bool(form.get("workAuthorized")),
            "preferred_contact": _choice(form, "preferredContact") or None,
            "ssn": _text(form, "ssn"),
            "government_id": {
                "type": _choice(form, "idType"),
                "number": _text(form, "idNumber"),
                "expiration": id_expiration,
            },
            "id_documents": {"front": documents.id_front, "back": documents.id_back},
        },
        "position_details": {
            "position_applied": _text(form, "positionApplied"),
            "employment_type": _choice(form, "employmentType") or None,
            "expected_salary": _text(form, "expectedSalary"),
            "available_start_date": parse_date(form.get("startDate")),
            "preferred_work_schedule": _text(form, "workSchedule"),
            "willing_to_overtime_travel": parse_bool(form.get("willOvertimeTravel")),
            "bank_details": {
                "bank_name": _text(form, "bankName"),
                "account_type": _choice(form, "bankAccountType"),
                "account_holder_name": _text(form, "accountHolderName"),
                "routing_number": _text(form, "routingNumber"),
                "account_number": _text(form, "accountNumber", "bankAccountNumber"),
                "direct_deposit_consent": parse_bool(form.get("bankConsent")),
            },
        },
        "education": {
            "high_school": {
                "name": _text(form, "highSchoolName"),
                "location": _text(form, "highSchoolLocation"),
            },
            "college": {
                "name": _text(form, "collegeName"),
                "location": _text(form, "collegeLocation"),
                "degree": _text(form, "collegeDegree"),
            },
            "licenses": _text(form, "licenses"),
        },
        "employment_history": employment_history,
        "documents": {
            "resume": documents.resume,
            "resume_uploaded_at": now if documents.resume else None,
        },
        "consents": {
            "identity_verification": parse_bool(form.get("identityConsent")),
            "bank_details_verification": parse_bool(form.get("bankDetailsConsent")),
            "consented_at": now,
        },
        "signature": {
            "applicant_name": _text(form, "signature"),
            "signed_date": signed_date,
        },
        "submitted_at": now,
    }

    try:
        record = ApplicationRecord.model_validate(candidate)
    except PydanticValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            errors.setdefault(field, error["msg"])
        record = None

    if errors:
        logger.info(f"Submission rejected, invalid fields: {sorted(errors)}")
        raise ValidationError(errors)

    return record
