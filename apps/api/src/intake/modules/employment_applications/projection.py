"""
Employment Applications Secure Projection

Every record leaving the service (API responses, operator notifications)
goes through ``to_secure_view`` first. The stored row keeps the full values.
"""

from intake.modules.employment_applications.models import EmploymentApplication
from intake.modules.employment_applications.schemas import ApplicationRecord

SSN_MASK = "***-**-"
SSN_FULL_MASK = "***-**-****"
ACCOUNT_MASK = "*"
ACCOUNT_FULL_MASK = "****"
VISIBLE_DIGITS = 4


def mask_ssn(ssn: str | None) -> str:
    """``123456789`` -> ``***-**-6789``. Short or missing values are fully masked."""
    if not ssn:
        return ""
    if len(ssn) < VISIBLE_DIGITS:
        return SSN_FULL_MASK
    return SSN_MASK + ssn[-VISIBLE_DIGITS:]


def mask_account_number(number: str | None) -> str:
    """``00012345`` -> ``*2345``. Short values are fully masked."""
    if not number:
        return ""
    if not number.strip(ACCOUNT_MASK):
        # Already fully masked
        return number
    if len(number) < VISIBLE_DIGITS:
        return ACCOUNT_FULL_MASK
    return ACCOUNT_MASK + number[-VISIBLE_DIGITS:]


def record_from_model(application: EmploymentApplication) -> ApplicationRecord:
    """Rebuild the canonical record from a stored row."""
    return ApplicationRecord.model_validate(
        {
            "application_id": application.application_id,
            "personal_info": application.personal_info,
            "position_details": application.position_details,
            "education": application.education,
            "employment_history": application.employment_history or [],
            "documents": application.documents,
            "consents": application.consents,
            "signature": application.signature,
            "status": application.status,
            "submitted_at": application.submitted_at,
            "reviewed_by": application.reviewed_by,
            "reviewed_at": application.reviewed_at,
            "review_notes": application.review_notes or "",
            "rejection_reason": application.rejection_reason or "",
        }
    )


def to_secure_view(record: ApplicationRecord) -> ApplicationRecord:
    """
    Return a copy of ``record`` with the SSN and bank numbers masked.

    The source record is not modified. Masking an already masked record
    yields the same output, since the mask keeps the last four characters.
    """
    personal_info = record.personal_info
    bank = record.position_details.bank_details

    secure_bank = bank.model_copy(
        update={
            "routing_number": mask_account_number(bank.routing_number),
            "account_number": mask_account_number(bank.account_number),
        }
    )

    return record.model_copy(
        deep=True,
        update={
            "personal_info": personal_info.model_copy(
                deep=True, update={"ssn": mask_ssn(personal_info.ssn)}
            ),
            "position_details": record.position_details.model_copy(
                deep=True, update={"bank_details": secure_bank}
            ),
        },
    )
