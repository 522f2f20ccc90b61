"""
Unit tests for the submission normalizer.
"""

from datetime import date

import pytest

from intake.modules.employment_applications.exceptions import ValidationError
from intake.modules.employment_applications.models import (
    AccountType,
    ApplicationStatus,
    EmploymentType,
    GovernmentIdType,
)
from intake.modules.employment_applications.normalizer import (
    APPLICATION_ID_PATTERN,
    UploadedDocuments,
    generate_application_id,
    normalize_employment_history,
    normalize_submission,
    parse_bool,
    parse_date,
)
from intake.modules.employment_applications.projection import to_secure_view


class TestParseBool:
    @pytest.mark.parametrize("value", ["yes", "YES", " true ", "True", True])
    def test_truthy_values(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["no", "false", "", "on", "1", None, False])
    def test_everything_else_is_false(self, value):
        assert parse_bool(value) is False


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("1990-01-01") == date(1990, 1, 1)

    def test_iso_timestamp(self):
        assert parse_date("2024-05-01T12:00:00.000Z") == date(2024, 5, 1)

    def test_us_format(self):
        assert parse_date("12/31/2030") == date(2030, 12, 31)

    def test_blank_and_missing(self):
        assert parse_date("") is None
        assert parse_date("   ") is None
        assert parse_date(None) is None

    def test_unparseable(self):
        assert parse_date("next tuesday") is None
        assert parse_date("2024-13-45") is None


class TestGenerateApplicationId:
    def test_format(self):
        application_id = generate_application_id("RFP", now_ms=1714566600000)
        assert application_id.startswith("RFP-1714566600000-")
        assert APPLICATION_ID_PATTERN.match(application_id)

    def test_ids_differ(self):
        ids = {generate_application_id("RFP", now_ms=1) for _ in range(50)}
        assert len(ids) == 50


class TestNormalizeEmploymentHistory:
    def test_accepts_json_string(self):
        history = normalize_employment_history('[{"company": "Acme", "dateFrom": "2020-01-01"}]')
        assert history == [
            {
                "company": "Acme",
                "address": "",
                "job_title": "",
                "supervisor_name": "",
                "date_from": date(2020, 1, 1),
                "date_to": None,
                "responsibilities": "",
            }
        ]

    def test_drops_entries_without_company(self):
        history = normalize_employment_history(
            [{"company": "  "}, {"jobTitle": "Clerk"}, {"company": "Acme"}]
        )
        assert [entry["company"] for entry in history] == ["Acme"]

    def test_empty_input(self):
        assert normalize_employment_history(None) == []
        assert normalize_employment_history("") == []
        assert normalize_employment_history([]) == []

    def test_malformed_json(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_employment_history("[{not json")
        assert "employment_history" in exc_info.value.fields

    def test_json_that_is_not_a_list(self):
        with pytest.raises(ValidationError):
            normalize_employment_history('{"company": "Acme"}')


class TestNormalizeSubmission:
    def test_john_doe_scenario(self, sample_record):
        """Lowercased email, generated ID, masked SSN in the secure view."""
        assert sample_record.personal_info.email == "john@x.com"
        assert APPLICATION_ID_PATTERN.match(sample_record.application_id)
        assert sample_record.application_id.startswith("RFP-")
        assert to_secure_view(sample_record).personal_info.ssn == "***-**-6789"

    def test_record_is_submitted(self, sample_record, submitted_at):
        assert sample_record.status == ApplicationStatus.SUBMITTED
        assert sample_record.submitted_at == submitted_at
        assert sample_record.reviewed_by is None
        assert sample_record.reviewed_at is None
        assert sample_record.review_notes == ""
        assert sample_record.rejection_reason == ""

    def test_field_mapping(self, sample_record, submitted_at):
        info = sample_record.personal_info
        assert info.date_of_birth == date(1990, 1, 1)
        assert info.work_authorized is True
        assert info.government_id.type == GovernmentIdType.DRIVERS_LICENSE
        assert info.government_id.expiration == date(2030, 12, 31)
        assert info.id_documents.front == "idFront-1714566600000-1.png"

        position = sample_record.position_details
        assert position.employment_type == EmploymentType.FULL_TIME
        assert position.willing_to_overtime_travel is False
        assert position.available_start_date == date(2024, 6, 1)
        assert position.bank_details.account_type == AccountType.CHECKING
        assert position.bank_details.direct_deposit_consent is True

        assert sample_record.signature.signed_date == date(2024, 5, 1)
        assert sample_record.consents.identity_verification is True
        assert sample_record.consents.consented_at == submitted_at

    def test_bank_account_number_alias(self, sample_record):
        assert sample_record.position_details.bank_details.account_number == "00012345"

    def test_account_number_takes_precedence_over_alias(self, raw_form):
        raw_form["accountNumber"] = "99998888"
        record = normalize_submission(raw_form, id_prefix="RFP")
        assert record.position_details.bank_details.account_number == "99998888"

    def test_employment_history_filtered(self, sample_record):
        assert len(sample_record.employment_history) == 1
        entry = sample_record.employment_history[0]
        assert entry.company == "Acme"
        assert entry.job_title == "Picker"
        assert entry.date_to == date(2023, 12, 31)

    def test_resume_timestamp_only_with_resume(self, raw_form, submitted_at):
        record = normalize_submission(raw_form, UploadedDocuments(), id_prefix="RFP")
        assert record.documents.resume is None
        assert record.documents.resume_uploaded_at is None

        record = normalize_submission(
            raw_form, UploadedDocuments(resume="resume-1.pdf"), id_prefix="RFP", now=submitted_at
        )
        assert record.documents.resume_uploaded_at == submitted_at

    def test_enum_values_are_case_insensitive(self, raw_form):
        raw_form["idType"] = "Passport"
        raw_form["bankAccountType"] = "SAVINGS"
        record = normalize_submission(raw_form, id_prefix="RFP")
        assert record.personal_info.government_id.type == GovernmentIdType.PASSPORT
        assert record.position_details.bank_details.account_type == AccountType.SAVINGS

    def test_optional_fields_may_be_missing(self, raw_form):
        for key in ("middleName", "ssn", "startDate", "employmentType", "preferredContact"):
            raw_form.pop(key)
        record = normalize_submission(raw_form, id_prefix="RFP")
        assert record.personal_info.middle_name == ""
        assert record.personal_info.ssn == ""
        assert record.position_details.available_start_date is None
        assert record.position_details.employment_type is None

    def test_unparseable_optional_date_is_dropped(self, raw_form):
        raw_form["startDate"] = "asap"
        record = normalize_submission(raw_form, id_prefix="RFP")
        assert record.position_details.available_start_date is None

    def test_missing_required_fields_are_all_named(self, raw_form):
        for key in ("firstName", "email", "dob", "bankName"):
            raw_form.pop(key)

        with pytest.raises(ValidationError) as exc_info:
            normalize_submission(raw_form, id_prefix="RFP")

        fields = exc_info.value.fields
        assert "personal_info.first_name" in fields
        assert "personal_info.email" in fields
        assert fields["personal_info.date_of_birth"] == "field required"
        assert "position_details.bank_details.bank_name" in fields
        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert exc_info.value.status_code == 400

    def test_invalid_required_date(self, raw_form):
        raw_form["signatureDate"] = "yesterday"
        with pytest.raises(ValidationError) as exc_info:
            normalize_submission(raw_form, id_prefix="RFP")
        assert exc_info.value.fields == {"signature.signed_date": "invalid date"}

    def test_unknown_enum_value(self, raw_form):
        raw_form["idType"] = "library-card"
        with pytest.raises(ValidationError) as exc_info:
            normalize_submission(raw_form, id_prefix="RFP")
        assert "personal_info.government_id.type" in exc_info.value.fields

    def test_invalid_email(self, raw_form):
        raw_form["email"] = "not-an-email"
        with pytest.raises(ValidationError) as exc_info:
            normalize_submission(raw_form, id_prefix="RFP")
        assert "personal_info.email" in exc_info.value.fields

    def test_malformed_history_reported_with_other_errors(self, raw_form):
        raw_form["employmentHistory"] = "[oops"
        raw_form.pop("lastName")
        with pytest.raises(ValidationError) as exc_info:
            normalize_submission(raw_form, id_prefix="RFP")
        assert "employment_history" in exc_info.value.fields
        assert "personal_info.last_name" in exc_info.value.fields

    def test_custom_prefix(self, raw_form):
        record = normalize_submission(raw_form, id_prefix="RF")
        assert record.application_id.startswith("RF-")
        assert APPLICATION_ID_PATTERN.match(record.application_id)
