"""
Fixtures for employment applications tests.
"""

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import BackgroundTasks

from intake.core.storage import LocalBlobStore
from intake.core.telegram import TelegramClient
from intake.modules.employment_applications.normalizer import (
    UploadedDocuments,
    normalize_submission,
)
from intake.modules.employment_applications.repository import to_model

SUBMITTED_AT = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def raw_form():
    """A complete intake form as the browser sends it (all strings)."""
    return {
        "firstName": "John",
        "lastName": "Doe",
        "middleName": "Q",
        "dob": "1990-01-01",
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
        "phone": "555-0100",
        "email": "JOHN@X.COM",
        "workAuthorized": "yes",
        "preferredContact": "email",
        "ssn": "123456789",
        "idType": "drivers-license",
        "idNumber": "D1234567",
        "idExpiration": "12/31/2030",
        "positionApplied": "Warehouse Associate",
        "employmentType": "full-time",
        "expectedSalary": "40000",
        "startDate": "2024-06-01",
        "workSchedule": "Days",
        "willOvertimeTravel": "no",
        "bankName": "First Bank",
        "bankAccountType": "checking",
        "accountHolderName": "John Doe",
        "routingNumber": "021000021",
        "bankAccountNumber": "00012345",
        "bankConsent": "true",
        "highSchoolName": "Springfield High",
        "highSchoolLocation": "Springfield, IL",
        "collegeName": "",
        "licenses": "Forklift",
        "employmentHistory": (
            '[{"company": "Acme", "jobTitle": "Picker", "dateFrom": "2019-01-01",'
            ' "dateTo": "2023-12-31"}, {"company": "", "jobTitle": "ignored"}]'
        ),
        "identityConsent": "true",
        "bankDetailsConsent": "true",
        "signature": "John Doe",
        "signatureDate": "2024-05-01T12:00:00.000Z",
    }


@pytest.fixture
def uploaded_documents():
    return UploadedDocuments(
        id_front="idFront-1714566600000-1.png",
        id_back="idBack-1714566600000-2.png",
        resume="resume-1714566600000-3.pdf",
    )


@pytest.fixture
def submitted_at():
    return SUBMITTED_AT


@pytest.fixture
def sample_record(raw_form, uploaded_documents, submitted_at):
    """A normalized record with all three documents attached."""
    return normalize_submission(
        raw_form, uploaded_documents, id_prefix="RFP", now=submitted_at
    )


@pytest.fixture
def sample_application_model(sample_record):
    """An unsaved ORM row built from the sample record."""
    return to_model(sample_record)


@pytest.fixture
def mock_blob_store(tmp_path):
    store = MagicMock(spec=LocalBlobStore)
    store.save = AsyncMock(side_effect=lambda field, filename, data: f"{field}-stored")
    store.delete = AsyncMock(return_value=True)
    store.path_for = MagicMock(side_effect=lambda reference: Path(tmp_path) / reference)
    return store


@pytest.fixture
def mock_messaging_client():
    client = MagicMock(spec=TelegramClient)
    client.send_message = AsyncMock(return_value=[1])
    client.send_document = AsyncMock(return_value=2)
    return client


@pytest.fixture
def background_tasks():
    return BackgroundTasks()
