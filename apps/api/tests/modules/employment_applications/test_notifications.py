"""
Unit tests for operator notifications.
"""

import logging

import pytest

from intake.core.telegram import TelegramError
from intake.modules.employment_applications.models import ApplicationStatus
from intake.modules.employment_applications.notifications import (
    build_application_summary,
    build_document_caption,
    build_new_application_alert,
    build_status_update_message,
    notify_new_application,
    notify_status_change,
)


class TestMessageBuilders:
    def test_alert_contains_key_details(self, sample_record):
        alert = build_new_application_alert(sample_record)

        assert "NEW APPLICATION RECEIVED" in alert
        assert "John Doe" in alert
        assert "john@x.com" in alert
        assert "Warehouse Associate" in alert
        assert f"<code>{sample_record.application_id}</code>" in alert

    def test_alert_escapes_html(self, sample_record):
        sample_record.personal_info.first_name = "<b>Eve</b>"
        alert = build_new_application_alert(sample_record)
        assert "&lt;b&gt;Eve&lt;/b&gt;" in alert
        assert "<b>Eve</b>" not in alert

    def test_summary_never_contains_raw_sensitive_values(self, sample_record):
        summary = build_application_summary(sample_record)

        assert "123456789" not in summary
        assert "021000021" not in summary
        assert "00012345" not in summary
        assert "***-**-6789" in summary
        assert "*2345" in summary

    def test_summary_sections(self, sample_record):
        summary = build_application_summary(sample_record)

        assert "SECTION 1: PERSONAL INFORMATION" in summary
        assert "BANK ACCOUNT DETAILS" in summary
        assert "1. Acme - Picker" in summary
        assert "Resume: uploaded" in summary
        assert "Identity verification consent: AGREED" in summary

    def test_summary_without_history(self, sample_record):
        sample_record.employment_history = []
        assert "No employment history provided." in build_application_summary(sample_record)

    def test_caption(self, sample_record):
        caption = build_document_caption(sample_record)
        assert caption.startswith("✅ <b>NEW APPLICATION SUBMITTED</b>")
        assert sample_record.application_id in caption

    @pytest.mark.parametrize(
        ("status", "emoji"),
        [
            (ApplicationStatus.SUBMITTED, "📝"),
            (ApplicationStatus.UNDER_REVIEW, "⏳"),
            (ApplicationStatus.APPROVED, "✅"),
            (ApplicationStatus.REJECTED, "❌"),
        ],
    )
    def test_status_update_message(self, status, emoji):
        message = build_status_update_message("RFP-1-ABC", status, "Looks good")

        assert message.startswith(emoji)
        assert "📌 ID: RFP-1-ABC" in message
        assert f"📊 Status: {status.value.upper()}" in message
        assert "📝 Notes: Looks good" in message

    def test_status_update_without_notes(self):
        message = build_status_update_message("RFP-1-ABC", ApplicationStatus.APPROVED)
        assert "📝 Notes: None" in message


class TestNotifyNewApplication:
    @pytest.mark.asyncio
    async def test_sends_alert_summary_and_resume(
        self, sample_record, mock_messaging_client, mock_blob_store
    ):
        delivered = await notify_new_application(
            mock_messaging_client, mock_blob_store, sample_record
        )

        assert delivered is True
        assert mock_messaging_client.send_message.await_count == 2
        mock_blob_store.path_for.assert_called_once_with("resume-1714566600000-3.pdf")
        mock_messaging_client.send_document.assert_awaited_once()
        assert "NEW APPLICATION SUBMITTED" in (
            mock_messaging_client.send_document.call_args.kwargs["caption"]
        )

    @pytest.mark.asyncio
    async def test_summary_can_be_disabled(
        self, sample_record, mock_messaging_client, mock_blob_store
    ):
        await notify_new_application(
            mock_messaging_client, mock_blob_store, sample_record, send_summary=False
        )
        assert mock_messaging_client.send_message.await_count == 1

    @pytest.mark.asyncio
    async def test_no_document_without_resume(
        self, sample_record, mock_messaging_client, mock_blob_store
    ):
        sample_record.documents.resume = None

        await notify_new_application(mock_messaging_client, mock_blob_store, sample_record)

        mock_messaging_client.send_document.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(
        self, sample_record, mock_messaging_client, mock_blob_store, caplog
    ):
        mock_messaging_client.send_message.side_effect = TelegramError("chat not found")

        with caplog.at_level(logging.ERROR):
            delivered = await notify_new_application(
                mock_messaging_client, mock_blob_store, sample_record
            )

        assert delivered is False
        assert "chat not found" in caplog.text
        assert sample_record.application_id in caplog.text

    @pytest.mark.asyncio
    async def test_missing_resume_file_is_logged_not_raised(
        self, sample_record, mock_messaging_client, mock_blob_store
    ):
        mock_messaging_client.send_document.side_effect = FileNotFoundError("gone")

        delivered = await notify_new_application(
            mock_messaging_client, mock_blob_store, sample_record
        )

        assert delivered is False


class TestNotifyStatusChange:
    @pytest.mark.asyncio
    async def test_sends_message(self, mock_messaging_client):
        delivered = await notify_status_change(
            mock_messaging_client, "RFP-1-ABC", ApplicationStatus.UNDER_REVIEW, "Started"
        )

        assert delivered is True
        message = mock_messaging_client.send_message.call_args.args[0]
        assert "UNDER-REVIEW" in message

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, mock_messaging_client, caplog):
        mock_messaging_client.send_message.side_effect = TelegramError("timeout")

        with caplog.at_level(logging.ERROR):
            delivered = await notify_status_change(
                mock_messaging_client, "RFP-1-ABC", ApplicationStatus.APPROVED
            )

        assert delivered is False
        assert "RFP-1-ABC" in caplog.text
