"""
Tests for the Resend mail sender and the single-email send pass.
"""
import json

import httpx
import pytest

from config import ConfigurationError
from notifications import (
    DryRunMailSender,
    ResendMailSender,
    SendFailed,
    SendTransportError,
    send_bill_reminder,
)

API_URL = "https://api.resend.test/emails"

REMINDER_DATA = {
    "description": "Electric",
    "category": "utilities",
    "nextReminderDate": "2026-10-15",
    "amount": 120.5,
    "frequency": "monthly",
    "isOverdue": True,
    "daysOverdue": 4,
}


def make_sender(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ResendMailSender(api_key="re_test_key", api_url=API_URL, client=client, **kwargs)


@pytest.fixture
def captured():
    return []


@pytest.fixture
def ok_sender(captured):
    def handler(request):
        captured.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    return make_sender(handler, from_email="bills@example.com")


class TestResendMailSender:
    """Delivery through the Resend API."""

    def test_successful_send(self, ok_sender, captured):
        result = ok_sender.send("me@example.com", "Overdue Bill Reminder: Electric (4 days overdue)", REMINDER_DATA)

        assert result.success is True
        assert result.id == "email_123"
        assert result.error is None

        request = captured[0]
        assert str(request.url) == API_URL
        assert request.headers["Authorization"] == "Bearer re_test_key"

        body = json.loads(request.content)
        assert body["from"] == "bills@example.com"
        assert body["to"] == ["me@example.com"]
        assert body["subject"] == "Overdue Bill Reminder: Electric (4 days overdue)"
        assert "This bill is 4 days overdue!" in body["text"]
        assert "Description: Electric" in body["text"]

    def test_rejection_is_failed_result(self):
        sender = make_sender(lambda request: httpx.Response(422, text='{"message":"Invalid `to` field"}'))

        result = sender.send("bad-address", "Bill Reminder: Electric", REMINDER_DATA)

        assert result.success is False
        assert result.error == 'Resend API error: 422 - {"message":"Invalid `to` field"}'

    def test_deliver_raises_send_failed(self):
        sender = make_sender(lambda request: httpx.Response(500, text="server error"))

        with pytest.raises(SendFailed) as exc_info:
            sender.deliver("me@example.com", "Bill Reminder: Electric", REMINDER_DATA)

        assert exc_info.value.status_code == 500
        assert exc_info.value.response == "server error"

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        sender = make_sender(handler)

        with pytest.raises(SendTransportError):
            sender.send("me@example.com", "Bill Reminder: Electric", REMINDER_DATA)

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr("notifications.RESEND_API_KEY", "")

        with pytest.raises(ConfigurationError, match="RESEND_API_KEY"):
            ResendMailSender()

    def test_api_key_from_config(self, monkeypatch):
        monkeypatch.setattr("notifications.RESEND_API_KEY", "re_from_env")
        sender = ResendMailSender(client=httpx.Client())

        assert sender.api_key == "re_from_env"
        sender.close()

    def test_overdue_note_uses_interval(self, captured):
        def handler(request):
            captured.append(request)
            return httpx.Response(200, json={"id": "x"})

        sender = make_sender(handler, escalation_days=3)
        sender.send("me@example.com", "subject", REMINDER_DATA)

        assert "every 3 days" in json.loads(captured[0].content)["text"]


class TestDryRunMailSender:

    def test_records_instead_of_sending(self):
        sender = DryRunMailSender()
        result = sender.send("me@example.com", "Bill Reminder: Electric", REMINDER_DATA)

        assert result.success is True
        assert sender.sent == [{
            "to": "me@example.com",
            "subject": "Bill Reminder: Electric",
            "reminderData": REMINDER_DATA,
        }]


class TestSendBillReminder:
    """The {to, subject, reminderData} send pass."""

    def test_success_response(self, ok_sender):
        response = send_bill_reminder(
            {"to": "me@example.com", "subject": "Bill Reminder: Electric", "reminderData": REMINDER_DATA},
            sender=ok_sender,
        )

        assert response == {
            "success": True,
            "message": "Email sent successfully via Resend",
            "emailId": "email_123",
        }

    def test_provider_error_response(self):
        sender = make_sender(lambda request: httpx.Response(403, text="forbidden"))

        response = send_bill_reminder(
            {"to": "me@example.com", "subject": "s", "reminderData": REMINDER_DATA},
            sender=sender,
        )

        assert response == {"success": False, "error": "Resend API error: 403 - forbidden"}

    @pytest.mark.parametrize("payload", [
        {},
        {"to": "me@example.com", "subject": "s"},
        {"to": "", "subject": "s", "reminderData": REMINDER_DATA},
        {"to": "me@example.com", "subject": "s", "reminderData": "not a dict"},
    ])
    def test_invalid_payload(self, ok_sender, captured, payload):
        response = send_bill_reminder(payload, sender=ok_sender)

        assert response["success"] is False
        assert captured == []

    def test_missing_reminder_fields(self, ok_sender):
        data = dict(REMINDER_DATA, category="")
        response = send_bill_reminder(
            {"to": "me@example.com", "subject": "s", "reminderData": data},
            sender=ok_sender,
        )

        assert response == {"success": False, "error": "reminderData is missing: category"}

    def test_missing_api_key_response(self, monkeypatch):
        monkeypatch.setattr("notifications.RESEND_API_KEY", "")

        response = send_bill_reminder(
            {"to": "me@example.com", "subject": "s", "reminderData": REMINDER_DATA},
        )

        assert response == {"success": False, "error": "RESEND_API_KEY environment variable is not set"}

    def test_built_sender_is_closed(self, monkeypatch):
        client = httpx.Client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"id": "email_456"})
        ))
        monkeypatch.setattr("notifications.RESEND_API_KEY", "re_from_env")
        monkeypatch.setattr(httpx, "Client", lambda **kwargs: client)

        response = send_bill_reminder(
            {"to": "me@example.com", "subject": "s", "reminderData": REMINDER_DATA},
        )

        assert response["emailId"] == "email_456"
        assert client.is_closed
