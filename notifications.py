"""
Notifications Module

Delivers bill reminder emails:
- Resend HTTP API for real delivery
- Dry-run sender for testing and previews
- send_bill_reminder() for the single-email {to, subject, reminderData} pass
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from config import (
    ConfigurationError,
    MAIL_TIMEOUT_SECONDS,
    REMINDER_ESCALATION_DAYS,
    REMINDER_FROM_EMAIL,
    RESEND_API_KEY,
    RESEND_API_URL,
)
from templates import TemplateManager

logger = logging.getLogger(__name__)


class SendFailed(Exception):
    """The mail provider answered but rejected the message."""

    def __init__(self, message: str, status_code: int = None, response: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class SendTransportError(Exception):
    """The mail provider could not be reached (network, timeout, ...)."""


@dataclass
class MailResult:
    """Result reported by a mail sender."""
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


class MailSender:
    """
    Delivery channel for reminder emails.

    send() returns a MailResult for answered requests and raises on
    transport failures.
    """

    def send(self, recipient: str, subject: str, body: Dict[str, Any]) -> MailResult:
        raise NotImplementedError

    def close(self):
        """Release any connections held by the sender."""


class ResendMailSender(MailSender):
    """Sends reminder emails through the Resend API."""

    def __init__(
        self,
        api_key: str = None,
        from_email: str = REMINDER_FROM_EMAIL,
        api_url: str = RESEND_API_URL,
        timeout: float = MAIL_TIMEOUT_SECONDS,
        templates: TemplateManager = None,
        escalation_days: int = REMINDER_ESCALATION_DAYS,
        client: httpx.Client = None,
    ):
        self.api_key = api_key if api_key is not None else RESEND_API_KEY
        if not self.api_key:
            raise ConfigurationError("RESEND_API_KEY environment variable is not set")

        self.from_email = from_email
        self.api_url = api_url
        self.timeout = timeout
        self.templates = templates or TemplateManager()
        self.escalation_days = escalation_days
        self._client = client or httpx.Client(timeout=timeout)

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def deliver(self, recipient: str, subject: str, reminder_data: Dict[str, Any]) -> Optional[str]:
        """
        Render and post one reminder email.

        Returns:
            The provider's email id

        Raises:
            SendFailed: provider answered with a non-success status
            SendTransportError: request never got an answer
        """
        payload = {
            "from": self.from_email,
            "to": [recipient],
            "subject": subject,
            "text": self.templates.render_reminder(reminder_data, self.escalation_days),
        }

        try:
            response = self._client.post(
                self.api_url,
                json=payload,
                headers=self._get_headers(),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise SendTransportError(f"Resend request failed: {e}") from e

        if not response.is_success:
            raise SendFailed(
                f"Resend API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                response=response.text,
            )

        result = response.json()
        logger.info(f"Email sent successfully: {result}")
        return result.get("id")

    def send(self, recipient: str, subject: str, body: Dict[str, Any]) -> MailResult:
        try:
            email_id = self.deliver(recipient, subject, body)
        except SendFailed as e:
            return MailResult(success=False, error=str(e))
        return MailResult(success=True, id=email_id)

    def close(self):
        self._client.close()


@dataclass
class DryRunMailSender(MailSender):
    """Logs instead of sending; keeps what would have gone out."""
    sent: List[Dict[str, Any]] = field(default_factory=list)

    def send(self, recipient: str, subject: str, body: Dict[str, Any]) -> MailResult:
        logger.info(f"[EMAIL DRY-RUN] Would send to {recipient}: {subject}")
        self.sent.append({"to": recipient, "subject": subject, "reminderData": body})
        return MailResult(success=True)


REQUIRED_REMINDER_FIELDS = ("description", "category", "nextReminderDate", "frequency")


def send_bill_reminder(payload: Dict[str, Any], sender: ResendMailSender = None) -> Dict[str, Any]:
    """
    Send a single reminder email from a {to, subject, reminderData} payload.

    Args:
        payload: Notification payload as produced by the dispatcher
        sender: Resend sender (built from config when omitted)

    Returns:
        {"success": True, "message": ..., "emailId": ...} or
        {"success": False, "error": ...}
    """
    owned_sender = None
    try:
        to = payload.get("to")
        subject = payload.get("subject")
        reminder_data = payload.get("reminderData")
        if not to or not subject or not isinstance(reminder_data, dict):
            raise ValueError("Payload requires 'to', 'subject' and 'reminderData'")

        missing = [key for key in REQUIRED_REMINDER_FIELDS if not reminder_data.get(key)]
        if missing:
            raise ValueError(f"reminderData is missing: {', '.join(missing)}")

        if sender is None:
            sender = owned_sender = ResendMailSender()
        email_id = sender.deliver(to, subject, reminder_data)

    except (ValueError, ConfigurationError, SendFailed, SendTransportError) as e:
        logger.error(f"Error sending email: {e}")
        return {"success": False, "error": str(e)}

    finally:
        if owned_sender is not None:
            owned_sender.close()

    return {
        "success": True,
        "message": "Email sent successfully via Resend",
        "emailId": email_id,
    }
