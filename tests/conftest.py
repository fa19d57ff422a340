"""
Shared pytest fixtures for bill reminder tests.

Provides:
- Isolated data/log directories (set before config is imported)
- A fixed "today" and a bill factory
- A temporary reminder database
- A scriptable mail sender
"""
import os
import sys
import tempfile
from datetime import date, timedelta
from pathlib import Path

_test_root = tempfile.mkdtemp(prefix="bill-reminder-tests-")
os.environ.setdefault("BILL_REMINDER_DATA_DIR", os.path.join(_test_root, "data"))
os.environ.setdefault("BILL_REMINDER_LOGS_DIR", os.path.join(_test_root, "logs"))
os.environ["RESEND_API_KEY"] = ""
os.environ["REMINDER_RECIPIENT"] = ""

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from notifications import MailResult, MailSender
from reminders import BillReminder


class FakeMailSender(MailSender):
    """
    Mail sender double.

    results maps a bill description to a MailResult or an exception to
    raise; anything else is sent successfully.
    """

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    def send(self, recipient, subject, body):
        self.calls.append({"to": recipient, "subject": subject, "reminderData": body})
        outcome = self.results.get(body["description"])
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            outcome = MailResult(success=True, id=f"email-{len(self.calls)}")
        return outcome


@pytest.fixture
def today():
    """Fixed evaluation date (a Monday)."""
    return date(2026, 10, 19)


@pytest.fixture
def make_bill(today):
    """
    Factory for bills that are `days_overdue` days past their reminder date.

    Negative values make bills that are not due yet.
    """
    counter = {"id": 0}

    def _make(description="Electric", days_overdue=0, **overrides):
        counter["id"] += 1
        fields = {
            "id": counter["id"],
            "description": description,
            "category": "utilities",
            "frequency": "monthly",
            "amount": 120.5,
            "next_reminder_date": today - timedelta(days=days_overdue),
            "is_completed": False,
        }
        fields.update(overrides)
        return BillReminder(**fields)

    return _make


@pytest.fixture
def fake_sender():
    """Mail sender that succeeds for every bill."""
    return FakeMailSender()


@pytest.fixture
def temp_db(tmp_path):
    """Empty reminder database in a temp directory."""
    from database import Database

    return Database(tmp_path / "reminders.db")
