"""
Bill Reminder Evaluation

Decides which bills need an email today:
- Due today: always notify
- Overdue: notify every N days (2 by default), so day 1 overdue stays quiet
- Not yet due: nothing to do
"""
from dataclasses import dataclass
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Optional, Union

from dateutil.parser import isoparse

from config import REMINDER_ESCALATION_DAYS


class MalformedRecord(Exception):
    """A bill record cannot be evaluated (e.g. unparseable reminder date)."""

    def __init__(self, message: str, record: "BillReminder" = None):
        super().__init__(message)
        self.record = record


@dataclass(frozen=True)
class BillReminder:
    """A recurring bill as stored in the reminder store."""
    description: str
    category: str
    frequency: str
    next_reminder_date: Union[date, datetime, str]
    amount: Optional[Union[Decimal, float, int]] = None
    is_completed: bool = False
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "BillReminder":
        """Build a reminder from a store row using either naming style."""
        def pick(*keys, default=None):
            for key in keys:
                if key in data:
                    return data[key]
            return default

        return cls(
            id=pick("id"),
            description=pick("description", default=""),
            category=pick("category", default=""),
            frequency=pick("frequency", default=""),
            amount=pick("amount"),
            next_reminder_date=pick("next_reminder_date", "nextReminderDate"),
            is_completed=bool(pick("is_completed", "isCompleted", default=False)),
        )


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating one bill against a given day."""
    due_date: date
    days_diff: int
    should_notify: bool
    is_overdue: bool


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def to_date(value: Union[date, datetime, str]) -> date:
    """
    Truncate a date-like value to a calendar date.

    Strings must be ISO-8601; timestamps with an offset are read as UTC.

    Raises:
        ValueError/TypeError if the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = isoparse(value)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    raise TypeError(f"Expected a date, datetime or string, got {type(value).__name__}")


def evaluate(
    bill: BillReminder,
    today: Union[date, datetime],
    escalation_days: int = REMINDER_ESCALATION_DAYS,
) -> EvaluationResult:
    """
    Classify a bill as not due, due today, or overdue.

    Args:
        bill: Incomplete bill reminder
        today: The day being evaluated (time of day is ignored)
        escalation_days: Re-send interval for overdue bills

    Returns:
        EvaluationResult for the bill

    Raises:
        MalformedRecord: if the bill's reminder date cannot be parsed
    """
    if escalation_days < 1:
        raise ValueError(f"escalation_days must be at least 1, got {escalation_days}")

    try:
        due_date = to_date(bill.next_reminder_date)
    except (ValueError, TypeError, OverflowError) as e:
        raise MalformedRecord(
            f"Invalid nextReminderDate {bill.next_reminder_date!r} for '{bill.description}': {e}",
            record=bill,
        ) from e

    days_diff = (to_date(today) - due_date).days

    return EvaluationResult(
        due_date=due_date,
        days_diff=days_diff,
        should_notify=days_diff == 0 or (days_diff > 0 and days_diff % escalation_days == 0),
        is_overdue=days_diff > 0,
    )
