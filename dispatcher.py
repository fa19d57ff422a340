"""
Bill Reminder Dispatch

Runs the daily reminder check:
- Evaluates every incomplete bill for today
- Sends one email per bill that is due or on an overdue reminder day
- Records a per-bill outcome without letting one failure stop the batch
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from config import ConfigurationError, REMINDER_ESCALATION_DAYS, REMINDER_RECIPIENT
from database import Database, StoreUnavailable, get_db
from notifications import DryRunMailSender, MailSender, ResendMailSender
from reminders import BillReminder, EvaluationResult, MalformedRecord, evaluate, to_date, utc_today

logger = logging.getLogger(__name__)

STATUS_SENT = "sent"
STATUS_FAILED = "failed"
STATUS_ERRORED = "errored"

# evaluator(bill, today) -> EvaluationResult
Evaluator = Callable[[BillReminder, Union[date, datetime]], EvaluationResult]


@dataclass(frozen=True)
class NotificationPayload:
    """Everything the mail sender needs for one reminder email."""
    to: str
    subject: str
    reminder_data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"to": self.to, "subject": self.subject, "reminderData": self.reminder_data}


@dataclass
class DispatchOutcome:
    """What happened to one bill that needed a reminder."""
    reminder: str
    status: str
    days_overdue: Optional[int] = None
    error: Optional[str] = None
    email_id: Optional[str] = None
    bill_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.status == STATUS_SENT:
            return {"reminder": self.reminder, "status": self.status, "daysOverdue": self.days_overdue}
        return {"reminder": self.reminder, "status": self.status, "error": self.error}


@dataclass
class AggregateReport:
    """Result of one reminder check."""
    date: date
    total_reminders: int = 0
    emails_sent: int = 0
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Checked {self.total_reminders} reminders, sent {self.emails_sent} emails"

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "date": self.date.isoformat(),
            "emailResults": [outcome.to_dict() for outcome in self.outcomes],
        }


def build_subject(bill: BillReminder, result: EvaluationResult) -> str:
    if result.is_overdue:
        return f"Overdue Bill Reminder: {bill.description} ({result.days_diff} days overdue)"
    return f"Bill Reminder: {bill.description}"


def build_payload(bill: BillReminder, result: EvaluationResult, recipient: str) -> NotificationPayload:
    """Build the {to, subject, reminderData} payload for a bill."""
    next_date = bill.next_reminder_date
    if isinstance(next_date, (date, datetime)):
        next_date = next_date.isoformat()

    return NotificationPayload(
        to=recipient,
        subject=build_subject(bill, result),
        reminder_data={
            "description": bill.description,
            "category": bill.category,
            "nextReminderDate": next_date,
            "amount": bill.amount,
            "frequency": bill.frequency,
            "isOverdue": result.is_overdue,
            "daysOverdue": result.days_diff,
        },
    )


class ReminderDispatcher:
    """
    Sends reminder emails for bills that need one today.

    Usage:
        dispatcher = ReminderDispatcher(sender, recipient="me@example.com")
        report = dispatcher.dispatch(db.fetch_incomplete(), today)
    """

    def __init__(
        self,
        sender: MailSender,
        recipient: str = None,
        escalation_days: int = None,
        evaluator: Evaluator = None,
    ):
        self.sender = sender
        self.recipient = recipient or REMINDER_RECIPIENT
        self.escalation_days = REMINDER_ESCALATION_DAYS if escalation_days is None else escalation_days
        if evaluator is None or evaluator is evaluate:
            evaluator = partial(evaluate, escalation_days=self.escalation_days)
        self.evaluator = evaluator

        if not self.recipient:
            raise ConfigurationError("REMINDER_RECIPIENT is not set")
        if self.escalation_days < 1:
            raise ConfigurationError(
                f"Escalation interval must be at least 1 day, got {self.escalation_days}"
            )

    def _send(self, bill: BillReminder, result: EvaluationResult) -> DispatchOutcome:
        """Send one reminder and turn whatever happens into an outcome."""
        payload = build_payload(bill, result, self.recipient)

        try:
            mail_result = self.sender.send(payload.to, payload.subject, payload.reminder_data)
        except Exception as e:
            logger.error(f"Error sending email for: {bill.description}: {e}", exc_info=True)
            return DispatchOutcome(
                reminder=bill.description,
                status=STATUS_ERRORED,
                days_overdue=result.days_diff,
                error=str(e),
                bill_id=bill.id,
            )

        if mail_result.success:
            logger.info(f"Email sent for: {bill.description}")
            return DispatchOutcome(
                reminder=bill.description,
                status=STATUS_SENT,
                days_overdue=result.days_diff,
                email_id=mail_result.id,
                bill_id=bill.id,
            )

        logger.error(f"Failed to send email for: {bill.description}: {mail_result.error}")
        return DispatchOutcome(
            reminder=bill.description,
            status=STATUS_FAILED,
            days_overdue=result.days_diff,
            error=mail_result.error,
            bill_id=bill.id,
        )

    def dispatch(self, bills: Iterable[BillReminder], today: Union[date, datetime]) -> AggregateReport:
        """
        Evaluate each bill and send reminders for the ones due today.

        Args:
            bills: Bill reminders, in the order outcomes should be reported
            today: Day being checked

        Returns:
            AggregateReport with one outcome per attempted bill
        """
        report = AggregateReport(date=to_date(today))
        seen_ids = set()

        for bill in bills:
            if bill.is_completed:
                continue
            report.total_reminders += 1

            try:
                result = self.evaluator(bill, today)
            except Exception as e:
                if isinstance(e, MalformedRecord):
                    logger.error(f"Skipping malformed reminder '{bill.description}': {e}")
                else:
                    logger.error(f"Error evaluating reminder '{bill.description}': {e}", exc_info=True)
                report.outcomes.append(DispatchOutcome(
                    reminder=bill.description,
                    status=STATUS_ERRORED,
                    error=str(e),
                    bill_id=bill.id,
                ))
                continue

            logger.info(
                f"Reminder: {bill.description}, Days diff: {result.days_diff}, "
                f"Should send: {result.should_notify}"
            )
            if not result.should_notify:
                continue

            if bill.id is not None:
                if bill.id in seen_ids:
                    logger.warning(f"Reminder {bill.id} listed twice, already handled this pass")
                    continue
                seen_ids.add(bill.id)

            outcome = self._send(bill, result)
            if outcome.status == STATUS_SENT:
                report.emails_sent += 1
            report.outcomes.append(outcome)

        return report


def dispatch(
    bills: Iterable[BillReminder],
    evaluate: Evaluator,
    sender: MailSender,
    today: Union[date, datetime],
    recipient: str = None,
    escalation_days: int = None,
) -> AggregateReport:
    """Functional shortcut for ReminderDispatcher(...).dispatch(...)."""
    dispatcher = ReminderDispatcher(
        sender,
        recipient=recipient,
        escalation_days=escalation_days,
        evaluator=evaluate,
    )
    return dispatcher.dispatch(bills, today)


def check_bill_reminders(
    store: Database = None,
    sender: MailSender = None,
    today: Union[date, datetime] = None,
    recipient: str = None,
    escalation_days: int = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """
    Run a complete reminder check.

    Args:
        store: Reminder store (default database when omitted)
        sender: Mail sender (Resend, or dry-run when dry_run is set)
        today: Day to check (UTC today when omitted)
        recipient: Override the configured recipient
        escalation_days: Override the configured escalation interval
        dry_run: Log emails instead of sending them

    Returns:
        {"success": True, "message", "date", "emailResults"} or
        {"success": False, "error"}; never raises
    """
    today = today or utc_today()
    logger.info(f"Checking reminders for date: {to_date(today).isoformat()}")

    owned_sender = None
    try:
        if sender is None:
            sender = owned_sender = DryRunMailSender() if dry_run else ResendMailSender()
        dispatcher = ReminderDispatcher(sender, recipient=recipient, escalation_days=escalation_days)

        store = store or get_db()
        reminders = store.fetch_incomplete()
        logger.info(f"Found {len(reminders)} incomplete reminders")

        report = dispatcher.dispatch(reminders, today)

    except (StoreUnavailable, ConfigurationError) as e:
        logger.error(f"Error in check-bill-reminders: {e}")
        return {"success": False, "error": str(e)}

    finally:
        # Only close what this pass created
        if owned_sender is not None:
            owned_sender.close()

    logger.info(report.message)
    return report.to_response()
