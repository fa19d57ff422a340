"""
Reminder Email Templates

Renders the plain-text body of bill reminder emails with Jinja2.
Built-in templates can be overridden by dropping a file with the same
name into the templates directory.
"""
import re
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, StrictUndefined

from config import TEMPLATES_DIR, REMINDER_ESCALATION_DAYS
from reminders import to_date

REMINDER_TEMPLATE = "bill_reminder.txt"

DEFAULT_TEMPLATES = {
    REMINDER_TEMPLATE: """\
{% if is_overdue %}
OVERDUE BILL REMINDER

This bill is {{ days_overdue }} day{{ 's' if days_overdue > 1 else '' }} overdue!
{% else %}
BILL REMINDER
{% endif %}

Description: {{ description }}
Category: {{ category | titleize }}
Due Date: {{ due_date | long_date }}
{% if amount %}
Amount: {{ amount | currency }}
{% endif %}
Frequency: {{ frequency | titleize }}

Action Required: Please complete this payment and mark it as done in your Personal Super App.
{% if is_overdue %}
Note: You will continue to receive reminders every {{ escalation_days }} days until this is marked complete.
{% endif %}

--
This is an automated reminder from your Personal Super App.
You're receiving this because you set up a bill reminder.
{% if is_overdue %}
This bill is overdue - please take action soon!
{% endif %}
""",
}


def titleize(value: str) -> str:
    """'credit-card' -> 'Credit Card' (first dash only, like the app does)."""
    if not value:
        return ""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), str(value).replace("-", " ", 1))


def long_date(value) -> str:
    """Format a date as 'Monday, October 19, 2026'."""
    if not value:
        return ""
    d = to_date(value)
    return f"{d.strftime('%A, %B')} {d.day}, {d.year}"


def currency(value) -> str:
    """Plain dollar amount, no rounding of the stored value."""
    return f"${value}"


class TemplateManager:
    """
    Manages reminder email templates.

    Files in templates_dir take precedence over the built-in defaults.
    """

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.templates_dir = templates_dir
        self._init_jinja_env()

    def _init_jinja_env(self):
        """Initialize Jinja2 environment."""
        loaders = []
        if self.templates_dir and Path(self.templates_dir).is_dir():
            loaders.append(FileSystemLoader(self.templates_dir))
        loaders.append(DictLoader(DEFAULT_TEMPLATES))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

        # Add custom filters
        self.env.filters["currency"] = currency
        self.env.filters["long_date"] = long_date
        self.env.filters["titleize"] = titleize

    def list_templates(self) -> List[str]:
        """Names of all templates available to the renderer."""
        return sorted(self.env.list_templates())

    def render_template(self, name: str, context: Dict[str, Any]) -> str:
        """Render a template with the given context."""
        return self.env.get_template(name).render(**context)

    def render_reminder(
        self,
        reminder_data: Dict[str, Any],
        escalation_days: int = REMINDER_ESCALATION_DAYS,
    ) -> str:
        """
        Render the body of a bill reminder email.

        Args:
            reminder_data: The reminderData mapping of a notification payload
            escalation_days: Re-send interval mentioned in the overdue note

        Returns:
            Plain-text email body
        """
        context = {
            "description": reminder_data.get("description", ""),
            "category": reminder_data.get("category", ""),
            "due_date": reminder_data.get("nextReminderDate"),
            "amount": reminder_data.get("amount"),
            "frequency": reminder_data.get("frequency", ""),
            "is_overdue": bool(reminder_data.get("isOverdue") or False),
            "days_overdue": reminder_data.get("daysOverdue") or 0,
            "escalation_days": escalation_days,
        }
        return self.render_template(REMINDER_TEMPLATE, context)
