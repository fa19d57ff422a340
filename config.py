"""
Bill Reminder Configuration
"""
import logging
import os
from pathlib import Path

from dotenv import dotenv_values

# Load environment variables from .env file
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    _env_values = dotenv_values(_env_path)
    for key, value in _env_values.items():
        if value and not os.environ.get(key):  # Set if value exists and env not already set
            os.environ[key] = value

# Base paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("BILL_REMINDER_DATA_DIR", BASE_DIR / "data"))
TEMPLATES_DIR = BASE_DIR / "templates"
LOGS_DIR = Path(os.getenv("BILL_REMINDER_LOGS_DIR", BASE_DIR / "logs"))

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""


def _number_setting(name: str, default, cast=int):
    value = os.getenv(name, str(default))
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be numeric, got {value!r}") from None


# Resend mail API
RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
REMINDER_FROM_EMAIL = os.getenv("REMINDER_FROM_EMAIL", "onboarding@resend.dev")
MAIL_TIMEOUT_SECONDS = _number_setting("MAIL_TIMEOUT_SECONDS", 10, cast=float)

# Who gets the reminders
REMINDER_RECIPIENT = os.getenv("REMINDER_RECIPIENT", "")

# Overdue bills are re-sent every N days after the due date
REMINDER_ESCALATION_DAYS = _number_setting("REMINDER_ESCALATION_DAYS", 2)

# Daily check time for the scheduler (HH:MM, local time)
REMINDER_CHECK_TIME = os.getenv("REMINDER_CHECK_TIME", "08:00")

# Database with bill reminders
DB_FILE = Path(os.getenv("BILL_REMINDER_DB", DATA_DIR / "bill_reminders.db"))

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Path = None):
    """Send log records to stderr and to the bill reminder log file."""
    log_file = log_file or LOGS_DIR / "bill_reminders.log"
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid stacking handlers when called more than once
    for handler in list(root.handlers):
        if getattr(handler, "_bill_reminders", False):
            root.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler()
    file_handler = logging.FileHandler(log_file)
    for handler in (stream_handler, file_handler):
        handler.setFormatter(formatter)
        handler._bill_reminders = True
        root.addHandler(handler)
