"""
Scheduled Reminder Checks

Runs the bill reminder check once a day at REMINDER_CHECK_TIME.
A last-run file keeps a restarted scheduler from emailing twice on the
same date.
"""
import json
import logging
import time as time_module
from datetime import datetime, time, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import schedule

from config import DATA_DIR, REMINDER_CHECK_TIME

logger = logging.getLogger(__name__)

TASK_NAME = "check_bill_reminders"


def _checked_date(moment: datetime):
    """UTC calendar date a pass started at this moment evaluates."""
    return moment.astimezone(timezone.utc).date()


def parse_run_time(value: str) -> time:
    """Parse 'HH:MM' into a time."""
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError as e:
        raise ValueError(f"Invalid run time {value!r}, expected HH:MM") from e


def _default_job() -> Dict[str, Any]:
    from dispatcher import check_bill_reminders

    return check_bill_reminders()


class ReminderScheduler:
    """
    Runs the reminder check daily.

    Usage:
        ReminderScheduler().run_forever()
    """

    def __init__(
        self,
        run_at: str = REMINDER_CHECK_TIME,
        job: Callable[[], Dict[str, Any]] = None,
        last_run_file: Path = None,
        scheduler: schedule.Scheduler = None,
    ):
        self.run_at = parse_run_time(run_at)
        self.job = job or _default_job
        self.last_run_file = last_run_file or DATA_DIR / "scheduler_last_run.json"
        self.scheduler = scheduler or schedule.Scheduler()

    def _load_last_run(self) -> Dict:
        """Load last run timestamps."""
        if self.last_run_file.exists():
            with open(self.last_run_file) as f:
                return json.load(f)
        return {}

    def _save_last_run(self, last_run: Dict):
        """Save last run timestamps."""
        with open(self.last_run_file, "w") as f:
            json.dump(last_run, f, indent=2)

    def last_run(self) -> Optional[datetime]:
        value = self._load_last_run().get(TASK_NAME)
        return datetime.fromisoformat(value) if value else None

    def should_run(self, now: datetime = None) -> bool:
        """
        Determine if the check should run now.

        Runs at most once per checked (UTC) date, and not before the local
        run time. Naive datetimes are taken as local time.
        """
        if now is None:
            now = datetime.now().astimezone()

        last_run = self.last_run()
        if last_run and _checked_date(last_run) >= _checked_date(now):
            return False

        return now.time() >= self.run_at

    def run_once(self, force: bool = False, now: datetime = None) -> Optional[Dict[str, Any]]:
        """
        Run the reminder check if it is due (or always, with force).

        Returns:
            The check result, or None when skipped
        """
        now = now or datetime.now().astimezone()
        if not force and not self.should_run(now):
            logger.info(f"Skipping {TASK_NAME}: already ran today or not yet {self.run_at:%H:%M}")
            return None

        logger.info(f"Starting task: {TASK_NAME}")
        result = self.job()

        # A failed pass sent nothing, so it stays eligible for a retry today
        if result.get("success"):
            last_run = self._load_last_run()
            last_run[TASK_NAME] = now.isoformat()
            self._save_last_run(last_run)

        status = "SUCCESS" if result.get("success") else "FAILED"
        logger.info(f"Task {TASK_NAME} finished: {status} - {result.get('message', result.get('error'))}")
        return result

    def register(self) -> schedule.Job:
        """Add the daily job to the underlying schedule."""
        return self.scheduler.every().day.at(self.run_at.strftime("%H:%M")).do(self.run_once)

    def run_forever(self, poll_seconds: int = 60):
        """Register the job, catch up on a missed run for today, then loop."""
        self.register()
        self.run_once()
        logger.info(f"Scheduler started, next run at {self.scheduler.next_run}")

        while True:
            self.scheduler.run_pending()
            time_module.sleep(poll_seconds)
