"""
Database Module

SQLite store for bill reminders. The reminder check only ever reads
incomplete bills from here.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

from config import DB_FILE
from reminders import BillReminder

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """The reminder store could not be read."""


class Database:
    """SQLite database wrapper for bill reminders."""

    def __init__(self, db_path: Path = DB_FILE):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_tables()
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailable(f"Failed to open reminder store {self.db_path}: {e}") from e

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_tables(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS bill_reminders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    description TEXT NOT NULL,
                    category TEXT NOT NULL,
                    amount REAL,
                    frequency TEXT NOT NULL,
                    next_reminder_date TEXT NOT NULL,
                    is_completed BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_bill_reminders_completed
                ON bill_reminders (is_completed)
            """)

    def add_reminder(
        self,
        description: str,
        category: str,
        frequency: str,
        next_reminder_date: Union[date, str],
        amount: Optional[float] = None,
        is_completed: bool = False,
    ) -> int:
        """Insert a bill reminder and return its id."""
        if isinstance(next_reminder_date, date):
            next_reminder_date = next_reminder_date.isoformat()

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO bill_reminders
                (description, category, amount, frequency, next_reminder_date, is_completed)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (description, category, amount, frequency, next_reminder_date, is_completed))
            return cursor.lastrowid

    def fetch_incomplete(self) -> List[BillReminder]:
        """
        Get all bill reminders that are not completed, oldest first.

        Raises:
            StoreUnavailable: if the read cannot complete
        """
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT id, description, category, amount, frequency,
                           next_reminder_date, is_completed
                    FROM bill_reminders
                    WHERE is_completed = 0
                    ORDER BY id
                """)
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Failed to fetch reminders: {e}") from e

        logger.debug(f"Fetched {len(rows)} incomplete reminders from {self.db_path}")
        return [BillReminder.from_dict(dict(row)) for row in rows]


_db_instance: Optional[Database] = None


def get_db() -> Database:
    """Get or create a singleton database instance."""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
    return _db_instance
