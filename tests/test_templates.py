"""
Tests for the reminder email body.
"""
import pytest

from templates import REMINDER_TEMPLATE, TemplateManager, long_date, titleize


@pytest.fixture
def manager(tmp_path):
    return TemplateManager(templates_dir=tmp_path / "no-such-dir")


def reminder_data(**overrides):
    data = {
        "description": "Electric",
        "category": "utilities",
        "nextReminderDate": "2026-10-19",
        "amount": 120.5,
        "frequency": "monthly",
        "isOverdue": False,
        "daysOverdue": 0,
    }
    data.update(overrides)
    return data


class TestReminderBody:

    def test_due_today_body(self, manager):
        body = manager.render_reminder(reminder_data())

        assert body.startswith("BILL REMINDER")
        assert "Description: Electric" in body
        assert "Category: Utilities" in body
        assert "Due Date: Monday, October 19, 2026" in body
        assert "Amount: $120.5" in body
        assert "Frequency: Monthly" in body
        assert "overdue" not in body.lower()

    def test_overdue_body(self, manager):
        body = manager.render_reminder(
            reminder_data(isOverdue=True, daysOverdue=4, nextReminderDate="2026-10-15"),
            escalation_days=2,
        )

        assert body.startswith("OVERDUE BILL REMINDER")
        assert "This bill is 4 days overdue!" in body
        assert "every 2 days until this is marked complete" in body
        assert "This bill is overdue - please take action soon!" in body

    def test_single_day_wording(self, manager):
        body = manager.render_reminder(reminder_data(isOverdue=True, daysOverdue=1))
        assert "This bill is 1 day overdue!" in body

    def test_amount_line_omitted_without_amount(self, manager):
        body = manager.render_reminder(reminder_data(amount=None))
        assert "Amount:" not in body

    def test_templates_dir_overrides_default(self, tmp_path):
        (tmp_path / REMINDER_TEMPLATE).write_text("Pay {{ description }} by {{ due_date | long_date }}")
        manager = TemplateManager(templates_dir=tmp_path)

        body = manager.render_reminder(reminder_data())

        assert body == "Pay Electric by Monday, October 19, 2026"

    def test_list_templates(self, manager):
        assert REMINDER_TEMPLATE in manager.list_templates()


class TestFilters:

    @pytest.mark.parametrize("value,expected", [
        ("credit-card", "Credit Card"),
        ("utilities", "Utilities"),
        ("bi-weekly", "Bi Weekly"),
        ("", ""),
    ])
    def test_titleize(self, value, expected):
        assert titleize(value) == expected

    def test_long_date_has_no_zero_padding(self):
        assert long_date("2026-11-02") == "Monday, November 2, 2026"
