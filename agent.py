#!/usr/bin/env python3
"""
Bill Reminder Agent

Main CLI interface for the bill reminder system.
Provides commands for:
- Running the daily reminder check
- Sending a single reminder email
- Listing incomplete bills
- Running the daily scheduler
"""
import json
import logging
import sys
from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import REMINDER_CHECK_TIME, REMINDER_ESCALATION_DAYS, setup_logging
from database import StoreUnavailable, get_db
from dispatcher import check_bill_reminders
from notifications import send_bill_reminder
from reminders import MalformedRecord, evaluate, utc_today


console = Console()


def _parse_date(value: Optional[str]):
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"{value!r} is not a YYYY-MM-DD date")


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.version_option(version="1.0.0")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose: bool):
    """
    Bill Reminder Agent

    Emails reminders for recurring bills on their due date and every
    few days after while they stay overdue.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO)


# ============================================================================
# Reminder Check
# ============================================================================

@cli.command("check")
@click.option("--dry-run/--execute", default=True, help="Dry run or actually send")
@click.option("--date", "target_date", help="Date to check (YYYY-MM-DD), default today (UTC)")
@click.option("--recipient", help="Override the configured recipient")
@click.option("--interval", type=click.IntRange(min=1), help=f"Overdue re-send interval in days (default {REMINDER_ESCALATION_DAYS})")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def check(dry_run: bool, target_date: str, recipient: str, interval: int, json_output: bool):
    """Check incomplete bills and email the ones due today."""
    today = _parse_date(target_date)

    if not json_output:
        mode = "[yellow]DRY RUN[/yellow]" if dry_run else "[red]LIVE[/red]"
        console.print(f"\nRunning reminder check ({mode})...")

    response = check_bill_reminders(
        today=today,
        recipient=recipient,
        escalation_days=interval,
        dry_run=dry_run,
    )

    if json_output:
        click.echo(json.dumps(response, indent=2, default=str))
    elif not response["success"]:
        console.print(f"[red]Reminder check failed: {escape(response['error'])}[/red]")
    else:
        console.print(Panel.fit(
            f"[bold]Reminder Check Complete[/bold]\n\n"
            f"Date: {response['date']}\n"
            f"{response['message']}",
            title="Summary"
        ))

        if response["emailResults"]:
            table = Table(title="Emails")
            table.add_column("Reminder")
            table.add_column("Status")
            table.add_column("Days Overdue", justify="right")
            table.add_column("Error")

            colors = {"sent": "green", "failed": "red", "errored": "red"}
            for item in response["emailResults"]:
                status = item["status"]
                table.add_row(
                    escape(item["reminder"]),
                    f"[{colors.get(status, 'white')}]{status}[/{colors.get(status, 'white')}]",
                    str(item.get("daysOverdue", "-")),
                    escape((item.get("error") or "")[:60]),
                )

            console.print(table)

    if not response["success"]:
        sys.exit(1)


@cli.command("send")
@click.option("--payload", "payload_file", type=click.File("r"), default="-",
              help="JSON file with {to, subject, reminderData} (default stdin)")
def send(payload_file):
    """Send one reminder email from a JSON payload."""
    try:
        payload = json.load(payload_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Payload is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise click.BadParameter("Payload must be a JSON object")

    result = send_bill_reminder(payload)
    click.echo(json.dumps(result, indent=2))

    if not result["success"]:
        sys.exit(1)


# ============================================================================
# Reminder Commands
# ============================================================================

@cli.group()
def reminders():
    """Bill reminder store commands."""
    pass


@reminders.command("list")
@click.option("--date", "target_date", help="Evaluate against this date (YYYY-MM-DD)")
@click.option("--interval", type=click.IntRange(min=1), default=REMINDER_ESCALATION_DAYS, help="Overdue re-send interval in days")
def reminders_list(target_date: str, interval: int):
    """List incomplete bills and whether they would be emailed."""
    today = _parse_date(target_date) or utc_today()

    try:
        bills = get_db().fetch_incomplete()
    except StoreUnavailable as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title=f"Incomplete Bills ({today.isoformat()})")
    table.add_column("ID", justify="right")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column("Due")
    table.add_column("Days", justify="right")
    table.add_column("Email Today")

    for bill in bills:
        try:
            result = evaluate(bill, today, interval)
            days = str(result.days_diff)
            notify = "[green]Yes[/green]" if result.should_notify else "No"
        except MalformedRecord as e:
            days = "-"
            notify = f"[red]{escape(str(e))}[/red]"

        table.add_row(
            str(bill.id),
            escape(bill.description),
            escape(bill.category),
            f"${bill.amount}" if bill.amount is not None else "-",
            str(bill.next_reminder_date),
            days,
            notify,
        )

    console.print(table)


# ============================================================================
# Scheduler Commands
# ============================================================================

@cli.group()
def scheduler():
    """Daily reminder scheduler."""
    pass


@scheduler.command("run")
@click.option("--at", "run_at", default=REMINDER_CHECK_TIME, help="Daily run time (HH:MM)")
def scheduler_run(run_at: str):
    """Run the reminder check every day at the given time."""
    from scheduler import ReminderScheduler

    console.print(f"\n[bold]Starting reminder scheduler (daily at {run_at})...[/bold]")
    ReminderScheduler(run_at=run_at).run_forever()


@scheduler.command("run-once")
@click.option("--force", is_flag=True, help="Run even if already run today")
def scheduler_run_once(force: bool):
    """Run the reminder check now if it hasn't run today."""
    from scheduler import ReminderScheduler

    result = ReminderScheduler().run_once(force=force)
    if result is None:
        console.print("[yellow]Reminder check not due: already ran today or before the run time (use --force)[/yellow]")
        return

    click.echo(json.dumps(result, indent=2, default=str))
    if not result["success"]:
        sys.exit(1)


@scheduler.command("status")
def scheduler_status():
    """Show the scheduler's last run."""
    from scheduler import ReminderScheduler

    sched = ReminderScheduler()
    last_run = sched.last_run()

    console.print(Panel.fit(
        f"[bold]Scheduler Status[/bold]\n\n"
        f"Daily Run Time: {sched.run_at:%H:%M}\n"
        f"Last Run: {last_run.isoformat() if last_run else 'Never'}\n"
        f"Due Now: {'Yes' if sched.should_run() else 'No'}",
        title="Summary"
    ))


# ============================================================================
# Main Entry Point
# ============================================================================

def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
