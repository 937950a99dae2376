"""Command-line entry points for CashCadence."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Optional

import click

from . import constants
from .config import BaseConfig
from .context import AppContext, create_app_context
from .errors import NotFoundError
from .logging_config import setup_logging

_AS_OF_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def _build_context(*, run_async: bool) -> AppContext:
    config = BaseConfig()
    config.JOBS_RUN_ASYNC = run_async
    setup_logging(config)
    return create_app_context(config)


@click.group()
def cli() -> None:
    """Recurring transactions and budget alerts."""


@cli.command("init-db")
def init_db() -> None:
    """Create the database schema."""

    ctx = _build_context(run_async=False)
    try:
        click.echo(f"Database ready: {ctx.config.DATABASE_URL}")
    finally:
        ctx.shutdown()


@cli.command("check-due")
@click.option(
    "--as-of",
    type=click.DateTime(formats=_AS_OF_FORMATS),
    default=None,
    help="Treat this UTC instant as now (defaults to the current time).",
)
def check_due(as_of: Optional[datetime]) -> None:
    """Run the due-transaction scan once, synchronously."""

    ctx = _build_context(run_async=False)
    try:
        job = ctx.scheduler.run_once(as_of)
        processed = ctx.queue.list_jobs(name=constants.PROCESS_SINGLE_RECURRING, status="succeeded")
        failed = ctx.queue.list_jobs(name=constants.PROCESS_SINGLE_RECURRING, status="failed")
        click.echo(f"Due check {job.status}: {len(processed)} processed, {len(failed)} failed")
    finally:
        ctx.shutdown()


@cli.command("process")
@click.argument("recurring_id", type=int)
def process(recurring_id: int) -> None:
    """Process one recurring transaction now, whether or not it is due."""

    ctx = _build_context(run_async=False)
    try:
        try:
            outcome = ctx.dispatcher.handle_single_recurring(recurring_id, require_due=False)
        except NotFoundError as exc:
            raise click.ClickException(str(exc)) from exc

        if outcome is None:
            click.echo(f"Recurring transaction {recurring_id} is inactive; nothing to do")
            return
        expense = f"expense {outcome.expense.id}" if outcome.expense else "no expense"
        click.echo(
            f"Recurring transaction {recurring_id}: {outcome.log.status.value} ({expense}), "
            f"next occurrence {outcome.recurring.next_occurrence.isoformat()}"
        )
    finally:
        ctx.shutdown()


@cli.command("run-scheduler")
def run_scheduler() -> None:
    """Start the daily cron scan and block until interrupted."""

    ctx = _build_context(run_async=True)
    ctx.scheduler.start()
    click.echo(
        f"Scheduler running; daily check at "
        f"{ctx.config.DAILY_CHECK_HOUR:02d}:{ctx.config.DAILY_CHECK_MINUTE:02d} UTC. Ctrl+C to stop."
    )
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        click.echo("Stopping scheduler...")
    finally:
        ctx.shutdown()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
