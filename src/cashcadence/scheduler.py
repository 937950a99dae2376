"""Background cron scheduler for the daily recurring-transaction scan."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from apscheduler.job import Job as ScheduledJob
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import BaseConfig
from .constants import DAILY_RECURRING_CHECK_JOB_ID
from .logging_config import get_logger
from .services.dispatch import RecurringDispatcher
from .services.jobs import Job

logger = get_logger("scheduler")


class RecurringScheduler:
    """Owns the APScheduler instance that triggers the daily due-set scan."""

    def __init__(
        self,
        dispatcher: RecurringDispatcher,
        config: BaseConfig,
        *,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """Initialize the scheduler.

        Args:
            dispatcher: Dispatcher whose ``dispatch_due`` the cron job calls
            config: Supplies the daily check hour and minute
            scheduler: Pre-built APScheduler instance (tests pass a stopped one)
        """
        self.dispatcher = dispatcher
        self.config = config
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def register_jobs(self) -> ScheduledJob:
        """Register the daily check exactly once, replacing any earlier registration."""

        if self.scheduler.get_job(DAILY_RECURRING_CHECK_JOB_ID) is not None:
            self.scheduler.remove_job(DAILY_RECURRING_CHECK_JOB_ID)
            logger.info("Removed existing %s job", DAILY_RECURRING_CHECK_JOB_ID)

        job = self.scheduler.add_job(
            func=self.dispatcher.dispatch_due,
            trigger=CronTrigger(
                hour=self.config.DAILY_CHECK_HOUR,
                minute=self.config.DAILY_CHECK_MINUTE,
                timezone="UTC",
            ),
            id=DAILY_RECURRING_CHECK_JOB_ID,
            name="Daily Recurring Transaction Check",
            replace_existing=True,
        )
        logger.info(
            "Scheduled daily recurring check at %02d:%02d UTC",
            self.config.DAILY_CHECK_HOUR,
            self.config.DAILY_CHECK_MINUTE,
        )
        return job

    def start(self) -> None:
        """Register the cron job and start the background scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.register_jobs()
        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background scheduler stopped")

    def run_once(self, as_of: Optional[datetime] = None) -> Job:
        """Trigger the scan immediately, outside the cron schedule."""
        logger.info("Running recurring check on demand")
        return self.dispatcher.dispatch_due(as_of)
