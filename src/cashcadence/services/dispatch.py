"""Fan the daily due set out to one retryable job per recurring transaction."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .. import constants
from ..clock import Clock, utcnow
from ..domain.repositories import RecurringTransactionRepository
from ..logging_config import get_logger
from .jobs import Job, JobQueue
from .notifications import EventBus, EventKind
from .recurrence import RecurrenceOutcome, RecurrenceProcessor

logger = get_logger("dispatch")


class RecurringDispatcher:
    """Queue handlers for the daily scan and for single recurring transactions."""

    def __init__(
        self,
        recurring_repo: RecurringTransactionRepository,
        processor: RecurrenceProcessor,
        queue: JobQueue,
        bus: EventBus,
        *,
        clock: Clock = utcnow,
    ):
        self.recurring_repo = recurring_repo
        self.processor = processor
        self.queue = queue
        self.bus = bus
        self.clock = clock

    def register(self) -> None:
        """Bind this dispatcher's handlers on the queue."""
        self.queue.register(constants.CHECK_DUE_RECURRING_TRANSACTIONS, self.handle_daily_check)
        self.queue.register(constants.PROCESS_SINGLE_RECURRING, self.handle_single_recurring)

    def dispatch_due(self, as_of: Optional[datetime] = None) -> Job:
        """Enqueue the scan; the cron trigger calls this once a day."""
        payload = {"as_of": as_of} if as_of is not None else {}
        return self.queue.enqueue(constants.CHECK_DUE_RECURRING_TRANSACTIONS, payload)

    def handle_daily_check(self, as_of: Optional[datetime] = None) -> list[int]:
        """Find the due set and enqueue one job per id; return the enqueued ids."""

        now = as_of or self.clock()
        due = self.recurring_repo.find_due(now)
        logger.info("Found %d due recurring transactions as of %s", len(due), now.isoformat())

        enqueued: list[int] = []
        for recurring in due:
            # Only the id and scan instant travel; the handler rereads the row when it runs.
            self.queue.enqueue(
                constants.PROCESS_SINGLE_RECURRING,
                {"recurring_id": recurring.id, "as_of": now},
                metadata={"recurring_id": recurring.id},
            )
            enqueued.append(recurring.id)
        return enqueued

    def handle_single_recurring(
        self,
        recurring_id: int,
        as_of: Optional[datetime] = None,
        require_due: bool = True,
    ) -> Optional[RecurrenceOutcome]:
        """Process one recurring transaction and announce the expense it produced.

        Queued jobs keep ``require_due`` so a redelivery after a committed pass
        is a no-op; the CLI passes ``False`` to force a pass.
        """

        logger.info("Processing single recurring transaction %s", recurring_id)
        outcome = self.processor.process_with_outcome(
            recurring_id, require_due=require_due, as_of=as_of
        )
        if outcome is None or outcome.expense is None:
            return outcome

        # Published after commit so budget checks only ever see committed expenses.
        self.bus.publish(EventKind.EXPENSE_CREATED, outcome.expense)
        self.bus.publish(EventKind.RECURRING_EXPENSE_EXECUTED, outcome.recurring)
        return outcome
