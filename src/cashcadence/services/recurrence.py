"""Apply one processing pass to a recurring transaction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..clock import Clock, utcnow
from ..domain.repositories import (
    ExpenseRepository,
    RecurringTransactionLogRepository,
    RecurringTransactionRepository,
)
from ..errors import NotFoundError, recurring_not_found
from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models.enums import LogStatus
from ..models.expense import Expense
from ..models.recurring import RecurringTransaction, RecurringTransactionLog
from .occurrence import next_occurrence

logger = get_logger("recurrence")


@dataclass(frozen=True)
class RecurrenceOutcome:
    """What one committed pass produced."""

    recurring: RecurringTransaction
    log: RecurringTransactionLog
    expense: Optional[Expense] = None


class RecurrenceProcessor:
    """Materialize, audit, and advance a recurring transaction in one transaction."""

    def __init__(
        self,
        session_factory: SessionFactory,
        recurring_repo: RecurringTransactionRepository,
        log_repo: RecurringTransactionLogRepository,
        expense_repo: ExpenseRepository,
        *,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.recurring_repo = recurring_repo
        self.log_repo = log_repo
        self.expense_repo = expense_repo
        self.clock = clock

    def process(
        self, recurring_id: int, *, require_due: bool = False, as_of: Optional[datetime] = None
    ) -> Optional[Expense]:
        """Run one pass and return the created expense, or ``None``.

        Raises:
            NotFoundError: no row with ``recurring_id`` exists.
        """
        outcome = self.process_with_outcome(recurring_id, require_due=require_due, as_of=as_of)
        return outcome.expense if outcome else None

    def process_with_outcome(
        self,
        recurring_id: int,
        *,
        require_due: bool = False,
        as_of: Optional[datetime] = None,
    ) -> Optional[RecurrenceOutcome]:
        """Run one pass and return everything it wrote, or ``None`` for a no-op.

        Inactive rows are a no-op. With ``require_due`` a row that is no longer
        due at processing time is also a no-op; a redelivered job whose earlier
        attempt already committed lands here. The due check uses ``as_of`` when
        given (the instant of the scan that found the row), else the clock.
        """
        with self.session_factory() as session:
            recurring = self.recurring_repo.get_by_id(recurring_id, session=session, for_update=True)
            if recurring is None:
                raise NotFoundError(recurring_not_found(recurring_id))

            if not recurring.is_active:
                logger.info("Skipping inactive recurring transaction %s", recurring_id)
                return None

            now = self.clock()
            due_at = as_of or now
            if require_due and not recurring.is_due(due_at):
                logger.info(
                    "Recurring transaction %s not due at %s (next %s); nothing to do",
                    recurring_id,
                    due_at.isoformat(),
                    recurring.next_occurrence.isoformat(),
                )
                return None

            expense = None
            if recurring.auto_create:
                expense = self.expense_repo.create(
                    Expense(
                        user_id=recurring.user_id,
                        title=recurring.title,
                        amount=recurring.amount,
                        transaction_type=recurring.transaction_type,
                        category_id=recurring.category_id,
                        wallet_id=recurring.wallet_id,
                        description=recurring.description,
                        expense_date=now,
                        recurring_transaction_id=recurring.id,
                    ),
                    user_id=recurring.user_id,
                    session=session,
                )

            # Audit the occurrence that was due, before the schedule moves.
            scheduled = recurring.next_occurrence
            log = self.log_repo.create(
                RecurringTransactionLog(
                    recurring_id=recurring.id,
                    scheduled_date=scheduled,
                    executed_date=now,
                    expense_id=expense.id if expense else None,
                    status=LogStatus.COMPLETED if expense else LogStatus.SKIPPED,
                    notes=None if expense else "auto_create disabled; no expense created",
                ),
                session=session,
            )

            advanced = self.recurring_repo.advance(
                recurring.id,
                scheduled,
                next_occurrence(scheduled, recurring.frequency),
                session=session,
            )

        logger.info(
            "Processed recurring transaction %s: %s, next occurrence %s",
            recurring_id,
            log.status.value,
            advanced.next_occurrence.isoformat(),
            extra={
                "recurring_id": recurring_id,
                "expense_id": expense.id if expense else None,
                "scheduled_date": scheduled.isoformat(),
            },
        )
        return RecurrenceOutcome(recurring=advanced, log=log, expense=expense)
