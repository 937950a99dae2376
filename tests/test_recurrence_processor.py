"""Tests for the single-pass recurrence processor."""

from __future__ import annotations

from datetime import datetime

import pytest

from cashcadence.errors import NotFoundError
from cashcadence.infra.repositories import SQLModelRecurringTransactionLogRepository
from cashcadence.models import Expense, LogStatus, RecurringTransactionLog
from cashcadence.services.recurrence import RecurrenceProcessor
from sqlmodel import select


def _all(session_factory, model):
    with session_factory() as session:
        return list(session.exec(select(model)).all())


def test_process_materializes_logs_and_advances(app, recurring_factory, clock, session_factory):
    row = recurring_factory()

    expense = app.processor.process(row.id)

    assert expense is not None
    assert expense.title == "Rent"
    assert expense.amount == 15000
    assert expense.category_id == row.category_id
    assert expense.wallet_id == row.wallet_id
    assert expense.user_id == row.user_id
    assert expense.description == "Monthly rent"
    assert expense.expense_date == clock.now
    assert expense.recurring_transaction_id == row.id

    [log] = app.log_repo.list_for_recurring(row.id)
    assert log.status == LogStatus.COMPLETED
    assert log.scheduled_date == datetime(2025, 2, 1)
    assert log.executed_date == clock.now
    assert log.expense_id == expense.id

    stored = app.recurring_repo.get_by_id(row.id)
    assert stored.last_occurrence == datetime(2025, 2, 1)
    assert stored.next_occurrence == datetime(2025, 3, 1)


def test_process_without_auto_create_logs_skip(app, recurring_factory, session_factory):
    row = recurring_factory(auto_create=False)

    assert app.processor.process(row.id) is None

    [log] = app.log_repo.list_for_recurring(row.id)
    assert log.status == LogStatus.SKIPPED
    assert log.expense_id is None
    assert log.notes
    assert _all(session_factory, Expense) == []
    assert app.recurring_repo.get_by_id(row.id).next_occurrence == datetime(2025, 3, 1)


def test_inactive_row_is_a_noop(app, recurring_factory, session_factory):
    row = recurring_factory(is_active=False)

    assert app.processor.process_with_outcome(row.id) is None

    assert _all(session_factory, RecurringTransactionLog) == []
    assert app.recurring_repo.get_by_id(row.id).next_occurrence == datetime(2025, 2, 1)


def test_missing_row_raises_not_found(app):
    with pytest.raises(NotFoundError, match="404"):
        app.processor.process(404)


def test_require_due_skips_rows_not_yet_due(app, recurring_factory, session_factory):
    row = recurring_factory(next_at=datetime(2025, 2, 2))

    assert app.processor.process_with_outcome(row.id, require_due=True) is None
    assert _all(session_factory, Expense) == []

    # Without the due check the pass runs regardless.
    assert app.processor.process(row.id) is not None


def test_month_end_schedule_clamps(app, recurring_factory, clock):
    clock.set(datetime(2025, 1, 31, 0, 57))
    row = recurring_factory(start_date=datetime(2024, 12, 31), next_at=datetime(2025, 1, 31))

    outcome = app.processor.process_with_outcome(row.id)

    assert outcome.log.scheduled_date == datetime(2025, 1, 31)
    assert outcome.recurring.next_occurrence == datetime(2025, 2, 28)


class _BrokenLogRepository(SQLModelRecurringTransactionLogRepository):
    def create(self, log, *, session=None):
        raise RuntimeError("log table unavailable")


def test_failure_rolls_back_whole_pass(app, recurring_factory, session_factory, clock):
    row = recurring_factory()
    processor = RecurrenceProcessor(
        session_factory,
        app.recurring_repo,
        _BrokenLogRepository(session_factory),
        app.expense_repo,
        clock=clock,
    )

    with pytest.raises(RuntimeError):
        processor.process(row.id)

    assert _all(session_factory, Expense) == []
    assert _all(session_factory, RecurringTransactionLog) == []
    stored = app.recurring_repo.get_by_id(row.id)
    assert stored.next_occurrence == datetime(2025, 2, 1)
    assert stored.last_occurrence is None
