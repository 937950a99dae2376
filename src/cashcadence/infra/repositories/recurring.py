"""SQLModel implementation of the recurring transaction repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Session, or_, select

from ...clock import utcnow
from ...errors import NotFoundError, recurring_not_found
from ...models.enums import TransactionType
from ...models.recurring import RecurringTransaction, RecurringTransactionLog
from .base import SQLModelRepository


class SQLModelRecurringTransactionRepository(SQLModelRepository):
    """SQLModel-based recurring transaction repository implementation."""

    def get_by_id(
        self,
        recurring_id: int,
        *,
        session: Optional[Session] = None,
        for_update: bool = False,
    ) -> Optional[RecurringTransaction]:
        """Retrieve a recurring transaction by ID.

        ``for_update`` takes a row lock on engines that support it so two
        attempts for the same id serialize on the schedule row.
        """
        with self._scope(session) as s:
            return s.get(RecurringTransaction, recurring_id, with_for_update=for_update)

    def get_for_owner(self, recurring_id: int, *, user_id: int) -> Optional[RecurringTransaction]:
        with self._scope() as s:
            return s.exec(
                select(RecurringTransaction)
                .where(RecurringTransaction.id == recurring_id)
                .where(RecurringTransaction.user_id == user_id)
            ).first()

    def list_by_user(self, *, user_id: int) -> list[RecurringTransaction]:
        with self._scope() as s:
            statement = (
                select(RecurringTransaction)
                .where(RecurringTransaction.user_id == user_id)
                .order_by(RecurringTransaction.next_occurrence)  # type: ignore
            )
            return list(s.exec(statement).all())

    def list_active(self, *, user_id: int) -> list[RecurringTransaction]:
        with self._scope() as s:
            statement = (
                select(RecurringTransaction)
                .where(RecurringTransaction.user_id == user_id)
                .where(RecurringTransaction.is_active == True)  # noqa: E712
                .order_by(RecurringTransaction.next_occurrence)  # type: ignore
            )
            return list(s.exec(statement).all())

    def list_by_type(
        self, transaction_type: TransactionType, *, user_id: int
    ) -> list[RecurringTransaction]:
        with self._scope() as s:
            statement = (
                select(RecurringTransaction)
                .where(RecurringTransaction.user_id == user_id)
                .where(RecurringTransaction.transaction_type == transaction_type)
                .order_by(RecurringTransaction.next_occurrence)  # type: ignore
            )
            return list(s.exec(statement).all())

    def list_upcoming(self, until: datetime, *, user_id: int) -> list[RecurringTransaction]:
        """Active rows whose next occurrence falls on or before ``until``."""
        with self._scope() as s:
            statement = (
                select(RecurringTransaction)
                .where(RecurringTransaction.user_id == user_id)
                .where(RecurringTransaction.is_active == True)  # noqa: E712
                .where(RecurringTransaction.next_occurrence <= until)
                .order_by(RecurringTransaction.next_occurrence)  # type: ignore
            )
            return list(s.exec(statement).all())

    def find_due(
        self, as_of: datetime, *, session: Optional[Session] = None
    ) -> list[RecurringTransaction]:
        """Return every active row due at ``as_of`` whose end date has not passed."""
        with self._scope(session) as s:
            statement = (
                select(RecurringTransaction)
                .where(RecurringTransaction.is_active == True)  # noqa: E712
                .where(RecurringTransaction.next_occurrence <= as_of)
                .where(
                    or_(
                        RecurringTransaction.end_date == None,  # noqa: E711
                        RecurringTransaction.end_date >= as_of,
                    )
                )
            )
            return list(s.exec(statement).all())

    def advance(
        self,
        recurring_id: int,
        last_occurrence: datetime,
        next_occurrence: datetime,
        *,
        session: Optional[Session] = None,
    ) -> RecurringTransaction:
        """Record a completed pass and move the schedule forward."""
        with self._scope(session) as s:
            recurring = s.get(RecurringTransaction, recurring_id)
            if recurring is None:
                raise NotFoundError(recurring_not_found(recurring_id))
            recurring.last_occurrence = last_occurrence
            recurring.next_occurrence = next_occurrence
            recurring.updated_at = utcnow()
            s.add(recurring)
            s.flush()
            return recurring

    def create(
        self, recurring: RecurringTransaction, *, user_id: int, session: Optional[Session] = None
    ) -> RecurringTransaction:
        """Create a new recurring transaction."""
        with self._scope(session) as s:
            recurring.user_id = user_id
            s.add(recurring)
            s.flush()
            s.refresh(recurring)
            return recurring

    def update(
        self, recurring: RecurringTransaction, *, user_id: int, session: Optional[Session] = None
    ) -> RecurringTransaction:
        """Persist owner edits; ownership never changes."""
        with self._scope(session) as s:
            recurring.user_id = user_id
            recurring.updated_at = utcnow()
            merged = s.merge(recurring)
            s.flush()
            s.refresh(merged)
            return merged

    def delete(self, recurring_id: int, *, user_id: int) -> None:
        """Delete a recurring transaction and, via cascade, its logs."""
        with self._scope() as s:
            recurring = s.exec(
                select(RecurringTransaction)
                .where(RecurringTransaction.id == recurring_id)
                .where(RecurringTransaction.user_id == user_id)
            ).first()
            if recurring:
                s.delete(recurring)


class SQLModelRecurringTransactionLogRepository(SQLModelRepository):
    """SQLModel-based audit log repository."""

    def get_by_id(self, log_id: int) -> Optional[RecurringTransactionLog]:
        with self._scope() as s:
            return s.get(RecurringTransactionLog, log_id)

    def list_for_recurring(self, recurring_id: int) -> list[RecurringTransactionLog]:
        with self._scope() as s:
            statement = (
                select(RecurringTransactionLog)
                .where(RecurringTransactionLog.recurring_id == recurring_id)
                .order_by(
                    RecurringTransactionLog.executed_date.desc(),  # type: ignore
                    RecurringTransactionLog.id.desc(),  # type: ignore
                )
            )
            return list(s.exec(statement).all())

    def create(
        self, log: RecurringTransactionLog, *, session: Optional[Session] = None
    ) -> RecurringTransactionLog:
        with self._scope(session) as s:
            s.add(log)
            s.flush()
            s.refresh(log)
            return log

    def delete(self, log_id: int) -> None:
        with self._scope() as s:
            log = s.get(RecurringTransactionLog, log_id)
            if log:
                s.delete(log)
