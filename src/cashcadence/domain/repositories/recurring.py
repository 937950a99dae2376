"""Recurring transaction repository protocols."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from sqlmodel import Session

from ...models.enums import TransactionType
from ...models.recurring import RecurringTransaction, RecurringTransactionLog


class RecurringTransactionRepository(Protocol):
    """Store for recurring transaction templates.

    Every method takes an optional ``session`` so callers can compose several
    writes into one transaction.
    """

    def get_by_id(
        self,
        recurring_id: int,
        *,
        session: Optional[Session] = None,
        for_update: bool = False,
    ) -> Optional[RecurringTransaction]:
        """Retrieve a recurring transaction regardless of owner (background use)."""
        ...

    def get_for_owner(self, recurring_id: int, *, user_id: int) -> Optional[RecurringTransaction]:
        """Retrieve a recurring transaction only if ``user_id`` owns it."""
        ...

    def list_by_user(self, *, user_id: int) -> list[RecurringTransaction]:
        """List a user's recurring transactions ordered by next occurrence."""
        ...

    def list_active(self, *, user_id: int) -> list[RecurringTransaction]:
        ...

    def list_by_type(
        self, transaction_type: TransactionType, *, user_id: int
    ) -> list[RecurringTransaction]:
        ...

    def list_upcoming(self, until: datetime, *, user_id: int) -> list[RecurringTransaction]:
        """Active rows whose next occurrence falls on or before ``until``."""
        ...

    def find_due(
        self, as_of: datetime, *, session: Optional[Session] = None
    ) -> list[RecurringTransaction]:
        """Return the due set: active, next_occurrence <= as_of, not ended before as_of."""
        ...

    def advance(
        self,
        recurring_id: int,
        last_occurrence: datetime,
        next_occurrence: datetime,
        *,
        session: Optional[Session] = None,
    ) -> RecurringTransaction:
        """Move the schedule forward and bump ``updated_at``."""
        ...

    def create(
        self, recurring: RecurringTransaction, *, user_id: int, session: Optional[Session] = None
    ) -> RecurringTransaction:
        ...

    def update(
        self, recurring: RecurringTransaction, *, user_id: int, session: Optional[Session] = None
    ) -> RecurringTransaction:
        ...

    def delete(self, recurring_id: int, *, user_id: int) -> None:
        ...


class RecurringTransactionLogRepository(Protocol):
    """Audit trail of processing passes."""

    def get_by_id(self, log_id: int) -> Optional[RecurringTransactionLog]:
        ...

    def list_for_recurring(self, recurring_id: int) -> list[RecurringTransactionLog]:
        """Return logs newest first."""
        ...

    def create(
        self, log: RecurringTransactionLog, *, session: Optional[Session] = None
    ) -> RecurringTransactionLog:
        ...

    def delete(self, log_id: int) -> None:
        ...
