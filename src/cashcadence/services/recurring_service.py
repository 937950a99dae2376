"""Owner-facing operations on recurring transactions and their logs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from ..domain.repositories import RecurringTransactionLogRepository, RecurringTransactionRepository
from ..errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    log_not_found,
    not_owner,
    recurring_not_found,
)
from ..logging_config import get_logger
from ..models.enums import Frequency, TransactionType
from ..models.recurring import RecurringTransaction, RecurringTransactionLog
from .occurrence import next_occurrence, occurrences_between, reminder_date

logger = get_logger("recurring_service")

ENTITY = "recurring transaction"

# Fields an owner may edit; the schedule pointers belong to the processor.
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "amount",
        "transaction_type",
        "category_id",
        "wallet_id",
        "frequency",
        "start_date",
        "end_date",
        "description",
        "is_active",
        "auto_create",
        "reminder_days_before",
    }
)


@dataclass
class RecurringTransactionData:
    """Input for creating a recurring transaction."""

    title: str
    amount: int
    transaction_type: TransactionType
    category_id: int
    wallet_id: int
    frequency: Frequency
    start_date: datetime
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    is_active: bool = True
    auto_create: bool = True
    reminder_days_before: int = 1


def _non_negative_int(values: Mapping[str, Any], name: str, message: str) -> None:
    if name not in values:
        return
    value = values[name]
    # bool is an int subclass but never a valid count.
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(message)


def _validate(values: Mapping[str, Any]) -> None:
    if "title" in values and (not isinstance(values["title"], str) or not values["title"].strip()):
        raise ValidationError("title must not be empty")
    _non_negative_int(values, "amount", "amount must be an integer >= 0 (minor units)")
    _non_negative_int(values, "reminder_days_before", "reminder_days_before must be an integer >= 0")
    start, end = values.get("start_date"), values.get("end_date")
    if "start_date" in values and not isinstance(start, datetime):
        raise ValidationError("start_date is required")
    if start is not None and end is not None and end < start:
        raise ValidationError("end_date must not be before start_date")


class RecurringTransactionService:
    """CRUD with ownership checks; errors surface as typed domain errors."""

    def __init__(
        self,
        recurring_repo: RecurringTransactionRepository,
        log_repo: RecurringTransactionLogRepository,
    ):
        self.recurring_repo = recurring_repo
        self.log_repo = log_repo

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, recurring_id: int) -> RecurringTransaction:
        recurring = self.recurring_repo.get_by_id(recurring_id)
        if recurring is None:
            raise NotFoundError(recurring_not_found(recurring_id))
        return recurring

    def list_for_user(self, *, user_id: int) -> list[RecurringTransaction]:
        return self.recurring_repo.list_by_user(user_id=user_id)

    def list_active(self, *, user_id: int) -> list[RecurringTransaction]:
        return self.recurring_repo.list_active(user_id=user_id)

    def list_by_type(
        self, transaction_type: TransactionType | str, *, user_id: int
    ) -> list[RecurringTransaction]:
        return self.recurring_repo.list_by_type(TransactionType(transaction_type), user_id=user_id)

    def preview(self, recurring_id: int, until: datetime, *, user_id: int) -> list[datetime]:
        """Upcoming occurrences from the current schedule through ``until``."""

        recurring = self._owned(recurring_id, user_id, action="view")
        if recurring.next_occurrence > until:
            return []
        return [recurring.next_occurrence] + list(
            occurrences_between(recurring.next_occurrence, recurring.frequency, until)
        )

    def due_reminders(self, as_of: datetime, *, user_id: int) -> list[RecurringTransaction]:
        """Active rows whose reminder window has opened but whose occurrence has not arrived.

        A ``reminder_days_before`` of 0 disables reminders for that row.
        """

        return [
            recurring
            for recurring in self.recurring_repo.list_active(user_id=user_id)
            if recurring.reminder_days_before > 0
            and reminder_date(recurring.next_occurrence, recurring.reminder_days_before)
            <= as_of
            < recurring.next_occurrence
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create(self, data: RecurringTransactionData, *, user_id: int) -> RecurringTransaction:
        """Create a template whose first occurrence is one period after ``start_date``."""

        values = dict(vars(data))
        _validate(values)
        frequency = Frequency(data.frequency)
        recurring = RecurringTransaction(
            **{**values, "frequency": frequency, "transaction_type": TransactionType(data.transaction_type)},
            user_id=user_id,
            next_occurrence=next_occurrence(data.start_date, frequency),
        )
        try:
            created = self.recurring_repo.create(recurring, user_id=user_id)
        except IntegrityError as exc:
            raise NotFoundError("User, Category, or Wallet not found") from exc
        logger.info("Created recurring transaction %s for user %s", created.id, user_id)
        return created

    def update(
        self, recurring_id: int, changes: Mapping[str, Any], *, user_id: int
    ) -> RecurringTransaction:
        """Apply owner edits; a new frequency or start date recomputes the schedule."""

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        recurring = self._owned(recurring_id, user_id)
        _validate(
            {
                **changes,
                "start_date": changes.get("start_date", recurring.start_date),
                "end_date": changes.get("end_date", recurring.end_date),
            }
        )

        for key, value in changes.items():
            if key == "frequency":
                value = Frequency(value)
            elif key == "transaction_type":
                value = TransactionType(value)
            setattr(recurring, key, value)

        if "frequency" in changes or "start_date" in changes:
            recurring.next_occurrence = next_occurrence(recurring.start_date, recurring.frequency)

        try:
            return self.recurring_repo.update(recurring, user_id=user_id)
        except IntegrityError as exc:
            raise NotFoundError("Category or Wallet not found") from exc

    def toggle_active(self, recurring_id: int, *, user_id: int) -> RecurringTransaction:
        recurring = self._owned(recurring_id, user_id)
        recurring.is_active = not recurring.is_active
        return self.recurring_repo.update(recurring, user_id=user_id)

    def delete(self, recurring_id: int, *, user_id: int) -> RecurringTransaction:
        """Delete the template (and its logs); return the row as it was."""

        recurring = self._owned(recurring_id, user_id, action="delete")
        self.recurring_repo.delete(recurring_id, user_id=user_id)
        logger.info("Deleted recurring transaction %s for user %s", recurring_id, user_id)
        return recurring

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------
    def list_logs(self, recurring_id: int, *, user_id: int) -> list[RecurringTransactionLog]:
        self._owned(recurring_id, user_id, action="view")
        return self.log_repo.list_for_recurring(recurring_id)

    def delete_log(self, log_id: int, *, user_id: int) -> None:
        log = self.log_repo.get_by_id(log_id)
        if log is None:
            raise NotFoundError(log_not_found(log_id))
        self._owned(log.recurring_id, user_id, action="delete")
        self.log_repo.delete(log_id)

    def _owned(self, recurring_id: int, user_id: int, *, action: str = "update") -> RecurringTransaction:
        recurring = self.get(recurring_id)
        if recurring.user_id != user_id:
            raise PermissionDeniedError(not_owner(ENTITY, action))
        return recurring
