"""Manual expense entry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..domain.repositories import ExpenseRepository
from ..errors import NotFoundError, ValidationError, expense_not_found
from ..logging_config import get_logger
from ..models.enums import TransactionType
from ..models.expense import Expense
from .notifications import EventBus, EventKind

logger = get_logger("expenses")


@dataclass
class ExpenseData:
    """Input for a hand-entered expense or income."""

    title: str
    amount: int
    category_id: int
    wallet_id: int
    expense_date: datetime
    transaction_type: TransactionType = TransactionType.EXPENSE
    description: Optional[str] = None


class ExpenseService:
    def __init__(self, expense_repo: ExpenseRepository, bus: EventBus):
        self.expense_repo = expense_repo
        self.bus = bus

    def get(self, expense_id: int) -> Expense:
        expense = self.expense_repo.get_by_id(expense_id)
        if expense is None:
            raise NotFoundError(expense_not_found(expense_id))
        return expense

    def list_for_user(self, *, user_id: int) -> list[Expense]:
        return self.expense_repo.list_by_user(user_id=user_id)

    def create(self, data: ExpenseData, *, user_id: int) -> Expense:
        """Persist the expense, then publish ``expense.created`` once."""

        if not isinstance(data.amount, int) or isinstance(data.amount, bool) or data.amount < 0:
            raise ValidationError("amount must be an integer >= 0 (minor units)")
        if not isinstance(data.title, str) or not data.title.strip():
            raise ValidationError("title must not be empty")

        try:
            expense = self.expense_repo.create(
                Expense(
                    user_id=user_id,
                    title=data.title,
                    amount=data.amount,
                    transaction_type=TransactionType(data.transaction_type),
                    category_id=data.category_id,
                    wallet_id=data.wallet_id,
                    expense_date=data.expense_date,
                    description=data.description,
                ),
                user_id=user_id,
            )
        except IntegrityError as exc:
            raise NotFoundError("Category or Wallet not found") from exc

        logger.info("Created expense %s for user %s", expense.id, user_id)
        # The repository call above has committed, so subscribers see a stored row.
        self.bus.publish(EventKind.EXPENSE_CREATED, expense)
        return expense
