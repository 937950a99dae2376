"""Expense repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from sqlmodel import Session

from ...models.expense import Expense


class ExpenseRepository(Protocol):
    """Repository for expense and income records."""

    def get_by_id(self, expense_id: int, *, session: Optional[Session] = None) -> Optional[Expense]:
        ...

    def list_by_user(self, *, user_id: int) -> list[Expense]:
        ...

    def list_by_category(self, category_id: int, *, user_id: int) -> list[Expense]:
        ...

    def list_by_recurring(self, recurring_id: int) -> list[Expense]:
        """Expenses materialized from one recurring transaction."""
        ...

    def create(
        self, expense: Expense, *, user_id: int, session: Optional[Session] = None
    ) -> Expense:
        ...

    def sum_for_category(
        self,
        category_id: int,
        start: datetime,
        end: Optional[datetime] = None,
        *,
        session: Optional[Session] = None,
    ) -> int:
        """Sum amounts in ``category_id`` with ``start <= expense_date < end``.

        ``end`` of ``None`` leaves the window open. Returns 0 when nothing matches.
        """
        ...
