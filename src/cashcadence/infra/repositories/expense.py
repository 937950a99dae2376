"""SQLModel implementation of Expense repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.expense import Expense
from .base import SQLModelRepository


class SQLModelExpenseRepository(SQLModelRepository):
    """SQLModel-based expense repository implementation."""

    def get_by_id(self, expense_id: int, *, session: Optional[Session] = None) -> Optional[Expense]:
        """Retrieve an expense by ID."""
        with self._scope(session) as s:
            return s.get(Expense, expense_id)

    def list_by_user(self, *, user_id: int) -> list[Expense]:
        with self._scope() as s:
            statement = (
                select(Expense)
                .where(Expense.user_id == user_id)
                .order_by(Expense.expense_date.desc())  # type: ignore
            )
            return list(s.exec(statement).all())

    def list_by_category(self, category_id: int, *, user_id: int) -> list[Expense]:
        with self._scope() as s:
            statement = (
                select(Expense)
                .where(Expense.user_id == user_id)
                .where(Expense.category_id == category_id)
                .order_by(Expense.expense_date.desc())  # type: ignore
            )
            return list(s.exec(statement).all())

    def list_by_recurring(self, recurring_id: int) -> list[Expense]:
        with self._scope() as s:
            statement = (
                select(Expense)
                .where(Expense.recurring_transaction_id == recurring_id)
                .order_by(Expense.expense_date.desc())  # type: ignore
            )
            return list(s.exec(statement).all())

    def create(
        self, expense: Expense, *, user_id: int, session: Optional[Session] = None
    ) -> Expense:
        """Create a new expense."""
        with self._scope(session) as s:
            expense.user_id = user_id
            s.add(expense)
            s.flush()
            s.refresh(expense)
            return expense

    def sum_for_category(
        self,
        category_id: int,
        start: datetime,
        end: Optional[datetime] = None,
        *,
        session: Optional[Session] = None,
    ) -> int:
        """Sum amounts for a category over ``[start, end)``; open-ended when ``end`` is None."""
        with self._scope(session) as s:
            statement = (
                select(func.coalesce(func.sum(Expense.amount), 0))
                .where(Expense.category_id == category_id)
                .where(Expense.expense_date >= start)
            )
            if end is not None:
                statement = statement.where(Expense.expense_date < end)
            return int(s.exec(statement).one())
