"""SQLModel implementation of Budget repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...clock import utcnow
from ...models.budget import Budget
from .base import SQLModelRepository


class SQLModelBudgetRepository(SQLModelRepository):
    """SQLModel-based budget repository implementation."""

    def get_by_id(self, budget_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID."""
        with self._scope() as s:
            return s.get(Budget, budget_id)

    def find_active_by_category(self, category_id: int) -> list[Budget]:
        with self._scope() as s:
            statement = (
                select(Budget)
                .where(Budget.category_id == category_id)
                .where(Budget.is_active == True)  # noqa: E712
                .order_by(Budget.start_date.desc())  # type: ignore
            )
            return list(s.exec(statement).all())

    def list_by_user(self, *, user_id: int) -> list[Budget]:
        with self._scope() as s:
            statement = (
                select(Budget)
                .where(Budget.user_id == user_id)
                .order_by(Budget.created_at.desc())  # type: ignore
            )
            return list(s.exec(statement).all())

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        """Create a new budget."""
        with self._scope() as s:
            budget.user_id = user_id
            s.add(budget)
            s.flush()
            s.refresh(budget)
            return budget

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        """Update an existing budget."""
        with self._scope() as s:
            budget.user_id = user_id
            budget.updated_at = utcnow()
            merged = s.merge(budget)
            s.flush()
            s.refresh(merged)
            return merged

    def delete(self, budget_id: int, *, user_id: int) -> None:
        """Delete a budget by ID."""
        with self._scope() as s:
            budget = s.exec(
                select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
            ).first()
            if budget:
                s.delete(budget)
