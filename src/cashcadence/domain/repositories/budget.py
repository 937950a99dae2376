"""Budget repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.budget import Budget


class BudgetRepository(Protocol):
    """Repository for managing budget entities."""

    def get_by_id(self, budget_id: int) -> Optional[Budget]:
        ...

    def find_active_by_category(self, category_id: int) -> list[Budget]:
        """Active budgets tracking ``category_id``, newest start first."""
        ...

    def list_by_user(self, *, user_id: int) -> list[Budget]:
        ...

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        ...

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        ...

    def delete(self, budget_id: int, *, user_id: int) -> None:
        ...
