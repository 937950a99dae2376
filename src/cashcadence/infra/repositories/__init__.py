"""Concrete repository implementations using SQLModel."""

from .budget import SQLModelBudgetRepository
from .expense import SQLModelExpenseRepository
from .recurring import (
    SQLModelRecurringTransactionLogRepository,
    SQLModelRecurringTransactionRepository,
)

__all__ = [
    "SQLModelBudgetRepository",
    "SQLModelExpenseRepository",
    "SQLModelRecurringTransactionLogRepository",
    "SQLModelRecurringTransactionRepository",
]
