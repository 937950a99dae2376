"""Repository protocol definitions for domain layer."""

from .budget import BudgetRepository
from .expense import ExpenseRepository
from .recurring import RecurringTransactionLogRepository, RecurringTransactionRepository

__all__ = [
    "BudgetRepository",
    "ExpenseRepository",
    "RecurringTransactionLogRepository",
    "RecurringTransactionRepository",
]
