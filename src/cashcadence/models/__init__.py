"""SQLModel table exports."""

from .budget import Budget
from .category import Category
from .enums import Frequency, LogStatus, PeriodType, TransactionType
from .expense import Expense
from .recurring import RecurringTransaction, RecurringTransactionLog
from .user import User
from .wallet import Wallet

__all__ = [
    "Budget",
    "Category",
    "Expense",
    "Frequency",
    "LogStatus",
    "PeriodType",
    "RecurringTransaction",
    "RecurringTransactionLog",
    "TransactionType",
    "User",
    "Wallet",
]
