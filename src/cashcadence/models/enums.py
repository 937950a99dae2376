"""Closed enumerations shared by the ledger tables."""

from __future__ import annotations

from enum import Enum


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Frequency(str, Enum):
    """Recurrence unit for a recurring transaction."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class LogStatus(str, Enum):
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"


class PeriodType(str, Enum):
    """Informational budget period; evaluation always uses start/end dates."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"
