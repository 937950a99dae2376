"""Recurring transaction templates and their processing audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..clock import utcnow
from .enums import Frequency, LogStatus, TransactionType


class RecurringTransaction(SQLModel, table=True):
    """Template that periodically materializes an expense or income record.

    ``next_occurrence`` and ``last_occurrence`` are only advanced by the
    recurrence processor; owners edit everything else.
    """

    __tablename__: ClassVar[str] = "recurring_transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=255)
    amount: int = Field(nullable=False, description="Minor units (cents)")
    transaction_type: TransactionType = Field(nullable=False)
    category_id: int = Field(foreign_key="categories.id", nullable=False)
    wallet_id: int = Field(foreign_key="wallets.id", nullable=False)
    frequency: Frequency = Field(nullable=False)
    start_date: datetime = Field(sa_type=DateTime, nullable=False)
    end_date: Optional[datetime] = Field(sa_type=DateTime, default=None)
    next_occurrence: datetime = Field(sa_type=DateTime, nullable=False, index=True)
    last_occurrence: Optional[datetime] = Field(sa_type=DateTime, default=None)
    description: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True, nullable=False, index=True)
    auto_create: bool = Field(default=True, nullable=False)
    reminder_days_before: int = Field(default=1, nullable=False)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)

    logs: list["RecurringTransactionLog"] = Relationship(
        back_populates="recurring",
        sa_relationship=relationship(
            "RecurringTransactionLog",
            back_populates="recurring",
            cascade="all, delete-orphan",
        ),
    )

    def is_due(self, as_of: datetime) -> bool:
        """Mirror of the due-set query for a single loaded row."""

        if not self.is_active or self.next_occurrence > as_of:
            return False
        return self.end_date is None or self.end_date >= as_of

    def to_payload(self, *, include_owner: bool = True) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        if not include_owner:
            data.pop("user_id", None)
        return data


class RecurringTransactionLog(SQLModel, table=True):
    """One row per processing pass of a recurring transaction."""

    __tablename__: ClassVar[str] = "recurring_transaction_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    recurring_id: int = Field(
        foreign_key="recurring_transactions.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    scheduled_date: datetime = Field(sa_type=DateTime, nullable=False)
    executed_date: datetime = Field(sa_type=DateTime, nullable=False)
    expense_id: Optional[int] = Field(default=None, foreign_key="expenses.id", ondelete="SET NULL")
    status: LogStatus = Field(nullable=False)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)

    recurring: "RecurringTransaction" = Relationship(
        back_populates="logs",
        sa_relationship=relationship("RecurringTransaction", back_populates="logs"),
    )
