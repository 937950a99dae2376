"""SQLModel definition for expense/income records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import TransactionType


class Expense(SQLModel, table=True):
    """A single expense or income entry, hand-entered or produced by a recurrence."""

    __tablename__: ClassVar[str] = "expenses"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=255)
    amount: int = Field(nullable=False, description="Minor units (cents), never negative")
    transaction_type: TransactionType = Field(default=TransactionType.EXPENSE, nullable=False)
    category_id: int = Field(foreign_key="categories.id", nullable=False, index=True)
    wallet_id: int = Field(foreign_key="wallets.id", nullable=False, index=True)
    expense_date: datetime = Field(sa_type=DateTime, nullable=False, index=True)
    description: Optional[str] = Field(default=None)
    recurring_transaction_id: Optional[int] = Field(
        default=None,
        foreign_key="recurring_transactions.id",
        ondelete="SET NULL",
        index=True,
    )
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)

    def to_payload(self, *, include_owner: bool = True) -> dict[str, Any]:
        """Return a JSON-friendly dict for event payloads."""

        data = self.model_dump(mode="json")
        if not include_owner:
            data.pop("user_id", None)
        return data
