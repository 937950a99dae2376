"""Budget table with a per-category spending limit."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import PeriodType


class Budget(SQLModel, table=True):
    """Spending limit for one category over a date window.

    ``end_date`` of ``None`` means the budget is open-ended from ``start_date``.
    """

    __tablename__: ClassVar[str] = "budgets"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    budget_name: str = Field(nullable=False, max_length=128)
    category_id: int = Field(foreign_key="categories.id", nullable=False, index=True)
    amount: int = Field(nullable=False, description="Limit in minor units (cents)")
    period_type: PeriodType = Field(default=PeriodType.MONTHLY, nullable=False)
    start_date: date = Field(nullable=False, index=True)
    end_date: Optional[date] = Field(default=None, index=True)
    is_active: bool = Field(default=True, nullable=False, index=True)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utcnow, nullable=False)

    def to_payload(self, *, include_owner: bool = True) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        if not include_owner:
            data.pop("user_id", None)
        return data
