"""Wallet model that expenses are drawn from."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Wallet(SQLModel, table=True):
    __tablename__: ClassVar[str] = "wallets"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    currency: str = Field(default="USD", max_length=3, description="ISO-4217 currency code")
    balance: int = Field(default=0, nullable=False, description="Minor units (cents)")
