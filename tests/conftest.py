"""Pytest configuration and shared fixtures for CashCadence tests.

Every test gets a fresh in-memory database wired through the real application
context, with jobs running inline, a frozen clock and a transport that records
what would have been pushed to user channels.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import pytest

from cashcadence.config import TestConfig
from cashcadence.context import create_app_context
from cashcadence.models import (
    Budget,
    Category,
    Expense,
    Frequency,
    RecurringTransaction,
    TransactionType,
    User,
    Wallet,
)
from cashcadence.services.jobs import JobQueue, RetryPolicy
from cashcadence.services.occurrence import next_occurrence

# =============================================================================
# Helpers
# =============================================================================


class FrozenClock:
    """Callable clock whose current instant tests move explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


class RecordingTransport:
    """Transport that keeps every publication for assertions."""

    def __init__(self) -> None:
        self.published: list[tuple[str, str, dict[str, Any]]] = []

    def publish(self, channel: str, event_name: str, data: dict[str, Any]) -> None:
        self.published.append((channel, event_name, data))

    def events(self, event_name: str) -> list[tuple[str, dict[str, Any]]]:
        return [(channel, data) for channel, name, data in self.published if name == event_name]


def persist(session_factory, row):
    """Insert ``row`` in its own committed transaction and return it."""

    with session_factory() as session:
        session.add(row)
        session.flush()
        session.refresh(row)
    return row


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> TestConfig:
    """In-memory database, inline jobs, data dir under ``tmp_path``."""

    monkeypatch.setenv("CASHCADENCE_DATA_DIR", str(tmp_path / "data"))
    return TestConfig()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 2, 1, 0, 57))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def sleeps() -> list[float]:
    """Backoff delays requested by the inline queue."""
    return []


@pytest.fixture
def app(config, clock, transport, sleeps):
    """Fully wired application context for a single test."""

    ctx = create_app_context(config, transport=transport, clock=clock, sleep=sleeps.append)
    yield ctx
    ctx.shutdown()


@pytest.fixture
def session_factory(app):
    return app.session_factory


@pytest.fixture
def queue(sleeps) -> JobQueue:
    """Standalone inline queue with a zero-cost sleep."""

    q = JobQueue(policy=RetryPolicy(attempts=3, backoff_seconds=5.0), run_async=False, sleep=sleeps.append)
    yield q
    q.shutdown()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(session_factory):
    """Factory for creating test users."""

    def _create_user(username: str = "tester") -> User:
        return persist(session_factory, User(username=username))

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    return user_factory("tester")


@pytest.fixture
def other_user(user_factory) -> User:
    return user_factory("intruder")


@pytest.fixture
def category_factory(session_factory, user):
    """Factory for creating test categories."""

    def _create_category(name: str = "Groceries", owner: User | None = None) -> Category:
        owner = owner or user
        return persist(session_factory, Category(user_id=owner.id, name=name))

    return _create_category


@pytest.fixture
def category(category_factory) -> Category:
    return category_factory()


@pytest.fixture
def wallet(session_factory, user) -> Wallet:
    return persist(session_factory, Wallet(user_id=user.id, name="Checking"))


@pytest.fixture
def recurring_factory(session_factory, user, category, wallet):
    """Factory for recurring transactions stored directly, bypassing the service.

    ``next_occurrence`` defaults to one period after ``start_date``.
    """

    def _create_recurring(
        title: str = "Rent",
        amount: int = 15000,
        frequency: Frequency = Frequency.MONTHLY,
        start_date: datetime = datetime(2025, 1, 1),
        next_at: datetime | None = None,
        end_date: datetime | None = None,
        is_active: bool = True,
        auto_create: bool = True,
        transaction_type: TransactionType = TransactionType.EXPENSE,
        category_id: int | None = None,
        owner: User | None = None,
        reminder_days_before: int = 1,
    ) -> RecurringTransaction:
        owner = owner or user
        return persist(
            session_factory,
            RecurringTransaction(
                user_id=owner.id,
                title=title,
                amount=amount,
                transaction_type=transaction_type,
                category_id=category_id or category.id,
                wallet_id=wallet.id,
                frequency=frequency,
                start_date=start_date,
                end_date=end_date,
                next_occurrence=next_at or next_occurrence(start_date, frequency),
                is_active=is_active,
                auto_create=auto_create,
                reminder_days_before=reminder_days_before,
                description="Monthly rent",
            ),
        )

    return _create_recurring


@pytest.fixture
def expense_factory(session_factory, user, category, wallet):
    """Factory for expenses stored directly; no events are published."""

    def _create_expense(
        amount: int,
        expense_date: datetime = datetime(2025, 2, 1, 12, 0),
        title: str = "Groceries",
        category_id: int | None = None,
    ) -> Expense:
        return persist(
            session_factory,
            Expense(
                user_id=user.id,
                title=title,
                amount=amount,
                category_id=category_id or category.id,
                wallet_id=wallet.id,
                expense_date=expense_date,
            ),
        )

    return _create_expense


@pytest.fixture
def budget_factory(session_factory, user, category):
    """Factory for budgets; defaults to a February 2025 grocery budget."""

    def _create_budget(
        amount: int = 50000,
        budget_name: str = "Groceries",
        start_date: date = date(2025, 2, 1),
        end_date: date | None = date(2025, 2, 28),
        is_active: bool = True,
        category_id: int | None = None,
    ) -> Budget:
        return persist(
            session_factory,
            Budget(
                user_id=user.id,
                budget_name=budget_name,
                category_id=category_id or category.id,
                amount=amount,
                start_date=start_date,
                end_date=end_date,
                is_active=is_active,
            ),
        )

    return _create_budget
