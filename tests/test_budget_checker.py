"""Tests for budget threshold checks triggered by new expenses."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from cashcadence import constants
from cashcadence.models import Budget
from cashcadence.services.budget_checker import budget_window, is_exceeded
from cashcadence.services.expenses import ExpenseData


@pytest.fixture
def add_expense(app, user, category, wallet):
    """Create an expense through the service so ``expense.created`` fires."""

    def _add(amount: int, when: datetime = datetime(2025, 2, 10, 12, 0), category_id: int | None = None):
        return app.expense_service.create(
            ExpenseData(
                title="Groceries",
                amount=amount,
                category_id=category_id or category.id,
                wallet_id=wallet.id,
                expense_date=when,
            ),
            user_id=user.id,
        )

    return _add


def test_budget_window_includes_whole_end_day():
    budget = Budget(
        user_id=1, budget_name="Feb", category_id=1, amount=1,
        start_date=date(2025, 2, 1), end_date=date(2025, 2, 28),
    )

    assert budget_window(budget) == (datetime(2025, 2, 1), datetime(2025, 3, 1))


def test_budget_window_open_ended():
    budget = Budget(user_id=1, budget_name="Ongoing", category_id=1, amount=1, start_date=date(2025, 2, 1))

    assert budget_window(budget) == (datetime(2025, 2, 1), None)


@pytest.mark.parametrize("total, exceeded", [(99999, False), (100000, True), (100001, True)])
def test_limit_reached_counts_as_exceeded(total, exceeded):
    budget = Budget(user_id=1, budget_name="Cap", category_id=1, amount=100000, start_date=date(2025, 1, 1))

    assert is_exceeded(total, budget) is exceeded


def test_exceeding_budget_notifies_owner(app, budget_factory, expense_factory, add_expense, transport, user):
    budget = budget_factory(amount=50000)
    expense_factory(40000)

    expense = add_expense(15000)

    [(channel, data)] = transport.events("budget.limit.exceeded")
    assert channel == f"user:{user.id}"
    assert data == {
        "message": "Budget 'Groceries' limit exceeded: spent 55000 of 50000",
        "budget_id": budget.id,
        "expense_id": expense.id,
        "total": 55000,
    }


def test_spend_below_limit_is_silent(app, budget_factory, expense_factory, add_expense, transport):
    budget_factory(amount=50000)
    expense_factory(10000)

    add_expense(15000)

    assert transport.events("budget.limit.exceeded") == []
    checks = app.queue.list_jobs(name=constants.PROCESS_SINGLE_BUDGET)
    assert [job["status"] for job in checks] == ["succeeded"]


def test_expenses_outside_window_are_ignored(budget_factory, expense_factory, add_expense, transport):
    budget_factory(amount=20000)
    expense_factory(50000, expense_date=datetime(2025, 1, 31, 23, 59))
    expense_factory(50000, expense_date=datetime(2025, 3, 1, 0, 0))

    add_expense(15000)
    assert transport.events("budget.limit.exceeded") == []

    # Late on the end date still counts.
    add_expense(5000, when=datetime(2025, 2, 28, 23, 30))
    [(_, data)] = transport.events("budget.limit.exceeded")
    assert data["total"] == 20000


def test_inactive_and_other_category_budgets_are_skipped(
    app, budget_factory, category_factory, add_expense, transport
):
    budget_factory(amount=1000, is_active=False)
    budget_factory(amount=1000, category_id=category_factory("Fuel").id)

    add_expense(5000)

    assert transport.events("budget.limit.exceeded") == []
    assert app.queue.list_jobs(name=constants.PROCESS_SINGLE_BUDGET) == []


def test_each_active_budget_is_checked_independently(budget_factory, add_expense, transport):
    monthly = budget_factory(amount=10000, budget_name="February")
    yearly = budget_factory(
        amount=500000, budget_name="2025", start_date=date(2025, 1, 1), end_date=date(2025, 12, 31)
    )

    add_expense(12000)

    events = transport.events("budget.limit.exceeded")
    assert [data["budget_id"] for _, data in events] == [monthly.id]
    assert yearly.id not in {data["budget_id"] for _, data in events}


def test_check_for_missing_expense_enqueues_nothing(app):
    assert app.budget_checker.handle_check_budget_limit(expense_id=404) == 0


def test_replayed_check_notifies_again(app, budget_factory, add_expense, transport):
    budget = budget_factory(amount=1000)
    expense = add_expense(2000)

    app.budget_checker.handle_single_budget(budget=budget, expense=expense)

    assert len(transport.events("budget.limit.exceeded")) == 2


@pytest.mark.parametrize("spend, expected_events", [(100000, 1), (99999, 0)])
def test_limit_boundary_through_checker(budget_factory, add_expense, transport, spend, expected_events):
    budget_factory(amount=100000, start_date=date(2025, 1, 1), end_date=None)

    add_expense(spend)

    assert len(transport.events("budget.limit.exceeded")) == expected_events
