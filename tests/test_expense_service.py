"""Tests for manual expense creation."""

from __future__ import annotations

from datetime import datetime

import pytest

from cashcadence.errors import NotFoundError, ValidationError
from cashcadence.services.expenses import ExpenseData
from cashcadence.services.notifications import EventKind


@pytest.fixture
def published(app):
    seen = []
    app.bus.subscribe(EventKind.EXPENSE_CREATED, seen.append)
    return seen


def _data(category, wallet, **overrides) -> ExpenseData:
    values = dict(
        title="Lunch",
        amount=1250,
        category_id=category.id,
        wallet_id=wallet.id,
        expense_date=datetime(2025, 2, 3, 12, 30),
    )
    values.update(overrides)
    return ExpenseData(**values)


def test_create_persists_and_publishes_once(app, user, category, wallet, published, transport):
    expense = app.expense_service.create(_data(category, wallet), user_id=user.id)

    assert expense.id is not None
    assert app.expense_service.get(expense.id).title == "Lunch"
    assert [e.id for e in published] == [expense.id]
    assert len(transport.events("expense.created")) == 1
    assert expense.recurring_transaction_id is None


@pytest.mark.parametrize("overrides", [{"amount": -1}, {"amount": None}, {"title": None}, {"title": "  "}])
def test_create_rejects_invalid_input(app, user, category, wallet, published, overrides):
    with pytest.raises(ValidationError):
        app.expense_service.create(_data(category, wallet, **overrides), user_id=user.id)

    assert published == []
    assert app.expense_service.list_for_user(user_id=user.id) == []


def test_create_with_unknown_wallet_raises_not_found(app, user, category, wallet, published):
    with pytest.raises(NotFoundError):
        app.expense_service.create(_data(category, wallet, wallet_id=9999), user_id=user.id)

    assert published == []


def test_get_missing_expense(app):
    with pytest.raises(NotFoundError, match="Expense with ID 5 not found"):
        app.expense_service.get(5)
