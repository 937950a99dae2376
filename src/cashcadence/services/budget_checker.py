"""React to new expenses by checking the budgets of their category."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Optional

from .. import constants
from ..domain.repositories import BudgetRepository, ExpenseRepository
from ..logging_config import get_logger
from ..models.budget import Budget
from ..models.expense import Expense
from .jobs import JobQueue
from .notifications import BudgetLimitExceeded, EventBus, EventKind

logger = get_logger("budget_checker")


def budget_window(budget: Budget) -> tuple[datetime, Optional[datetime]]:
    """Return ``[start, end)`` instants covering the budget's dates.

    The end date is inclusive as a calendar day, so the window closes at the
    following midnight. An open-ended budget has no upper bound.
    """

    start = datetime.combine(budget.start_date, time.min)
    end = None
    if budget.end_date is not None:
        end = datetime.combine(budget.end_date + timedelta(days=1), time.min)
    return start, end


def is_exceeded(total: int, budget: Budget) -> bool:
    return total >= budget.amount


class BudgetThresholdChecker:
    """Recompute category spend per active budget and raise an event at the limit.

    Read-only: replaying a check recomputes the same total and may notify again.
    """

    def __init__(
        self,
        budget_repo: BudgetRepository,
        expense_repo: ExpenseRepository,
        queue: JobQueue,
        bus: EventBus,
    ):
        self.budget_repo = budget_repo
        self.expense_repo = expense_repo
        self.queue = queue
        self.bus = bus

    def register(self) -> None:
        """Subscribe to new expenses and bind the queue handlers."""
        self.queue.register(constants.CHECK_BUDGET_LIMIT, self.handle_check_budget_limit)
        self.queue.register(constants.PROCESS_SINGLE_BUDGET, self.handle_single_budget)
        self.bus.subscribe(EventKind.EXPENSE_CREATED, self.on_expense_created)

    def on_expense_created(self, expense: Expense) -> None:
        logger.info("Enqueuing budget check for expense %s", expense.id)
        self.queue.enqueue(
            constants.CHECK_BUDGET_LIMIT,
            {"expense_id": expense.id},
            metadata={"expense_id": expense.id},
        )

    def handle_check_budget_limit(self, expense_id: int) -> int:
        """Fan out one job per active budget of the expense's category."""

        expense = self.expense_repo.get_by_id(expense_id)
        if expense is None:
            # Deleted before the check ran: nothing left to check.
            logger.warning("Expense %s vanished before its budget check", expense_id)
            return 0

        budgets = self.budget_repo.find_active_by_category(expense.category_id)
        for budget in budgets:
            self.queue.enqueue(
                constants.PROCESS_SINGLE_BUDGET,
                {"budget": budget, "expense": expense},
                metadata={"budget_id": budget.id, "expense_id": expense.id},
            )
        return len(budgets)

    def handle_single_budget(self, budget: Budget, expense: Expense) -> Optional[BudgetLimitExceeded]:
        """Compare one budget's cumulative spend against its limit."""

        logger.info("Checking budget %s after expense %s", budget.id, expense.id)
        start, end = budget_window(budget)
        total = self.expense_repo.sum_for_category(budget.category_id, start, end)

        if not is_exceeded(total, budget):
            return None

        event = BudgetLimitExceeded(budget=budget, expense=expense, total=total)
        self.bus.publish(EventKind.BUDGET_LIMIT_EXCEEDED, event)
        logger.info(
            "Budget limit exceeded for budget %s",
            budget.id,
            extra={"budget_id": budget.id, "expense_id": expense.id, "total": total},
        )
        return event
