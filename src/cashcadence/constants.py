"""Queue job names and scheduler identifiers."""

# Recurring transactions
CHECK_DUE_RECURRING_TRANSACTIONS = "check-due-recurring-transactions"
PROCESS_SINGLE_RECURRING = "process-single-recurring"

# Budgets
CHECK_BUDGET_LIMIT = "check-budget-limit"
PROCESS_SINGLE_BUDGET = "process-single-budget"

# APScheduler registration for the daily due-set scan
DAILY_RECURRING_CHECK_JOB_ID = "daily-recurring-check"
