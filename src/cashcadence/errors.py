"""Domain error types and shared messages."""


class CashCadenceError(ValueError):
    """Base class for domain-level errors.

    Subclasses ValueError so callers that already guard input errors keep working.
    """


class ValidationError(CashCadenceError):
    """Invalid input rejected before touching storage."""


class NotFoundError(CashCadenceError):
    """Referenced entity does not exist."""


class PermissionDeniedError(CashCadenceError):
    """Acting user does not own the entity."""


def recurring_not_found(recurring_id: int) -> str:
    return f"Recurring transaction with ID {recurring_id} not found"


def expense_not_found(expense_id: int) -> str:
    return f"Expense with ID {expense_id} not found"


def log_not_found(log_id: int) -> str:
    return f"Recurring transaction log with ID {log_id} not found"


def not_owner(entity: str, action: str = "modify") -> str:
    """Return message when a user acts on another user's entity."""
    return f"You do not have permission to {action} this {entity}"
