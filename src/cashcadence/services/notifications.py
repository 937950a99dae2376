"""Domain event bus and per-user notification fan-out."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Protocol

from ..logging_config import get_logger
from ..models.budget import Budget
from ..models.expense import Expense
from ..models.recurring import RecurringTransaction

logger = get_logger("notifications")


class EventKind(str, Enum):
    EXPENSE_CREATED = "expense.created"
    RECURRING_EXPENSE_EXECUTED = "recurring.expense.executed"
    BUDGET_LIMIT_EXCEEDED = "budget.limit.exceeded"


@dataclass(frozen=True)
class BudgetLimitExceeded:
    """Payload for ``budget.limit.exceeded``."""

    budget: Budget
    expense: Expense
    total: int

    @property
    def message(self) -> str:
        return (
            f"Budget '{self.budget.budget_name}' limit exceeded: "
            f"spent {self.total} of {self.budget.amount}"
        )


EventHandler = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe keyed by :class:`EventKind`.

    Handlers run in the publisher's thread, in registration order. A failing
    handler is logged and skipped; it never reaches the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[EventHandler]] = defaultdict(list)
        self._lock = Lock()

    def subscribe(self, kind: EventKind | str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers[EventKind(kind)].append(handler)

    def handlers_for(self, kind: EventKind | str) -> list[EventHandler]:
        with self._lock:
            return list(self._handlers.get(EventKind(kind), []))

    def publish(self, kind: EventKind | str, payload: Any) -> int:
        """Deliver ``payload`` to every handler of ``kind``; return how many succeeded."""

        event = EventKind(kind)
        delivered = 0
        for handler in self.handlers_for(event):
            try:
                handler(payload)
            except Exception as exc:
                logger.error(
                    "Handler %s failed for %s: %s",
                    getattr(handler, "__qualname__", repr(handler)),
                    event.value,
                    exc,
                    exc_info=True,
                    extra={"event": event.value},
                )
            else:
                delivered += 1
        return delivered


class Transport(Protocol):
    """Realtime channel publisher (pub/sub service, socket gateway, ...)."""

    def publish(self, channel: str, event_name: str, data: dict[str, Any]) -> None:
        ...


class LoggingTransport:
    """Transport that only records publications in the log."""

    def publish(self, channel: str, event_name: str, data: dict[str, Any]) -> None:
        logger.info(
            "Published %s to %s",
            event_name,
            channel,
            extra={"channel": channel, "event_name": event_name, "data": data},
        )


def user_channel(user_id: int) -> str:
    return f"user:{user_id}"


class UserChannelNotifier:
    """Route domain events to the owning user's channel with the owner id stripped."""

    EXPENSE_CREATED = "expense.created"
    RECURRING_CREATED = "recurring.created"
    BUDGET_LIMIT_EXCEEDED = "budget.limit.exceeded"

    def __init__(self, transport: Transport):
        self.transport = transport

    def register(self, bus: EventBus) -> None:
        bus.subscribe(EventKind.EXPENSE_CREATED, self.on_expense_created)
        bus.subscribe(EventKind.RECURRING_EXPENSE_EXECUTED, self.on_recurring_executed)
        bus.subscribe(EventKind.BUDGET_LIMIT_EXCEEDED, self.on_budget_exceeded)

    def on_expense_created(self, expense: Expense) -> None:
        self.transport.publish(
            user_channel(expense.user_id),
            self.EXPENSE_CREATED,
            expense.to_payload(include_owner=False),
        )

    def on_recurring_executed(self, recurring: RecurringTransaction) -> None:
        self.transport.publish(
            user_channel(recurring.user_id),
            self.RECURRING_CREATED,
            recurring.to_payload(include_owner=False),
        )

    def on_budget_exceeded(self, event: BudgetLimitExceeded) -> None:
        self.transport.publish(
            user_channel(event.budget.user_id),
            self.BUDGET_LIMIT_EXCEEDED,
            {
                "message": event.message,
                "budget_id": event.budget.id,
                "expense_id": event.expense.id,
                "total": event.total,
            },
        )
