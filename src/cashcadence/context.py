"""Application context: wires storage, queue, event bus and services together."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from .clock import Clock, utcnow
from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelExpenseRepository,
    SQLModelRecurringTransactionLogRepository,
    SQLModelRecurringTransactionRepository,
)
from .logging_config import get_logger
from .scheduler import RecurringScheduler
from .services.budget_checker import BudgetThresholdChecker
from .services.dispatch import RecurringDispatcher
from .services.expenses import ExpenseService
from .services.jobs import JobQueue, RetryPolicy
from .services.notifications import EventBus, LoggingTransport, Transport, UserChannelNotifier
from .services.recurrence import RecurrenceProcessor
from .services.recurring_service import RecurringTransactionService

logger = get_logger("context")


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    # Configuration
    config: BaseConfig

    # Storage
    engine: Engine
    session_factory: SessionFactory

    # Repositories
    recurring_repo: SQLModelRecurringTransactionRepository
    log_repo: SQLModelRecurringTransactionLogRepository
    expense_repo: SQLModelExpenseRepository
    budget_repo: SQLModelBudgetRepository

    # Messaging
    bus: EventBus
    queue: JobQueue
    notifier: UserChannelNotifier

    # Engine and handlers
    processor: RecurrenceProcessor
    dispatcher: RecurringDispatcher
    budget_checker: BudgetThresholdChecker
    scheduler: RecurringScheduler

    # Owner-facing services
    recurring_service: RecurringTransactionService
    expense_service: ExpenseService

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler, drain the queue and release connections."""
        self.scheduler.stop()
        self.queue.shutdown(wait=wait)
        self.engine.dispose()
        logger.info("Application context shut down")


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    transport: Optional[Transport] = None,
    clock: Clock = utcnow,
    sleep: Callable[[float], None] = time.sleep,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    recurring_repo = SQLModelRecurringTransactionRepository(session_factory)
    log_repo = SQLModelRecurringTransactionLogRepository(session_factory)
    expense_repo = SQLModelExpenseRepository(session_factory)
    budget_repo = SQLModelBudgetRepository(session_factory)

    bus = EventBus()
    queue = JobQueue(
        policy=RetryPolicy(attempts=config.JOB_ATTEMPTS, backoff_seconds=config.JOB_BACKOFF_SECONDS),
        run_async=config.JOBS_RUN_ASYNC,
        max_workers=config.JOB_WORKERS,
        sleep=sleep,
    )

    processor = RecurrenceProcessor(session_factory, recurring_repo, log_repo, expense_repo, clock=clock)
    dispatcher = RecurringDispatcher(recurring_repo, processor, queue, bus, clock=clock)
    dispatcher.register()

    # Notifier first: the owner hears about an expense before any budget alert it triggers.
    notifier = UserChannelNotifier(transport or LoggingTransport())
    notifier.register(bus)

    budget_checker = BudgetThresholdChecker(budget_repo, expense_repo, queue, bus)
    budget_checker.register()

    logger.info(
        "Application context ready",
        extra={"run_async": config.JOBS_RUN_ASYNC, "job_workers": config.JOB_WORKERS},
    )

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        recurring_repo=recurring_repo,
        log_repo=log_repo,
        expense_repo=expense_repo,
        budget_repo=budget_repo,
        bus=bus,
        queue=queue,
        notifier=notifier,
        processor=processor,
        dispatcher=dispatcher,
        budget_checker=budget_checker,
        scheduler=RecurringScheduler(dispatcher, config),
        recurring_service=RecurringTransactionService(recurring_repo, log_repo),
        expense_service=ExpenseService(expense_repo, bus),
    )
