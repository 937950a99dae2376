"""In-process job queue with per-job retry and exponential backoff."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, Iterable, Optional
from uuid import uuid4

from ..logging_config import get_logger

__all__ = [
    "Job",
    "JobQueue",
    "RetryPolicy",
]

logger = get_logger("jobs")

JobHandler = Callable[..., Any]


@dataclass(frozen=True)
class RetryPolicy:
    """How many times a job may run and how long to wait between attempts."""

    attempts: int = 3
    backoff_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be >= 0")

    def delay_for(self, failed_attempts: int) -> float:
        """Delay before the next attempt: base, 2x base, 4x base, ..."""
        return self.backoff_seconds * (2 ** (failed_attempts - 1))


@dataclass
class Job:
    """Tracked unit of work."""

    id: str
    name: str
    status: str
    created_at: datetime
    max_attempts: int
    attempts: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
            "metadata": self.metadata,
        }


class JobQueue:
    """Dispatch named jobs to registered handlers.

    Jobs run on a thread pool when ``run_async`` is true. A failed attempt is
    retried after ``policy.delay_for(n)`` seconds on a timer, so waiting
    retries never hold a worker. In synchronous mode jobs run inline and the
    delay goes through ``sleep``.
    """

    def __init__(
        self,
        *,
        policy: RetryPolicy | None = None,
        run_async: bool = True,
        max_workers: int = 4,
        sleep: Callable[[float], None] = time.sleep,
        max_jobs: int = 500,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.run_async = run_async
        self._sleep = sleep
        self._max_jobs = max_jobs
        self._handlers: Dict[str, JobHandler] = {}
        self._jobs: Dict[str, Job] = {}
        self._timers: set[threading.Timer] = set()
        self._lock = Lock()
        self._executor: ThreadPoolExecutor | None = None
        if run_async:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="CashCadenceJob"
            )

    # ------------------------------------------------------------------
    # Registration and submission
    # ------------------------------------------------------------------
    def register(self, job_type: str, handler: JobHandler) -> None:
        """Bind ``handler`` to ``job_type``; the handler is called with the payload as kwargs."""
        with self._lock:
            self._handlers[job_type] = handler

    def enqueue(
        self,
        job_type: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        policy: RetryPolicy | None = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Job:
        """Schedule a job of ``job_type`` and return its tracking record."""

        with self._lock:
            handler = self._handlers.get(job_type)
        if handler is None:
            raise ValueError(f"No handler registered for job type {job_type!r}")

        effective = policy or self.policy
        job = Job(
            id=uuid4().hex,
            name=job_type,
            status="queued",
            created_at=datetime.now(timezone.utc),
            max_attempts=effective.attempts,
            metadata=dict(metadata or {}),
        )
        self._store_job(job)
        kwargs = dict(payload or {})

        if self.run_async:
            self._submit(job, handler, kwargs, effective)
        else:
            self._run_inline(job, handler, kwargs, effective)
        return job

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def _submit(self, job: Job, handler: JobHandler, kwargs: Dict[str, Any], policy: RetryPolicy) -> None:
        if self._executor is None:
            return
        try:
            self._executor.submit(self._run_async_attempt, job, handler, kwargs, policy)
        except RuntimeError:
            # Executor already shut down; the job can no longer run.
            job.status = "failed"
            job.error = "queue shut down before the job could run"
            job.finished_at = datetime.now(timezone.utc)
            logger.error(
                "Job %s (%s) dropped: queue is shut down",
                job.id,
                job.name,
                extra=self._log_context(job),
            )

    def _run_async_attempt(
        self, job: Job, handler: JobHandler, kwargs: Dict[str, Any], policy: RetryPolicy
    ) -> None:
        if self._attempt(job, handler, kwargs):
            return
        if job.attempts >= policy.attempts:
            self._mark_failed(job)
            return
        delay = policy.delay_for(job.attempts)
        job.status = "retrying"
        timer = threading.Timer(delay, self._fire_retry, args=(job, handler, kwargs, policy))
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()

    def _fire_retry(
        self, job: Job, handler: JobHandler, kwargs: Dict[str, Any], policy: RetryPolicy
    ) -> None:
        with self._lock:
            self._timers.discard(threading.current_thread())  # type: ignore[arg-type]
        self._submit(job, handler, kwargs, policy)

    def _run_inline(
        self, job: Job, handler: JobHandler, kwargs: Dict[str, Any], policy: RetryPolicy
    ) -> None:
        while not self._attempt(job, handler, kwargs):
            if job.attempts >= policy.attempts:
                self._mark_failed(job)
                return
            job.status = "retrying"
            self._sleep(policy.delay_for(job.attempts))

    def _attempt(self, job: Job, handler: JobHandler, kwargs: Dict[str, Any]) -> bool:
        """Run one attempt; return True on success."""

        job.attempts += 1
        job.status = "running"
        if job.started_at is None:
            job.started_at = datetime.now(timezone.utc)
        try:
            handler(**kwargs)
        except Exception as exc:
            job.error = f"{type(exc).__name__}: {exc}"
            logger.warning(
                "Job %s (%s) attempt %d/%d failed: %s",
                job.id,
                job.name,
                job.attempts,
                job.max_attempts,
                exc,
                extra=self._log_context(job),
            )
            return False
        job.status = "succeeded"
        job.error = None
        job.finished_at = datetime.now(timezone.utc)
        return True

    def _mark_failed(self, job: Job) -> None:
        job.status = "failed"
        job.finished_at = datetime.now(timezone.utc)
        logger.error(
            "Job %s (%s) permanently failed after %d attempts: %s",
            job.id,
            job.name,
            job.attempts,
            job.error,
            extra=self._log_context(job),
        )

    @staticmethod
    def _log_context(job: Job) -> Dict[str, Any]:
        return {"job_id": job.id, "job_name": job.name, "attempt": job.attempts, "job_metadata": job.metadata}

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------
    def _store_job(self, job: Job) -> None:
        with self._lock:
            self._jobs[job.id] = job
            if len(self._jobs) > self._max_jobs:
                # Prune oldest jobs to keep memory bounded.
                for job_id in sorted(self._jobs, key=lambda key: self._jobs[key].created_at)[
                    : len(self._jobs) - self._max_jobs
                ]:
                    self._jobs.pop(job_id, None)

    def _snapshot_jobs(self) -> Iterable[Job]:
        with self._lock:
            return list(self._jobs.values())

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Return job metadata for ``job_id`` (or ``None`` if unknown)."""

        with self._lock:
            job = self._jobs.get(job_id)
        return job.to_dict() if job else None

    def list_jobs(
        self, limit: Optional[int] = None, *, name: Optional[str] = None, status: Optional[str] = None
    ) -> list[Dict[str, Any]]:
        """Return tracked jobs ordered by most recent creation time."""

        jobs = sorted(self._snapshot_jobs(), key=lambda job: job.created_at, reverse=True)
        if name is not None:
            jobs = [job for job in jobs if job.name == name]
        if status is not None:
            jobs = [job for job in jobs if job.status == status]
        if limit is not None:
            jobs = jobs[:limit]
        return [job.to_dict() for job in jobs]

    def clear(self) -> None:
        """Remove all tracked jobs (useful for tests)."""

        with self._lock:
            self._jobs.clear()

    def shutdown(self, wait: bool = True) -> None:
        """Cancel pending retries and stop the worker pool."""

        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
