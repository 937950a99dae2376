"""Shared plumbing for SQLModel repositories."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlmodel import Session

from ..database import SessionFactory


class SQLModelRepository:
    """Base for repositories that either own a session or join a caller's one."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    @contextmanager
    def _scope(self, session: Optional[Session] = None) -> Iterator[Session]:
        """Yield ``session`` untouched, or a fresh one that commits on exit.

        A borrowed session is never committed here; the caller owns its transaction.
        """
        if session is not None:
            yield session
            return
        with self.session_factory() as own:
            yield own
