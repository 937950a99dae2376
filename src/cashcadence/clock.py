"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current UTC instant as a naive datetime.

    Model columns are plain ``DateTime`` and SQLite drops tzinfo on the way
    back, so every stored instant is naive UTC.
    """

    return datetime.now(timezone.utc).replace(tzinfo=None)
