"""Next-occurrence arithmetic for recurring transactions.

Calendar-month steps use ``relativedelta``, which clamps to the last day of a
shorter month: Jan 31 + 1 month is Feb 28 (Feb 29 in a leap year), and
Feb 29 + 1 year is Feb 28. Time of day is preserved.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterator

from dateutil.relativedelta import relativedelta

from ..models.enums import Frequency

_STEPS: dict[Frequency, relativedelta] = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(days=7),
    Frequency.BIWEEKLY: relativedelta(days=14),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
}


def next_occurrence(base: datetime, frequency: Frequency | str) -> datetime:
    """Return the instant one ``frequency`` unit after ``base``."""

    try:
        step = _STEPS[Frequency(frequency)]
    except ValueError as exc:
        raise ValueError(f"Unknown frequency: {frequency!r}") from exc
    return base + step


def occurrences_between(
    start: datetime, frequency: Frequency | str, until: datetime
) -> Iterator[datetime]:
    """Yield successive occurrences after ``start`` up to and including ``until``.

    Each step is taken from the previous occurrence, matching how the processor
    advances a schedule one pass at a time.
    """

    current = next_occurrence(start, frequency)
    while current <= until:
        yield current
        current = next_occurrence(current, frequency)


def reminder_date(occurrence: datetime, days_before: int) -> datetime:
    """Return when a reminder for ``occurrence`` should go out."""

    if days_before < 0:
        raise ValueError("days_before must be >= 0")
    return occurrence - timedelta(days=days_before)
