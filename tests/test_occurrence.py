"""Tests for next-occurrence arithmetic."""

from __future__ import annotations

from datetime import datetime

import pytest

from cashcadence.models import Frequency
from cashcadence.services.occurrence import next_occurrence, occurrences_between, reminder_date


@pytest.mark.parametrize(
    "frequency, expected",
    [
        (Frequency.DAILY, datetime(2025, 1, 2)),
        (Frequency.WEEKLY, datetime(2025, 1, 8)),
        (Frequency.BIWEEKLY, datetime(2025, 1, 15)),
        (Frequency.MONTHLY, datetime(2025, 2, 1)),
        (Frequency.QUARTERLY, datetime(2025, 4, 1)),
        (Frequency.YEARLY, datetime(2026, 1, 1)),
    ],
)
def test_next_occurrence_steps(frequency, expected):
    assert next_occurrence(datetime(2025, 1, 1), frequency) == expected


def test_next_occurrence_preserves_time_of_day():
    assert next_occurrence(datetime(2025, 1, 15, 8, 30), Frequency.MONTHLY) == datetime(2025, 2, 15, 8, 30)


def test_month_end_clamps_to_shorter_month():
    assert next_occurrence(datetime(2025, 1, 31), Frequency.MONTHLY) == datetime(2025, 2, 28)
    assert next_occurrence(datetime(2024, 1, 31), Frequency.MONTHLY) == datetime(2024, 2, 29)
    assert next_occurrence(datetime(2025, 11, 30), Frequency.QUARTERLY) == datetime(2026, 2, 28)


def test_leap_day_yearly_clamps():
    assert next_occurrence(datetime(2024, 2, 29), Frequency.YEARLY) == datetime(2025, 2, 28)


def test_next_occurrence_crosses_year_boundary():
    assert next_occurrence(datetime(2025, 12, 31), Frequency.DAILY) == datetime(2026, 1, 1)
    assert next_occurrence(datetime(2025, 12, 15), Frequency.MONTHLY) == datetime(2026, 1, 15)


def test_next_occurrence_accepts_string_frequency():
    assert next_occurrence(datetime(2025, 1, 1), "WEEKLY") == datetime(2025, 1, 8)


def test_unknown_frequency_rejected():
    with pytest.raises(ValueError, match="Unknown frequency"):
        next_occurrence(datetime(2025, 1, 1), "FORTNIGHTLY")


def test_occurrences_between_chains_from_previous_occurrence():
    # Once clamped to the 28th the schedule stays on the 28th.
    result = list(occurrences_between(datetime(2025, 1, 31), Frequency.MONTHLY, datetime(2025, 5, 31)))

    assert result == [
        datetime(2025, 2, 28),
        datetime(2025, 3, 28),
        datetime(2025, 4, 28),
        datetime(2025, 5, 28),
    ]


def test_occurrences_between_includes_until_and_can_be_empty():
    assert list(occurrences_between(datetime(2025, 1, 1), Frequency.WEEKLY, datetime(2025, 1, 15))) == [
        datetime(2025, 1, 8),
        datetime(2025, 1, 15),
    ]
    assert list(occurrences_between(datetime(2025, 1, 1), Frequency.MONTHLY, datetime(2025, 1, 31))) == []


def test_reminder_date():
    assert reminder_date(datetime(2025, 2, 1, 9, 0), 3) == datetime(2025, 1, 29, 9, 0)
    assert reminder_date(datetime(2025, 2, 1), 0) == datetime(2025, 2, 1)


def test_reminder_date_rejects_negative_days():
    with pytest.raises(ValueError):
        reminder_date(datetime(2025, 2, 1), -1)


@pytest.mark.parametrize("frequency", list(Frequency))
@pytest.mark.parametrize(
    "base",
    [datetime(2024, 2, 29), datetime(2025, 1, 31, 23, 59), datetime(2025, 12, 31, 12, 0), datetime(2025, 6, 15)],
)
def test_next_occurrence_strictly_advances_and_is_deterministic(base, frequency):
    first = next_occurrence(base, frequency)

    assert first > base
    assert next_occurrence(base, frequency) == first
