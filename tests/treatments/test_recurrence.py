"""Tests for weekly recurrence projection.

Tests that:
- The next Tuesday is always strictly after the start date
- Weekly series have the requested length and 7-day spacing
- Created sessions project onto Tuesdays
"""

from datetime import date, timedelta

import pytest

from clinic.treatments.recurrence import (
    TUESDAY,
    expand_weekly_series,
    next_occurrence_of_weekday,
    scheduled_dates,
)
from clinic.treatments.types import CreatedTreatmentSession


@pytest.mark.parametrize(
    ("start", "expected"),
    [
        (date(2024, 1, 15), date(2024, 1, 16)),  # Monday -> next day
        (date(2024, 1, 16), date(2024, 1, 23)),  # Tuesday -> following week
        (date(2024, 1, 17), date(2024, 1, 23)),  # Wednesday
        (date(2024, 1, 21), date(2024, 1, 23)),  # Sunday
        (date(2024, 1, 14), date(2024, 1, 16)),  # Sunday before
    ],
)
def test_next_tuesday(start: date, expected: date) -> None:
    assert next_occurrence_of_weekday(start, TUESDAY) == expected


def test_next_occurrence_never_returns_same_day() -> None:
    """A Tuesday always projects onto the next week's Tuesday."""
    tuesday = date(2024, 1, 2)
    for week in range(60):
        current = tuesday + timedelta(weeks=week)
        result = next_occurrence_of_weekday(current, TUESDAY)
        assert result > current
        assert (result - current).days == 7


def test_next_occurrence_defaults_to_tuesday() -> None:
    for offset in range(14):
        start = date(2024, 3, 1) + timedelta(days=offset)
        result = next_occurrence_of_weekday(start)
        assert result.weekday() == TUESDAY
        assert 1 <= (result - start).days <= 7


def test_next_occurrence_rejects_invalid_weekday() -> None:
    with pytest.raises(ValueError, match="Invalid weekday"):
        next_occurrence_of_weekday(date(2024, 1, 1), 7)


@pytest.mark.parametrize("count", [0, 1, 2, 5, 20])
def test_expand_weekly_series_length_and_spacing(count: int) -> None:
    first = date(2024, 1, 16)
    series = expand_weekly_series(first, count)

    assert len(series) == count
    if count:
        assert series[0] == first
    for earlier, later in zip(series, series[1:]):
        assert (later - earlier).days == 7


def test_expand_weekly_series_crosses_year_boundary() -> None:
    series = expand_weekly_series(date(2024, 12, 24), 3)
    assert series == [date(2024, 12, 24), date(2024, 12, 31), date(2025, 1, 7)]


def test_expand_weekly_series_rejects_negative_count() -> None:
    with pytest.raises(ValueError, match="count must be >= 0"):
        expand_weekly_series(date(2024, 1, 16), -1)


def test_scheduled_dates_for_session() -> None:
    session = CreatedTreatmentSession(
        id=1,
        treatment_record_id=123,
        attendance_id=10,
        patient_id=20,
        treatment_type="light_bath",
        body_location="head",
        start_date=date(2024, 1, 15),
        planned_sessions=4,
        duration_minutes=2,
        color="blue",
    )

    dates = scheduled_dates(session)

    assert dates == [date(2024, 1, 16), date(2024, 1, 23), date(2024, 1, 30), date(2024, 2, 6)]
    assert all(d.weekday() == TUESDAY for d in dates)
