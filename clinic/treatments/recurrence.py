"""Weekly recurrence helpers for treatment sessions.

Display-only: the persistence layer owns the real appointment dates. These
helpers project where a session's weekly series will land so the confirmation
summary can preview it.
"""

from datetime import date, timedelta

from clinic.treatments.types import CreatedTreatmentSession

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

# Treatment appointments happen on Tuesdays
TREATMENT_WEEKDAY = TUESDAY


def next_occurrence_of_weekday(from_date: date, weekday: int = TREATMENT_WEEKDAY) -> date:
    """Return the next date falling on ``weekday`` strictly after the current week slot.

    If ``from_date`` already falls on ``weekday`` or later in the week, the
    result is in the following week. The result is never ``from_date`` itself.

    Args:
        from_date: Date to project from
        weekday: Target weekday (Monday=0 ... Sunday=6)

    Returns:
        Next occurrence of ``weekday``
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f"Invalid weekday: {weekday}")

    offset = weekday - from_date.weekday()
    if offset <= 0:
        offset += 7
    return from_date + timedelta(days=offset)


def expand_weekly_series(first_occurrence: date, count: int) -> list[date]:
    """Expand ``count`` dates spaced exactly one week apart.

    Raises:
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    return [first_occurrence + timedelta(weeks=i) for i in range(count)]


def scheduled_dates(session: CreatedTreatmentSession) -> list[date]:
    """Projected appointment dates for a created session."""
    first = next_occurrence_of_weekday(session.start_date, TREATMENT_WEEKDAY)
    return expand_weekly_series(first, session.planned_sessions)
