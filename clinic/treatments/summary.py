"""Confirmation and error summaries for the post-attendance views.

Pure view-model builders: the confirmation groups created sessions by
treatment type and previews their projected Tuesday appointments; the error
report counts failures per type.
"""

from datetime import date

from pydantic import BaseModel, Field

from clinic.treatments.recurrence import scheduled_dates
from clinic.treatments.types import (
    DURATION_UNIT_MINUTES,
    TREATMENT_TYPE_NAMES,
    TREATMENT_TYPE_ORDER,
    CreatedTreatmentSession,
    TreatmentSessionError,
    TreatmentType,
)

# Appointment dates shown per session before collapsing into "+N more"
PREVIEW_DATES = 3


class SessionPreview(BaseModel):
    session_id: int
    body_location: str
    planned_sessions: int
    start_date: date
    color: str | None = None
    duration_label: str | None = None
    preview_dates: list[date] = Field(default_factory=list)
    remaining_dates: int = 0


class SessionGroup(BaseModel):
    treatment_type: TreatmentType
    title: str
    sessions: list[SessionPreview] = Field(default_factory=list)


class ConfirmationSummary(BaseModel):
    """Confirmation view model.

    Attributes:
        series_count: Number of created sessions (one series per location)
        total_appointments: Sum of planned sessions across all series
        groups: Sessions grouped by treatment type, light bath first
    """

    series_count: int
    total_appointments: int
    groups: list[SessionGroup] = Field(default_factory=list)


class ErrorReport(BaseModel):
    total_errors: int
    errors: list[TreatmentSessionError] = Field(default_factory=list)


def format_duration(duration_units: int | None) -> str | None:
    if not duration_units:
        return None
    return f"{duration_units * DURATION_UNIT_MINUTES} min"


def _preview(session: CreatedTreatmentSession) -> SessionPreview:
    dates = scheduled_dates(session)
    return SessionPreview(
        session_id=session.id,
        body_location=session.body_location,
        planned_sessions=session.planned_sessions,
        start_date=session.start_date,
        color=session.color if session.treatment_type == "light_bath" else None,
        duration_label=format_duration(session.duration_minutes) if session.treatment_type == "light_bath" else None,
        preview_dates=dates[:PREVIEW_DATES],
        remaining_dates=max(0, len(dates) - PREVIEW_DATES),
    )


def build_confirmation_summary(sessions: list[CreatedTreatmentSession]) -> ConfirmationSummary:
    groups: list[SessionGroup] = []
    for treatment_type in TREATMENT_TYPE_ORDER:
        matching = [s for s in sessions if s.treatment_type == treatment_type]
        if not matching:
            continue
        groups.append(
            SessionGroup(
                treatment_type=treatment_type,
                title=TREATMENT_TYPE_NAMES[treatment_type].capitalize(),
                sessions=[_preview(s) for s in matching],
            )
        )

    return ConfirmationSummary(
        series_count=len(sessions),
        total_appointments=sum(s.planned_sessions for s in sessions),
        groups=groups,
    )


def build_error_report(errors: list[TreatmentSessionError]) -> ErrorReport:
    return ErrorReport(
        total_errors=sum(len(e.errors) for e in errors),
        errors=list(errors),
    )
