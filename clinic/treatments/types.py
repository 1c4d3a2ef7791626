"""Domain types for the post-attendance treatment workflow.

A consultation produces one treatment record plus one treatment session per
(treatment type, body location) pair. Each session implies a weekly series of
appointments that the persistence layer schedules on its own.

Dates are plain calendar dates. They travel as ISO ``YYYY-MM-DD`` strings and
never carry a time or timezone component.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

TreatmentType = Literal["light_bath", "rod"]

# N: new patient, T: in treatment, A: spiritual medical discharge, F: consecutive absences
TreatmentStatus = Literal["N", "T", "A", "F"]

# Fixed processing order for treatment types
TREATMENT_TYPE_ORDER: tuple[TreatmentType, ...] = ("light_bath", "rod")

TREATMENT_TYPE_NAMES: dict[TreatmentType, str] = {
    "light_bath": "light bath",
    "rod": "rod",
}

TREATMENT_STATUS_LABELS: dict[TreatmentStatus, str] = {
    "N": "New patient",
    "T": "In treatment",
    "A": "Spiritual medical discharge",
    "F": "Consecutive absences",
}

# One light bath duration unit, in minutes
DURATION_UNIT_MINUTES = 7


def treatment_status_label(status: TreatmentStatus) -> str:
    """Human-readable label for a treatment status code."""
    return TREATMENT_STATUS_LABELS[status]


class LocationTreatment(BaseModel):
    """Group of body locations sharing identical treatment parameters.

    Attributes:
        locations: Body location identifiers or free-text custom labels
        start_date: First day the series may start
        quantity: Planned number of sessions per location
    """

    model_config = ConfigDict(frozen=True)

    locations: list[str] = Field(default_factory=list)
    start_date: date
    quantity: int


# Rod treatments carry nothing beyond the shared shape
RodTreatment = LocationTreatment


class LightBathTreatment(LocationTreatment):
    """Light bath variant of a location treatment.

    Attributes:
        color: Light color applied to every location of the group
        duration: Duration in 7-minute units
    """

    color: str = ""
    duration: int

    @property
    def duration_minutes(self) -> int:
        return self.duration * DURATION_UNIT_MINUTES


class LightBathRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: date | None = None
    treatments: list[LightBathTreatment] = Field(default_factory=list)


class RodRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: date | None = None
    treatments: list[RodTreatment] = Field(default_factory=list)


class TreatmentRecommendation(BaseModel):
    """All recurring-treatment recommendations for one consultation.

    Present-but-empty recommendations are representable on purpose: the form
    holds them while the clinician edits, and validation rejects them on submit.
    """

    model_config = ConfigDict(frozen=True)

    light_bath: LightBathRecommendation | None = None
    rod: RodRecommendation | None = None
    return_weeks: int = 1
    spiritual_medical_discharge: bool = False

    def present_types(self) -> list[TreatmentType]:
        """Treatment types with at least one treatment defined, in processing order."""
        present: list[TreatmentType] = []
        if self.light_bath is not None and self.light_bath.treatments:
            present.append("light_bath")
        if self.rod is not None and self.rod.treatments:
            present.append("rod")
        return present

    def location_count(self) -> int:
        """Total number of (treatment type, location) pairs."""
        total = 0
        if self.light_bath is not None:
            total += sum(len(t.locations) for t in self.light_bath.treatments)
        if self.rod is not None:
            total += sum(len(t.locations) for t in self.rod.treatments)
        return total


class SubmissionPayload(BaseModel):
    """Immutable snapshot of the post-attendance form.

    Edits never patch a payload in place; ``with_changes`` returns a new one.

    Attributes:
        main_complaint: Patient's main complaint
        treatment_status: Status code (N, T, A, F)
        attendance_date: Date of the consultation
        start_date: Treatment start date
        return_weeks: Weeks until the patient returns (1-52)
        food: Food recommendations
        water: Water recommendations
        ointments: Ointment recommendations
        recommendations: Light bath / rod recommendations
        notes: Free-text notes
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    main_complaint: str = ""
    treatment_status: TreatmentStatus = "T"
    attendance_date: date
    start_date: date
    return_weeks: int = 1
    food: str = ""
    water: str = ""
    ointments: str = ""
    recommendations: TreatmentRecommendation = Field(default_factory=TreatmentRecommendation)
    notes: str = ""

    def with_changes(self, **changes: Any) -> SubmissionPayload:
        """Return a new payload with the given fields replaced.

        Replacing ``recommendations`` also syncs ``return_weeks`` from them,
        unless ``return_weeks`` is given explicitly. Changes are validated
        like a fresh payload, so ISO date strings and numeric strings are
        coerced.

        Raises:
            ValidationError: If a change has the wrong type or names an unknown field
        """
        recommendations = changes.get("recommendations")
        if isinstance(recommendations, TreatmentRecommendation) and "return_weeks" not in changes:
            changes["return_weeks"] = recommendations.return_weeks
        return type(self).model_validate({**self.model_dump(), **changes})


class PatientRecord(BaseModel):
    """Read-only patient data used to seed form defaults."""

    id: int
    name: str = ""
    main_complaint: str | None = None
    start_date: date | None = None


class CreateTreatmentRecordRequest(BaseModel):
    """Treatment record creation request.

    ``light_bath``, ``light_bath_color`` and ``rod`` are a legacy summary kept
    for consumers that predate per-location sessions.
    """

    attendance_id: int
    main_complaint: str
    treatment_status: TreatmentStatus
    food: str = ""
    water: str = ""
    ointments: str = ""
    spiritual_treatment: bool = True
    return_in_weeks: int
    notes: str = ""
    light_bath: bool = False
    light_bath_color: str | None = None
    rod: bool = False


class CreateTreatmentSessionRequest(BaseModel):
    """Treatment session creation request (one body location).

    ``duration_minutes`` carries 7-minute units, not minutes; the backend
    converts it when scheduling appointments.
    """

    treatment_record_id: int
    attendance_id: int
    patient_id: int
    treatment_type: TreatmentType
    body_location: str
    start_date: date
    planned_sessions: int
    duration_minutes: int | None = None
    color: str | None = None
    notes: str | None = None


class CreatedResource(BaseModel):
    id: int


class CreatedTreatmentSession(BaseModel):
    """One persisted treatment session, immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: int
    treatment_record_id: int
    attendance_id: int
    patient_id: int
    treatment_type: TreatmentType
    body_location: str
    start_date: date
    planned_sessions: int
    completed_sessions: int = 0
    duration_minutes: int | None = None
    color: str | None = None
    notes: str | None = None


class TreatmentSessionError(BaseModel):
    """Failure messages for one treatment type within a submission attempt."""

    model_config = ConfigDict(frozen=True)

    treatment_type: TreatmentType
    errors: list[str]


FailureKind = Literal["validation", "conflict", "unknown"]


class CollaboratorFailure(BaseModel):
    """Tagged failure reported by a collaborator.

    Attributes:
        kind: Stable failure category
        message: Human-readable message
        detail: Optional structured detail; ``light_bath_errors`` / ``rod_errors``
            lists are used verbatim when building error reports
    """

    kind: FailureKind = "unknown"
    message: str
    detail: dict[str, Any] | None = None


T = TypeVar("T")


class ApiResult(BaseModel, Generic[T]):
    """Result envelope returned by collaborators."""

    success: bool
    value: T | None = None
    error: str | None = None
    failure: CollaboratorFailure | None = None

    @classmethod
    def ok(cls, value: T) -> ApiResult[T]:
        return cls(success=True, value=value)

    @classmethod
    def fail(
        cls,
        message: str,
        *,
        kind: FailureKind = "unknown",
        detail: dict[str, Any] | None = None,
    ) -> ApiResult[T]:
        return cls(
            success=False,
            error=message,
            failure=CollaboratorFailure(kind=kind, message=message, detail=detail),
        )


SubmissionStage = Literal["validation", "record", "sessions"]


class SubmissionSuccess(BaseModel):
    """Successful submission: record and every session persisted."""

    ok: Literal[True] = True
    treatment_record_id: int
    sessions: list[CreatedTreatmentSession] = Field(default_factory=list)


class SubmissionFailure(BaseModel):
    """Failed submission.

    ``validation`` and ``record`` failures carry a single ``message`` and no
    persisted sessions. ``sessions`` failures carry per-type ``errors``; the
    treatment record already exists in that case.
    """

    ok: Literal[False] = False
    stage: SubmissionStage
    message: str | None = None
    treatment_record_id: int | None = None
    errors: list[TreatmentSessionError] = Field(default_factory=list)


SubmissionResult = SubmissionSuccess | SubmissionFailure
