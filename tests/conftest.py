"""Root conftest for all tests.

Shared payload builders and scripted collaborators for the treatment workflow.
"""

from datetime import date
from typing import Any

import pytest

from clinic.treatments.types import (
    ApiResult,
    CreatedResource,
    CreateTreatmentRecordRequest,
    CreateTreatmentSessionRequest,
    LightBathRecommendation,
    LightBathTreatment,
    PatientRecord,
    RodRecommendation,
    RodTreatment,
    SubmissionPayload,
    TreatmentRecommendation,
)

TODAY = date(2024, 2, 1)


def light_bath(
    locations: list[str],
    *,
    color: str = "blue",
    duration: int = 2,
    quantity: int = 5,
    start_date: date = date(2024, 1, 15),
) -> LightBathTreatment:
    return LightBathTreatment(
        locations=locations,
        color=color,
        duration=duration,
        quantity=quantity,
        start_date=start_date,
    )


def rod(locations: list[str], *, quantity: int = 3, start_date: date = date(2024, 1, 15)) -> RodTreatment:
    return RodTreatment(locations=locations, quantity=quantity, start_date=start_date)


def make_payload(
    *,
    light_bath_treatments: list[LightBathTreatment] | None = None,
    rod_treatments: list[RodTreatment] | None = None,
    **overrides: Any,
) -> SubmissionPayload:
    """Valid payload; pass treatment lists (possibly empty) to add recommendations."""
    recommendations = TreatmentRecommendation(
        light_bath=(
            LightBathRecommendation(start_date=date(2024, 1, 15), treatments=light_bath_treatments)
            if light_bath_treatments is not None
            else None
        ),
        rod=(
            RodRecommendation(start_date=date(2024, 1, 15), treatments=rod_treatments)
            if rod_treatments is not None
            else None
        ),
        return_weeks=overrides.get("return_weeks", 2),
    )
    fields: dict[str, Any] = {
        "main_complaint": "Headaches",
        "treatment_status": "T",
        "attendance_date": date(2024, 1, 15),
        "start_date": date(2024, 1, 15),
        "return_weeks": 2,
        "recommendations": recommendations,
    }
    fields.update(overrides)
    return SubmissionPayload(**fields)


class ScriptedBackend:
    """Collaborator double that records every call.

    ``session_outcomes`` maps a body location to either an error string
    (returned as a failed result) or an exception (raised).
    """

    def __init__(
        self,
        *,
        record_id: int = 123,
        record_error: str | Exception | None = None,
        session_outcomes: dict[str, str | Exception] | None = None,
        patient: PatientRecord | None = None,
        patient_error: str | Exception | None = None,
    ) -> None:
        self.record_id = record_id
        self.record_error = record_error
        self.session_outcomes = session_outcomes or {}
        self.patient = patient
        self.patient_error = patient_error
        self.record_requests: list[CreateTreatmentRecordRequest] = []
        self.session_requests: list[CreateTreatmentSessionRequest] = []
        self.patient_calls = 0
        self.notified: list[list[int]] = []
        self._next_session_id = 1

    async def fetch_patient(self, patient_id: int) -> ApiResult[PatientRecord]:
        self.patient_calls += 1
        if isinstance(self.patient_error, Exception):
            raise self.patient_error
        if self.patient_error is not None or self.patient is None:
            return ApiResult[PatientRecord].fail(self.patient_error or "Patient not found")
        return ApiResult[PatientRecord].ok(self.patient)

    async def create_treatment_record(self, request: CreateTreatmentRecordRequest) -> ApiResult[CreatedResource]:
        self.record_requests.append(request)
        if isinstance(self.record_error, Exception):
            raise self.record_error
        if self.record_error is not None:
            return ApiResult[CreatedResource].fail(self.record_error)
        return ApiResult[CreatedResource].ok(CreatedResource(id=self.record_id))

    async def create_treatment_session(self, request: CreateTreatmentSessionRequest) -> ApiResult[CreatedResource]:
        self.session_requests.append(request)
        outcome = self.session_outcomes.get(request.body_location)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            kind = "conflict" if "conflict" in outcome else "unknown"
            return ApiResult[CreatedResource].fail(outcome, kind=kind)
        session_id = self._next_session_id
        self._next_session_id += 1
        return ApiResult[CreatedResource].ok(CreatedResource(id=session_id))

    def notify_sessions_created(self, session_ids: list[int]) -> None:
        self.notified.append(list(session_ids))


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def today() -> date:
    return TODAY

