"""In-process implementation of the treatment collaborators.

Used for dry runs and tests. Enforces the session layer's hard limits through
``validate_session_request`` so rejections look like the real backend's.
Failures can be scripted per body location.
"""

from itertools import count

from loguru import logger

from clinic.treatments.types import (
    ApiResult,
    CreatedResource,
    CreateTreatmentRecordRequest,
    CreateTreatmentSessionRequest,
    FailureKind,
    PatientRecord,
)
from clinic.treatments.validators import validate_session_request


class InMemoryTreatmentBackend:
    """Stores records and sessions in memory.

    Attributes:
        patients: Known patients by id
        records: Created treatment record requests by id
        sessions: Created session requests by id, in creation order
        notified: Session id batches received through ``notify_sessions_created``
    """

    def __init__(self, patients: list[PatientRecord] | None = None) -> None:
        self.patients: dict[int, PatientRecord] = {p.id: p for p in patients or []}
        self.records: dict[int, CreateTreatmentRecordRequest] = {}
        self.sessions: dict[int, CreateTreatmentSessionRequest] = {}
        self.notified: list[list[int]] = []
        self._record_ids = count(1)
        self._session_ids = count(1)
        self._location_failures: dict[str, tuple[str, FailureKind]] = {}
        self._record_failure: str | None = None

    def fail_location(self, body_location: str, message: str, kind: FailureKind = "unknown") -> None:
        """Make session creation fail for ``body_location``."""
        self._location_failures[body_location] = (message, kind)

    def fail_records(self, message: str) -> None:
        self._record_failure = message

    async def fetch_patient(self, patient_id: int) -> ApiResult[PatientRecord]:
        patient = self.patients.get(patient_id)
        if patient is None:
            return ApiResult[PatientRecord].fail("Patient not found")
        return ApiResult[PatientRecord].ok(patient)

    async def create_treatment_record(self, request: CreateTreatmentRecordRequest) -> ApiResult[CreatedResource]:
        if self._record_failure is not None:
            return ApiResult[CreatedResource].fail(self._record_failure)

        record_id = next(self._record_ids)
        self.records[record_id] = request
        return ApiResult[CreatedResource].ok(CreatedResource(id=record_id))

    async def create_treatment_session(self, request: CreateTreatmentSessionRequest) -> ApiResult[CreatedResource]:
        if request.treatment_record_id not in self.records:
            return ApiResult[CreatedResource].fail("Treatment record not found")

        scripted = self._location_failures.get(request.body_location)
        if scripted is not None:
            message, kind = scripted
            return ApiResult[CreatedResource].fail(message, kind=kind)

        try:
            validate_session_request(request)
        except ValueError as e:
            return ApiResult[CreatedResource].fail(str(e), kind="validation")

        session_id = next(self._session_ids)
        self.sessions[session_id] = request
        return ApiResult[CreatedResource].ok(CreatedResource(id=session_id))

    def notify_sessions_created(self, session_ids: list[int]) -> None:
        logger.debug("Sessions created", session_ids=session_ids)
        self.notified.append(list(session_ids))
