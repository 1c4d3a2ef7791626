"""Collaborator contracts consumed by the treatment workflow.

The workflow never talks to persistence directly. It depends on these narrow
protocols; ``clinic.integrations.api_client.TreatmentApiClient`` implements
them over HTTP and ``clinic.treatments.memory_backend.InMemoryTreatmentBackend``
in process.

Gateways either return an ``ApiResult`` with ``success=False`` or raise; the
orchestrator handles both the same way.
"""

from typing import Protocol

from clinic.treatments.types import (
    ApiResult,
    CreatedResource,
    CreateTreatmentRecordRequest,
    CreateTreatmentSessionRequest,
    PatientRecord,
)


class PatientGateway(Protocol):
    """Read-only patient lookup used to seed form defaults."""

    async def fetch_patient(self, patient_id: int) -> ApiResult[PatientRecord]: ...


class TreatmentRecordGateway(Protocol):
    async def create_treatment_record(
        self, request: CreateTreatmentRecordRequest
    ) -> ApiResult[CreatedResource]: ...


class TreatmentSessionGateway(Protocol):
    async def create_treatment_session(
        self, request: CreateTreatmentSessionRequest
    ) -> ApiResult[CreatedResource]: ...


class SessionsCreatedListener(Protocol):
    """Best-effort notification with the ids of newly created sessions."""

    def __call__(self, session_ids: list[int]) -> None: ...
