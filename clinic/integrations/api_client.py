"""HTTP client for the clinic backend.

Implements the patient, treatment record and treatment session gateways over
the REST API. Every call returns an ``ApiResult``; HTTP and transport errors
are converted to tagged failures instead of being raised.

Endpoints:
- GET  /patients/{id}
- POST /treatment-records
- POST /treatment-sessions
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from clinic.config.settings import settings
from clinic.treatments.types import (
    ApiResult,
    CreatedResource,
    CreateTreatmentRecordRequest,
    CreateTreatmentSessionRequest,
    FailureKind,
    PatientRecord,
)

STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    401: "Log in to continue",
    403: "You do not have permission to perform this action",
    404: "Resource not found",
    409: "Conflict with an existing resource",
    422: "Invalid request",
}
SERVER_ERROR_MESSAGE = "Internal server error, please try again later"
TIMEOUT_MESSAGE = "The server took too long to respond"
UNREACHABLE_MESSAGE = "Could not reach the server"


def get_error_message(status_code: int | None) -> str:
    """User-facing message for an HTTP status code."""
    if status_code is None:
        return SERVER_ERROR_MESSAGE
    return STATUS_MESSAGES.get(status_code, SERVER_ERROR_MESSAGE)


def failure_kind(status_code: int) -> FailureKind:
    if status_code in (400, 422):
        return "validation"
    if status_code == 409:
        return "conflict"
    return "unknown"


def _response_detail(response: httpx.Response) -> tuple[str | None, dict[str, Any] | None]:
    """Extract the backend's message and any structured detail from an error body."""
    try:
        body = response.json()
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None

    message = body.get("message") or body.get("detail") or body.get("error")
    if isinstance(message, list):
        message = "; ".join(str(m) for m in message)
    detail = body.get("details") if isinstance(body.get("details"), dict) else None
    return (str(message) if message else None), detail


class TreatmentApiClient:
    """Async REST client for patients, treatment records and treatment sessions.

    Attributes:
        base_url: Backend base URL (no trailing slash)
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.api_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> TreatmentApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> ApiResult[Any]:
        try:
            response = await self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            backend_message, detail = _response_detail(e.response)
            message = get_error_message(status_code)
            if backend_message:
                message = f"{message}: {backend_message}"
            logger.warning(
                "Clinic API request failed",
                method=method,
                path=path,
                status_code=status_code,
            )
            return ApiResult.fail(message, kind=failure_kind(status_code), detail=detail)
        except httpx.TimeoutException:
            logger.warning("Clinic API request timed out", method=method, path=path)
            return ApiResult.fail(TIMEOUT_MESSAGE)
        except httpx.RequestError as e:
            logger.warning("Clinic API unreachable", method=method, path=path, error=str(e))
            return ApiResult.fail(UNREACHABLE_MESSAGE)

        try:
            return ApiResult.ok(response.json())
        except ValueError:
            logger.error("Clinic API returned invalid JSON", method=method, path=path)
            return ApiResult.fail(SERVER_ERROR_MESSAGE)

    async def fetch_patient(self, patient_id: int) -> ApiResult[PatientRecord]:
        result = await self._request("GET", f"/patients/{patient_id}")
        if not result.success:
            return ApiResult[PatientRecord](success=False, error=result.error, failure=result.failure)
        try:
            return ApiResult[PatientRecord].ok(PatientRecord.model_validate(result.value))
        except ValidationError:
            logger.error("Unexpected patient payload", patient_id=patient_id)
            return ApiResult[PatientRecord].fail(SERVER_ERROR_MESSAGE)

    async def create_treatment_record(self, request: CreateTreatmentRecordRequest) -> ApiResult[CreatedResource]:
        result = await self._request("POST", "/treatment-records", json=request.model_dump(mode="json"))
        if not result.success:
            return ApiResult[CreatedResource](success=False, error=result.error, failure=result.failure)

        body = result.value
        # Newer backends wrap the record: {"record": {...}, "treatmentSessions": {...}}
        if isinstance(body, dict) and isinstance(body.get("record"), dict):
            body = body["record"]
        return self._created(body)

    async def create_treatment_session(self, request: CreateTreatmentSessionRequest) -> ApiResult[CreatedResource]:
        result = await self._request(
            "POST",
            "/treatment-sessions",
            json=request.model_dump(mode="json", exclude_none=True),
        )
        if not result.success:
            return ApiResult[CreatedResource](success=False, error=result.error, failure=result.failure)
        return self._created(result.value)

    @staticmethod
    def _created(body: Any) -> ApiResult[CreatedResource]:
        try:
            return ApiResult[CreatedResource].ok(CreatedResource.model_validate(body))
        except ValidationError:
            logger.error("Created resource without id in response")
            return ApiResult[CreatedResource].fail(SERVER_ERROR_MESSAGE)
