"""Submission orchestrator for post-attendance treatments.

This is the public entry point for turning a validated form snapshot into a
treatment record plus one treatment session per (treatment type, location).

Flow:
1. Validate the payload (no collaborator call on failure)
2. Create the treatment record (abort on failure, no sessions attempted)
3. Create sessions sequentially: light bath first, then rod, treatments and
   locations in order. Failures are recorded and the loop continues.
4. Report success only if every session was created
5. Notify listeners with the new session ids (best effort)

Errors never escape ``submit``: the result is always a tagged value.
"""

from collections.abc import Callable
from datetime import date

from loguru import logger

from clinic.treatments.collaborators import (
    SessionsCreatedListener,
    TreatmentRecordGateway,
    TreatmentSessionGateway,
)
from clinic.treatments.error_aggregator import (
    SessionErrorAggregator,
    record_failure_exception,
    record_failure_result,
)
from clinic.treatments.types import (
    CreatedTreatmentSession,
    CreateTreatmentRecordRequest,
    CreateTreatmentSessionRequest,
    LightBathTreatment,
    LocationTreatment,
    SubmissionFailure,
    SubmissionPayload,
    SubmissionResult,
    SubmissionSuccess,
    TreatmentType,
)
from clinic.treatments.validators import validate_submission

RECORD_CREATION_FAILED = "Failed to create treatment record"
ROD_SESSION_NOTES = "Rod treatment"


def build_record_request(payload: SubmissionPayload, attendance_id: int) -> CreateTreatmentRecordRequest:
    """Build the treatment record request from a form snapshot.

    ``spiritual_treatment`` is always True for these consultations. The light
    bath color summary is the first light bath treatment's color.
    """
    light_bath = payload.recommendations.light_bath
    rod = payload.recommendations.rod
    light_bath_color = None
    if light_bath is not None and light_bath.treatments:
        light_bath_color = light_bath.treatments[0].color

    return CreateTreatmentRecordRequest(
        attendance_id=attendance_id,
        main_complaint=payload.main_complaint,
        treatment_status=payload.treatment_status,
        food=payload.food,
        water=payload.water,
        ointments=payload.ointments,
        spiritual_treatment=True,
        return_in_weeks=payload.return_weeks,
        notes=payload.notes,
        light_bath=light_bath is not None,
        light_bath_color=light_bath_color,
        rod=rod is not None,
    )


def session_notes(treatment_type: TreatmentType, treatment: LocationTreatment) -> str:
    if treatment_type == "light_bath" and isinstance(treatment, LightBathTreatment):
        return f"Light bath - {treatment.color} - {treatment.duration_minutes} minutes"
    return ROD_SESSION_NOTES


def build_session_request(
    *,
    treatment_type: TreatmentType,
    treatment: LocationTreatment,
    location: str,
    treatment_record_id: int,
    attendance_id: int,
    patient_id: int,
) -> CreateTreatmentSessionRequest:
    """Build the session request for one body location of a treatment group."""
    request = CreateTreatmentSessionRequest(
        treatment_record_id=treatment_record_id,
        attendance_id=attendance_id,
        patient_id=patient_id,
        treatment_type=treatment_type,
        body_location=location,
        start_date=treatment.start_date,
        planned_sessions=treatment.quantity,
        notes=session_notes(treatment_type, treatment),
    )
    if isinstance(treatment, LightBathTreatment):
        request = request.model_copy(update={"duration_minutes": treatment.duration, "color": treatment.color})
    return request


def _created_session(session_id: int, request: CreateTreatmentSessionRequest) -> CreatedTreatmentSession:
    return CreatedTreatmentSession(
        id=session_id,
        treatment_record_id=request.treatment_record_id,
        attendance_id=request.attendance_id,
        patient_id=request.patient_id,
        treatment_type=request.treatment_type,
        body_location=request.body_location,
        start_date=request.start_date,
        planned_sessions=request.planned_sessions,
        completed_sessions=0,
        duration_minutes=request.duration_minutes,
        color=request.color,
        notes=request.notes,
    )


class TreatmentSubmissionOrchestrator:
    """Runs one submission attempt for a single attendance.

    Assumes at most one concurrent ``submit`` call; callers serialize
    submissions (see ``PostAttendanceWorkflow``).

    Attributes:
        attendance_id: Attendance the treatment belongs to
        patient_id: Patient receiving the treatment
    """

    def __init__(
        self,
        *,
        attendance_id: int,
        patient_id: int,
        records: TreatmentRecordGateway,
        sessions: TreatmentSessionGateway,
        on_sessions_created: SessionsCreatedListener | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.attendance_id = attendance_id
        self.patient_id = patient_id
        self._records = records
        self._sessions = sessions
        self._on_sessions_created = on_sessions_created
        self._today = today

    async def submit(self, payload: SubmissionPayload, *, notify: bool = True) -> SubmissionResult:
        """Run one submission attempt.

        Args:
            payload: Form snapshot to submit
            notify: Notify the sessions-created listener on success. Callers that
                must commit their own state first pass False and call
                ``notify_sessions_created`` afterwards.

        Returns:
            SubmissionSuccess, or SubmissionFailure tagged with the failing stage
        """
        validation_error = validate_submission(payload, self._today())
        if validation_error is not None:
            logger.info(
                "Treatment submission rejected by validation",
                attendance_id=self.attendance_id,
                reason=validation_error,
            )
            return SubmissionFailure(stage="validation", message=validation_error)

        record_id = await self._create_record(payload)
        if isinstance(record_id, SubmissionFailure):
            return record_id

        created, aggregator = await self._create_sessions(payload, record_id)

        if aggregator.has_errors:
            logger.warning(
                "Treatment session creation finished with errors",
                attendance_id=self.attendance_id,
                treatment_record_id=record_id,
                created_count=len(created),
                error_count=aggregator.total,
            )
            return SubmissionFailure(
                stage="sessions",
                treatment_record_id=record_id,
                errors=aggregator.to_list(),
            )

        logger.info(
            "Treatment submission complete",
            attendance_id=self.attendance_id,
            treatment_record_id=record_id,
            session_count=len(created),
        )
        if notify:
            self.notify_sessions_created(created)
        return SubmissionSuccess(treatment_record_id=record_id, sessions=created)

    async def _create_record(self, payload: SubmissionPayload) -> int | SubmissionFailure:
        request = build_record_request(payload, self.attendance_id)
        try:
            result = await self._records.create_treatment_record(request)
        except Exception as e:
            logger.error(
                "Treatment record creation raised",
                attendance_id=self.attendance_id,
                error=str(e),
            )
            return SubmissionFailure(stage="record", message=str(e) or RECORD_CREATION_FAILED)

        if not result.success or result.value is None:
            logger.error(
                "Treatment record creation failed",
                attendance_id=self.attendance_id,
                error=result.error,
            )
            return SubmissionFailure(stage="record", message=result.error or RECORD_CREATION_FAILED)

        logger.info(
            "Treatment record created",
            attendance_id=self.attendance_id,
            treatment_record_id=result.value.id,
        )
        return result.value.id

    async def _create_sessions(
        self,
        payload: SubmissionPayload,
        record_id: int,
    ) -> tuple[list[CreatedTreatmentSession], SessionErrorAggregator]:
        recommendations = payload.recommendations
        groups: list[tuple[TreatmentType, list[LocationTreatment]]] = []
        if recommendations.light_bath is not None:
            groups.append(("light_bath", list(recommendations.light_bath.treatments)))
        if recommendations.rod is not None:
            groups.append(("rod", list(recommendations.rod.treatments)))

        created: list[CreatedTreatmentSession] = []
        aggregator = SessionErrorAggregator()

        # Sequential on purpose: the backend checks conflicts against sessions
        # created earlier in the same submission.
        for treatment_type, treatments in groups:
            for treatment in treatments:
                for location in treatment.locations:
                    session = await self._create_session(
                        treatment_type=treatment_type,
                        treatment=treatment,
                        location=location,
                        record_id=record_id,
                        payload=payload,
                        aggregator=aggregator,
                    )
                    if session is not None:
                        created.append(session)

        return created, aggregator

    async def _create_session(
        self,
        *,
        treatment_type: TreatmentType,
        treatment: LocationTreatment,
        location: str,
        record_id: int,
        payload: SubmissionPayload,
        aggregator: SessionErrorAggregator,
    ) -> CreatedTreatmentSession | None:
        try:
            request = build_session_request(
                treatment_type=treatment_type,
                treatment=treatment,
                location=location,
                treatment_record_id=record_id,
                attendance_id=self.attendance_id,
                patient_id=self.patient_id,
            )
            result = await self._sessions.create_treatment_session(request)
        except Exception as e:
            logger.warning(
                "Treatment session creation raised",
                treatment_type=treatment_type,
                body_location=location,
                error=str(e),
            )
            record_failure_exception(aggregator, treatment_type, location, e, payload.recommendations)
            return None

        if not result.success or result.value is None:
            raw_error = result.error or (result.failure.message if result.failure else "unknown error")
            logger.warning(
                "Treatment session creation failed",
                treatment_type=treatment_type,
                body_location=location,
                error=raw_error,
            )
            record_failure_result(aggregator, treatment_type, location, result.failure, raw_error)
            return None

        logger.info(
            "Treatment session created",
            session_id=result.value.id,
            treatment_type=treatment_type,
            body_location=location,
        )
        return _created_session(result.value.id, request)

    def notify_sessions_created(self, sessions: list[CreatedTreatmentSession]) -> None:
        """Best-effort notification; failures are logged and never reported."""
        if self._on_sessions_created is None or not sessions:
            return
        session_ids = [session.id for session in sessions]
        try:
            self._on_sessions_created(session_ids)
        except Exception as e:
            # Notification is not part of the result contract
            logger.warning("Sessions-created notification failed", session_ids=session_ids, error=str(e))
