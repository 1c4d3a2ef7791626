"""Post-attendance workflow: form state, patient defaults and submission.

Owns the ``WorkflowState`` for one modal session and drives it exclusively
from the orchestrator's results. At most one submission runs at a time.
"""

from collections.abc import Callable
from datetime import date

from loguru import logger

from clinic.treatments.collaborators import (
    PatientGateway,
    SessionsCreatedListener,
    TreatmentRecordGateway,
    TreatmentSessionGateway,
)
from clinic.treatments.errors import SubmissionInProgressError
from clinic.treatments.orchestrator import TreatmentSubmissionOrchestrator
from clinic.treatments.state import WorkflowState
from clinic.treatments.types import (
    PatientRecord,
    SubmissionPayload,
    SubmissionResult,
    TreatmentRecommendation,
    TreatmentStatus,
)

PATIENT_FETCH_FAILED = "Failed to load patient data"


def default_payload(today: date, treatment_status: TreatmentStatus = "T") -> SubmissionPayload:
    """Blank form snapshot: dated today, returning in one week."""
    return SubmissionPayload(
        treatment_status=treatment_status,
        attendance_date=today,
        start_date=today,
        return_weeks=1,
        recommendations=TreatmentRecommendation(return_weeks=1),
    )


class PostAttendanceWorkflow:
    """Post-attendance form workflow for one attendance.

    Attributes:
        attendance_id: Attendance being completed
        patient_id: Patient being treated
        current_treatment_status: Patient's status before this attendance
        state: Current workflow state
        patient: Patient data, once fetched
        fetch_error: Message from a failed patient fetch (never blocks editing)
    """

    def __init__(
        self,
        *,
        attendance_id: int,
        patient_id: int,
        patients: PatientGateway,
        records: TreatmentRecordGateway,
        sessions: TreatmentSessionGateway,
        current_treatment_status: TreatmentStatus = "T",
        on_sessions_created: SessionsCreatedListener | None = None,
        initial_payload: SubmissionPayload | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.attendance_id = attendance_id
        self.patient_id = patient_id
        self.current_treatment_status = current_treatment_status
        self._patients = patients
        self._today = today
        self._orchestrator = TreatmentSubmissionOrchestrator(
            attendance_id=attendance_id,
            patient_id=patient_id,
            records=records,
            sessions=sessions,
            on_sessions_created=on_sessions_created,
            today=today,
        )
        self.state = WorkflowState.start(initial_payload or default_payload(today()))
        self.patient: PatientRecord | None = None
        self.fetch_error: str | None = None
        self._defaults_loaded = False
        self._submitting = False

    @property
    def payload(self) -> SubmissionPayload:
        return self.state.payload

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    async def load_defaults(self) -> None:
        """Fetch the patient once and seed main complaint and start date.

        Start date comes from the patient record; new patients (status N)
        without one start today. Failures are kept in ``fetch_error``.
        """
        if self._defaults_loaded:
            return
        self._defaults_loaded = True

        try:
            result = await self._patients.fetch_patient(self.patient_id)
        except Exception as e:
            logger.error("Patient fetch raised", patient_id=self.patient_id, error=str(e))
            self.fetch_error = PATIENT_FETCH_FAILED
            return

        if not result.success or result.value is None:
            logger.warning("Patient fetch failed", patient_id=self.patient_id, error=result.error)
            self.fetch_error = result.error or PATIENT_FETCH_FAILED
            return

        self.patient = result.value
        if self.state.mode != "editing":
            return

        current = self.state.payload
        start_date = current.start_date
        if self.patient.start_date is not None:
            start_date = self.patient.start_date
        elif self.current_treatment_status == "N":
            start_date = self._today()

        self.state = self.state.with_payload(
            current.with_changes(
                main_complaint=self.patient.main_complaint or current.main_complaint,
                start_date=start_date,
            )
        )
        logger.debug("Form defaults loaded from patient", patient_id=self.patient_id)

    def update_payload(self, **changes: object) -> SubmissionPayload:
        """Apply field edits, producing a new payload."""
        self.state = self.state.with_payload(self.state.payload.with_changes(**changes))
        return self.state.payload

    def update_recommendations(self, recommendations: TreatmentRecommendation) -> SubmissionPayload:
        """Replace the recommendations; return weeks follow the recommendation."""
        return self.update_payload(recommendations=recommendations)

    async def submit(self) -> SubmissionResult:
        """Submit the current payload and transition on the outcome.

        Raises:
            SubmissionInProgressError: If a submission is already running
            InvalidTransitionError: If the form is not being edited
        """
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")
        self.state.ensure_can_submit()

        self._submitting = True
        try:
            result = await self._orchestrator.submit(self.state.payload, notify=False)
            self.state = self.state.apply_result(result)
        finally:
            self._submitting = False

        logger.info(
            "Post-attendance submission finished",
            attendance_id=self.attendance_id,
            ok=result.ok,
            mode=self.state.mode,
        )
        # After the state commit, so a failing listener cannot undo the transition
        if result.ok:
            self._orchestrator.notify_sessions_created(result.sessions)
        return result

    def acknowledge(self) -> None:
        """Continue from the confirmation or error view (closes the workflow)."""
        self.state = self.state.acknowledge()

    def retry(self) -> None:
        """Return to the form from the error view. Does not resubmit."""
        self.state = self.state.retry()

    def dismiss_error(self) -> None:
        self.state = self.state.dismiss_error()

    def dismiss_fetch_error(self) -> None:
        self.fetch_error = None
