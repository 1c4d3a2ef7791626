"""Workflow state for the post-attendance form.

The form shows exactly one view at a time:
- editing: the form itself, optionally with an inline error banner
- confirming: summary of the sessions that were created
- erred: per-treatment-type session errors with retry/continue actions
- closed: acknowledged; the consumer closes the modal

State is immutable. Every transition returns a new instance.
"""

from dataclasses import dataclass, replace
from typing import Literal

from clinic.treatments.errors import TreatmentWorkflowError
from clinic.treatments.types import (
    CreatedTreatmentSession,
    SubmissionPayload,
    SubmissionResult,
    TreatmentSessionError,
)

WorkflowMode = Literal["editing", "confirming", "erred", "closed"]


class InvalidTransitionError(TreatmentWorkflowError):
    """Raised when an action is not allowed in the current mode."""

    def __init__(self, action: str, mode: WorkflowMode) -> None:
        self.action = action
        self.mode = mode
        super().__init__(f"Cannot {action} while {mode}")


@dataclass(frozen=True)
class WorkflowState:
    """Immutable post-attendance workflow state.

    Attributes:
        mode: Current view mode
        payload: Current form snapshot (kept intact across retries)
        sessions: Created sessions (confirming only)
        errors: Session errors per treatment type (erred only)
        inline_error: Validation or record-creation message shown on the form
        treatment_record_id: Record persisted by the last submission, if any
    """

    mode: WorkflowMode
    payload: SubmissionPayload
    sessions: tuple[CreatedTreatmentSession, ...] = ()
    errors: tuple[TreatmentSessionError, ...] = ()
    inline_error: str | None = None
    treatment_record_id: int | None = None

    @classmethod
    def start(cls, payload: SubmissionPayload) -> "WorkflowState":
        return cls(mode="editing", payload=payload)

    def with_payload(self, payload: SubmissionPayload) -> "WorkflowState":
        """Replace the form snapshot while editing. Clears the inline error."""
        self._require("edit", "editing")
        return replace(self, payload=payload, inline_error=None)

    def apply_result(self, result: SubmissionResult) -> "WorkflowState":
        """Transition on a submission outcome.

        - success with sessions -> confirming
        - success without sessions -> editing (nothing was recommended)
        - session failure -> erred
        - validation / record failure -> editing with an inline error
        """
        self._require("submit", "editing")

        if result.ok:
            if result.sessions:
                return replace(
                    self,
                    mode="confirming",
                    sessions=tuple(result.sessions),
                    inline_error=None,
                    treatment_record_id=result.treatment_record_id,
                )
            return replace(self, inline_error=None, treatment_record_id=result.treatment_record_id)

        if result.stage == "sessions":
            return replace(
                self,
                mode="erred",
                errors=tuple(result.errors),
                inline_error=None,
                treatment_record_id=result.treatment_record_id,
            )

        return replace(self, inline_error=result.message)

    def ensure_can_submit(self) -> None:
        """Raise unless a submission may start from the current mode."""
        self._require("submit", "editing")

    def acknowledge(self) -> "WorkflowState":
        """Continue from the confirmation or error view."""
        if self.mode not in ("confirming", "erred"):
            raise InvalidTransitionError("acknowledge", self.mode)
        return replace(self, mode="closed")

    def retry(self) -> "WorkflowState":
        """Back to the form with the same payload. Does not resubmit."""
        self._require("retry", "erred")
        return replace(self, mode="editing", errors=())

    def dismiss_error(self) -> "WorkflowState":
        return replace(self, inline_error=None)

    def _require(self, action: str, mode: WorkflowMode) -> None:
        if self.mode != mode:
            raise InvalidTransitionError(action, self.mode)

    @property
    def session_error_count(self) -> int:
        return sum(len(error.errors) for error in self.errors)

