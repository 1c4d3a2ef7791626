"""Error types for the treatment submission workflow.

None of these cross the orchestrator's public boundary: the orchestrator
converts them into tagged results.
"""

from typing import Any

from clinic.treatments.types import FailureKind


class TreatmentWorkflowError(Exception):
    """Base exception for treatment workflow errors."""

    pass


class SubmissionInProgressError(TreatmentWorkflowError):
    """Raised when a submission starts while another one is in flight."""

    pass


class CollaboratorError(TreatmentWorkflowError):
    """Raised by collaborators that report failures as exceptions.

    Attributes:
        kind: Stable failure category (validation, conflict, unknown)
        detail: Optional structured detail
    """

    def __init__(self, message: str, *, kind: FailureKind = "unknown", detail: dict[str, Any] | None = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(message)


class SessionCreationError(CollaboratorError):
    """Session creation failure carrying per-type message lists.

    Attributes:
        light_bath_errors: Messages for the light bath bucket
        rod_errors: Messages for the rod bucket
    """

    def __init__(
        self,
        message: str,
        *,
        light_bath_errors: list[str] | None = None,
        rod_errors: list[str] | None = None,
    ) -> None:
        self.light_bath_errors = list(light_bath_errors or [])
        self.rod_errors = list(rod_errors or [])
        super().__init__(
            message,
            kind="validation",
            detail={"light_bath_errors": self.light_bath_errors, "rod_errors": self.rod_errors},
        )
