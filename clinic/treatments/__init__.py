"""Treatments module - post-attendance treatment scheduling and submission.

This module provides:
- Validation of the post-attendance form
- Sequential creation of one treatment session per body location
- Per-treatment-type error aggregation
- Weekly (Tuesday) recurrence projection for confirmation summaries
- The form's view state machine (editing / confirming / erred)
"""

from clinic.treatments.error_aggregator import SessionErrorAggregator
from clinic.treatments.orchestrator import TreatmentSubmissionOrchestrator
from clinic.treatments.recurrence import expand_weekly_series, next_occurrence_of_weekday
from clinic.treatments.state import WorkflowState
from clinic.treatments.types import (
    CreatedTreatmentSession,
    SubmissionFailure,
    SubmissionPayload,
    SubmissionSuccess,
    TreatmentRecommendation,
    TreatmentSessionError,
)
from clinic.treatments.validators import validate_submission
from clinic.treatments.workflow import PostAttendanceWorkflow

__all__ = [
    "CreatedTreatmentSession",
    "PostAttendanceWorkflow",
    "SessionErrorAggregator",
    "SubmissionFailure",
    "SubmissionPayload",
    "SubmissionSuccess",
    "TreatmentRecommendation",
    "TreatmentSessionError",
    "TreatmentSubmissionOrchestrator",
    "WorkflowState",
    "expand_weekly_series",
    "next_occurrence_of_weekday",
    "validate_submission",
]
