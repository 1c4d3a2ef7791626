"""Tests for the immutable post-attendance workflow state."""

import pytest
from conftest import make_payload

from clinic.treatments.state import InvalidTransitionError, WorkflowState
from clinic.treatments.types import (
    CreatedTreatmentSession,
    SubmissionFailure,
    SubmissionSuccess,
    TreatmentSessionError,
)


def _session(session_id: int = 1) -> CreatedTreatmentSession:
    return CreatedTreatmentSession(
        id=session_id,
        treatment_record_id=123,
        attendance_id=10,
        patient_id=20,
        treatment_type="rod",
        body_location="back",
        start_date=make_payload().start_date,
        planned_sessions=3,
    )


def _sessions_failure() -> SubmissionFailure:
    return SubmissionFailure(
        stage="sessions",
        treatment_record_id=123,
        errors=[TreatmentSessionError(treatment_type="rod", errors=["a", "b"])],
    )


def test_start_is_editing() -> None:
    state = WorkflowState.start(make_payload())
    assert state.mode == "editing"
    assert state.sessions == ()
    assert state.errors == ()
    assert state.inline_error is None


def test_success_with_sessions_goes_to_confirming() -> None:
    state = WorkflowState.start(make_payload())

    new_state = state.apply_result(SubmissionSuccess(treatment_record_id=123, sessions=[_session()]))

    assert new_state.mode == "confirming"
    assert new_state.sessions == (_session(),)
    assert new_state.treatment_record_id == 123
    assert state.mode == "editing"


def test_success_without_sessions_stays_editing() -> None:
    state = WorkflowState.start(make_payload())

    new_state = state.apply_result(SubmissionSuccess(treatment_record_id=123))

    assert new_state.mode == "editing"
    assert new_state.treatment_record_id == 123


def test_sessions_failure_goes_to_erred() -> None:
    state = WorkflowState.start(make_payload()).apply_result(_sessions_failure())

    assert state.mode == "erred"
    assert state.treatment_record_id == 123
    assert state.session_error_count == 2


@pytest.mark.parametrize("stage", ["validation", "record"])
def test_inline_failures_stay_editing(stage: str) -> None:
    state = WorkflowState.start(make_payload())

    new_state = state.apply_result(SubmissionFailure(stage=stage, message="nope"))

    assert new_state.mode == "editing"
    assert new_state.inline_error == "nope"
    assert new_state.payload == state.payload


def test_retry_returns_to_editing_with_same_payload() -> None:
    payload = make_payload(main_complaint="Back pain")
    state = WorkflowState.start(payload).apply_result(_sessions_failure())

    retried = state.retry()

    assert retried.mode == "editing"
    assert retried.errors == ()
    assert retried.payload is payload


def test_acknowledge_from_confirming_and_erred() -> None:
    confirming = WorkflowState.start(make_payload()).apply_result(
        SubmissionSuccess(treatment_record_id=123, sessions=[_session()])
    )
    erred = WorkflowState.start(make_payload()).apply_result(_sessions_failure())

    assert confirming.acknowledge().mode == "closed"
    assert erred.acknowledge().mode == "closed"


def test_acknowledge_while_editing_rejected() -> None:
    with pytest.raises(InvalidTransitionError, match="Cannot acknowledge while editing"):
        WorkflowState.start(make_payload()).acknowledge()


def test_retry_only_from_erred() -> None:
    with pytest.raises(InvalidTransitionError):
        WorkflowState.start(make_payload()).retry()


def test_cannot_edit_while_confirming() -> None:
    state = WorkflowState.start(make_payload()).apply_result(
        SubmissionSuccess(treatment_record_id=123, sessions=[_session()])
    )
    with pytest.raises(InvalidTransitionError):
        state.with_payload(make_payload())


def test_cannot_submit_while_erred() -> None:
    state = WorkflowState.start(make_payload()).apply_result(_sessions_failure())
    with pytest.raises(InvalidTransitionError):
        state.apply_result(SubmissionSuccess(treatment_record_id=1))


def test_editing_clears_inline_error() -> None:
    state = WorkflowState.start(make_payload()).apply_result(SubmissionFailure(stage="validation", message="x"))

    edited = state.with_payload(make_payload(main_complaint="Other"))

    assert edited.inline_error is None
    assert edited.payload.main_complaint == "Other"


def test_dismiss_error() -> None:
    state = WorkflowState.start(make_payload()).apply_result(SubmissionFailure(stage="record", message="x"))
    assert state.dismiss_error().inline_error is None
