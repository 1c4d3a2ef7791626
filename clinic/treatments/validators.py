"""Validators for post-attendance treatment submissions.

Two layers with different bounds:
- Form validation (``validate_submission``) runs before anything is persisted.
  Light bath duration is limited to 1-5 units (7-35 minutes).
- Session validation (``validate_session_request``) mirrors the persistence
  layer's hard limits. Light bath duration is limited to 1-10 units.

Both bounds are kept as observed until the authoritative one is confirmed.
"""

from datetime import date

from clinic.treatments.types import (
    CreateTreatmentSessionRequest,
    LocationTreatment,
    SubmissionPayload,
)

RETURN_WEEKS_MIN = 1
RETURN_WEEKS_MAX = 52

QUANTITY_MIN = 1
QUANTITY_MAX = 20

FORM_DURATION_MIN = 1
FORM_DURATION_MAX = 5

SESSION_DURATION_MIN = 1
SESSION_DURATION_MAX = 10

MAIN_COMPLAINT_REQUIRED = "main complaint required"
RETURN_WEEKS_OUT_OF_RANGE = "return weeks out of range"
START_DATE_IN_FUTURE = "start date cannot be in the future"
ATTENDANCE_DATE_IN_FUTURE = "attendance date cannot be in the future"

LIGHT_BATH_NO_TREATMENTS = "select at least one light bath location"
LIGHT_BATH_NO_LOCATIONS = "all light bath locations must be specified"
LIGHT_BATH_NO_COLOR = "light bath color is required for all locations"
LIGHT_BATH_DURATION_OUT_OF_RANGE = "light bath duration must be between 1 and 5 units (7-35 minutes)"
LIGHT_BATH_QUANTITY_OUT_OF_RANGE = "light bath quantity must be between 1 and 20"

ROD_NO_TREATMENTS = "select at least one rod treatment location"
ROD_NO_LOCATIONS = "all rod treatment locations must be specified"
ROD_QUANTITY_OUT_OF_RANGE = "rod treatment quantity must be between 1 and 20"


def _quantity_in_range(treatment: LocationTreatment) -> bool:
    return QUANTITY_MIN <= treatment.quantity <= QUANTITY_MAX


def validate_submission(payload: SubmissionPayload, today: date) -> str | None:
    """Validate a complete submission payload.

    Rules are evaluated in a fixed order and the first failure wins:
    1. Main complaint is non-empty after trimming
    2. Return weeks within 1-52
    3. Start date is not in the future
    4. Attendance date is not in the future
    5. Light bath (if present): treatments, locations, color, duration 1-5, quantity 1-20
    6. Rod (if present): treatments, locations, quantity 1-20

    Args:
        payload: Form snapshot to validate
        today: Reference date for the "not in the future" rules

    Returns:
        Error message for the first violated rule, or None if valid
    """
    if not payload.main_complaint.strip():
        return MAIN_COMPLAINT_REQUIRED

    if not RETURN_WEEKS_MIN <= payload.return_weeks <= RETURN_WEEKS_MAX:
        return RETURN_WEEKS_OUT_OF_RANGE

    if payload.start_date > today:
        return START_DATE_IN_FUTURE

    if payload.attendance_date > today:
        return ATTENDANCE_DATE_IN_FUTURE

    light_bath = payload.recommendations.light_bath
    if light_bath is not None:
        if not light_bath.treatments:
            return LIGHT_BATH_NO_TREATMENTS
        for treatment in light_bath.treatments:
            if not treatment.locations:
                return LIGHT_BATH_NO_LOCATIONS
            if not treatment.color.strip():
                return LIGHT_BATH_NO_COLOR
            if not FORM_DURATION_MIN <= treatment.duration <= FORM_DURATION_MAX:
                return LIGHT_BATH_DURATION_OUT_OF_RANGE
            if not _quantity_in_range(treatment):
                return LIGHT_BATH_QUANTITY_OUT_OF_RANGE

    rod = payload.recommendations.rod
    if rod is not None:
        if not rod.treatments:
            return ROD_NO_TREATMENTS
        for treatment in rod.treatments:
            if not treatment.locations:
                return ROD_NO_LOCATIONS
            if not _quantity_in_range(treatment):
                return ROD_QUANTITY_OUT_OF_RANGE

    return None


def validate_session_request(request: CreateTreatmentSessionRequest) -> None:
    """Validate a session creation request against the persistence layer's limits.

    Messages follow the backend's wording so callers see the same text
    regardless of where the request was rejected.

    Raises:
        ValueError: If the request violates a hard limit
    """
    if not request.body_location.strip():
        raise ValueError("body_location should not be empty")

    if request.planned_sessions < QUANTITY_MIN:
        raise ValueError(f"planned_sessions must not be less than {QUANTITY_MIN}")
    if request.planned_sessions > QUANTITY_MAX:
        raise ValueError(f"planned_sessions must not be greater than {QUANTITY_MAX}")

    if request.treatment_type != "light_bath":
        return

    if request.duration_minutes is None:
        raise ValueError("duration_minutes is required for light_bath")
    if request.duration_minutes < SESSION_DURATION_MIN:
        raise ValueError(f"duration_minutes must not be less than {SESSION_DURATION_MIN}")
    if request.duration_minutes > SESSION_DURATION_MAX:
        raise ValueError(f"duration_minutes must not be greater than {SESSION_DURATION_MAX}")
    if not (request.color or "").strip():
        raise ValueError("color is required for light_bath")
