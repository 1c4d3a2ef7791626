"""Per-treatment-type error bookkeeping for session creation.

Failures are collected while every location is processed and reported once
at the end, grouped by treatment type.
"""

import re
from typing import Any

from loguru import logger

from clinic.treatments.errors import CollaboratorError
from clinic.treatments.types import (
    TREATMENT_TYPE_NAMES,
    TREATMENT_TYPE_ORDER,
    CollaboratorFailure,
    TreatmentRecommendation,
    TreatmentSessionError,
    TreatmentType,
)

_TYPE_KEYWORDS: dict[TreatmentType, re.Pattern[str]] = {
    "light_bath": re.compile(r"light[\s_-]?bath", re.IGNORECASE),
    "rod": re.compile(r"\brods?\b", re.IGNORECASE),
}

_VALIDATION_MARKERS = re.compile(
    r"validation|must not be|should not be|invalid|bad request",
    re.IGNORECASE,
)

_DETAIL_KEYS: dict[TreatmentType, str] = {
    "light_bath": "light_bath_errors",
    "rod": "rod_errors",
}


class SessionErrorAggregator:
    """Collects session-creation failure messages keyed by treatment type.

    Messages keep insertion order and are never deduplicated.
    """

    def __init__(self) -> None:
        self._messages: dict[TreatmentType, list[str]] = {t: [] for t in TREATMENT_TYPE_ORDER}

    def push(self, treatment_type: TreatmentType, message: str) -> None:
        self._messages[treatment_type].append(message)

    @property
    def has_errors(self) -> bool:
        return any(self._messages.values())

    @property
    def total(self) -> int:
        return sum(len(messages) for messages in self._messages.values())

    def to_list(self) -> list[TreatmentSessionError]:
        """One entry per type with at least one message, light bath before rod."""
        return [
            TreatmentSessionError(treatment_type=t, errors=list(self._messages[t]))
            for t in TREATMENT_TYPE_ORDER
            if self._messages[t]
        ]


def _structured_buckets(detail: dict[str, Any] | None) -> dict[TreatmentType, list[str]] | None:
    """Extract type-partitioned message lists from a structured detail object."""
    if not detail:
        return None
    buckets: dict[TreatmentType, list[str]] = {}
    for treatment_type, key in _DETAIL_KEYS.items():
        messages = detail.get(key)
        if messages:
            buckets[treatment_type] = [str(message) for message in messages]
    return buckets or None


def infer_treatment_type(text: str) -> TreatmentType | None:
    """Infer the treatment type an error message refers to, if it names one."""
    for treatment_type in TREATMENT_TYPE_ORDER:
        if _TYPE_KEYWORDS[treatment_type].search(text):
            return treatment_type
    return None


def _first_present_type(recommendations: TreatmentRecommendation, default: TreatmentType) -> TreatmentType:
    present = recommendations.present_types()
    return present[0] if present else default


def location_failure_message(treatment_type: TreatmentType, location: str, raw_error: str) -> str:
    return f"Error creating {TREATMENT_TYPE_NAMES[treatment_type]} session for {location}: {raw_error}"


def record_failure_result(
    aggregator: SessionErrorAggregator,
    treatment_type: TreatmentType,
    location: str,
    failure: CollaboratorFailure | None,
    raw_error: str,
) -> None:
    """Record a failure the collaborator reported as an error result.

    Structured detail wins; otherwise the message goes to the type being processed.
    """
    buckets = _structured_buckets(failure.detail if failure else None)
    if buckets:
        for bucket_type, messages in buckets.items():
            for message in messages:
                aggregator.push(bucket_type, message)
        return

    message = location_failure_message(treatment_type, location, raw_error)
    if failure is not None and failure.kind == "conflict":
        message = f"{message} (conflicts with an existing session)"
    aggregator.push(treatment_type, message)


def record_failure_exception(
    aggregator: SessionErrorAggregator,
    treatment_type: TreatmentType,
    location: str,
    error: Exception,
    recommendations: TreatmentRecommendation,
) -> None:
    """Record a failure the collaborator raised.

    Tagged ``CollaboratorError`` instances are handled like error results.
    Untagged exceptions fall back to keyword matching on their text: a message
    naming a treatment type goes to that type, anything else goes to the first
    treatment type present in the recommendations. If bucketing itself breaks,
    one generic message per present type is recorded instead.
    """
    raw_error = str(error) or error.__class__.__name__

    if isinstance(error, CollaboratorError):
        failure = CollaboratorFailure(kind=error.kind, message=raw_error, detail=error.detail)
        record_failure_result(aggregator, treatment_type, location, failure, raw_error)
        return

    try:
        buckets = _structured_buckets(getattr(error, "detail", None))
        if buckets:
            for bucket_type, messages in buckets.items():
                for message in messages:
                    aggregator.push(bucket_type, message)
            return

        inferred = infer_treatment_type(raw_error)
        if inferred is not None:
            aggregator.push(inferred, location_failure_message(inferred, location, raw_error))
            return

        target = _first_present_type(recommendations, treatment_type)
        if _VALIDATION_MARKERS.search(raw_error):
            aggregator.push(target, f"Validation error creating session for {location}: {raw_error}")
        else:
            aggregator.push(target, f"Unexpected error creating session for {location}: {raw_error}")
    except Exception:
        logger.exception("Failed to classify session creation error", location=location)
        for present_type in recommendations.present_types() or [treatment_type]:
            aggregator.push(
                present_type,
                f"Unexpected error creating {TREATMENT_TYPE_NAMES[present_type]} sessions",
            )
