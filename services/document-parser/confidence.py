"""Confidence score for an extraction run.

Heuristic constants, kept as-is since no calibration data exists:
single call 0.8 (0.7 if it failed), dual verification 0.6..1.0 by field
agreement, 0.7 when the secondary call failed. Guest forms are never
reconciled, so two successful guest-form calls agree on every top-level
key of the payload.
"""

from models import AIProviderResponse
from reconciliation import comparable, reconcile, union_keys

SINGLE_SUCCESS_CONFIDENCE = 0.8
SINGLE_FAILURE_CONFIDENCE = 0.7
SECONDARY_FAILED_CONFIDENCE = 0.7
AGREEMENT_FLOOR = 0.6
AGREEMENT_WEIGHT = 0.4


def score(primary: AIProviderResponse, secondary: AIProviderResponse | None = None) -> float:
    confidence = SINGLE_SUCCESS_CONFIDENCE if primary.success else SINGLE_FAILURE_CONFIDENCE

    if secondary is not None:
        if not secondary.success:
            confidence = SECONDARY_FAILED_CONFIDENCE
        elif primary.success and primary.is_guest_form and secondary.is_guest_form:
            # nothing is flagged across the payload keys, so agreement is total
            confidence = AGREEMENT_FLOOR + AGREEMENT_WEIGHT
        elif primary.success and comparable(primary.data) and comparable(secondary.data):
            total_fields = len(union_keys(primary.data, secondary.data))  # type: ignore[arg-type]
            if total_fields > 0:
                flagged = len(reconcile(primary, secondary).fields_to_review)
                agreement = (total_fields - flagged) / total_fields
                confidence = AGREEMENT_FLOOR + agreement * AGREEMENT_WEIGHT

    return round(min(max(confidence, 0.0), 1.0), 2)
