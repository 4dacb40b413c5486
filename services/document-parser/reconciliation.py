"""Merge a primary and a secondary single-document extraction.

The primary is always trusted in a disagreement. The secondary only
surfaces uncertainty: fields it disagrees on, or fields only it found,
are flagged for human review.
"""

from models import AIProviderResponse, ExtractedData, GuestFormExtractionData, ReconciliationResult


def reconcile(primary: AIProviderResponse, secondary: AIProviderResponse) -> ReconciliationResult:
    if primary.is_guest_form or secondary.is_guest_form:
        raise TypeError("Reconciliation is not defined for guest-form extractions")

    if not primary.success or primary.data is None:
        return ReconciliationResult(final_data={}, fields_to_review=[])

    primary_data: ExtractedData = primary.data  # type: ignore[assignment]
    final_data: ExtractedData = dict(primary_data)
    fields_to_review: list[str] = []

    if not secondary.success or secondary.data is None:
        return ReconciliationResult(final_data=final_data, fields_to_review=fields_to_review)

    secondary_data: ExtractedData = secondary.data  # type: ignore[assignment]
    for key in union_keys(primary_data, secondary_data):
        if key not in secondary_data:
            continue
        if key not in primary_data:
            final_data[key] = secondary_data[key]
            fields_to_review.append(key)
        elif primary_data[key] != secondary_data[key]:
            fields_to_review.append(key)

    return ReconciliationResult(final_data=final_data, fields_to_review=fields_to_review)


def union_keys(primary: ExtractedData, secondary: ExtractedData) -> list[str]:
    """Field names from both records, primary's order first."""
    return list(primary) + [key for key in secondary if key not in primary]


def comparable(data: ExtractedData | GuestFormExtractionData | None) -> bool:
    return data is not None and not isinstance(data, GuestFormExtractionData)
