"""Turn a model's text reply into a typed extraction payload."""

import json
import logging
import re

from errors import AIError, AIErrorType
from models import ExtractedData, GuestFormExtractionData, ScalarValue

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


def strip_code_fences(raw: str) -> str:
    """Remove a wrapping ```json ... ``` (or bare ```) block, if present."""
    text = raw.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_extraction_payload(
    raw: str, provider: str
) -> ExtractedData | GuestFormExtractionData:
    """Parse model output into single-document data or guest-form data.

    The two shapes are told apart by the presence of a ``guests`` key.
    Raises AIError(validation) carrying the raw text when the reply is not
    a JSON object of the expected shape.
    """
    cleaned = strip_code_fences(raw or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("Could not parse JSON from %s response: %s", provider, cleaned[:200])
        raise AIError(
            AIErrorType.VALIDATION,
            f"Invalid JSON response from {provider}: {e}",
            provider,
            raw_response=raw,
        ) from e

    if not isinstance(parsed, dict):
        raise AIError(
            AIErrorType.VALIDATION,
            f"Expected a JSON object from {provider}, got {type(parsed).__name__}",
            provider,
            raw_response=raw,
        )

    if "guests" in parsed:
        return _parse_guest_form(parsed, provider, raw)
    return normalize_fields(parsed)


def _parse_guest_form(parsed: dict, provider: str, raw: str) -> GuestFormExtractionData:
    guests = parsed.get("guests")
    if not isinstance(guests, list) or not all(isinstance(g, dict) for g in guests):
        raise AIError(
            AIErrorType.VALIDATION,
            f"Malformed guest list in {provider} response",
            provider,
            raw_response=raw,
        )

    detected = parsed.get("detectedGuestCount")
    if isinstance(detected, bool) or not isinstance(detected, (int, float)):
        detected = len(guests)

    return GuestFormExtractionData(
        guests=[normalize_fields(guest) for guest in guests],
        detected_guest_count=int(detected),
    )


def normalize_fields(data: dict) -> ExtractedData:
    """Coerce every value to a scalar or None."""
    return {str(key): _to_scalar(value) for key, value in data.items()}


def _to_scalar(value) -> ScalarValue:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, list) and all(not isinstance(v, (dict, list)) for v in value):
        items = [str(v) for v in value if v is not None]
        return ", ".join(items) if items else None
    return json.dumps(value, ensure_ascii=False)
