"""Error taxonomy for provider calls and document processing.

Provider failures are classified into ``AIError`` kinds so the retry manager
can decide what to retry without knowing anything about vendor wire formats.
"""

import asyncio
import logging
from enum import Enum

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60


class AIErrorType(str, Enum):
    RATE_LIMIT = "rate_limit"
    QUOTA_EXCEEDED = "quota_exceeded"
    API_ERROR = "api_error"
    TIMEOUT = "timeout"
    NETWORK = "network"
    VALIDATION = "validation"


class AIError(Exception):
    """Classified failure of a single provider call."""

    def __init__(
        self,
        type: AIErrorType,
        message: str,
        provider: str,
        status_code: int | None = None,
        retry_after: float | None = None,
        raw_response: str | None = None,
    ):
        super().__init__(message)
        self.type = type
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.raw_response = raw_response

    def __repr__(self) -> str:
        return f"AIError(type={self.type.value!r}, provider={self.provider!r}, message={self.message!r})"


class RateLimitExceeded(AIError):
    """Local sliding-window limit hit before any network call was made."""

    def __init__(self, provider: str, window: str, count: int, limit: int):
        super().__init__(
            AIErrorType.RATE_LIMIT,
            f"Rate limit exceeded: {count}/{limit} requests per {window}",
            provider,
        )
        self.window = window


class PromptConfigurationError(ValueError):
    """Form template cannot produce a prompt (e.g. no fields)."""


class ProviderConfigurationError(ValueError):
    """Provider is missing credentials or is unknown."""


class DocumentProcessingError(Exception):
    """Base for orchestration failures that are not provider errors."""


class DocumentNotFoundError(DocumentProcessingError):
    pass


class DocumentFilesMissingError(DocumentProcessingError):
    pass


def classify_provider_error(exc: BaseException, provider: str) -> AIError:
    """Map an exception raised during a provider call onto the AIError taxonomy."""
    if isinstance(exc, AIError):
        return exc

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return AIError(AIErrorType.TIMEOUT, "Request timeout", provider)

    if isinstance(exc, httpx.TransportError):
        return AIError(AIErrorType.NETWORK, f"Network error occurred: {exc}", provider)

    if isinstance(exc, httpx.HTTPStatusError):
        return _classify_status_error(exc, provider)

    return AIError(
        AIErrorType.API_ERROR,
        str(exc) or "Unknown AI processing error",
        provider,
        status_code=500,
    )


def _classify_status_error(exc: httpx.HTTPStatusError, provider: str) -> AIError:
    response = exc.response
    status = response.status_code
    code, message = _error_body(response)
    message = message or f"HTTP {status}"

    if code == "insufficient_quota" or status == 402:
        return AIError(AIErrorType.QUOTA_EXCEEDED, message, provider, status_code=status)

    if code == "rate_limit_exceeded" or status == 429:
        return AIError(
            AIErrorType.RATE_LIMIT,
            message,
            provider,
            status_code=429,
            retry_after=_retry_after(response),
        )

    if status in (408, 504):
        return AIError(AIErrorType.TIMEOUT, message, provider, status_code=status)

    return AIError(AIErrorType.API_ERROR, message, provider, status_code=status)


def _error_body(response: httpx.Response) -> tuple[str | None, str | None]:
    """Pull (code, message) from OpenAI- or Gemini-style error bodies."""
    try:
        body = response.json()
    except ValueError:
        return None, response.text or None

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return None, None

    # OpenAI uses a string code, Gemini an int code plus a status string
    code = error.get("code")
    if not isinstance(code, str):
        code = error.get("status")
    return code, error.get("message")


def _retry_after(response: httpx.Response) -> float:
    header = response.headers.get("retry-after")
    if header is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return float(header)
    except ValueError:
        logger.debug("Ignoring non-numeric retry-after header: %s", header)
        return DEFAULT_RETRY_AFTER_SECONDS
