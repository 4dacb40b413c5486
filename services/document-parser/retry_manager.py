"""Exponential-backoff retry for provider calls.

Only AIError kinds in the allow-list are retried; everything else propagates
on first occurrence. A ``retry_after`` carried by the error overrides the
computed delay for that one retry.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from config import settings
from errors import AIError, AIErrorType

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRYABLE_ERRORS = frozenset(
    {AIErrorType.RATE_LIMIT, AIErrorType.TIMEOUT, AIErrorType.NETWORK}
)


class RetryConfig(BaseModel):
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0
    exponential_base: float = 2.0
    retryable_errors: frozenset[AIErrorType] = DEFAULT_RETRYABLE_ERRORS

    @classmethod
    def from_settings(cls) -> "RetryConfig":
        return cls(
            max_retries=settings.AI_RETRY_MAX_RETRIES,
            base_delay=settings.AI_RETRY_BASE_DELAY,
            max_delay=settings.AI_RETRY_MAX_DELAY,
            exponential_base=settings.AI_RETRY_EXPONENTIAL_BASE,
        )


class wait_backoff_or_retry_after(wait_base):
    """base_delay * exponential_base ** attempt, capped, unless the error says otherwise."""

    def __init__(self, config: RetryConfig):
        self.config = config

    def __call__(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, AIError) and exc.retry_after:
            return float(exc.retry_after)

        attempt = retry_state.attempt_number - 1
        delay = self.config.base_delay * self.config.exponential_base ** attempt
        return min(delay, self.config.max_delay)


def is_retryable(exc: BaseException, config: RetryConfig) -> bool:
    return isinstance(exc, AIError) and exc.type in config.retryable_errors


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` with up to ``max_retries`` additional attempts."""
    config = config or RetryConfig.from_settings()

    def _log_retry(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "AI operation failed (%s), retrying in %.1fs (attempt %d/%d)",
            getattr(exc, "type", AIErrorType.API_ERROR).value,
            state.next_action.sleep,  # type: ignore[union-attr]
            state.attempt_number,
            config.max_retries,
        )

    retrying = AsyncRetrying(
        retry=retry_if_exception(lambda exc: is_retryable(exc, config)),
        stop=stop_after_attempt(config.max_retries + 1),
        wait=wait_backoff_or_retry_after(config),
        sleep=sleep,
        reraise=True,
        before_sleep=_log_retry,
    )
    return await retrying(operation)
