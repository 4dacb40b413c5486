"""Per-provider sliding-window request limiter.

Advisory local throttling: fails fast before spending a network round trip.
It does not replace the provider's own enforcement.
"""

import logging
import threading
import time
from typing import Callable

from pydantic import BaseModel

from config import settings
from errors import RateLimitExceeded

logger = logging.getLogger(__name__)

MINUTE = 60.0
HOUR = 60 * MINUTE
DAY = 24 * HOUR


class RateLimitConfig(BaseModel):
    requests_per_minute: int
    requests_per_hour: int
    requests_per_day: int


def default_limits() -> dict[str, RateLimitConfig]:
    """Configured ceilings per provider. Providers not listed are unthrottled."""
    return {
        "gemini": RateLimitConfig(
            requests_per_minute=settings.GEMINI_REQUESTS_PER_MINUTE,
            requests_per_hour=settings.GEMINI_REQUESTS_PER_HOUR,
            requests_per_day=settings.GEMINI_REQUESTS_PER_DAY,
        ),
        "openai": RateLimitConfig(
            requests_per_minute=settings.OPENAI_REQUESTS_PER_MINUTE,
            requests_per_hour=settings.OPENAI_REQUESTS_PER_HOUR,
            requests_per_day=settings.OPENAI_REQUESTS_PER_DAY,
        ),
    }


class RateLimiter:
    """Minute/hour/day request counters keyed by provider name."""

    def __init__(
        self,
        limits: dict[str, RateLimitConfig] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._limits = limits if limits is not None else default_limits()
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def check_rate_limit(self, provider: str) -> bool:
        """Record a request for ``provider`` or raise RateLimitExceeded."""
        config = self._limits.get(provider)
        if config is None:
            return True

        with self._lock:
            now = self._clock()
            recent = [t for t in self._requests.get(provider, []) if t > now - DAY]
            self._requests[provider] = recent

            windows = (
                ("minute", MINUTE, config.requests_per_minute),
                ("hour", HOUR, config.requests_per_hour),
                ("day", DAY, config.requests_per_day),
            )
            for window, span, limit in windows:
                count = sum(1 for t in recent if t > now - span)
                if count >= limit:
                    logger.warning(
                        "Local rate limit hit for %s: %d/%d per %s",
                        provider, count, limit, window,
                    )
                    raise RateLimitExceeded(provider, window, count, limit)

            recent.append(now)
            return True

    def usage(self, provider: str) -> dict[str, int]:
        """Current request counts per window (no pruning, no recording)."""
        with self._lock:
            now = self._clock()
            timestamps = self._requests.get(provider, [])
            return {
                "minute": sum(1 for t in timestamps if t > now - MINUTE),
                "hour": sum(1 for t in timestamps if t > now - HOUR),
                "day": sum(1 for t in timestamps if t > now - DAY),
            }
