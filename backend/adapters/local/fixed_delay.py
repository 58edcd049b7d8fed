"""FixedDelayRateLimiter — suspends for a constant interval between requests."""

import asyncio
import logging

from ports.rate_limiter import RateLimiterPort

logger = logging.getLogger(__name__)


class FixedDelayRateLimiter(RateLimiterPort):
    """Not adaptive: the delay ignores how the service actually responded."""

    def __init__(self, delay_seconds: float):
        if delay_seconds < 0:
            raise ValueError(f"Delay must not be negative, got {delay_seconds}")
        self._delay = delay_seconds

    @property
    def delay(self) -> float:
        return self._delay

    async def wait(self) -> None:
        if self._delay > 0:
            logger.debug(f"Waiting {self._delay:.2f}s before next request")
            await asyncio.sleep(self._delay)
