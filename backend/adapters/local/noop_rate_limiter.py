"""NoOpRateLimiter — never delays, only yields control to the event loop."""

import asyncio

from ports.rate_limiter import RateLimiterPort


class NoOpRateLimiter(RateLimiterPort):
    async def wait(self) -> None:
        await asyncio.sleep(0)
