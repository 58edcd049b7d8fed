"""RateLimiterPort — abstract interface for pacing sequential service requests."""

from abc import ABC, abstractmethod


class RateLimiterPort(ABC):
    @abstractmethod
    async def wait(self) -> None:
        """Suspend until the next request may be issued."""
