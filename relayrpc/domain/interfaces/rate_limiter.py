"""Interface for the shared request rate limiter."""

import abc
from typing import Awaitable, Callable, TypeVar

from ..models.common import LimiterKey

T = TypeVar("T")


class RateLimiter(abc.ABC):
    """Abstract Base Class for pacing calls that share a key."""

    @abc.abstractmethod
    async def run_under_limit(self, key: LimiterKey, operation: Callable[[], Awaitable[T]]) -> T:
        """Runs ``operation`` once the budget for ``key`` allows it.

        Args:
            key: Identifies the paced resource (usually the remote base address).
            operation: Zero-argument coroutine function performing the call.

        Returns:
            Whatever ``operation`` returns.

        Raises:
            Exception: Anything raised by ``operation``, unchanged.
        """
        pass
