"""Implementation of a keyed rate limiter.

Controls the frequency of outgoing requests per remote host. Each key gets a
pacing semaphore with a single permit, returned ``limiter_delay`` seconds after
it was taken, and a semaphore capping the number of open calls. Call starts
for one key are therefore spaced by at least ``limiter_delay``, while several
calls may still be in flight at once.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, TypeVar

from relayrpc.domain.interfaces.rate_limiter import RateLimiter
from relayrpc.domain.models.common import LimiterKey

logger = logging.getLogger(__name__)

DEFAULT_LIMITER_DELAY_SECONDS = 0.3
DEFAULT_MAX_CONNECTIONS = 10

T = TypeVar("T")


@dataclass
class _KeyLimiters:
    pacing: asyncio.Semaphore
    connections: asyncio.Semaphore


class KeyedRateLimiter(RateLimiter):
    """Paces calls sharing a key and caps how many of them are open."""

    def __init__(
        self,
        limiter_delay: float = DEFAULT_LIMITER_DELAY_SECONDS,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
    ):
        """Initializes the rate limiter.

        Args:
            limiter_delay: Minimum seconds between two call starts for the same key.
                Zero disables limiting entirely.
            max_connections: Maximum number of calls in flight for the same key.
        """
        if limiter_delay < 0:
            raise ValueError(f"limiter_delay must not be negative, got {limiter_delay}.")
        if max_connections < 1:
            raise ValueError(f"max_connections must be positive, got {max_connections}.")

        self.limiter_delay = limiter_delay
        self.max_connections = max_connections
        self._limiters: Dict[str, _KeyLimiters] = {}
        logger.debug(f"KeyedRateLimiter initialized: delay={limiter_delay}s, max_connections={max_connections}")

    def _limiters_for(self, key: LimiterKey) -> _KeyLimiters:
        limiters = self._limiters.get(key)
        if limiters is None:
            limiters = _KeyLimiters(
                pacing=asyncio.Semaphore(1),
                connections=asyncio.Semaphore(self.max_connections),
            )
            self._limiters[key] = limiters
            logger.debug(f"Created rate limiters for key: {key}")
        return limiters

    async def run_under_limit(self, key: LimiterKey, operation: Callable[[], Awaitable[T]]) -> T:
        """Runs ``operation`` once a connection slot and the pacing permit for ``key`` are free."""
        if self.limiter_delay == 0:
            return await operation()

        limiters = self._limiters_for(key)

        async with limiters.connections:
            await limiters.pacing.acquire()
            # The permit only paces call starts, so it is returned on a timer whatever the call does
            asyncio.get_running_loop().call_later(self.limiter_delay, limiters.pacing.release)
            logger.debug(f"Rate limit permission granted for key: {key}")
            return await operation()
