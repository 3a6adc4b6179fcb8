"""Engine executing remote operations with a bounded number of attempts.

Every remote operation goes through the same sequence: check the session,
open a service interface, then try the call through the rate limiter until it
yields a response or the retry budget is spent. Attempt errors never reach
the caller; the result is always an ``InvocationOutcome``.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from relayrpc.domain.events.invocation_events import (
    AttemptFailed, AttemptStarted, DomainEvent, InvocationExhausted, InvocationSucceeded
)
from relayrpc.domain.interfaces.credential_provider import CredentialProvider
from relayrpc.domain.interfaces.diagnostics import Diagnostics
from relayrpc.domain.interfaces.rate_limiter import RateLimiter
from relayrpc.domain.interfaces.transport import ServiceInterface, TransportClient
from relayrpc.domain.models.common import LimiterKey
from relayrpc.domain.models.errors import AttemptCancelledError
from relayrpc.domain.models.invocation import (
    InvocationOutcome, OperationDescriptor, ResponseT, WebApiResponse
)
from relayrpc.infrastructure.monitoring.diagnostics import LoggingDiagnostics
from relayrpc.infrastructure.resilience.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_SECONDS = 90.0

# Attempt failures that are expected (timeouts, aborted requests)
CANCELLATION_EXCEPTIONS = (AttemptCancelledError, asyncio.TimeoutError, TimeoutError)

EventListener = Callable[[DomainEvent], None]


def request_failed_message(attempts: int) -> str:
    return f"Request failed after {attempts} attempts!"


class InvocationEngine:
    """Runs ``OperationDescriptor`` calls with retries, pacing and diagnostics."""

    def __init__(
        self,
        transport: TransportClient,
        rate_limiter: RateLimiter,
        retry_policy: Optional[RetryPolicy] = None,
        diagnostics: Optional[Diagnostics] = None,
        user_debugging: Union[bool, Callable[[], bool]] = False,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the InvocationEngine.

        Args:
            transport: Creates the per-call service interfaces.
            rate_limiter: Shared limiter; calls are keyed by the transport base address.
            retry_policy: Attempt budget and inter-attempt delay.
            diagnostics: Sink for attempt traces and failures.
            user_debugging: Flag (or callable returning it) enabling per-attempt request traces.
            request_timeout: Timeout applied to every service interface, in seconds.
            sleep: Coroutine function used for the inter-attempt delay.
            event_listener: Optional callable receiving domain events.
        """
        if request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {request_timeout}.")

        self.transport = transport
        self.rate_limiter = rate_limiter
        self.retry_policy = retry_policy or RetryPolicy()
        self.diagnostics = diagnostics or LoggingDiagnostics()
        self.request_timeout = request_timeout
        self.event_listener = event_listener
        self._user_debugging = user_debugging
        self._sleep = sleep

    def is_user_debugging(self) -> bool:
        flag = self._user_debugging
        return bool(flag() if callable(flag) else flag)

    def _dispatch_event(self, event: DomainEvent) -> None:
        if self.event_listener is None:
            return
        try:
            self.event_listener(event)
        except Exception as e:
            logger.error(f"Event listener failed for {type(event).__name__}: {e}", exc_info=True)

    async def invoke(
        self,
        session: CredentialProvider,
        descriptor: OperationDescriptor[ResponseT],
    ) -> InvocationOutcome[ResponseT]:
        """Performs the remote operation described by ``descriptor``.

        Args:
            session: Supplies readiness and the access token.
            descriptor: The call to perform.

        Returns:
            ``UNAVAILABLE`` if the session is not ready or has no token (nothing is
            sent), ``SUCCESS`` with the response body, or ``EXHAUSTED`` once every
            attempt failed.

        Raises:
            ValueError: If ``session`` or ``descriptor`` is missing.
        """
        if session is None:
            raise ValueError("session must not be None.")
        if descriptor is None:
            raise ValueError("descriptor must not be None.")

        if not session.is_session_ready():
            return InvocationOutcome.unavailable()

        access_token = session.current_access_token()
        if not access_token:
            return InvocationOutcome.unavailable()

        descriptor = descriptor.with_argument(descriptor.credential_argument, access_token)

        async with self.transport.get_interface(descriptor.service) as interface:
            interface.timeout = self.request_timeout
            response, attempts = await self._attempt_loop(interface, descriptor)

        if response is None:
            self.diagnostics.warning(request_failed_message(self.retry_policy.max_attempts))
            self._dispatch_event(InvocationExhausted(endpoint=descriptor.path, attempts=attempts))
            return InvocationOutcome.exhausted(attempts)

        self._dispatch_event(InvocationSucceeded(endpoint=descriptor.path, attempts=attempts))
        return InvocationOutcome.success(response.body, attempts)

    async def _attempt_loop(
        self,
        interface: ServiceInterface,
        descriptor: OperationDescriptor[ResponseT],
    ):
        """Returns the first response obtained (or None) and the number of attempts made."""
        limiter_key = LimiterKey(self.transport.base_address)
        response: Optional[WebApiResponse[ResponseT]] = None
        attempt_index = 0

        async def call_once() -> Optional[WebApiResponse[ResponseT]]:
            return await interface.call(
                descriptor.method,
                descriptor.endpoint,
                descriptor.request,
                descriptor.response_type,
                arguments=descriptor.arguments,
                version=descriptor.version,
            )

        while attempt_index < self.retry_policy.max_attempts and response is None:
            delay = self.retry_policy.delay_before_attempt(attempt_index)
            if delay > 0:
                await self._sleep(delay)

            if self.is_user_debugging():
                self.diagnostics.debug(f"{descriptor.method.value} {self.transport.base_address}{descriptor.path}")

            attempt_index += 1
            self._dispatch_event(AttemptStarted(endpoint=descriptor.path, attempt_number=attempt_index))

            try:
                response = await self.rate_limiter.run_under_limit(limiter_key, call_once)
            except CANCELLATION_EXCEPTIONS as e:
                self.diagnostics.debug_exception(e, context=descriptor.path)
                self._dispatch_event(AttemptFailed(
                    endpoint=descriptor.path, attempt_number=attempt_index,
                    error_type=type(e).__name__, cancelled=True,
                ))
            except Exception as e:
                self.diagnostics.warning_exception(e, context=descriptor.path)
                self._dispatch_event(AttemptFailed(
                    endpoint=descriptor.path, attempt_number=attempt_index,
                    error_type=type(e).__name__,
                ))

        return response, attempt_index
