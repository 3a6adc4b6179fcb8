"""Application service for linking a mobile authenticator.

Each operation validates its arguments, builds the ``OperationDescriptor``
for its endpoint and delegates to the shared ``InvocationEngine``.
"""

import logging
import time
from typing import Callable, Optional

from relayrpc.domain.interfaces.credential_provider import CredentialProvider
from relayrpc.domain.models.common import EndpointName, HttpMethod, ServiceName
from relayrpc.domain.models.invocation import InvocationOutcome, OperationDescriptor
from relayrpc.domain.models.two_factor import (
    ADD_AUTHENTICATOR_ENDPOINT,
    FINALIZE_ADD_AUTHENTICATOR_ENDPOINT,
    TWO_FACTOR_SERVICE,
    AddAuthenticatorRequest,
    AddAuthenticatorResponse,
    FinalizeAddAuthenticatorRequest,
    FinalizeAddAuthenticatorResponse,
)
from relayrpc.infrastructure.resilience.invocation_engine import InvocationEngine

logger = logging.getLogger(__name__)


def unix_time() -> int:
    return int(time.time())


class TwoFactorService:
    """Calls the two-factor service endpoints through the invocation engine."""

    def __init__(self, engine: InvocationEngine, clock: Optional[Callable[[], int]] = None):
        self.engine = engine
        self.clock = clock or unix_time

    async def add_authenticator(
        self,
        session: CredentialProvider,
        device_id: str,
    ) -> InvocationOutcome[AddAuthenticatorResponse]:
        """Requests a new mobile authenticator for the session's account.

        Args:
            session: The logged on session.
            device_id: Identifier of the device the authenticator is bound to.

        Returns:
            The invocation outcome; on success its body holds the secrets of the
            authenticator, which stays pending until finalized.

        Raises:
            ValueError: If ``session`` is None or ``device_id`` is empty.
        """
        if session is None:
            raise ValueError("session must not be None.")
        if not device_id:
            raise ValueError("device_id must not be empty.")

        request = AddAuthenticatorRequest(
            steamid=session.account_id,
            authenticator_time=self.clock(),
            device_identifier=device_id,
        )
        descriptor = OperationDescriptor(
            service=ServiceName(TWO_FACTOR_SERVICE),
            endpoint=EndpointName(ADD_AUTHENTICATOR_ENDPOINT),
            method=HttpMethod.POST,
            request=request,
            response_type=AddAuthenticatorResponse,
        )
        logger.info(f"Adding authenticator for account {session.account_id}")
        return await self.engine.invoke(session, descriptor)

    async def finalize_authenticator(
        self,
        session: CredentialProvider,
        activation_code: str,
        authenticator_code: str,
        authenticator_time: int,
    ) -> InvocationOutcome[FinalizeAddAuthenticatorResponse]:
        """Activates the pending authenticator.

        Args:
            session: The logged on session.
            activation_code: Code received by SMS or e-mail.
            authenticator_code: Code generated from the new shared secret.
            authenticator_time: Server time the code was generated for.

        Raises:
            ValueError: If any argument is missing, empty or zero.
        """
        if session is None:
            raise ValueError("session must not be None.")
        if not activation_code:
            raise ValueError("activation_code must not be empty.")
        if not authenticator_code:
            raise ValueError("authenticator_code must not be empty.")
        if not authenticator_time:
            raise ValueError("authenticator_time must not be zero.")

        request = FinalizeAddAuthenticatorRequest(
            steamid=session.account_id,
            activation_code=activation_code,
            authenticator_code=authenticator_code,
            authenticator_time=authenticator_time,
        )
        descriptor = OperationDescriptor(
            service=ServiceName(TWO_FACTOR_SERVICE),
            endpoint=EndpointName(FINALIZE_ADD_AUTHENTICATOR_ENDPOINT),
            method=HttpMethod.POST,
            request=request,
            response_type=FinalizeAddAuthenticatorResponse,
        )
        logger.info(f"Finalizing authenticator for account {session.account_id}")
        return await self.engine.invoke(session, descriptor)
