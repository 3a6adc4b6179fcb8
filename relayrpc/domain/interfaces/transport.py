"""Interface for the Web API transport.

A ``TransportClient`` hands out one ``ServiceInterface`` per invocation. The
interface owns its connection resources and must be closed when the
invocation ends, which the async context manager protocol guarantees.
"""

import abc
from typing import Mapping, Optional, Type, TypeVar

from ..models.common import HttpMethod, ServiceName
from ..models.invocation import RequestPayload, WebApiResponse

ResponseT = TypeVar("ResponseT")


class ServiceInterface(abc.ABC):
    """A per-call handle to one remote service interface."""

    @property
    @abc.abstractmethod
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        pass

    @timeout.setter
    @abc.abstractmethod
    def timeout(self, value: float) -> None:
        pass

    @abc.abstractmethod
    async def call(
        self,
        method: HttpMethod,
        endpoint: str,
        request: RequestPayload,
        response_type: Type[ResponseT],
        arguments: Optional[Mapping[str, str]] = None,
        version: int = 1,
    ) -> Optional[WebApiResponse[ResponseT]]:
        """Performs a single call of ``endpoint``.

        Raises:
            AttemptCancelledError: If the call timed out or was cancelled.
            TransportError: If the call failed at the network or HTTP level.
            ResponseFormatError: If the response could not be decoded.
        """
        pass

    @abc.abstractmethod
    async def aclose(self) -> None:
        """Releases the resources held by this handle."""
        pass

    async def __aenter__(self) -> "ServiceInterface":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class TransportClient(abc.ABC):
    """Abstract Base Class for creating service interfaces against one host."""

    @property
    @abc.abstractmethod
    def base_address(self) -> str:
        """Base URL of the remote API, ending with a slash."""
        pass

    @abc.abstractmethod
    def get_interface(self, service: ServiceName) -> ServiceInterface:
        """Creates a new, exclusively owned handle for ``service``."""
        pass
