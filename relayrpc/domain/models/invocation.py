"""Domain models describing a single remote invocation and its result.

Includes the immutable ``OperationDescriptor`` handed to the invocation engine,
the ``WebApiResponse`` produced by a transport attempt and the
``InvocationOutcome`` returned to callers.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Generic, Mapping, Optional, Protocol, Type, TypeVar

from .common import EndpointName, HttpMethod, ServiceName

DEFAULT_CREDENTIAL_ARGUMENT = "access_token"
DEFAULT_INTERFACE_VERSION = 1


class RequestPayload(Protocol):
    """Anything that can be serialized into the request body."""

    def to_dict(self) -> Dict[str, Any]:
        ...


ResponseT = TypeVar("ResponseT")


@dataclass(frozen=True)
class OperationDescriptor(Generic[ResponseT]):
    """Immutable description of one remote call.

    Built per call and never shared between calls. The credential is added by
    the invocation engine through ``with_argument`` once the session is known
    to be ready, so the descriptor built by the caller never carries it.
    """

    service: ServiceName
    endpoint: EndpointName
    method: HttpMethod
    request: RequestPayload
    response_type: Type[ResponseT]
    arguments: Mapping[str, str] = field(default_factory=dict)
    credential_argument: str = DEFAULT_CREDENTIAL_ARGUMENT
    version: int = DEFAULT_INTERFACE_VERSION

    def __post_init__(self) -> None:
        if not self.service:
            raise ValueError("Operation service name must not be empty.")
        if not self.endpoint:
            raise ValueError("Operation endpoint must not be empty.")
        if not self.credential_argument:
            raise ValueError("Credential argument name must not be empty.")
        if self.version < 1:
            raise ValueError(f"Interface version must be positive, got {self.version}.")
        object.__setattr__(self, "method", HttpMethod(self.method))
        # Copy and freeze the caller's mapping; later mutation of it must not reach the call
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))

    def __hash__(self) -> int:
        # mappingproxy is unhashable; hash its items instead
        return hash((
            self.service, self.endpoint, self.method, self.request, self.response_type,
            tuple(sorted(self.arguments.items())), self.credential_argument, self.version,
        ))

    @property
    def path(self) -> str:
        """Relative path of the call, e.g. ``ITwoFactorService/AddAuthenticator``."""
        return f"{self.service}/{self.endpoint}"

    def with_argument(self, name: str, value: str) -> "OperationDescriptor[ResponseT]":
        """Returns a copy of this descriptor with one extra auxiliary argument."""
        arguments = dict(self.arguments)
        arguments[name] = value
        return replace(self, arguments=arguments)


@dataclass(frozen=True)
class WebApiResponse(Generic[ResponseT]):
    """A decoded response from one successful transport attempt."""

    body: ResponseT
    result: int = 1  # EResult.OK


class OutcomeStatus(str, Enum):
    """Terminal states of an invocation as seen by the caller."""

    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class InvocationOutcome(Generic[ResponseT]):
    """Result of ``InvocationEngine.invoke``.

    ``UNAVAILABLE`` means the session was not ready and nothing was sent.
    ``EXHAUSTED`` means every attempt failed; it does not tell whether the
    remote service rejected the request or never received it.
    """

    status: OutcomeStatus
    body: Optional[ResponseT] = None
    attempts: int = 0

    @classmethod
    def success(cls, body: ResponseT, attempts: int) -> "InvocationOutcome[ResponseT]":
        return cls(status=OutcomeStatus.SUCCESS, body=body, attempts=attempts)

    @classmethod
    def unavailable(cls) -> "InvocationOutcome[Any]":
        return cls(status=OutcomeStatus.UNAVAILABLE)

    @classmethod
    def exhausted(cls, attempts: int) -> "InvocationOutcome[Any]":
        return cls(status=OutcomeStatus.EXHAUSTED, attempts=attempts)

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @property
    def is_unavailable(self) -> bool:
        return self.status is OutcomeStatus.UNAVAILABLE

    @property
    def is_exhausted(self) -> bool:
        return self.status is OutcomeStatus.EXHAUSTED
