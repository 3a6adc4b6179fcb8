"""Domain Events related to remote invocations.

Emitted by the invocation engine when an attempt starts or fails and when
the invocation reaches a terminal state.
"""

from dataclasses import dataclass, field
import time


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class AttemptStarted(DomainEvent):
    """Event triggered right before an attempt is handed to the rate limiter."""
    endpoint: str  # e.g. 'ITwoFactorService/AddAuthenticator'
    attempt_number: int  # 1-based
    timestamp: float = field(default_factory=time.time)


@dataclass
class AttemptFailed(DomainEvent):
    """Event triggered when a single attempt fails or is cancelled."""
    endpoint: str
    attempt_number: int
    error_type: str
    cancelled: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass
class InvocationSucceeded(DomainEvent):
    endpoint: str
    attempts: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class InvocationExhausted(DomainEvent):
    """Event triggered once the whole retry budget has been consumed."""
    endpoint: str
    attempts: int
    timestamp: float = field(default_factory=time.time)
