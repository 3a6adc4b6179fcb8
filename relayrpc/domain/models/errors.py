"""Error taxonomy for remote invocations.

Only attempt-level errors are modelled as exceptions. Precondition failures and
exhausted retry budgets are reported to callers as ``InvocationOutcome`` values.
"""

from typing import Optional


class RelayRpcError(Exception):
    """Base class for errors raised by relayrpc components."""


class TransportError(RelayRpcError):
    """Raised when a single transport attempt fails (network, HTTP status, protocol)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AttemptCancelledError(TransportError):
    """Raised when an attempt is aborted by a timeout or cancellation signal.

    The invocation engine treats this as an expected condition and logs it at
    debug level, unlike other transport failures.
    """


class ResponseFormatError(RelayRpcError, ValueError):
    """Raised when a response body cannot be decoded into the expected payload."""
