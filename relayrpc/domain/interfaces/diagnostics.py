"""Interface for the diagnostics sink used by the invocation engine.

Calls are fire-and-forget: implementations must not raise or block.
"""

import abc
from typing import Optional


class Diagnostics(abc.ABC):
    """Abstract Base Class for recording invocation diagnostics."""

    @abc.abstractmethod
    def debug(self, message: str) -> None:
        pass

    @abc.abstractmethod
    def warning(self, message: str) -> None:
        pass

    @abc.abstractmethod
    def debug_exception(self, exception: BaseException, context: Optional[str] = None) -> None:
        """Records an expected exception (e.g. a timed out attempt)."""
        pass

    @abc.abstractmethod
    def warning_exception(self, exception: BaseException, context: Optional[str] = None) -> None:
        """Records an unexpected exception with enough context to find its source."""
        pass
