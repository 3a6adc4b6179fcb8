"""Diagnostics sink backed by the standard logging module."""

import logging
from typing import Optional

from relayrpc.domain.interfaces.diagnostics import Diagnostics


class LoggingDiagnostics(Diagnostics):
    """Forwards diagnostics to a ``logging.Logger``.

    Expected exceptions are logged at DEBUG with their traceback; unexpected
    ones at WARNING, with the traceback only when DEBUG is enabled.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("relayrpc.diagnostics")

    @staticmethod
    def _describe(exception: BaseException, context: Optional[str]) -> str:
        description = f"{type(exception).__name__}: {exception}"
        return f"{context}: {description}" if context else description

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def debug_exception(self, exception: BaseException, context: Optional[str] = None) -> None:
        self.logger.debug(self._describe(exception, context), exc_info=exception)

    def warning_exception(self, exception: BaseException, context: Optional[str] = None) -> None:
        self.logger.warning(
            self._describe(exception, context),
            exc_info=exception if self.logger.isEnabledFor(logging.DEBUG) else None,
        )
