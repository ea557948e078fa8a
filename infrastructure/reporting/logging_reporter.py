"""ErrorReporter that writes capture errors to the application log."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from logpack.capture.errors import CaptureError

logger = logging.getLogger("logpack.errors")


class LoggingErrorReporter:
    """Logs every capture error as a warning, with its traceback."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def report(self, error: CaptureError) -> None:
        exc_info = None
        if error.exception is not None:
            exc_info = (type(error.exception), error.exception, error.exception.__traceback__)
        self.log.warning(
            "LogPack capture error for %s: %s",
            error.correlation_id,
            error.message,
            exc_info=exc_info,
        )
