"""ErrorReporter that forwards capture errors to Sentry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import sentry_sdk

if TYPE_CHECKING:
    from application.ports import ErrorReporter
    from logpack.capture.errors import CaptureError

logger = logging.getLogger(__name__)


class SentryErrorReporter:
    """
    Sends capture errors to Sentry, tagged with stage and correlation id.

    Errors without an exception (a sink returning False) are sent as
    messages. An optional fallback reporter still sees every error.
    """

    def __init__(self, fallback: Optional[ErrorReporter] = None):
        self.fallback = fallback

    def report(self, error: CaptureError) -> None:
        if self.fallback is not None:
            self.fallback.report(error)
        try:
            with sentry_sdk.new_scope() as scope:
                scope.set_tag("logpack.stage", error.stage.value)
                scope.set_tag("logpack.correlation_id", error.correlation_id)
                if error.detail:
                    scope.set_extra("detail", error.detail)
                if error.exception is not None:
                    sentry_sdk.capture_exception(error.exception)
                else:
                    sentry_sdk.capture_message(f"LogPack {error.message}", level="warning")
        except Exception as e:
            logger.error(f"Failed to report capture error to Sentry: {e}")
