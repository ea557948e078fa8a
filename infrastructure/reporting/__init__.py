"""Error reporters for recoverable capture errors."""

from infrastructure.reporting.logging_reporter import LoggingErrorReporter
from infrastructure.reporting.sentry_reporter import SentryErrorReporter

__all__ = ["LoggingErrorReporter", "SentryErrorReporter"]
