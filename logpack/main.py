"""
Wiring between settings, the capture middleware and a FastAPI app.

Usage:
    from fastapi import FastAPI
    from logpack.main import install_logpack

    app = FastAPI()
    install_logpack(app)                  # options from LOGPACK_* env vars

    # or with explicit options
    install_logpack(app, options=LogPackOptions(include=[PathFilter("/api/*")]))

    # Minimal app with LogPack installed (examples, tests)
    from logpack.main import create_app
    app = create_app(settings=LogPackSettings(environment="test", _env_file=None))
"""

import logging
from pathlib import Path
from typing import Optional

import sentry_sdk
from fastapi import FastAPI

from infrastructure.notifications import LoggingNotifier, WebhookNotifier
from infrastructure.reporting import LoggingErrorReporter, SentryErrorReporter
from infrastructure.sinks import DirectorySink, HttpSink
from infrastructure.tracing import CorrelationLogHandler, InMemoryLogCollector
from logpack import __version__
from logpack.capture import (
    DependencyDescriptor,
    LogPackMiddleware,
    LogPackOptions,
    PathFilter,
    StatusCodeFilter,
)
from logpack.settings import LogPackSettings, get_settings

logger = logging.getLogger(__name__)


def build_options(settings: LogPackSettings) -> LogPackOptions:
    """Turn environment settings into live LogPack options."""
    include = []
    if settings.include_status_codes:
        include.append(StatusCodeFilter(*settings.include_status_codes))
    if settings.include_paths:
        include.append(PathFilter(*settings.include_paths))
    exclude = [PathFilter(*settings.exclude_paths)] if settings.exclude_paths else []

    sinks = []
    if settings.sink_directory:
        sinks.append(DirectorySink(settings.sink_directory))
    if settings.sink_http_url:
        sinks.append(HttpSink(settings.sink_http_url, token=settings.sink_http_token))

    notifiers = []
    if settings.notify_log:
        notifiers.append(LoggingNotifier())
    if settings.notify_webhook_url:
        notifiers.append(WebhookNotifier(settings.notify_webhook_url))

    error_reporter = LoggingErrorReporter()
    if settings.sentry_dsn:
        error_reporter = SentryErrorReporter(fallback=error_reporter)

    options = LogPackOptions(
        include=include,
        exclude=exclude,
        include_request_payload=settings.include_request_payload,
        include_response=settings.include_response,
        include_response_payload=settings.include_response_payload,
        include_files=list(settings.include_files),
        sinks=sinks,
        notification_services=notifiers,
        time_zone=settings.zone,
        dependencies=_describe_distribution(settings.distribution_name),
        log_collector=InMemoryLogCollector(max_lines=settings.trace_max_lines),
        error_reporter=error_reporter,
        send_timeout=settings.send_timeout_seconds,
        dispatch_in_background=settings.dispatch_in_background,
        exclude_applies_to_errors=settings.exclude_applies_to_errors,
        capture_unhandled_errors=settings.capture_unhandled_errors,
        redact_headers=list(settings.redact_headers),
    )
    if settings.work_dir:
        options.work_dir = Path(settings.work_dir)
    return options


def _describe_distribution(name: Optional[str]) -> Optional[DependencyDescriptor]:
    if not name:
        return None
    try:
        return DependencyDescriptor.from_distribution(name)
    except Exception as e:
        logger.warning(f"Cannot describe distribution {name!r}, deps.log disabled: {e}")
        return None


def install_logpack(
    app: FastAPI,
    options: Optional[LogPackOptions] = None,
    settings: Optional[LogPackSettings] = None,
    log_to: Optional[logging.Logger] = None,
) -> LogPackOptions:
    """
    Add the capture middleware to an app.

    Args:
        app: The application to instrument
        options: Explicit options; built from settings when omitted
        settings: Settings used when options is omitted (get_settings() by default)
        log_to: Logger whose records are copied into trace.log (root logger by default)

    Returns:
        The options the middleware was installed with
    """
    if options is None:
        options = build_options(settings if settings is not None else get_settings())
    if options.log_collector is None:
        options.log_collector = InMemoryLogCollector()

    target = log_to if log_to is not None else logging.getLogger()
    for handler in list(target.handlers):
        if isinstance(handler, CorrelationLogHandler):
            target.removeHandler(handler)
    target.addHandler(CorrelationLogHandler(options.log_collector))

    app.add_middleware(LogPackMiddleware, options=options)
    logger.info(
        "LogPack enabled: %d include / %d exclude filters, %d sinks",
        len(options.include),
        len(options.exclude),
        len(options.sinks),
    )
    return options


def create_app(
    settings: Optional[LogPackSettings] = None,
    options: Optional[LogPackOptions] = None,
) -> FastAPI:
    """
    Create a minimal FastAPI application with LogPack installed.

    Args:
        settings: Optional settings instance, get_settings() when omitted
        options: Explicit options, overriding the ones built from settings
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    app = FastAPI(title="LogPack", version=__version__)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    if settings.enabled:
        install_logpack(app, options=options, settings=settings)
    return app


def _init_sentry(settings: LogPackSettings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
        )
        logger.info("Sentry initialized for LogPack")
