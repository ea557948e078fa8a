"""
Unit tests for logpack/main.py
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from infrastructure.notifications import LoggingNotifier, WebhookNotifier
from infrastructure.reporting import LoggingErrorReporter, SentryErrorReporter
from infrastructure.sinks import DirectorySink, HttpSink
from infrastructure.tracing import CorrelationLogHandler, InMemoryLogCollector
from logpack.capture import LogPackOptions, PathFilter, StatusCodeFilter
from logpack.main import _init_sentry, build_options, create_app, install_logpack
from logpack.settings import LogPackSettings


def make_settings(**kwargs) -> LogPackSettings:
    return LogPackSettings(environment="test", _env_file=None, **kwargs)


@pytest.fixture
def bridge_logger():
    log = logging.getLogger("tests.main.bridge")
    yield log
    log.handlers.clear()


@pytest.mark.unit
class TestBuildOptions:
    """Test the settings -> options translation."""

    def test_minimal_settings(self):
        options = build_options(make_settings(notify_log=False))

        assert options.include == []
        assert options.exclude == []
        assert options.sinks == []
        assert options.notification_services == []
        assert options.dependencies is None
        assert isinstance(options.log_collector, InMemoryLogCollector)
        assert isinstance(options.error_reporter, LoggingErrorReporter)

    def test_filters(self):
        options = build_options(
            make_settings(include_status_codes=[404], include_paths=["/orders/*"], exclude_paths=["/health"])
        )

        assert [type(f) for f in options.include] == [StatusCodeFilter, PathFilter]
        assert [type(f) for f in options.exclude] == [PathFilter]

    def test_sinks_and_notifiers(self, tmp_path):
        options = build_options(
            make_settings(
                sink_directory=str(tmp_path),
                sink_http_url="https://logs.example.com/upload",
                notify_webhook_url="https://hooks.example.com/logpack",
            )
        )

        assert [type(s) for s in options.sinks] == [DirectorySink, HttpSink]
        assert [type(n) for n in options.notification_services] == [LoggingNotifier, WebhookNotifier]

    def test_sentry_reporter_when_dsn_set(self):
        options = build_options(make_settings(sentry_dsn="https://key@sentry.example.com/1"))

        assert isinstance(options.error_reporter, SentryErrorReporter)
        assert isinstance(options.error_reporter.fallback, LoggingErrorReporter)

    def test_scalars_carried_over(self, tmp_path):
        options = build_options(
            make_settings(
                time_zone="Asia/Tokyo",
                send_timeout_seconds=5,
                work_dir=str(tmp_path),
                trace_max_lines=10,
                include_request_payload=True,
            )
        )

        assert options.time_zone.key == "Asia/Tokyo"
        assert options.send_timeout == 5
        assert options.work_dir == Path(tmp_path)
        assert options.log_collector.max_lines == 10
        assert options.include_request_payload is True

    def test_unknown_distribution_disables_deps(self):
        options = build_options(make_settings(distribution_name="surely-not-installed-dist"))

        assert options.dependencies is None

    def test_installed_distribution_described(self):
        options = build_options(make_settings(distribution_name="pytest"))

        assert options.dependencies.name.lower() == "pytest"
        assert options.dependencies.version


@pytest.mark.unit
class TestInstallLogpack:
    def test_adds_middleware_and_log_bridge(self, bridge_logger):
        app = FastAPI()
        options = LogPackOptions()

        returned = install_logpack(app, options=options, log_to=bridge_logger)

        assert returned is options
        assert isinstance(options.log_collector, InMemoryLogCollector)
        handlers = [h for h in bridge_logger.handlers if isinstance(h, CorrelationLogHandler)]
        assert len(handlers) == 1
        assert handlers[0].collector is options.log_collector
        assert any(m.cls.__name__ == "LogPackMiddleware" for m in app.user_middleware)

    def test_reinstall_replaces_bridge(self, bridge_logger):
        install_logpack(FastAPI(), options=LogPackOptions(), log_to=bridge_logger)
        options = install_logpack(FastAPI(), options=LogPackOptions(), log_to=bridge_logger)

        handlers = [h for h in bridge_logger.handlers if isinstance(h, CorrelationLogHandler)]
        assert len(handlers) == 1
        assert handlers[0].collector is options.log_collector


@pytest.mark.unit
class TestCreateApp:
    def test_returns_fastapi_app_with_health(self):
        app = create_app(settings=make_settings(enabled=False))

        assert isinstance(app, FastAPI)
        with TestClient(app) as client:
            assert client.get("/health").json() == {"status": "ok"}

    def test_uses_default_settings_when_none_provided(self):
        with patch("logpack.main.get_settings") as mock_get_settings:
            mock_get_settings.return_value = make_settings(enabled=False)

            create_app(settings=None)

            mock_get_settings.assert_called_once()

    def test_installs_middleware_when_enabled(self):
        with patch("logpack.main.install_logpack") as mock_install:
            settings = make_settings()
            app = create_app(settings=settings)

        mock_install.assert_called_once_with(app, options=None, settings=settings)

    def test_skips_middleware_when_disabled(self):
        with patch("logpack.main.install_logpack") as mock_install:
            create_app(settings=make_settings(enabled=False))

        mock_install.assert_not_called()


@pytest.mark.unit
class TestInitSentry:
    def test_skipped_when_no_dsn(self):
        with patch("logpack.main.sentry_sdk") as mock_sentry:
            _init_sentry(make_settings())

        mock_sentry.init.assert_not_called()

    def test_initialized_with_dsn(self):
        with patch("logpack.main.sentry_sdk") as mock_sentry:
            _init_sentry(make_settings(sentry_dsn="https://key@sentry.example.com/1"))

        mock_sentry.init.assert_called_once_with(
            dsn="https://key@sentry.example.com/1",
            environment="test",
        )
