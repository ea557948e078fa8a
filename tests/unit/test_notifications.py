"""
Unit tests for infrastructure/notifications

Tests for:
- parse_metadata splitting the .logpack entry
- WebhookNotifier JSON payload and failure handling
- LoggingNotifier log line
"""

import json
import logging

import httpx
import pytest

from infrastructure.notifications import LoggingNotifier, WebhookNotifier, parse_metadata

pytestmark = pytest.mark.unit

METADATA = "path: /orders\ndate: 2024-01-02\ntime: 03:04:05\nrc: 503\n"
ARCHIVE_PATH = "/tmp/logpack-20240102-030405-503-AbC123.logpack"


class TestParseMetadata:
    def test_fields(self):
        assert parse_metadata(METADATA) == {
            "path": "/orders",
            "date": "2024-01-02",
            "time": "03:04:05",
            "rc": "503",
        }

    def test_value_with_colon_kept_whole(self):
        assert parse_metadata("time: 03:04:05") == {"time": "03:04:05"}

    def test_lines_without_colon_ignored(self):
        assert parse_metadata("garbage\n\nrc: 500") == {"rc": "500"}


class TestWebhookNotifier:
    @pytest.mark.asyncio
    async def test_posts_json(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        notifier = WebhookNotifier("https://hooks.example.com/logpack", transport=httpx.MockTransport(handler))

        assert await notifier.send(ARCHIVE_PATH, METADATA) is True
        payload = json.loads(seen[0].content)
        assert payload["file"] == "logpack-20240102-030405-503-AbC123.logpack"
        assert payload["metadata"] == METADATA
        assert payload["fields"]["rc"] == "503"

    @pytest.mark.asyncio
    async def test_error_status_returns_false(self):
        notifier = WebhookNotifier(
            "https://hooks.example.com/logpack",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )

        assert await notifier.send(ARCHIVE_PATH, METADATA) is False

    @pytest.mark.asyncio
    async def test_timeout_returns_false(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        notifier = WebhookNotifier("https://hooks.example.com/logpack", transport=httpx.MockTransport(handler))

        assert await notifier.send(ARCHIVE_PATH, METADATA) is False


class TestLoggingNotifier:
    @pytest.mark.asyncio
    async def test_logs_file_and_metadata(self, caplog):
        caplog.set_level(logging.INFO, logger="logpack.notifications")

        assert await LoggingNotifier().send(ARCHIVE_PATH, METADATA) is True

        record = caplog.records[-1]
        assert record.name == "logpack.notifications"
        assert "logpack-20240102-030405-503-AbC123.logpack" in record.getMessage()
        assert "rc: 503" in record.getMessage()
