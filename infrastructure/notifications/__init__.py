"""Capture notification services."""

from infrastructure.notifications.logging_notifier import LoggingNotifier
from infrastructure.notifications.webhook_notifier import WebhookNotifier, parse_metadata

__all__ = ["LoggingNotifier", "WebhookNotifier", "parse_metadata"]
