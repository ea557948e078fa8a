"""
NotificationService that POSTs a JSON message to a webhook.

Payload::

    {
        "file": "logpack-20240102-030405-503-AbC123.logpack",
        "metadata": "path: /orders\ndate: ...",
        "fields": {"path": "/orders", "date": "...", "time": "...", "rc": "503"}
    }
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)


def parse_metadata(metadata: str) -> Dict[str, str]:
    """Split ``key: value`` lines of a .logpack entry into a dict."""
    fields: Dict[str, str] = {}
    for line in metadata.splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        fields[key.strip()] = value.strip()
    return fields


class WebhookNotifier:
    """Posts capture notifications to a webhook URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(self, path: str, metadata: str) -> bool:
        payload = {
            "file": Path(path).name,
            "metadata": metadata,
            "fields": parse_metadata(metadata),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.TimeoutException:
            logger.warning(f"Webhook notification to {self.url} timed out")
            return False
        except httpx.HTTPError as e:
            logger.warning(f"Webhook notification to {self.url} failed: {e}")
            return False
        return True
