"""
ArchiveSink that uploads archives over HTTP.

The archive is POSTed as a multipart form field named ``file``. Connection
errors, timeouts and 5xx/429 responses are retried with exponential backoff;
other 4xx responses fail immediately.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_ATTEMPTS = 3
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retryable_error(exception: BaseException) -> bool:
    """Transport failures and retryable status codes are worth another try."""
    if isinstance(exception, httpx.TransportError):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return False


class HttpSink:
    """Uploads archives to an HTTP endpoint."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        min_wait_seconds: float = 1,
        max_wait_seconds: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            url: Upload endpoint
            token: Sent as a Bearer token when set
            timeout: Per-attempt HTTP timeout in seconds
            max_attempts: Attempts before giving up
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.url = url
        self.token = token
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.min_wait_seconds = min_wait_seconds
        self.max_wait_seconds = max_wait_seconds
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _upload(self, client: httpx.AsyncClient, path: Path, content: bytes) -> None:
        response = await client.post(
            self.url,
            files={"file": (path.name, content, "application/zip")},
            headers=self._headers(),
        )
        response.raise_for_status()

    async def send(self, path: str) -> bool:
        source = Path(path)
        content = await asyncio.to_thread(source.read_bytes)

        retrying = AsyncRetrying(
            retry=retry_if_exception(is_retryable_error),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.min_wait_seconds, max=self.max_wait_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                async for attempt in retrying:
                    with attempt:
                        await self._upload(client, source, content)
        except RetryError as e:
            logger.error(f"Upload of {source.name} to {self.url} gave up: {e.last_attempt.exception()}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Upload of {source.name} to {self.url} failed: {e}")
            return False

        logger.info("Uploaded archive %s to %s", source.name, self.url)
        return True
