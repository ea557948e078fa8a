"""
In-memory LogCollector.

Keeps trace lines per correlation id in process memory. Lines for a request
live until the capture pipeline removes them at the end of the request.
"""

import logging
from collections import deque
from threading import Lock
from typing import Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 1000


class InMemoryLogCollector:
    """
    Thread-safe LogCollector backed by a dict of bounded deques.

    Usage:
        collector = InMemoryLogCollector(max_lines=500)
        collector.trace("abc123", "loaded order 42")
        collector.get("abc123")  # ["loaded order 42"]
        collector.remove("abc123")
    """

    def __init__(self, max_lines: Optional[int] = DEFAULT_MAX_LINES):
        """
        Args:
            max_lines: Lines kept per request; the oldest are dropped first.
                None keeps everything.
        """
        self.max_lines = max_lines
        self._lines: Dict[str, Deque[str]] = {}
        self._lock = Lock()

    def trace(self, correlation_id: str, line: str) -> None:
        with self._lock:
            lines = self._lines.get(correlation_id)
            if lines is None:
                lines = self._lines[correlation_id] = deque(maxlen=self.max_lines)
            lines.append(line)

    def get(self, correlation_id: str) -> List[str]:
        with self._lock:
            return list(self._lines.get(correlation_id, ()))

    def remove(self, correlation_id: str) -> None:
        with self._lock:
            self._lines.pop(correlation_id, None)

    def __len__(self) -> int:
        """Number of requests with trace lines."""
        with self._lock:
            return len(self._lines)
