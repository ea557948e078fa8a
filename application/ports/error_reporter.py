"""
Error Reporter Interface (Port).

Capture never lets its own failures break the request it observes. Those
failures are turned into CaptureError values and handed to an ErrorReporter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from logpack.capture.errors import CaptureError


class ErrorReporter(Protocol):
    """Abstract interface for recoverable capture errors."""

    def report(self, error: CaptureError) -> None:
        """Record a recoverable error. Must not raise."""
        ...
