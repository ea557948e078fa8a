"""
Log Collector Interface (Port).

Stores trace lines per correlation id while a request is in flight. The
capture pipeline writes its own decisions here, reads the lines back when
building trace.log and asks for their removal once the request completes.
"""

from typing import Protocol, Sequence


class LogCollector(Protocol):
    """Abstract interface for per-request trace line storage."""

    def trace(self, correlation_id: str, line: str) -> None:
        """
        Append a trace line for a request.

        Args:
            correlation_id: Request correlation id
            line: Text to append, without trailing newline
        """
        ...

    def get(self, correlation_id: str) -> Sequence[str]:
        """
        Return the trace lines collected for a request, oldest first.

        Unknown ids yield an empty sequence.
        """
        ...

    def remove(self, correlation_id: str) -> None:
        """Drop every trace line for a request. Unknown ids are ignored."""
        ...
