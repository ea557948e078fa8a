"""
Request Filter Interface (Port).

A filter is a predicate over a finished request/response exchange. The same
filter can be configured as an include filter (a match asks for a capture)
or as an exclude filter (a match vetoes a capture an include filter asked
for).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from logpack.capture.context import CaptureContext


class RequestFilter(Protocol):
    """Abstract interface for capture decision predicates."""

    def matches(self, context: CaptureContext) -> bool:
        """
        Evaluate the predicate.

        Args:
            context: Snapshot of the request and its response

        Returns:
            True if the exchange matches
        """
        ...
