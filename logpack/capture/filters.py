"""Capture decision: the 5xx shortcut plus ordered include/exclude filters."""

from __future__ import annotations

import fnmatch
import logging
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .context import CaptureContext

if TYPE_CHECKING:
    from application.ports import LogCollector, RequestFilter

    from .state import CorrelatedState

logger = logging.getLogger(__name__)


def filter_name(request_filter: object) -> str:
    return getattr(request_filter, "name", None) or type(request_filter).__name__


class FilterChain:
    """
    Decides whether a finished exchange gets archived.

    1. A 5xx response is captured without consulting the filters.
    2. Otherwise the first matching include filter asks for a capture;
       no match means no capture.
    3. After an include match, the first matching exclude filter vetoes it.
    4. A suppressed request is never captured.
    """

    def __init__(
        self,
        include: Sequence[RequestFilter] = (),
        exclude: Sequence[RequestFilter] = (),
        state: Optional[CorrelatedState] = None,
        log_collector: Optional[LogCollector] = None,
        exclude_applies_to_errors: bool = False,
    ) -> None:
        self.include = list(include)
        self.exclude = list(exclude)
        self.state = state
        self.log_collector = log_collector
        self.exclude_applies_to_errors = exclude_applies_to_errors

    def _trace(self, context: CaptureContext, line: str) -> None:
        if self.log_collector is not None:
            self.log_collector.trace(context.correlation_id, line)

    def _first_match(
        self, filters: Sequence[RequestFilter], context: CaptureContext
    ) -> Optional[RequestFilter]:
        for request_filter in filters:
            if request_filter.matches(context):
                return request_filter
        return None

    def _excluded(self, context: CaptureContext) -> bool:
        vetoed = self._first_match(self.exclude, context)
        if vetoed is not None:
            self._trace(context, f"Exclude filter {filter_name(vetoed)} returned true")
            return True
        return False

    def should_capture(self, context: CaptureContext) -> bool:
        if context.is_server_error:
            self._trace(context, f"Called middleware returned status code {context.status_code}")
            capture = not (self.exclude_applies_to_errors and self._excluded(context))
        else:
            matched = self._first_match(self.include, context)
            if matched is None:
                capture = False
            else:
                self._trace(context, f"Include filter {filter_name(matched)} returned true")
                capture = not self._excluded(context)

        if capture and self.state is not None and self.state.is_suppressed(context.correlation_id):
            self._trace(context, "Capture stopped for this request")
            return False
        return capture


# =============================================================================
# Built-in filters
# =============================================================================


class StatusCodeFilter:
    """Matches responses whose status is one of ``codes`` or in a range."""

    def __init__(self, *codes: int, ranges: Iterable[tuple[int, int]] = ()) -> None:
        self.codes = frozenset(codes)
        self.ranges = tuple(ranges)

    @classmethod
    def client_errors(cls) -> "StatusCodeFilter":
        return cls(ranges=[(400, 500)])

    def matches(self, context: CaptureContext) -> bool:
        status = context.status_code
        if status in self.codes:
            return True
        return any(low <= status < high for low, high in self.ranges)


class PathFilter:
    """Matches request paths against shell-style globs (``/api/*``)."""

    def __init__(self, *patterns: str) -> None:
        self.patterns = tuple(patterns)

    def matches(self, context: CaptureContext) -> bool:
        path = context.request.path
        return any(fnmatch.fnmatchcase(path, pattern) for pattern in self.patterns)


class MethodFilter:
    def __init__(self, *methods: str) -> None:
        self.methods = frozenset(m.upper() for m in methods)

    def matches(self, context: CaptureContext) -> bool:
        return context.request.method.upper() in self.methods


class HeaderFilter:
    """Matches when a request header is present, optionally with a value."""

    def __init__(self, name: str, value: Optional[str] = None) -> None:
        self.header = name.lower()
        self.value = value

    def matches(self, context: CaptureContext) -> bool:
        for name, value in context.request.headers:
            if name.lower() != self.header:
                continue
            if self.value is None or value == self.value:
                return True
        return False
