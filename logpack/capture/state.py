"""Correlation-scoped state shared by all in-flight requests.

One CorrelatedState belongs to one middleware instance. It maps a request's
correlation id to the artifacts collected for it (in-flight marker,
captured request body, suppression flag) and, through the log collector,
its trace lines. Everything is dropped by cleanup() when the request
completes.
"""

from __future__ import annotations

import contextvars
import logging
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING, Optional

from starlette.requests import Request

if TYPE_CHECKING:
    from application.ports import LogCollector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrelationBinding:
    """What a request's context carries: its id and the state tracking it.

    Tasks spawned by the handler copy the context and can outlive the
    request; once ``state`` no longer considers the id live the binding is
    ignored.
    """

    correlation_id: str
    state: Optional[CorrelatedState] = None


_current_binding: contextvars.ContextVar[Optional[CorrelationBinding]] = contextvars.ContextVar(
    "logpack_correlation", default=None
)


def current_binding() -> Optional[CorrelationBinding]:
    """Binding of the request being handled in this context, if still in flight."""
    binding = _current_binding.get()
    if binding is None:
        return None
    if binding.state is not None and not binding.state.is_live(binding.correlation_id):
        return None
    return binding


def current_correlation_id() -> Optional[str]:
    """Correlation id of the request being handled in this context, if any."""
    binding = current_binding()
    return binding.correlation_id if binding is not None else None


def bind_correlation_id(
    correlation_id: str, state: Optional[CorrelatedState] = None
) -> contextvars.Token:
    return _current_binding.set(CorrelationBinding(correlation_id, state))


def unbind_correlation_id(token: contextvars.Token) -> None:
    _current_binding.reset(token)


class CorrelatedState:
    """Thread-safe per-request artifacts keyed by correlation id."""

    def __init__(self, log_collector: Optional[LogCollector] = None) -> None:
        self.log_collector = log_collector
        self._live: set[str] = set()
        self._request_bodies: dict[str, str] = {}
        self._suppressed: set[str] = set()
        self._lock = Lock()

    def begin(self, correlation_id: str) -> None:
        """Mark a request as in flight until cleanup()."""
        with self._lock:
            self._live.add(correlation_id)

    def is_live(self, correlation_id: str) -> bool:
        with self._lock:
            return correlation_id in self._live

    def trace(
        self,
        correlation_id: str,
        line: str,
        collector: Optional[LogCollector] = None,
    ) -> bool:
        """Append a trace line while the request is in flight.

        Lines for a completed request are dropped (returns False), so late
        writers such as background tasks cannot recreate cleaned-up entries.
        """
        target = collector if collector is not None else self.log_collector
        if target is None:
            return False
        with self._lock:
            if correlation_id not in self._live:
                return False
            target.trace(correlation_id, line)
        return True

    def store_request_body(self, correlation_id: str, body: str) -> None:
        with self._lock:
            self._request_bodies[correlation_id] = body

    def request_body(self, correlation_id: str) -> Optional[str]:
        with self._lock:
            return self._request_bodies.get(correlation_id)

    def stop(self, correlation_id: str) -> None:
        """Never archive this request, whatever the filters decide.

        Idempotent.
        """
        with self._lock:
            self._suppressed.add(correlation_id)

    def is_suppressed(self, correlation_id: str) -> bool:
        with self._lock:
            return correlation_id in self._suppressed

    def is_tracked(self, correlation_id: str) -> bool:
        """Whether any artifact is still held for this request."""
        with self._lock:
            tracked = (
                correlation_id in self._live
                or correlation_id in self._request_bodies
                or correlation_id in self._suppressed
            )
        if tracked or self.log_collector is None:
            return tracked
        return bool(self.log_collector.get(correlation_id))

    def cleanup(self, correlation_id: str) -> None:
        """Drop everything held for a request. Safe for unknown ids."""
        with self._lock:
            self._live.discard(correlation_id)
            self._request_bodies.pop(correlation_id, None)
            self._suppressed.discard(correlation_id)
            # under the lock so a concurrent trace() cannot slip in after remove
            if self.log_collector is not None:
                self.log_collector.remove(correlation_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._live.union(self._request_bodies, self._suppressed))


@dataclass(frozen=True)
class LogPackHandle:
    """Exposed to downstream code as ``request.state.logpack``."""

    correlation_id: str
    state: CorrelatedState

    def stop(self) -> None:
        self.state.stop(self.correlation_id)


def stop(request: Request) -> None:
    """Suppress the archive for the request being handled.

    Call from a route or dependency; a no-op when LogPack is not installed.
    """
    handle = getattr(request.state, "logpack", None)
    if handle is None:
        logger.debug("stop() called outside of a LogPack-managed request")
        return
    handle.stop()
