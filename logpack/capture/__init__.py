"""Diagnostic capture for ASGI apps.

Usage::

    from logpack.capture import LogPackMiddleware, LogPackOptions

    app.add_middleware(LogPackMiddleware, options=LogPackOptions(...))

Every 5xx response, and every response an include filter selects (and no
exclude filter vetoes), is archived with its request, trace lines,
environment and dependencies, then sent to the configured sinks.
"""

from .archive import Archive, ArchiveBuilder
from .context import CaptureContext, RequestSnapshot, ResponseSnapshot
from .dispatch import DispatchCoordinator, DispatchReport, archive_filename
from .errors import CaptureError, CaptureOutcome, CaptureStage
from .filters import FilterChain, HeaderFilter, MethodFilter, PathFilter, StatusCodeFilter
from .middleware import LogPackMiddleware
from .options import DependencyDescriptor, LogPackOptions
from .state import CorrelatedState, current_correlation_id, stop

__all__ = [
    "Archive",
    "ArchiveBuilder",
    "CaptureContext",
    "CaptureError",
    "CaptureOutcome",
    "CaptureStage",
    "CorrelatedState",
    "DependencyDescriptor",
    "DispatchCoordinator",
    "DispatchReport",
    "FilterChain",
    "HeaderFilter",
    "LogPackMiddleware",
    "LogPackOptions",
    "MethodFilter",
    "PathFilter",
    "RequestSnapshot",
    "ResponseSnapshot",
    "StatusCodeFilter",
    "archive_filename",
    "current_correlation_id",
    "stop",
]
