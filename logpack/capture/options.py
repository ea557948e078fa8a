"""Runtime options for the capture pipeline.

LogPackSettings (logpack.settings) holds what can come from the environment;
LogPackOptions holds the live objects built from it (filters, sinks,
notifiers...). Hosts can also build LogPackOptions directly.
"""

from __future__ import annotations

import tempfile
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from importlib import metadata
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from .buffer import DEFAULT_PASSTHROUGH_MEDIA_TYPES

if TYPE_CHECKING:
    from application.ports import (
        ArchiveSink,
        ErrorReporter,
        LogCollector,
        NotificationService,
        RequestFilter,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class DependencyDescriptor:
    """Identity of the host program and what it depends on (deps.log)."""

    name: str
    version: Optional[str] = None
    dependencies: tuple[str, ...] = ()

    @property
    def identity(self) -> str:
        return f"{self.name}=={self.version}" if self.version else self.name

    @classmethod
    def from_distribution(cls, distribution_name: str) -> "DependencyDescriptor":
        """Describe an installed distribution from its package metadata."""
        dist = metadata.distribution(distribution_name)
        return cls(
            name=dist.metadata["Name"],
            version=dist.version,
            dependencies=tuple(dist.requires or ()),
        )


@dataclass
class LogPackOptions:
    """
    Everything the capture pipeline needs.

    Attributes:
        include: Filters that ask for a capture (first match wins)
        exclude: Filters that veto an include match
        include_request_payload: Write the request body into ``request``
        include_response: Write the ``response`` entry
        include_response_payload: Write the response body into ``response``
        include_files: Local files copied into the archive
        sinks: Archive destinations, attempted in order
        notification_services: Told about each archive after the sinks ran
        time_zone: Zone for the archive timestamps and file name
        dependencies: Source of the ``deps.log`` entry, skipped when None
        send_timeout: Seconds allowed per sink/notifier send, None for no limit
        dispatch_in_background: Dispatch after the response was sent
    """

    include: list[RequestFilter] = field(default_factory=list)
    exclude: list[RequestFilter] = field(default_factory=list)
    include_request_payload: bool = False
    include_response: bool = False
    include_response_payload: bool = False
    include_files: list[str] = field(default_factory=list)
    sinks: list[ArchiveSink] = field(default_factory=list)
    notification_services: list[NotificationService] = field(default_factory=list)
    time_zone: tzinfo = timezone.utc
    dependencies: Optional[DependencyDescriptor] = None
    log_collector: Optional[LogCollector] = None
    error_reporter: Optional[ErrorReporter] = None
    work_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    send_timeout: Optional[float] = 30.0
    dispatch_in_background: bool = True
    exclude_applies_to_errors: bool = False
    capture_unhandled_errors: bool = False
    redact_headers: list[str] = field(default_factory=list)
    passthrough_media_types: tuple[str, ...] = DEFAULT_PASSTHROUGH_MEDIA_TYPES
    correlation_id_factory: Callable[[], str] = _new_correlation_id
    clock: Callable[[], datetime] = _utcnow
