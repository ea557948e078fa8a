"""Archive assembly.

An Archive is built entirely in memory from independent steps (metadata,
trace lines, environment, request, response, dependencies, extra files).
A failing step is recorded and skipped; the others still run.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
import os
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Mapping, Optional, Union

from .context import CaptureContext
from .errors import CaptureError, CaptureStage
from .options import LogPackOptions

if TYPE_CHECKING:
    from .state import CorrelatedState

logger = logging.getLogger(__name__)

METADATA_ENTRY = ".logpack"
TRACE_ENTRY = "trace.log"
ENV_ENTRY = "env.log"
REQUEST_ENTRY = "request"
RESPONSE_ENTRY = "response"
DEPS_ENTRY = "deps.log"

REDACTED = "***"


def _render(lines: list[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def format_json(body: str) -> str:
    """Pretty-print a JSON document, returning the input when it doesn't parse."""
    try:
        return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
    except ValueError:
        return body


@dataclass
class Archive:
    """Named entries of one capture plus the metadata sent to notifiers."""

    created_at: datetime
    entries: dict[str, bytes] = field(default_factory=dict)
    metadata: str = ""
    errors: list[CaptureError] = field(default_factory=list)

    def add(self, name: str, content: Union[str, bytes]) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.entries[name] = content

    def names(self) -> list[str]:
        return list(self.entries)

    def text(self, name: str) -> str:
        return self.entries[name].decode("utf-8")

    def to_bytes(self) -> bytes:
        """Serialize to a zip container; member timestamps are ``created_at``."""
        stamp = self.created_at.timetuple()[:6]
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, content in self.entries.items():
                info = zipfile.ZipInfo(name, date_time=stamp)
                info.compress_type = zipfile.ZIP_DEFLATED
                zf.writestr(info, content)
        return buffer.getvalue()


class ArchiveBuilder:
    """Builds archives for captured requests."""

    def __init__(
        self,
        options: LogPackOptions,
        state: CorrelatedState,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.options = options
        self.state = state
        self.environ = environ
        self._redacted = {name.lower() for name in options.redact_headers}

    @property
    def log_collector(self):
        return self.state.log_collector

    async def build(self, context: CaptureContext, response_body: Optional[str] = None) -> Archive:
        archive = Archive(created_at=self.options.clock().astimezone(self.options.time_zone))

        steps: list[tuple[str, Callable[[], Union[None, Awaitable[None]]]]] = [
            (METADATA_ENTRY, lambda: self._write_metadata(archive, context)),
            (TRACE_ENTRY, lambda: self._write_trace(archive, context)),
            (ENV_ENTRY, lambda: self._write_env(archive)),
            (REQUEST_ENTRY, lambda: self._write_request(archive, context)),
        ]
        if self.options.dependencies is not None:
            steps.append((DEPS_ENTRY, lambda: self._write_dependencies(archive)))
        if self.options.include_response:
            steps.append((RESPONSE_ENTRY, lambda: self._write_response(archive, context, response_body)))
        for path in self.options.include_files:
            steps.append((path, lambda path=path: self._write_file(archive, path)))

        for name, step in steps:
            try:
                result = step()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.warning("Failed to write archive entry %s for %s: %s", name, context.correlation_id, e)
                archive.errors.append(
                    CaptureError(
                        stage=CaptureStage.ARCHIVE_ENTRY,
                        correlation_id=context.correlation_id,
                        exception=e,
                        detail=name,
                    )
                )
        return archive

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def _write_metadata(self, archive: Archive, context: CaptureContext) -> None:
        now = archive.created_at
        meta = _render(
            [
                f"path: {context.request.path}",
                f"date: {now:%Y-%m-%d}",
                f"time: {now:%H:%M:%S}",
                f"rc: {context.status_code}",
            ]
        )
        archive.add(METADATA_ENTRY, meta)
        archive.metadata = meta

    def _write_trace(self, archive: Archive, context: CaptureContext) -> None:
        collector = self.log_collector
        if collector is None:
            archive.add(TRACE_ENTRY, "")
            return
        archive.add(TRACE_ENTRY, _render(list(collector.get(context.correlation_id))))
        collector.remove(context.correlation_id)

    def _write_env(self, archive: Archive) -> None:
        environ = self.environ if self.environ is not None else os.environ
        archive.add(ENV_ENTRY, _render([f"{key}={environ[key]}" for key in sorted(environ)]))

    def _header_lines(self, headers: list[tuple[str, str]]) -> list[str]:
        return [
            f"{name}: {REDACTED if name.lower() in self._redacted else value}"
            for name, value in headers
        ]

    def _write_request(self, archive: Archive, context: CaptureContext) -> None:
        request = context.request
        lines = [
            f"{request.protocol} {request.path} {request.method}",
            f"Host: {request.host}",
            f"Request.Query:    {request.query_string}",
        ]
        lines.extend(self._header_lines(request.headers))

        if self.options.include_request_payload:
            body = self.state.request_body(context.correlation_id)
            if body is not None:
                if request.content_type == "application/json":
                    body = format_json(body)
                lines.append(body)

        archive.add(REQUEST_ENTRY, _render(lines))

    def _write_response(
        self, archive: Archive, context: CaptureContext, response_body: Optional[str]
    ) -> None:
        lines = [f"statusCode: {context.status_code}"]
        if context.response is not None:
            lines.extend(self._header_lines(context.response.headers))
        if self.options.include_response_payload and response_body is not None:
            lines.append(response_body)
        archive.add(RESPONSE_ENTRY, _render(lines))

    def _write_dependencies(self, archive: Archive) -> None:
        deps = self.options.dependencies
        lines = [deps.identity]
        lines.extend(f"  {dependency}" for dependency in deps.dependencies)
        archive.add(DEPS_ENTRY, _render(lines))

    async def _write_file(self, archive: Archive, path: str) -> None:
        content = await asyncio.to_thread(Path(path).read_bytes)
        archive.add(path, content)
