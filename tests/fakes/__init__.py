"""
Fake collaborators for testing.

In-memory implementations of the ports in application/ports so the capture
pipeline can be tested without network or shared directories.

Usage:
    from tests.fakes import FakeSink, read_archive

    sink = FakeSink()
    options = LogPackOptions(sinks=[sink])
    ...
    entries = read_archive(sink.received[0].content)
"""
import asyncio
import io
import zipfile
from dataclasses import dataclass
from pathlib import Path
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from logpack.capture.context import CaptureContext, RequestSnapshot, ResponseSnapshot
from logpack.capture.errors import CaptureError

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def read_archive(data: bytes) -> Dict[str, str]:
    """Decode every entry of a serialized archive."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name).decode("utf-8") for name in zf.namelist()}


def make_context(
    status_code: Optional[int] = 200,
    path: str = "/orders",
    method: str = "GET",
    headers: Sequence[Tuple[str, str]] = (("host", "testserver"), ("accept", "*/*")),
    query_string: str = "",
    response_headers: Sequence[Tuple[str, str]] = (("content-type", "application/json"),),
    correlation_id: str = "req-1",
) -> CaptureContext:
    """Build a CaptureContext without going through Starlette."""
    response = None
    if status_code is not None:
        response = ResponseSnapshot(status_code=status_code, headers=list(response_headers))
    return CaptureContext(
        correlation_id=correlation_id,
        request=RequestSnapshot(
            method=method,
            path=path,
            host="testserver",
            query_string=query_string,
            headers=list(headers),
        ),
        response=response,
    )


@dataclass
class ReceivedArchive:
    path: str
    content: bytes


class FakeSink:
    """Records every archive it is sent (reads the file before it is deleted)."""

    def __init__(self, result: bool = True):
        self.result = result
        self.received: List[ReceivedArchive] = []

    async def send(self, path: str) -> bool:
        self.received.append(ReceivedArchive(path=path, content=Path(path).read_bytes()))
        return self.result

    @property
    def entries(self) -> Dict[str, str]:
        """Entries of the last archive received."""
        return read_archive(self.received[-1].content)


class RaisingSink:
    def __init__(self, exc: Exception = RuntimeError("sink down")):
        self.exc = exc
        self.calls = 0

    async def send(self, path: str) -> bool:
        self.calls += 1
        raise self.exc


class SlowSink:
    def __init__(self, delay: float = 5.0):
        self.delay = delay

    async def send(self, path: str) -> bool:
        await asyncio.sleep(self.delay)
        return True


@dataclass
class Notification:
    path: str
    metadata: str
    file_existed: bool


class FakeNotifier:
    def __init__(self, result: bool = True):
        self.result = result
        self.sent: List[Notification] = []

    async def send(self, path: str, metadata: str) -> bool:
        self.sent.append(Notification(path, metadata, Path(path).exists()))
        return self.result


class RecordingErrorReporter:
    def __init__(self):
        self.errors: List[CaptureError] = []

    def report(self, error: CaptureError) -> None:
        self.errors.append(error)

    def stages(self) -> List[str]:
        return [error.stage.value for error in self.errors]


class RecordingFilter:
    """Filter returning a fixed answer and counting how often it was asked."""

    def __init__(self, result: bool, name: Optional[str] = None):
        self.result = result
        self.name = name
        self.calls = 0

    def matches(self, context: CaptureContext) -> bool:
        self.calls += 1
        return self.result


__all__ = [
    "FIXED_NOW",
    "FakeNotifier",
    "FakeSink",
    "Notification",
    "RaisingSink",
    "ReceivedArchive",
    "RecordingErrorReporter",
    "RecordingFilter",
    "SlowSink",
    "make_context",
    "read_archive",
]
